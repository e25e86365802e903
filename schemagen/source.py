# File: schemagen/source.py
"""
schemagen - Schema Source (connectivity layer)
================================================
The single capability the metadata adapters consume:

    - ``dialect()`` → dialect tag used to select an adapter
    - ``query(sql, params)`` → ordered rows with named fields

``SqlAlchemySchemaSource`` implements it on top of a SQLAlchemy ``Engine``.
Every call checks a connection out of the engine pool, runs one ``text()``
statement with named bind parameters and returns the rows as mappings.
Tests substitute any object with the same two methods.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, runtime_checkable

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import ArgumentError, SQLAlchemyError

from schemagen.exceptions import MetadataQueryError
from schemagen.models import Dialect

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagen.source")

Row = Mapping[str, Any]

_PASSWORD_RE: re.Pattern[str] = re.compile(r"://([^:/@]+):([^@/]+)@")


# ---------------------------------------------------------------------------
# Capability protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class SchemaSource(Protocol):
    """Anything that can name its dialect and run a parameterised query."""

    def dialect(self) -> str:
        ...

    def query(self, sql: str, params: Optional[Mapping[str, Any]] = None) -> Sequence[Row]:
        ...


# ---------------------------------------------------------------------------
# Engine helpers
# ---------------------------------------------------------------------------


def sanitize_connection_string(url: str) -> str:
    """Mask the password of a database URL so it can be logged."""
    try:
        return make_url(url).render_as_string(hide_password=True)
    except ArgumentError:
        return _PASSWORD_RE.sub(r"://\1:***@", url)


def create_database_engine(url: str, **engine_kwargs: Any) -> Engine:
    """
    Create a SQLAlchemy engine for introspection.

    SQLite connections are opened with ``check_same_thread=False`` so a
    pooled connection can be reused by whichever thread runs the query.
    """
    connect_args: Dict[str, Any] = dict(engine_kwargs.pop("connect_args", {}))
    if url.startswith("sqlite"):
        connect_args.setdefault("check_same_thread", False)

    engine: Engine = create_engine(url, connect_args=connect_args, **engine_kwargs)
    logger.debug("Created engine for %s.", sanitize_connection_string(url))
    return engine


# ---------------------------------------------------------------------------
# SQLAlchemy implementation
# ---------------------------------------------------------------------------


class SqlAlchemySchemaSource:
    """``SchemaSource`` backed by a SQLAlchemy engine."""

    def __init__(self, engine: Engine) -> None:
        self._engine: Engine = engine
        self._owns_engine: bool = False

    @classmethod
    def from_url(cls, url: str, **engine_kwargs: Any) -> "SqlAlchemySchemaSource":
        source: SqlAlchemySchemaSource = cls(create_database_engine(url, **engine_kwargs))
        source._owns_engine = True
        return source

    @property
    def engine(self) -> Engine:
        return self._engine

    def dialect(self) -> str:
        """
        Dialect tag of the engine.

        Known aliases are folded (``mariadb`` → ``mysql``); unknown names are
        returned unchanged so adapter selection can report them.
        """
        name: str = self._engine.dialect.name
        member: Optional[Dialect] = Dialect.from_name(name)
        return member.value if member is not None else name

    def query(self, sql: str, params: Optional[Mapping[str, Any]] = None) -> List[Row]:
        bound: Dict[str, Any] = dict(params or {})
        try:
            with self._engine.connect() as conn:
                rows: List[Row] = [
                    dict(row) for row in conn.execute(text(sql), bound).mappings().all()
                ]
        except SQLAlchemyError as exc:
            raise MetadataQueryError(f"Metadata query failed: {exc}", sql=sql) from exc

        logger.debug("Query returned %d row(s): %s %s", len(rows), " ".join(sql.split()), bound)
        return rows

    def dispose(self) -> None:
        """Release pooled connections if this source created the engine."""
        if self._owns_engine:
            self._engine.dispose()

    def __enter__(self) -> "SqlAlchemySchemaSource":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.dispose()

    def __repr__(self) -> str:
        return f"<SqlAlchemySchemaSource {sanitize_connection_string(str(self._engine.url))}>"


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "Row",
    "SchemaSource",
    "SqlAlchemySchemaSource",
    "create_database_engine",
    "sanitize_connection_string",
]

logger.debug("schemagen.source loaded.")
