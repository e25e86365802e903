"""
tests/conftest.py
Shared fixtures for the schemagen test suite.

Two kinds of schema source are used:

- ``FakeSchemaSource``: a scripted query surface keyed by the adapter's SQL
  constants, used for the MySQL / PostgreSQL / SQL Server adapters (no
  server required).  Every call is recorded so tests can assert caching.
- A real SQLite database file created through SQLAlchemy inside pytest's
  ``tmp_path``, used for adapter and end-to-end tests.
"""

from __future__ import annotations

import logging
import pathlib
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Type

import pytest
from sqlalchemy import create_engine, text

from schemagen.dialects import MetadataCache, MetadataProvider, MySqlProvider
from schemagen.models import GenerationConfig
from schemagen.translator import ColumnTranslator

Handler = Callable[[Dict[str, Any]], List[Dict[str, Any]]]

MIGRATION_START: datetime = datetime(2024, 1, 1, 12, 0, 0)


# ---------------------------------------------------------------------------
# Scripted schema source
# ---------------------------------------------------------------------------


class FakeSchemaSource:
    """``SchemaSource`` answering from a table of handlers keyed by SQL text."""

    def __init__(self, dialect: str, handlers: Optional[Dict[str, Handler]] = None) -> None:
        self._dialect: str = dialect
        self.handlers: Dict[str, Handler] = dict(handlers or {})
        self.calls: List[Tuple[str, Dict[str, Any]]] = []

    def dialect(self) -> str:
        return self._dialect

    def query(self, sql: str, params: Optional[Mapping[str, Any]] = None) -> List[Dict[str, Any]]:
        bound: Dict[str, Any] = dict(params or {})
        self.calls.append((sql, bound))
        handler: Optional[Handler] = self.handlers.get(sql)
        if handler is None:
            raise RuntimeError(f"unscripted query: {' '.join(sql.split())[:60]}")
        return handler(bound)

    def count(self, sql: str) -> int:
        return sum(1 for called, _ in self.calls if called == sql)


def column(name: str, type_: str, nullable: Any = "NO", default: Optional[str] = None, **extra: Any) -> Dict[str, Any]:
    """One information-schema style column row."""
    row: Dict[str, Any] = {
        "name": name,
        "type": type_,
        "nullable": nullable,
        "column_default": default,
    }
    row.update(extra)
    return row


def table(
    columns: Sequence[Dict[str, Any]],
    pk: Sequence[str] = ("id",),
    unique: Sequence[str] = (),
    auto: Sequence[str] = ("id",),
    fks: Sequence[Tuple[str, str, Optional[str]]] = (),
) -> Dict[str, Any]:
    """Scripted table: columns, key columns and (from_column, to_table, to_column) edges."""
    return {
        "columns": list(columns),
        "pk": list(pk),
        "unique": list(unique),
        "auto": list(auto),
        "fks": list(fks),
    }


def build_source(
    provider_cls: Type[MetadataProvider],
    schema: Dict[str, Dict[str, Any]],
    dialect: Optional[str] = None,
    failing: Optional[Dict[str, Iterable[str]]] = None,
) -> FakeSchemaSource:
    """
    Script a ``FakeSchemaSource`` for *provider_cls* from a table mapping.

    ``failing`` maps an SQL constant name (e.g. ``"COLUMNS_SQL"``) to the
    tables for which that query raises.
    """
    failing = {key: set(tables) for key, tables in (failing or {}).items()}

    def guard(key: str, params: Dict[str, Any]) -> None:
        if params.get("table") in failing.get(key, set()):
            raise RuntimeError(f"{key} failed for {params['table']}")

    def rows_for(key: str, producer: Callable[[Dict[str, Any]], List[Dict[str, Any]]]) -> Handler:
        def handler(params: Dict[str, Any]) -> List[Dict[str, Any]]:
            guard(key, params)
            if params.get("table") not in schema:
                return []
            return producer(schema[params["table"]])
        return handler

    def referencing(params: Dict[str, Any]) -> List[Dict[str, Any]]:
        guard("REFERENCING_SQL", params)
        rows: List[Dict[str, Any]] = []
        for name, entry in schema.items():
            for from_column, to_table, to_column in entry["fks"]:
                if to_table == params["table"]:
                    rows.append({"from_table": name, "from_column": from_column, "to_column": to_column or "id"})
        return rows

    def auto_increment(params: Dict[str, Any]) -> List[Dict[str, Any]]:
        guard("AUTO_INCREMENT_SQL", params)
        entry: Dict[str, Any] = schema.get(params["table"], {})
        return [{"hits": 1 if params["column"] in entry.get("auto", []) else 0}]

    handlers: Dict[str, Handler] = {
        provider_cls.TABLES_SQL: lambda params: [{"name": name} for name in schema],
        provider_cls.COLUMNS_SQL: rows_for("COLUMNS_SQL", lambda entry: [dict(c) for c in entry["columns"]]),
        provider_cls.PRIMARY_KEY_SQL: rows_for("PRIMARY_KEY_SQL", lambda entry: [{"name": c} for c in entry["pk"]]),
        provider_cls.FOREIGN_KEYS_SQL: rows_for(
            "FOREIGN_KEYS_SQL",
            lambda entry: [
                {"from_column": f, "to_table": t, "to_column": c} for f, t, c in entry["fks"]
            ],
        ),
    }
    if provider_cls.UNIQUE_SQL:
        handlers[provider_cls.UNIQUE_SQL] = rows_for(
            "UNIQUE_SQL", lambda entry: [{"name": c} for c in entry["unique"]]
        )
    if provider_cls.AUTO_INCREMENT_SQL:
        handlers[provider_cls.AUTO_INCREMENT_SQL] = auto_increment
    if provider_cls.REFERENCING_SQL:
        handlers[provider_cls.REFERENCING_SQL] = referencing
    return FakeSchemaSource(dialect or provider_cls.dialect.value, handlers)


@pytest.fixture()
def scripted_source() -> Callable[..., FakeSchemaSource]:
    """Factory fixture around ``build_source``."""
    return build_source


# ---------------------------------------------------------------------------
# MySQL shop schema (customers / orders)
# ---------------------------------------------------------------------------


@pytest.fixture()
def shop_schema() -> Dict[str, Dict[str, Any]]:
    """customers ← orders, plus a framework table that is ignored by default."""
    return {
        "customers": table(
            [
                column("id", "int unsigned", extra="auto_increment"),
                column("name", "varchar(255)"),
                column("email", "varchar(255)"),
                column("created_at", "timestamp", "YES"),
                column("updated_at", "timestamp", "YES"),
            ],
            unique=["email"],
        ),
        "migrations": table([column("id", "int unsigned"), column("migration", "varchar(255)")]),
        "orders": table(
            [
                column("id", "bigint unsigned", extra="auto_increment"),
                column("customer_id", "int unsigned"),
                column("total", "decimal(10,2)", default="0.00"),
                column("status", "varchar(20)", default="pending"),
                column("note", "text", "YES", default="'O\\'Brien'"),
                column("placed_at", "datetime", default="CURRENT_TIMESTAMP"),
                column("created_at", "timestamp", "YES"),
                column("updated_at", "timestamp", "YES"),
                column("deleted_at", "timestamp", "YES"),
            ],
            fks=[("customer_id", "customers", "id")],
        ),
    }


@pytest.fixture()
def mysql_source(shop_schema: Dict[str, Dict[str, Any]]) -> FakeSchemaSource:
    return build_source(MySqlProvider, shop_schema)


@pytest.fixture()
def mysql_provider(mysql_source: FakeSchemaSource) -> MySqlProvider:
    return MySqlProvider(mysql_source, MetadataCache(), ignored_tables=GenerationConfig().ignored_tables)


@pytest.fixture()
def mysql_translator() -> ColumnTranslator:
    return ColumnTranslator(MySqlProvider.type_map)


# ---------------------------------------------------------------------------
# Real SQLite database
# ---------------------------------------------------------------------------

SQLITE_DDL: List[str] = [
    """
    CREATE TABLE customers (
        id INTEGER PRIMARY KEY,
        name VARCHAR(100) NOT NULL,
        email VARCHAR(255) UNIQUE,
        created_at DATETIME,
        updated_at DATETIME
    )
    """,
    """
    CREATE TABLE orders (
        id INTEGER PRIMARY KEY,
        customer_id INTEGER NOT NULL REFERENCES customers(id),
        total DECIMAL(10,2) NOT NULL DEFAULT 0,
        note TEXT DEFAULT 'O''Brien',
        placed_at DATETIME DEFAULT CURRENT_TIMESTAMP,
        created_at DATETIME,
        updated_at DATETIME
    )
    """,
    """
    CREATE TABLE migrations (
        id INTEGER PRIMARY KEY,
        migration VARCHAR(255) NOT NULL
    )
    """,
]


@pytest.fixture()
def sqlite_url(tmp_path: pathlib.Path) -> str:
    """URL of a file database holding the customers / orders schema."""
    path: pathlib.Path = tmp_path / "shop.db"
    url: str = f"sqlite:///{path}"
    engine = create_engine(url)
    with engine.begin() as conn:
        for ddl in SQLITE_DDL:
            conn.execute(text(ddl))
    engine.dispose()
    return url


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@pytest.fixture()
def config(tmp_path: pathlib.Path) -> GenerationConfig:
    """Config with a fixed migration clock and output under tmp_path."""
    return GenerationConfig(
        model_path=str(tmp_path / "app" / "models"),
        migration_path=str(tmp_path / "migrations" / "versions"),
        migration_start=MIGRATION_START,
    )


# ---------------------------------------------------------------------------
# Logging isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_schemagen_logger() -> Iterable[None]:
    """The CLI installs its own handler; restore propagation for caplog."""
    yield
    root: logging.Logger = logging.getLogger("schemagen")
    root.handlers.clear()
    root.propagate = True
    root.setLevel(logging.NOTSET)
