# File: schemagen/dialects/base.py
"""
schemagen - Metadata Provider Base
====================================
Uniform, dialect-independent questions about a live schema.

Each concrete adapter supplies the SQL for its information schema as class
attributes plus a few normalization hooks; the base class runs those
queries through the ``SchemaSource``, memoizes every answer in the run's
``MetadataCache`` and converts rows into ``ColumnDescriptor`` and
``ForeignKeyEdge`` models.

Row contract for the adapter SQL (lower-case aliases):

    TABLES_SQL           → name
    COLUMNS_SQL          → name, type, nullable, column_default [+ extras]
    PRIMARY_KEY_SQL      → name (native key order)
    UNIQUE_SQL           → name (single-column unique constraints)
    AUTO_INCREMENT_SQL   → hits
    FOREIGN_KEYS_SQL     → from_column, to_table, to_column
    REFERENCING_SQL      → from_table, from_column, to_column

Every query receives ``:table`` (and ``:column`` where relevant) as named
bind parameters.
"""

from __future__ import annotations

import logging
import re
from abc import ABC
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Iterable, List, Mapping, Optional, Set, Tuple

from schemagen.exceptions import MetadataQueryError
from schemagen.models import ColumnDescriptor, Dialect, ForeignKeyEdge, TargetType
from schemagen.source import Row, SchemaSource

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagen.dialects")

_BACKSLASH_ESCAPE_RE: re.Pattern[str] = re.compile(r"\\(.)", re.DOTALL)
_TRUTHY: frozenset = frozenset({"YES", "Y", "TRUE", "T", "1", "ON"})


# ---------------------------------------------------------------------------
# Per-run cache
# ---------------------------------------------------------------------------


@dataclass
class MetadataCache:
    """
    Memoized metadata for one generation run.

    Owned by the run and discarded with it; never shared between runs so a
    changed schema is always re-read.
    """

    tables: Optional[List[str]] = None
    column_rows: Dict[str, Dict[str, Row]] = field(default_factory=dict)
    column_info: Dict[Tuple[str, str], ColumnDescriptor] = field(default_factory=dict)
    primary_keys: Dict[str, List[str]] = field(default_factory=dict)
    unique_columns: Dict[str, Set[str]] = field(default_factory=dict)
    auto_increment: Dict[Tuple[str, str], bool] = field(default_factory=dict)
    foreign_keys: Dict[str, List[ForeignKeyEdge]] = field(default_factory=dict)
    referencing: Dict[str, List[ForeignKeyEdge]] = field(default_factory=dict)

    def clear(self) -> None:
        self.tables = None
        self.column_rows.clear()
        self.column_info.clear()
        self.primary_keys.clear()
        self.unique_columns.clear()
        self.auto_increment.clear()
        self.foreign_keys.clear()
        self.referencing.clear()


# ---------------------------------------------------------------------------
# Normalization helpers
# ---------------------------------------------------------------------------


def _flag(value: Any) -> bool:
    """Fold the many boolean spellings of information schemas into a bool."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    return str(value).strip().upper() in _TRUTHY


def _balanced(text: str) -> bool:
    depth: int = 0
    for char in text:
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth < 0:
                return False
    return depth == 0


def strip_quotes(value: str) -> str:
    """Remove one layer of matching single or double quotes."""
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


def strip_wrapping(value: str) -> str:
    """Remove one layer of matching quotes or balanced parentheses."""
    unquoted: str = strip_quotes(value)
    if unquoted != value:
        return unquoted
    if value.startswith("(") and value.endswith(")") and _balanced(value[1:-1]):
        return value[1:-1]
    return value


def unescape_literal(value: str) -> str:
    """Undo backslash escapes and doubled quotes."""
    value = _BACKSLASH_ESCAPE_RE.sub(r"\1", value)
    return value.replace("''", "'").replace('""', '"')


def normalize_default(raw: Optional[str]) -> Optional[str]:
    """
    Turn a dialect-native default literal into plain text.

    Strips one layer of quoting or parentheses, un-escapes, then strips a
    second layer of quoting (quotes only) for dialects that double-wrap
    string literals::

        'O\\'Brien'   → O'Brien
        ('active')   → active
        '(none)'     → (none)
        CURRENT_TIMESTAMP → CURRENT_TIMESTAMP

    Heuristic only: deeply nested or malformed literals may come out
    imperfect, in which case the text is passed through as-is.
    """
    if raw is None:
        return None
    value: str = str(raw).strip()
    value = strip_wrapping(value)
    value = unescape_literal(value)
    return strip_quotes(value)


# ---------------------------------------------------------------------------
# Provider base
# ---------------------------------------------------------------------------


class MetadataProvider(ABC):
    """
    Normalized metadata questions for one dialect.

    Instantiate through ``schemagen.dialects.get_provider``; one instance per
    run, sharing the run's ``MetadataCache``.
    """

    dialect: ClassVar[Dialect]
    type_map: ClassVar[Dict[str, TargetType]] = {}

    TABLES_SQL: ClassVar[str] = ""
    COLUMNS_SQL: ClassVar[str] = ""
    PRIMARY_KEY_SQL: ClassVar[str] = ""
    UNIQUE_SQL: ClassVar[Optional[str]] = None
    AUTO_INCREMENT_SQL: ClassVar[Optional[str]] = None
    FOREIGN_KEYS_SQL: ClassVar[str] = ""
    REFERENCING_SQL: ClassVar[Optional[str]] = None

    def __init__(
        self,
        source: SchemaSource,
        cache: Optional[MetadataCache] = None,
        ignored_tables: Iterable[str] = (),
    ) -> None:
        self._source: SchemaSource = source
        self._cache: MetadataCache = cache if cache is not None else MetadataCache()
        self._ignored: Set[str] = set(ignored_tables)

    @property
    def cache(self) -> MetadataCache:
        return self._cache

    @property
    def ignored_tables(self) -> Set[str]:
        return set(self._ignored)

    # -----------------------------------------------------------------
    # Tables & columns
    # -----------------------------------------------------------------

    def list_tables(self) -> List[str]:
        """Discovered tables in discovery order, minus the ignore set."""
        if self._cache.tables is None:
            rows: List[Row] = self._query(self.TABLES_SQL)
            self._cache.tables = [
                str(row["name"]) for row in rows if str(row["name"]) not in self._ignored
            ]
            logger.debug(
                "Discovered %d table(s) (%d ignored).",
                len(self._cache.tables),
                len(rows) - len(self._cache.tables),
            )
        return list(self._cache.tables)

    def list_columns(self, table: str) -> List[str]:
        """Column names in declared order."""
        return list(self._column_rows(table).keys())

    def column_info(self, table: str, column: str) -> ColumnDescriptor:
        key: Tuple[str, str] = (table, column)
        cached: Optional[ColumnDescriptor] = self._cache.column_info.get(key)
        if cached is not None:
            return cached

        row: Row = self._column_row(table, column)
        raw_default: Optional[Any] = row.get("column_default")
        descriptor: ColumnDescriptor = ColumnDescriptor(
            name=column,
            raw_type=self._column_type(row),
            is_nullable=self._is_nullable(row),
            raw_default=None if raw_default is None else str(raw_default),
            default=self.default_value(table, column),
            is_primary_key=self.is_primary_key(table, column),
            is_auto_increment=self.is_auto_increment(table, column),
            is_unique=self.is_unique(table, column),
        )
        self._cache.column_info[key] = descriptor
        return descriptor

    def default_value(self, table: str, column: str) -> Optional[str]:
        raw: Optional[Any] = self._column_row(table, column).get("column_default")
        if raw is None:
            return None
        prepared: Optional[str] = self._prepare_default(str(raw).strip())
        return normalize_default(prepared)

    # -----------------------------------------------------------------
    # Keys
    # -----------------------------------------------------------------

    def is_primary_key(self, table: str, column: str) -> bool:
        return column in self._primary_keys(table)

    def is_unique(self, table: str, column: str) -> bool:
        if table not in self._cache.unique_columns:
            names: Set[str] = set()
            if self.UNIQUE_SQL:
                rows: List[Row] = self._query(self.UNIQUE_SQL, {"table": table}, table=table)
                names = {str(row["name"]) for row in rows}
            self._cache.unique_columns[table] = names
        return column in self._cache.unique_columns[table]

    def is_auto_increment(self, table: str, column: str) -> bool:
        key: Tuple[str, str] = (table, column)
        if key not in self._cache.auto_increment:
            self._cache.auto_increment[key] = self._detect_auto_increment(table, column)
        return self._cache.auto_increment[key]

    def primary_key_column(self, table: str) -> str:
        """First primary key column in native key order, ``"id"`` when unknown."""
        try:
            keys: List[str] = self._primary_keys(table)
        except MetadataQueryError as exc:
            logger.warning("Primary key lookup failed for '%s', assuming 'id': %s", table, exc)
            return "id"
        if not keys:
            logger.debug("Table '%s' declares no primary key, assuming 'id'.", table)
            return "id"
        return keys[0]

    # -----------------------------------------------------------------
    # Foreign keys
    # -----------------------------------------------------------------

    def foreign_keys(self, table: str) -> List[ForeignKeyEdge]:
        """Outgoing edges, in the order the database reports them."""
        if table not in self._cache.foreign_keys:
            rows: List[Row] = self._query(self.FOREIGN_KEYS_SQL, {"table": table}, table=table)
            edges: List[ForeignKeyEdge] = []
            for row in rows:
                to_table: str = str(row["to_table"])
                to_column: Optional[Any] = row.get("to_column")
                edges.append(ForeignKeyEdge(
                    from_table=table,
                    from_column=str(row["from_column"]),
                    to_table=to_table,
                    to_column=(
                        str(to_column) if to_column is not None
                        else self.primary_key_column(to_table)
                    ),
                ))
            self._cache.foreign_keys[table] = edges
        return list(self._cache.foreign_keys[table])

    def referencing_tables(self, table: str) -> List[ForeignKeyEdge]:
        """
        Incoming edges (``to_table == table``), self-references included.

        Uses the adapter's reverse-lookup query when it has one; otherwise
        scans ``foreign_keys`` of every discovered table.  Edges from ignored
        tables are dropped either way.
        """
        if table not in self._cache.referencing:
            edges: List[ForeignKeyEdge] = []
            if self.REFERENCING_SQL:
                rows: List[Row] = self._query(self.REFERENCING_SQL, {"table": table}, table=table)
                for row in rows:
                    edges.append(ForeignKeyEdge(
                        from_table=str(row["from_table"]),
                        from_column=str(row["from_column"]),
                        to_table=table,
                        to_column=str(row["to_column"]),
                    ))
            else:
                for other in self.list_tables():
                    edges.extend(
                        edge for edge in self.foreign_keys(other) if edge.to_table == table
                    )
            self._cache.referencing[table] = [
                edge for edge in edges if edge.from_table not in self._ignored
            ]
        return list(self._cache.referencing[table])

    # -----------------------------------------------------------------
    # Adapter hooks
    # -----------------------------------------------------------------

    def _column_type(self, row: Row) -> str:
        return str(row.get("type") or "")

    def _is_nullable(self, row: Row) -> bool:
        return _flag(row.get("nullable"))

    def _prepare_default(self, raw: str) -> Optional[str]:
        """Dialect-specific clean-up before generic normalization."""
        return raw

    def _detect_auto_increment(self, table: str, column: str) -> bool:
        if not self.AUTO_INCREMENT_SQL:
            return False
        rows: List[Row] = self._query(
            self.AUTO_INCREMENT_SQL, {"table": table, "column": column}, table=table
        )
        return bool(rows) and _flag(rows[0].get("hits"))

    # -----------------------------------------------------------------
    # Internals
    # -----------------------------------------------------------------

    def _column_rows(self, table: str) -> Dict[str, Row]:
        if table not in self._cache.column_rows:
            rows: List[Row] = self._query(self.COLUMNS_SQL, {"table": table}, table=table)
            if not rows:
                raise MetadataQueryError(
                    "Table has no visible columns (missing or not accessible).",
                    sql=self.COLUMNS_SQL,
                    table=table,
                )
            self._cache.column_rows[table] = {str(row["name"]): row for row in rows}
        return self._cache.column_rows[table]

    def _column_row(self, table: str, column: str) -> Row:
        row: Optional[Row] = self._column_rows(table).get(column)
        if row is None:
            raise MetadataQueryError(f"Unknown column '{column}'.", table=table)
        return row

    def _primary_keys(self, table: str) -> List[str]:
        if table not in self._cache.primary_keys:
            rows: List[Row] = self._query(self.PRIMARY_KEY_SQL, {"table": table}, table=table)
            self._cache.primary_keys[table] = [str(row["name"]) for row in rows]
        return self._cache.primary_keys[table]

    def _query(
        self,
        sql: str,
        params: Optional[Mapping[str, Any]] = None,
        *,
        table: Optional[str] = None,
    ) -> List[Row]:
        try:
            return list(self._source.query(sql, dict(params or {})))
        except MetadataQueryError as exc:
            if table is not None and exc.table is None:
                raise MetadataQueryError(str(exc), sql=exc.sql or sql, table=table) from exc
            raise
        except Exception as exc:
            raise MetadataQueryError(
                f"{type(exc).__name__}: {exc}", sql=sql, table=table
            ) from exc

    def __repr__(self) -> str:
        return f"<{type(self).__name__} dialect={self.dialect.value}>"


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "MetadataCache",
    "MetadataProvider",
    "normalize_default",
    "strip_quotes",
    "strip_wrapping",
    "unescape_literal",
]
