# File: schemagen/dialects/sqlite.py
"""
SQLite adapter backed by ``sqlite_master`` and the pragma table functions.

SQLite has no reverse foreign-key lookup, so ``referencing_tables`` falls
back to the base class scan over every table's ``foreign_keys``.
"""

from __future__ import annotations

from typing import Dict, List

from schemagen.dialects.base import MetadataProvider, _flag
from schemagen.models import Dialect, TargetType
from schemagen.source import Row


class SqliteProvider(MetadataProvider):
    """Metadata adapter for SQLite 3.16+ (table-valued pragma functions)."""

    dialect = Dialect.SQLITE

    type_map: Dict[str, TargetType] = {
        "tinyint": TargetType.TINY_INTEGER,
        "smallint": TargetType.SMALL_INTEGER,
        "int2": TargetType.SMALL_INTEGER,
        "mediumint": TargetType.MEDIUM_INTEGER,
        "int": TargetType.INTEGER,
        "integer": TargetType.INTEGER,
        "bigint": TargetType.BIG_INTEGER,
        "int8": TargetType.BIG_INTEGER,
        "character": TargetType.CHAR,
        "char": TargetType.CHAR,
        "nchar": TargetType.CHAR,
        "varchar": TargetType.STRING,
        "nvarchar": TargetType.STRING,
        "varying character": TargetType.STRING,
        "text": TargetType.TEXT,
        "clob": TargetType.TEXT,
        "mediumtext": TargetType.MEDIUM_TEXT,
        "longtext": TargetType.LONG_TEXT,
        "decimal": TargetType.DECIMAL,
        "numeric": TargetType.DECIMAL,
        "real": TargetType.FLOAT,
        "float": TargetType.FLOAT,
        "double": TargetType.DOUBLE,
        "double precision": TargetType.DOUBLE,
        "date": TargetType.DATE,
        "datetime": TargetType.DATETIME,
        "timestamp": TargetType.TIMESTAMP,
        "time": TargetType.TIME,
        "boolean": TargetType.BOOLEAN,
        "bool": TargetType.BOOLEAN,
        "bit": TargetType.BOOLEAN,
        "blob": TargetType.BINARY,
        "binary": TargetType.BINARY,
        "varbinary": TargetType.BINARY,
        "json": TargetType.JSON,
        "uuid": TargetType.UUID,
    }

    TABLES_SQL = """
        SELECT name
        FROM sqlite_master
        WHERE type = 'table' AND name NOT LIKE 'sqlite_%'
        ORDER BY name
    """

    COLUMNS_SQL = """
        SELECT name,
               type,
               "notnull" AS not_null,
               dflt_value AS column_default,
               pk
        FROM pragma_table_info(:table)
        ORDER BY cid
    """

    PRIMARY_KEY_SQL = """
        SELECT name
        FROM pragma_table_info(:table)
        WHERE pk > 0
        ORDER BY pk
    """

    UNIQUE_SQL = """
        SELECT ii.name AS name
        FROM pragma_index_list(:table) AS il
        JOIN pragma_index_info(il.name) AS ii
        WHERE il."unique" = 1
          AND il.origin <> 'pk'
          AND (SELECT COUNT(*) FROM pragma_index_info(il.name)) = 1
    """

    FOREIGN_KEYS_SQL = """
        SELECT "from" AS from_column,
               "table" AS to_table,
               "to" AS to_column
        FROM pragma_foreign_key_list(:table)
        ORDER BY id, seq
    """

    def _is_nullable(self, row: Row) -> bool:
        # pragma_table_info reports INTEGER PRIMARY KEY columns as notnull=0
        if row.get("not_null") is None or _flag(row.get("pk")):
            return False
        return not _flag(row.get("not_null"))

    def _detect_auto_increment(self, table: str, column: str) -> bool:
        # Only a lone INTEGER PRIMARY KEY aliases the rowid.
        keys: List[str] = self._primary_keys(table)
        if keys != [column]:
            return False
        declared: str = self._column_type(self._column_row(table, column))
        return declared.strip().upper() == "INTEGER"


__all__: List[str] = ["SqliteProvider"]
