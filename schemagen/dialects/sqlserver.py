# File: schemagen/dialects/sqlserver.py
"""SQL Server adapter backed by ``INFORMATION_SCHEMA`` and ``sys`` catalog views."""

from __future__ import annotations

import re
from typing import Dict, List, Optional

from schemagen.dialects.base import MetadataProvider, _balanced
from schemagen.models import Dialect, TargetType
from schemagen.source import Row

_UNICODE_LITERAL_RE: re.Pattern[str] = re.compile(r"^N'(.*)'$", re.DOTALL)
_NOW_RE: re.Pattern[str] = re.compile(
    r"^(getdate|sysdatetime|getutcdate|sysutcdatetime|current_timestamp)(\(\))?$",
    re.IGNORECASE,
)

_SIZED_TYPES: frozenset = frozenset({"char", "nchar", "varchar", "nvarchar", "binary", "varbinary"})
_SCALED_TYPES: frozenset = frozenset({"decimal", "numeric"})


class SqlServerProvider(MetadataProvider):
    """Metadata adapter for Microsoft SQL Server."""

    dialect = Dialect.MSSQL

    type_map: Dict[str, TargetType] = {
        "tinyint": TargetType.TINY_INTEGER,
        "smallint": TargetType.SMALL_INTEGER,
        "int": TargetType.INTEGER,
        "bigint": TargetType.BIG_INTEGER,
        "char": TargetType.CHAR,
        "nchar": TargetType.CHAR,
        "varchar": TargetType.STRING,
        "nvarchar": TargetType.STRING,
        "text": TargetType.TEXT,
        "ntext": TargetType.TEXT,
        "xml": TargetType.LONG_TEXT,
        "decimal": TargetType.DECIMAL,
        "numeric": TargetType.DECIMAL,
        "money": TargetType.DECIMAL,
        "smallmoney": TargetType.DECIMAL,
        "real": TargetType.FLOAT,
        "float": TargetType.DOUBLE,
        "date": TargetType.DATE,
        "datetime": TargetType.DATETIME,
        "datetime2": TargetType.DATETIME,
        "smalldatetime": TargetType.DATETIME,
        "datetimeoffset": TargetType.TIMESTAMP,
        "time": TargetType.TIME,
        "bit": TargetType.BOOLEAN,
        "binary": TargetType.BINARY,
        "varbinary": TargetType.BINARY,
        "image": TargetType.BINARY,
        "uniqueidentifier": TargetType.UUID,
    }

    TABLES_SQL = """
        SELECT TABLE_NAME AS name
        FROM INFORMATION_SCHEMA.TABLES
        WHERE TABLE_SCHEMA = SCHEMA_NAME() AND TABLE_TYPE = 'BASE TABLE'
        ORDER BY TABLE_NAME
    """

    COLUMNS_SQL = """
        SELECT COLUMN_NAME AS name,
               DATA_TYPE AS type,
               CHARACTER_MAXIMUM_LENGTH AS char_length,
               NUMERIC_PRECISION AS numeric_precision,
               NUMERIC_SCALE AS numeric_scale,
               IS_NULLABLE AS nullable,
               COLUMN_DEFAULT AS column_default
        FROM INFORMATION_SCHEMA.COLUMNS
        WHERE TABLE_SCHEMA = SCHEMA_NAME() AND TABLE_NAME = :table
        ORDER BY ORDINAL_POSITION
    """

    PRIMARY_KEY_SQL = """
        SELECT kcu.COLUMN_NAME AS name
        FROM INFORMATION_SCHEMA.TABLE_CONSTRAINTS tc
        JOIN INFORMATION_SCHEMA.KEY_COLUMN_USAGE kcu
          ON tc.CONSTRAINT_NAME = kcu.CONSTRAINT_NAME
         AND tc.TABLE_SCHEMA = kcu.TABLE_SCHEMA
        WHERE tc.CONSTRAINT_TYPE = 'PRIMARY KEY'
          AND tc.TABLE_SCHEMA = SCHEMA_NAME()
          AND tc.TABLE_NAME = :table
        ORDER BY kcu.ORDINAL_POSITION
    """

    UNIQUE_SQL = """
        SELECT kcu.COLUMN_NAME AS name
        FROM INFORMATION_SCHEMA.TABLE_CONSTRAINTS tc
        JOIN INFORMATION_SCHEMA.KEY_COLUMN_USAGE kcu
          ON tc.CONSTRAINT_NAME = kcu.CONSTRAINT_NAME
         AND tc.TABLE_SCHEMA = kcu.TABLE_SCHEMA
        WHERE tc.CONSTRAINT_TYPE = 'UNIQUE'
          AND tc.TABLE_SCHEMA = SCHEMA_NAME()
          AND tc.TABLE_NAME = :table
          AND (
              SELECT COUNT(*) FROM INFORMATION_SCHEMA.KEY_COLUMN_USAGE k2
              WHERE k2.CONSTRAINT_NAME = tc.CONSTRAINT_NAME
                AND k2.TABLE_SCHEMA = tc.TABLE_SCHEMA
          ) = 1
    """

    AUTO_INCREMENT_SQL = """
        SELECT COLUMNPROPERTY(
                   OBJECT_ID(QUOTENAME(SCHEMA_NAME()) + '.' + QUOTENAME(:table)),
                   :column,
                   'IsIdentity'
               ) AS hits
    """

    FOREIGN_KEYS_SQL = """
        SELECT pc.name AS from_column,
               rt.name AS to_table,
               rc.name AS to_column
        FROM sys.foreign_key_columns fkc
        JOIN sys.tables pt ON pt.object_id = fkc.parent_object_id
        JOIN sys.columns pc
          ON pc.object_id = fkc.parent_object_id AND pc.column_id = fkc.parent_column_id
        JOIN sys.tables rt ON rt.object_id = fkc.referenced_object_id
        JOIN sys.columns rc
          ON rc.object_id = fkc.referenced_object_id AND rc.column_id = fkc.referenced_column_id
        WHERE pt.name = :table AND pt.schema_id = SCHEMA_ID()
        ORDER BY fkc.constraint_object_id, fkc.constraint_column_id
    """

    REFERENCING_SQL = """
        SELECT pt.name AS from_table,
               pc.name AS from_column,
               rc.name AS to_column
        FROM sys.foreign_key_columns fkc
        JOIN sys.tables pt ON pt.object_id = fkc.parent_object_id
        JOIN sys.columns pc
          ON pc.object_id = fkc.parent_object_id AND pc.column_id = fkc.parent_column_id
        JOIN sys.tables rt ON rt.object_id = fkc.referenced_object_id
        JOIN sys.columns rc
          ON rc.object_id = fkc.referenced_object_id AND rc.column_id = fkc.referenced_column_id
        WHERE rt.name = :table AND rt.schema_id = SCHEMA_ID()
        ORDER BY pt.name, fkc.constraint_object_id, fkc.constraint_column_id
    """

    def _column_type(self, row: Row) -> str:
        base: str = str(row.get("type") or "")
        lowered: str = base.lower()
        length = row.get("char_length")
        # -1 means (max)
        if lowered in _SIZED_TYPES and length and int(length) > 0:
            return f"{base}({length})"
        if lowered in _SCALED_TYPES and row.get("numeric_precision") is not None:
            return f"{base}({row['numeric_precision']},{row.get('numeric_scale') or 0})"
        return base

    def _prepare_default(self, raw: str) -> Optional[str]:
        # SQL Server wraps defaults in one or two pairs of parentheses: ((0)), (N'x')
        value: str = raw.strip()
        while value.startswith("(") and value.endswith(")") and _balanced(value[1:-1]):
            value = value[1:-1].strip()
        match = _UNICODE_LITERAL_RE.match(value)
        if match:
            value = f"'{match.group(1)}'"
        if _NOW_RE.match(value):
            return "CURRENT_TIMESTAMP"
        return value


__all__: List[str] = ["SqlServerProvider"]
