# File: schemagen/dialects/postgresql.py
"""PostgreSQL adapter backed by ``information_schema`` of ``current_schema()``."""

from __future__ import annotations

import re
from typing import Dict, List, Optional

from schemagen.dialects.base import MetadataProvider
from schemagen.models import Dialect, TargetType
from schemagen.source import Row

# Trailing "::character varying", "::timestamp without time zone", "::text[]" ...
_CAST_RE: re.Pattern[str] = re.compile(r'::[A-Za-z_][\w ."]*(\[\])?$')
_NOW_RE: re.Pattern[str] = re.compile(
    r"^(now\(\)|current_timestamp(\(\d*\))?|transaction_timestamp\(\)|localtimestamp)$",
    re.IGNORECASE,
)

_SIZED_TYPES: frozenset = frozenset({"character varying", "character", "varchar", "char", "bit"})
_SCALED_TYPES: frozenset = frozenset({"numeric", "decimal"})


class PostgresProvider(MetadataProvider):
    """Metadata adapter for PostgreSQL."""

    dialect = Dialect.POSTGRESQL

    type_map: Dict[str, TargetType] = {
        "smallint": TargetType.SMALL_INTEGER,
        "int2": TargetType.SMALL_INTEGER,
        "smallserial": TargetType.SMALL_INTEGER,
        "integer": TargetType.INTEGER,
        "int": TargetType.INTEGER,
        "int4": TargetType.INTEGER,
        "serial": TargetType.INTEGER,
        "bigint": TargetType.BIG_INTEGER,
        "int8": TargetType.BIG_INTEGER,
        "bigserial": TargetType.BIG_INTEGER,
        "character": TargetType.CHAR,
        "char": TargetType.CHAR,
        "bpchar": TargetType.CHAR,
        "character varying": TargetType.STRING,
        "varchar": TargetType.STRING,
        "citext": TargetType.STRING,
        "text": TargetType.TEXT,
        "numeric": TargetType.DECIMAL,
        "decimal": TargetType.DECIMAL,
        "money": TargetType.DECIMAL,
        "real": TargetType.FLOAT,
        "float4": TargetType.FLOAT,
        "double precision": TargetType.DOUBLE,
        "float8": TargetType.DOUBLE,
        "date": TargetType.DATE,
        "timestamp": TargetType.DATETIME,
        "timestamp without time zone": TargetType.DATETIME,
        "timestamp with time zone": TargetType.TIMESTAMP,
        "timestamptz": TargetType.TIMESTAMP,
        "time": TargetType.TIME,
        "time without time zone": TargetType.TIME,
        "time with time zone": TargetType.TIME,
        "boolean": TargetType.BOOLEAN,
        "bool": TargetType.BOOLEAN,
        "bit": TargetType.BOOLEAN,
        "bytea": TargetType.BINARY,
        "json": TargetType.JSON,
        "jsonb": TargetType.JSON,
        "uuid": TargetType.UUID,
    }

    TABLES_SQL = """
        SELECT table_name AS name
        FROM information_schema.tables
        WHERE table_schema = current_schema() AND table_type = 'BASE TABLE'
        ORDER BY table_name
    """

    COLUMNS_SQL = """
        SELECT column_name AS name,
               data_type AS type,
               character_maximum_length AS char_length,
               numeric_precision,
               numeric_scale,
               is_nullable AS nullable,
               column_default,
               is_identity
        FROM information_schema.columns
        WHERE table_schema = current_schema() AND table_name = :table
        ORDER BY ordinal_position
    """

    PRIMARY_KEY_SQL = """
        SELECT kcu.column_name AS name
        FROM information_schema.table_constraints tc
        JOIN information_schema.key_column_usage kcu
          ON tc.constraint_name = kcu.constraint_name
         AND tc.table_schema = kcu.table_schema
         AND tc.table_name = kcu.table_name
        WHERE tc.constraint_type = 'PRIMARY KEY'
          AND tc.table_schema = current_schema()
          AND tc.table_name = :table
        ORDER BY kcu.ordinal_position
    """

    UNIQUE_SQL = """
        SELECT kcu.column_name AS name
        FROM information_schema.table_constraints tc
        JOIN information_schema.key_column_usage kcu
          ON tc.constraint_name = kcu.constraint_name
         AND tc.table_schema = kcu.table_schema
         AND tc.table_name = kcu.table_name
        WHERE tc.constraint_type = 'UNIQUE'
          AND tc.table_schema = current_schema()
          AND tc.table_name = :table
          AND (
              SELECT COUNT(*) FROM information_schema.key_column_usage k2
              WHERE k2.constraint_name = tc.constraint_name
                AND k2.table_schema = tc.table_schema
          ) = 1
    """

    AUTO_INCREMENT_SQL = """
        SELECT COUNT(*) AS hits
        FROM information_schema.columns
        WHERE table_schema = current_schema()
          AND table_name = :table
          AND column_name = :column
          AND (column_default LIKE 'nextval(%' OR is_identity = 'YES')
    """

    # conkey/confkey are paired arrays; unnesting them together keeps each
    # referencing column aligned with its referenced column.
    FOREIGN_KEYS_SQL = """
        SELECT a.attname AS from_column,
               rt.relname AS to_table,
               ra.attname AS to_column
        FROM pg_constraint c
        JOIN pg_class t ON t.oid = c.conrelid
        JOIN pg_namespace n ON n.oid = t.relnamespace
        JOIN pg_class rt ON rt.oid = c.confrelid
        CROSS JOIN LATERAL unnest(c.conkey, c.confkey) WITH ORDINALITY AS k(attnum, ref_attnum, ord)
        JOIN pg_attribute a ON a.attrelid = c.conrelid AND a.attnum = k.attnum
        JOIN pg_attribute ra ON ra.attrelid = c.confrelid AND ra.attnum = k.ref_attnum
        WHERE c.contype = 'f'
          AND n.nspname = current_schema()
          AND t.relname = :table
        ORDER BY c.conname, k.ord
    """

    REFERENCING_SQL = """
        SELECT t.relname AS from_table,
               a.attname AS from_column,
               ra.attname AS to_column
        FROM pg_constraint c
        JOIN pg_class t ON t.oid = c.conrelid
        JOIN pg_namespace n ON n.oid = t.relnamespace
        JOIN pg_class rt ON rt.oid = c.confrelid
        JOIN pg_namespace rn ON rn.oid = rt.relnamespace
        CROSS JOIN LATERAL unnest(c.conkey, c.confkey) WITH ORDINALITY AS k(attnum, ref_attnum, ord)
        JOIN pg_attribute a ON a.attrelid = c.conrelid AND a.attnum = k.attnum
        JOIN pg_attribute ra ON ra.attrelid = c.confrelid AND ra.attnum = k.ref_attnum
        WHERE c.contype = 'f'
          AND n.nspname = current_schema()
          AND rn.nspname = current_schema()
          AND rt.relname = :table
        ORDER BY t.relname, c.conname, k.ord
    """

    def _column_type(self, row: Row) -> str:
        base: str = str(row.get("type") or "")
        lowered: str = base.lower()
        if lowered in _SIZED_TYPES and row.get("char_length"):
            return f"{base}({row['char_length']})"
        if lowered in _SCALED_TYPES and row.get("numeric_precision") is not None:
            return f"{base}({row['numeric_precision']},{row.get('numeric_scale') or 0})"
        return base

    def _prepare_default(self, raw: str) -> Optional[str]:
        if raw.lower().startswith("nextval("):
            return None
        value: str = raw
        while True:
            stripped: str = _CAST_RE.sub("", value).strip()
            if stripped == value:
                break
            value = stripped
        if _NOW_RE.match(value):
            return "CURRENT_TIMESTAMP"
        return value


__all__: List[str] = ["PostgresProvider"]
