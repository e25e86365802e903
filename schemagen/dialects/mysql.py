# File: schemagen/dialects/mysql.py
"""MySQL / MariaDB adapter backed by ``information_schema`` of ``DATABASE()``."""

from __future__ import annotations

from typing import Dict, List

from schemagen.dialects.base import MetadataProvider
from schemagen.models import Dialect, TargetType


class MySqlProvider(MetadataProvider):
    """Metadata adapter for MySQL and MariaDB."""

    dialect = Dialect.MYSQL

    type_map: Dict[str, TargetType] = {
        "tinyint": TargetType.TINY_INTEGER,
        "smallint": TargetType.SMALL_INTEGER,
        "mediumint": TargetType.MEDIUM_INTEGER,
        "int": TargetType.INTEGER,
        "integer": TargetType.INTEGER,
        "bigint": TargetType.BIG_INTEGER,
        "char": TargetType.CHAR,
        "varchar": TargetType.STRING,
        "tinytext": TargetType.TEXT,
        "text": TargetType.TEXT,
        "mediumtext": TargetType.MEDIUM_TEXT,
        "longtext": TargetType.LONG_TEXT,
        "enum": TargetType.STRING,
        "set": TargetType.STRING,
        "decimal": TargetType.DECIMAL,
        "numeric": TargetType.DECIMAL,
        "float": TargetType.FLOAT,
        "double": TargetType.DOUBLE,
        "double precision": TargetType.DOUBLE,
        "real": TargetType.DOUBLE,
        "date": TargetType.DATE,
        "datetime": TargetType.DATETIME,
        "timestamp": TargetType.TIMESTAMP,
        "time": TargetType.TIME,
        "year": TargetType.SMALL_INTEGER,
        "bit": TargetType.BOOLEAN,
        "bool": TargetType.BOOLEAN,
        "boolean": TargetType.BOOLEAN,
        "blob": TargetType.BINARY,
        "tinyblob": TargetType.BINARY,
        "mediumblob": TargetType.BINARY,
        "longblob": TargetType.BINARY,
        "binary": TargetType.BINARY,
        "varbinary": TargetType.BINARY,
        "json": TargetType.JSON,
    }

    TABLES_SQL = """
        SELECT TABLE_NAME AS name
        FROM information_schema.TABLES
        WHERE TABLE_SCHEMA = DATABASE() AND TABLE_TYPE = 'BASE TABLE'
        ORDER BY TABLE_NAME
    """

    COLUMNS_SQL = """
        SELECT COLUMN_NAME AS name,
               COLUMN_TYPE AS type,
               IS_NULLABLE AS nullable,
               COLUMN_DEFAULT AS column_default,
               EXTRA AS extra
        FROM information_schema.COLUMNS
        WHERE TABLE_SCHEMA = DATABASE() AND TABLE_NAME = :table
        ORDER BY ORDINAL_POSITION
    """

    PRIMARY_KEY_SQL = """
        SELECT COLUMN_NAME AS name
        FROM information_schema.KEY_COLUMN_USAGE
        WHERE TABLE_SCHEMA = DATABASE()
          AND TABLE_NAME = :table
          AND CONSTRAINT_NAME = 'PRIMARY'
        ORDER BY ORDINAL_POSITION
    """

    UNIQUE_SQL = """
        SELECT s.COLUMN_NAME AS name
        FROM information_schema.STATISTICS s
        WHERE s.TABLE_SCHEMA = DATABASE()
          AND s.TABLE_NAME = :table
          AND s.NON_UNIQUE = 0
          AND s.INDEX_NAME <> 'PRIMARY'
          AND (
              SELECT COUNT(*) FROM information_schema.STATISTICS c
              WHERE c.TABLE_SCHEMA = s.TABLE_SCHEMA
                AND c.TABLE_NAME = s.TABLE_NAME
                AND c.INDEX_NAME = s.INDEX_NAME
          ) = 1
    """

    AUTO_INCREMENT_SQL = """
        SELECT COUNT(*) AS hits
        FROM information_schema.COLUMNS
        WHERE TABLE_SCHEMA = DATABASE()
          AND TABLE_NAME = :table
          AND COLUMN_NAME = :column
          AND EXTRA LIKE '%auto_increment%'
    """

    FOREIGN_KEYS_SQL = """
        SELECT COLUMN_NAME AS from_column,
               REFERENCED_TABLE_NAME AS to_table,
               REFERENCED_COLUMN_NAME AS to_column
        FROM information_schema.KEY_COLUMN_USAGE
        WHERE TABLE_SCHEMA = DATABASE()
          AND TABLE_NAME = :table
          AND REFERENCED_TABLE_NAME IS NOT NULL
        ORDER BY CONSTRAINT_NAME, ORDINAL_POSITION
    """

    REFERENCING_SQL = """
        SELECT TABLE_NAME AS from_table,
               COLUMN_NAME AS from_column,
               REFERENCED_COLUMN_NAME AS to_column
        FROM information_schema.KEY_COLUMN_USAGE
        WHERE TABLE_SCHEMA = DATABASE()
          AND REFERENCED_TABLE_SCHEMA = DATABASE()
          AND REFERENCED_TABLE_NAME = :table
        ORDER BY TABLE_NAME, CONSTRAINT_NAME, ORDINAL_POSITION
    """


__all__: List[str] = ["MySqlProvider"]
