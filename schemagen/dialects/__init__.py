# File: schemagen/dialects/__init__.py
"""
schemagen - Dialect Adapters
==============================
Registry of ``MetadataProvider`` implementations, selected once per run
from the ``SchemaSource`` dialect tag.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Tuple, Type

from schemagen.dialects.base import MetadataCache, MetadataProvider, normalize_default
from schemagen.dialects.mysql import MySqlProvider
from schemagen.dialects.postgresql import PostgresProvider
from schemagen.dialects.sqlite import SqliteProvider
from schemagen.dialects.sqlserver import SqlServerProvider
from schemagen.exceptions import UnsupportedDialectError
from schemagen.models import Dialect
from schemagen.source import SchemaSource

logger: logging.Logger = logging.getLogger("schemagen.dialects")

_ADAPTERS: Dict[Dialect, Type[MetadataProvider]] = {
    Dialect.MYSQL: MySqlProvider,
    Dialect.POSTGRESQL: PostgresProvider,
    Dialect.SQLITE: SqliteProvider,
    Dialect.MSSQL: SqlServerProvider,
}


def supported_dialects() -> Tuple[str, ...]:
    """Return the tags of every dialect with an adapter."""
    return tuple(d.value for d in _ADAPTERS)


def get_provider_class(dialect_name: str) -> Type[MetadataProvider]:
    """
    Look up the adapter class for a dialect tag.

    Raises:
        UnsupportedDialectError: if no adapter handles *dialect_name*.
    """
    dialect: Optional[Dialect] = Dialect.from_name(dialect_name)
    if dialect is None or dialect not in _ADAPTERS:
        raise UnsupportedDialectError(dialect_name, list(supported_dialects()))
    return _ADAPTERS[dialect]


def get_provider(
    source: SchemaSource,
    cache: Optional[MetadataCache] = None,
    ignored_tables: Iterable[str] = (),
) -> MetadataProvider:
    """Instantiate the adapter matching ``source.dialect()``."""
    provider_cls: Type[MetadataProvider] = get_provider_class(source.dialect())
    provider: MetadataProvider = provider_cls(source, cache, ignored_tables)
    logger.debug("Selected %s for dialect '%s'.", provider_cls.__name__, source.dialect())
    return provider


__all__: List[str] = [
    "MetadataCache",
    "MetadataProvider",
    "MySqlProvider",
    "PostgresProvider",
    "SqliteProvider",
    "SqlServerProvider",
    "get_provider",
    "get_provider_class",
    "normalize_default",
    "supported_dialects",
]
