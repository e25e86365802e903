# File: schemagen/exceptions.py
"""
schemagen - Error Hierarchy
=============================
Exceptions raised by the introspection and generation pipeline.

Only two conditions abort a run:

    - ``UnsupportedDialectError``: the connection's dialect has no
      metadata adapter.  Raised before any artifact is written.
    - ``MetadataQueryError``: an underlying metadata query failed.  Artifacts
      already written for earlier tables are left in place.

Unknown column types, cyclic foreign keys and odd default literals are
logged and degraded, never raised.
"""

from __future__ import annotations

import logging
from typing import List, Optional

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagen.exceptions")


class SchemaGenError(Exception):
    """Base class for every error raised by schemagen."""


class UnsupportedDialectError(SchemaGenError):
    """The connection's dialect has no ``MetadataProvider`` adapter."""

    def __init__(self, dialect: str, supported: Optional[List[str]] = None) -> None:
        self.dialect: str = dialect
        self.supported: List[str] = list(supported or [])
        message: str = f"Unsupported database dialect: {dialect!r}"
        if self.supported:
            message += f" (supported: {', '.join(self.supported)})"
        super().__init__(message)


class MetadataQueryError(SchemaGenError):
    """A metadata query against the live database failed."""

    def __init__(
        self,
        message: str,
        *,
        sql: Optional[str] = None,
        table: Optional[str] = None,
    ) -> None:
        self.sql: Optional[str] = sql
        self.table: Optional[str] = table
        if table is not None:
            message = f"[{table}] {message}"
        super().__init__(message)


class ConfigError(SchemaGenError, ValueError):
    """The configuration file is missing, unreadable or invalid."""


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "SchemaGenError",
    "UnsupportedDialectError",
    "MetadataQueryError",
    "ConfigError",
]

logger.debug("schemagen.exceptions loaded.")
