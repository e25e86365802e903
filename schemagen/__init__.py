# File: schemagen/__init__.py
"""
schemagen — Database Schema Introspection and Code Generation
===============================================================

Reverse-engineers a live relational database (MySQL, PostgreSQL, SQLite,
SQL Server) into SQLAlchemy 2.0 model modules and an ordered series of
Alembic migration scripts that can rebuild the schema from scratch.

Architecture overview::

    ┌──────────────┐     ┌─────────────────┐     ┌──────────────────┐
    │  CLI / Entry │────▶│ SchemaGenerator │────▶│ TemplateGenerator│
    │   (cli.py)   │     │ (generator.py)  │     │  (templates.py)  │
    └──────────────┘     └────────┬────────┘     └──────────────────┘
                                  │
           ┌───────────┬──────────┼───────────┬────────────┐
           ▼           ▼          ▼           ▼            ▼
     ┌──────────┐ ┌─────────┐ ┌────────┐ ┌──────────┐ ┌───────────┐
     │ dialects │ │  graph  │ │ trans- │ │ entities │ │ exporters │
     │ (source) │ │  (.py)  │ │ lator  │ │migrations│ │   (.py)   │
     └──────────┘ └─────────┘ └────────┘ └──────────┘ └───────────┘

Usage::

    # As a library
    from schemagen import SchemaGenerator, SqlAlchemySchemaSource, MemorySink
    with SqlAlchemySchemaSource.from_url("sqlite:///shop.db") as source:
        report = SchemaGenerator().generate(source, MemorySink(), MemorySink())

    # From the command line
    python -m schemagen --database-url sqlite:///shop.db --verbose

Public API:
    - SchemaGenerator        — Run orchestrator
    - GenerationConfig       — Run settings model
    - SqlAlchemySchemaSource — Query surface over a SQLAlchemy engine
    - get_provider           — Dialect adapter selection
    - SchemaGraph            — Foreign-key dependency ordering
    - ColumnTranslator       — Raw column type to declaration mapping
    - EntityGenerator / MigrationGenerator — Artifact builders
    - TemplateGenerator      — Source-code rendering
    - DirectorySink / MemorySink — Artifact writers
"""

from __future__ import annotations

__version__: str = "0.1.0"
__license__: str = "MIT"

from schemagen.dialects import MetadataCache, MetadataProvider, get_provider, supported_dialects
from schemagen.entities import EntityGenerator
from schemagen.exceptions import (
    ConfigError,
    MetadataQueryError,
    SchemaGenError,
    UnsupportedDialectError,
)
from schemagen.exporters import ArtifactSink, DirectorySink, MemorySink
from schemagen.generator import (
    GenerationReport,
    SchemaGenerator,
    load_config_file,
    parse_raw_config,
)
from schemagen.graph import SchemaGraph
from schemagen.migrations import MigrationClock, MigrationGenerator
from schemagen.models import (
    ColumnDeclaration,
    ColumnDescriptor,
    Dialect,
    EntityArtifact,
    ForeignKeyEdge,
    GenerationConfig,
    MigrationArtifact,
    TargetType,
)
from schemagen.source import SchemaSource, SqlAlchemySchemaSource
from schemagen.templates import TemplateGenerator
from schemagen.translator import ColumnTranslator

# ---------------------------------------------------------------------------
# Public API surface
# ---------------------------------------------------------------------------

__all__: list[str] = [
    # Version info
    "__version__",
    "__license__",
    # Core orchestrator
    "SchemaGenerator",
    "GenerationReport",
    "load_config_file",
    "parse_raw_config",
    # Sources and dialects
    "SchemaSource",
    "SqlAlchemySchemaSource",
    "MetadataCache",
    "MetadataProvider",
    "get_provider",
    "supported_dialects",
    # Pipeline stages
    "SchemaGraph",
    "ColumnTranslator",
    "EntityGenerator",
    "MigrationGenerator",
    "MigrationClock",
    "TemplateGenerator",
    # Sinks
    "ArtifactSink",
    "DirectorySink",
    "MemorySink",
    # Models
    "ColumnDeclaration",
    "ColumnDescriptor",
    "Dialect",
    "EntityArtifact",
    "ForeignKeyEdge",
    "GenerationConfig",
    "MigrationArtifact",
    "TargetType",
    # Errors
    "ConfigError",
    "MetadataQueryError",
    "SchemaGenError",
    "UnsupportedDialectError",
]
