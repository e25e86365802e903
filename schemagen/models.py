# File: schemagen/models.py
"""
schemagen - Core Data Models
==============================
Pydantic V2 models for the uniform schema model that every dialect adapter
normalizes into, the intermediate declarations produced by the column
translator, and the entity / migration artifacts handed to the renderer.

Flow::

    SchemaSource rows → ColumnDescriptor / ForeignKeyEdge
                      → ColumnDeclaration (+ ColumnModifier chain)
                      → EntityArtifact / MigrationArtifact
                      → rendered source text

All metadata models are frozen: a descriptor returned by a provider is
immutable for the rest of the run and safe to share through the cache.
"""

from __future__ import annotations

import logging
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagen.models")

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class Dialect(str, Enum):
    """Database engine families with a metadata adapter."""

    MYSQL = "mysql"
    POSTGRESQL = "postgresql"
    SQLITE = "sqlite"
    MSSQL = "mssql"

    @classmethod
    def from_name(cls, name: str) -> Optional["Dialect"]:
        """Map a driver/dialect name (``mariadb``, ``postgres`` ...) to a member."""
        key: str = (name or "").strip().lower()
        key = _DIALECT_ALIASES.get(key, key)
        for member in cls:
            if member.value == key:
                return member
        return None


_DIALECT_ALIASES: Dict[str, str] = {
    "mariadb": "mysql",
    "postgres": "postgresql",
    "pgsql": "postgresql",
    "sqlserver": "mssql",
    "sqlsrv": "mssql",
}


class TargetType(str, Enum):
    """Portable column declaration types."""

    # Integer family
    TINY_INTEGER = "tiny_integer"
    SMALL_INTEGER = "small_integer"
    MEDIUM_INTEGER = "medium_integer"
    INTEGER = "integer"
    BIG_INTEGER = "big_integer"

    # Auto-incrementing primary key shorthands
    TINY_INCREMENTS = "tiny_increments"
    SMALL_INCREMENTS = "small_increments"
    MEDIUM_INCREMENTS = "medium_increments"
    INCREMENTS = "increments"
    BIG_INCREMENTS = "big_increments"

    # Character family
    CHAR = "char"
    STRING = "string"
    TEXT = "text"
    MEDIUM_TEXT = "medium_text"
    LONG_TEXT = "long_text"

    # Numeric family
    DECIMAL = "decimal"
    FLOAT = "float"
    DOUBLE = "double"

    # Temporal family
    DATE = "date"
    DATETIME = "datetime"
    TIMESTAMP = "timestamp"
    TIME = "time"

    # Other
    BOOLEAN = "boolean"
    BINARY = "binary"
    JSON = "json"
    UUID = "uuid"


INTEGER_INCREMENTS: Dict[TargetType, TargetType] = {
    TargetType.TINY_INTEGER: TargetType.TINY_INCREMENTS,
    TargetType.SMALL_INTEGER: TargetType.SMALL_INCREMENTS,
    TargetType.MEDIUM_INTEGER: TargetType.MEDIUM_INCREMENTS,
    TargetType.INTEGER: TargetType.INCREMENTS,
    TargetType.BIG_INTEGER: TargetType.BIG_INCREMENTS,
}


class ModifierKind(str, Enum):
    """Declarative modifiers, listed in the order they are applied."""

    NULLABLE = "nullable"
    DEFAULT = "default"
    USE_CURRENT = "use_current"
    AUTO_INCREMENT = "auto_increment"
    PRIMARY = "primary"
    UNIQUE = "unique"


class DefaultKind(str, Enum):
    """How a literal default is emitted."""

    NUMBER = "number"
    NULL = "null"
    BOOLEAN = "boolean"
    STRING = "string"


class DeclarationKind(str, Enum):
    COLUMN = "column"
    TIMESTAMPS = "timestamps"
    SOFT_DELETES = "soft_deletes"


class RelationshipKind(str, Enum):
    """Owning = this table holds the foreign key (many-to-one)."""

    OWNING = "owning"
    OWNED = "owned"


class MigrationKind(str, Enum):
    CREATE_TABLE = "create_table"
    ADD_COLUMNS = "add_columns"
    ADD_FOREIGN_KEYS = "add_foreign_keys"


class OperationKind(str, Enum):
    CREATE_TABLE = "create_table"
    DROP_TABLE = "drop_table"
    ADD_COLUMN = "add_column"
    DROP_COLUMN = "drop_column"
    ADD_FOREIGN_KEY = "add_foreign_key"
    DROP_FOREIGN_KEY = "drop_foreign_key"


# ---------------------------------------------------------------------------
# Shared model configuration
# ---------------------------------------------------------------------------

_SHARED_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    frozen=True,
    extra="forbid",
)

_MUTABLE_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    validate_assignment=True,
    frozen=False,
    extra="forbid",
)


# ---------------------------------------------------------------------------
# Normalized metadata
# ---------------------------------------------------------------------------


class ColumnDescriptor(BaseModel):
    """
    Normalized description of one column, identical across dialects.

    ``raw_default`` keeps the dialect-native text; ``default`` is the
    normalized literal used by the translator.
    """

    model_config = _SHARED_CONFIG

    name: str = Field(..., min_length=1, description="Column name.")
    raw_type: str = Field(default="", description="Dialect-native type name.")
    is_nullable: bool = Field(default=False, description="Column accepts NULL.")
    raw_default: Optional[str] = Field(
        default=None, description="Default exactly as reported by the database."
    )
    default: Optional[str] = Field(
        default=None, description="Normalized default text."
    )
    is_primary_key: bool = Field(default=False)
    is_auto_increment: bool = Field(default=False)
    is_unique: bool = Field(default=False)

    def __repr__(self) -> str:
        return f"<Column {self.name} {self.raw_type}>"


class ForeignKeyEdge(BaseModel):
    """Directed edge: ``from_table`` depends on ``to_table``."""

    model_config = _SHARED_CONFIG

    from_table: str = Field(..., min_length=1)
    from_column: str = Field(..., min_length=1)
    to_table: str = Field(..., min_length=1)
    to_column: str = Field(..., min_length=1)

    @property
    def constraint_name(self) -> str:
        return f"{self.from_table}_{self.from_column}_foreign"

    def __repr__(self) -> str:
        return (
            f"<FK {self.from_table}.{self.from_column} → "
            f"{self.to_table}.{self.to_column}>"
        )


# ---------------------------------------------------------------------------
# Translator output
# ---------------------------------------------------------------------------


class ColumnModifier(BaseModel):
    """One link in a declaration's modifier chain."""

    model_config = _SHARED_CONFIG

    kind: ModifierKind
    value: Optional[Union[bool, str]] = Field(
        default=None,
        description="Literal for DEFAULT modifiers (numbers kept as text).",
    )
    value_kind: Optional[DefaultKind] = Field(default=None)


class ColumnDeclaration(BaseModel):
    """
    A target declaration for one column, or for a special column group.

    ``TIMESTAMPS`` covers ``created_at`` and ``updated_at``;
    ``SOFT_DELETES`` covers ``deleted_at``.  Neither carries a target type.
    """

    model_config = _SHARED_CONFIG

    kind: DeclarationKind = Field(default=DeclarationKind.COLUMN)
    column: str = Field(..., min_length=1, description="First covered column.")
    columns: List[str] = Field(default_factory=list)
    target_type: Optional[TargetType] = Field(default=None)
    length: Optional[int] = Field(default=None, ge=1)
    precision: Optional[int] = Field(default=None, ge=0)
    scale: Optional[int] = Field(default=None, ge=0)
    modifiers: List[ColumnModifier] = Field(default_factory=list)

    @field_validator("columns")
    @classmethod
    def _no_duplicate_columns(cls, v: List[str]) -> List[str]:
        if len(v) != len(set(v)):
            raise ValueError(f"Duplicate columns in declaration: {v}")
        return v

    def covered_columns(self) -> List[str]:
        return list(self.columns) if self.columns else [self.column]

    def modifier(self, kind: ModifierKind) -> Optional[ColumnModifier]:
        for mod in self.modifiers:
            if mod.kind == kind:
                return mod
        return None

    def has_modifier(self, kind: ModifierKind) -> bool:
        return self.modifier(kind) is not None

    @property
    def is_increments(self) -> bool:
        return self.target_type in INTEGER_INCREMENTS.values()


# ---------------------------------------------------------------------------
# Artifacts
# ---------------------------------------------------------------------------


class RelationshipAccessor(BaseModel):
    """An ORM accessor derived from a foreign key."""

    model_config = _SHARED_CONFIG

    kind: RelationshipKind
    accessor_name: str = Field(..., min_length=1)
    target_entity: str = Field(..., min_length=1)
    target_table: str = Field(..., min_length=1)
    local_column: str = Field(..., min_length=1)
    foreign_column: str = Field(..., min_length=1)

    def __repr__(self) -> str:
        return f"<{self.kind.value} {self.accessor_name} → {self.target_entity}>"


class EntityArtifact(BaseModel):
    """Everything needed to render one entity (model) module."""

    model_config = _SHARED_CONFIG

    name: str = Field(..., min_length=1, description="Entity class name.")
    source_table: str = Field(..., min_length=1)
    primary_key_column: Optional[str] = Field(
        default=None, description="Override; None when the key is 'id'."
    )
    fillable_columns: List[str] = Field(default_factory=list)
    relationship_accessors: List[RelationshipAccessor] = Field(default_factory=list)
    columns: List[ColumnDescriptor] = Field(default_factory=list)
    declarations: List[ColumnDeclaration] = Field(default_factory=list)
    foreign_keys: List[ForeignKeyEdge] = Field(default_factory=list)
    soft_deletes: bool = Field(default=False)

    @property
    def resolved_primary_key(self) -> str:
        return self.primary_key_column or "id"

    def accessors_of(self, kind: RelationshipKind) -> List[RelationshipAccessor]:
        return [acc for acc in self.relationship_accessors if acc.kind == kind]


class MigrationOperation(BaseModel):
    """One forward or inverse step inside a migration artifact."""

    model_config = _SHARED_CONFIG

    kind: OperationKind
    table: str = Field(..., min_length=1)
    declarations: List[ColumnDeclaration] = Field(default_factory=list)
    columns: List[str] = Field(default_factory=list)
    foreign_key: Optional[ForeignKeyEdge] = Field(default=None)


class MigrationArtifact(BaseModel):
    """A named schema-construction step paired with its inverse."""

    model_config = _SHARED_CONFIG

    kind: MigrationKind
    name: str = Field(..., min_length=1, description="Sortable artifact name.")
    revision: str = Field(..., min_length=1)
    down_revision: Optional[str] = Field(default=None)
    table: Optional[str] = Field(
        default=None, description="Target table; None for the foreign-key step."
    )
    created_at: datetime
    operations: List[MigrationOperation] = Field(default_factory=list)
    inverse_operations: List[MigrationOperation] = Field(default_factory=list)

    def __repr__(self) -> str:
        return f"<Migration {self.name}>"


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

DEFAULT_IGNORED_TABLES: List[str] = [
    "migrations",
    "failed_jobs",
    "password_resets",
    "audits",
    "sessions",
    "sp_password_resets",
    "email_logs",
    "alembic_version",
]


class GenerationConfig(BaseModel):
    """
    Settings for one generation run.

    Loaded from a YAML/JSON file (see ``schemagen.generator.load_config_file``)
    and overridden by command-line flags.
    """

    model_config = _MUTABLE_CONFIG

    ignored_tables: List[str] = Field(
        default_factory=lambda: list(DEFAULT_IGNORED_TABLES),
        description="Tables skipped during discovery.",
    )
    model_path: str = Field(
        default="app/models", description="Directory for entity modules."
    )
    migration_path: str = Field(
        default="migrations/versions",
        description="Directory for migration revision scripts.",
    )
    max_columns_per_migration: int = Field(
        default=15,
        ge=1,
        description="Tables with more columns are split across migrations.",
    )
    base_module: str = Field(
        default="app.models.base",
        description="Module that exports the declarative base.",
    )
    base_class: str = Field(default="Base", description="Declarative base name.")
    database_url: Optional[str] = Field(
        default=None, description="SQLAlchemy URL of the database to inspect."
    )
    migration_start: Optional[datetime] = Field(
        default=None,
        description="Timestamp of the first migration; defaults to now.",
    )
    stub_path: Optional[str] = Field(
        default=None,
        description="Directory holding model.stub / migration.stub layouts that replace the built-in ones.",
    )

    @field_validator("ignored_tables")
    @classmethod
    def _dedupe_ignored(cls, v: List[str]) -> List[str]:
        seen: List[str] = []
        for name in v:
            if name not in seen:
                seen.append(name)
        return seen

    @field_validator("stub_path")
    @classmethod
    def _stub_directory_exists(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not Path(v).is_dir():
            raise ValueError(f"stub_path {v!r} is not a directory")
        return v


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "Dialect",
    "TargetType",
    "INTEGER_INCREMENTS",
    "ModifierKind",
    "DefaultKind",
    "DeclarationKind",
    "RelationshipKind",
    "MigrationKind",
    "OperationKind",
    "ColumnDescriptor",
    "ForeignKeyEdge",
    "ColumnModifier",
    "ColumnDeclaration",
    "RelationshipAccessor",
    "EntityArtifact",
    "MigrationOperation",
    "MigrationArtifact",
    "DEFAULT_IGNORED_TABLES",
    "GenerationConfig",
]

logger.debug("schemagen.models loaded — %d public symbols.", len(__all__))
