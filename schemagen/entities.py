# File: schemagen/entities.py
"""
schemagen - Entity Generator
==============================
Builds one ``EntityArtifact`` per table.

    - name: PascalCase singular of the table (``order_items`` → ``OrderItem``)
    - fillable: every column except ``id``, ``created_at`` and ``updated_at``
    - primary key override: only when the key column is not ``id``
    - relationships: OWNING accessors (one per outgoing foreign key, named
      after the singular referenced table) followed by OWNED accessors (one
      per incoming foreign key, named after the plural referencing table)
"""

from __future__ import annotations

import logging
from typing import FrozenSet, List, Optional, Set

from schemagen.dialects.base import MetadataProvider
from schemagen.models import (
    ColumnDescriptor,
    EntityArtifact,
    ForeignKeyEdge,
    RelationshipAccessor,
    RelationshipKind,
)
from schemagen.translator import ColumnTranslator, has_soft_deletes
from schemagen.utils import safe_identifier, table_to_entity_name, to_plural, to_singular

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagen.entities")

GUARDED_COLUMNS: FrozenSet[str] = frozenset({"id", "created_at", "updated_at"})


class EntityGenerator:
    """Derive entity artifacts from live metadata."""

    def __init__(self, provider: MetadataProvider, translator: ColumnTranslator) -> None:
        self._provider: MetadataProvider = provider
        self._translator: ColumnTranslator = translator

    def build(self, table: str) -> EntityArtifact:
        columns: List[str] = self._provider.list_columns(table)
        descriptors: List[ColumnDescriptor] = [
            self._provider.column_info(table, column) for column in columns
        ]
        primary_key: str = self._provider.primary_key_column(table)
        foreign_keys: List[ForeignKeyEdge] = self._provider.foreign_keys(table)

        artifact: EntityArtifact = EntityArtifact(
            name=table_to_entity_name(table),
            source_table=table,
            primary_key_column=None if primary_key == "id" else primary_key,
            fillable_columns=[c for c in columns if c not in GUARDED_COLUMNS],
            relationship_accessors=self._accessors(table, columns, foreign_keys),
            columns=descriptors,
            declarations=self._translator.declarations(descriptors),
            foreign_keys=foreign_keys,
            soft_deletes=has_soft_deletes(columns),
        )
        logger.debug(
            "Entity %s: %d fillable, %d relationship(s).",
            artifact.name,
            len(artifact.fillable_columns),
            len(artifact.relationship_accessors),
        )
        return artifact

    def _accessors(
        self,
        table: str,
        columns: List[str],
        foreign_keys: List[ForeignKeyEdge],
    ) -> List[RelationshipAccessor]:
        taken: Set[str] = {safe_identifier(c) for c in columns}
        accessors: List[RelationshipAccessor] = []

        for edge in foreign_keys:
            accessors.append(RelationshipAccessor(
                kind=RelationshipKind.OWNING,
                accessor_name=self._claim(to_singular(edge.to_table), edge.from_column, taken),
                target_entity=table_to_entity_name(edge.to_table),
                target_table=edge.to_table,
                local_column=edge.from_column,
                foreign_column=edge.to_column,
            ))

        for edge in self._provider.referencing_tables(table):
            accessors.append(RelationshipAccessor(
                kind=RelationshipKind.OWNED,
                accessor_name=self._claim(to_plural(edge.from_table), edge.from_column, taken),
                target_entity=table_to_entity_name(edge.from_table),
                target_table=edge.from_table,
                local_column=edge.to_column,
                foreign_column=edge.from_column,
            ))
        return accessors

    @staticmethod
    def _claim(base: str, fk_column: str, taken: Set[str]) -> str:
        """Reserve an attribute name, suffixing ``_by_<fk column>`` on collision."""
        name: str = safe_identifier(base)
        if name in taken:
            name = safe_identifier(f"{base}_by_{fk_column}")
        suffix: Optional[int] = None
        candidate: str = name
        while candidate in taken:
            suffix = (suffix or 1) + 1
            candidate = f"{name}_{suffix}"
        taken.add(candidate)
        return candidate


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = ["EntityGenerator", "GUARDED_COLUMNS"]

logger.debug("schemagen.entities loaded.")
