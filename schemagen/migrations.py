# File: schemagen/migrations.py
"""
schemagen - Migration Generator
=================================
Builds the schema-construction artifacts for a run:

    1. per table, one CreateTable artifact, or for tables wider than
       ``max_columns_per_migration`` a CreateTable for the first chunk plus
       AddColumns artifacts for the rest;
    2. after all tables, exactly one AddForeignKeys artifact.

Split policy: the first chunk is the union of the primary key column, the
``created_at``/``updated_at`` pair (when both exist), ``deleted_at`` and the
first ``max`` columns; it may therefore be slightly larger than ``max``.
The remaining columns are re-chunked at ``max``.  Inside every artifact
columns keep their original table order.

Every artifact gets a timestamp from ``MigrationClock``, one second after
the previous one, so sorting artifacts by name replays them in processing
order.  The same stamp is used as the revision id and each artifact points
at the previous one through ``down_revision``.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence, Set, Tuple

from schemagen.dialects.base import MetadataProvider
from schemagen.models import (
    ColumnDeclaration,
    ColumnDescriptor,
    ForeignKeyEdge,
    MigrationArtifact,
    MigrationKind,
    MigrationOperation,
    OperationKind,
)
from schemagen.translator import (
    SOFT_DELETE_COLUMN,
    TIMESTAMP_COLUMNS,
    ColumnTranslator,
    has_soft_deletes,
    has_timestamps,
)
from schemagen.utils import chunked

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagen.migrations")

STAMP_FORMAT: str = "%Y_%m_%d_%H%M%S"


class MigrationClock:
    """Hands out strictly increasing timestamps, one second apart."""

    def __init__(self, start: Optional[datetime] = None, step: timedelta = timedelta(seconds=1)) -> None:
        self._current: datetime = (start or datetime.now()).replace(microsecond=0)
        self._step: timedelta = step
        self._issued: int = 0

    def tick(self) -> datetime:
        if self._issued:
            self._current += self._step
        self._issued += 1
        return self._current

    @staticmethod
    def stamp(moment: datetime) -> str:
        return moment.strftime(STAMP_FORMAT)


class MigrationGenerator:
    """Turn table metadata into ordered ``MigrationArtifact`` objects."""

    def __init__(
        self,
        provider: MetadataProvider,
        translator: ColumnTranslator,
        *,
        max_columns_per_migration: int = 15,
        clock: Optional[MigrationClock] = None,
    ) -> None:
        if max_columns_per_migration < 1:
            raise ValueError("max_columns_per_migration must be >= 1.")
        self._provider: MetadataProvider = provider
        self._translator: ColumnTranslator = translator
        self._max_columns: int = max_columns_per_migration
        self._clock: MigrationClock = clock or MigrationClock()
        self._last_revision: Optional[str] = None

    # -----------------------------------------------------------------
    # Per-table artifacts
    # -----------------------------------------------------------------

    def split_columns(self, table: str, columns: Sequence[str]) -> List[List[str]]:
        """Partition *columns* into migration chunks (a single chunk when narrow)."""
        if len(columns) <= self._max_columns:
            return [list(columns)]

        first: Set[str] = set(columns[: self._max_columns])
        primary_key: str = self._provider.primary_key_column(table)
        if primary_key in columns:
            first.add(primary_key)
        if has_timestamps(columns):
            first.update(TIMESTAMP_COLUMNS)
        if has_soft_deletes(columns):
            first.add(SOFT_DELETE_COLUMN)

        head: List[str] = [c for c in columns if c in first]
        rest: List[str] = [c for c in columns if c not in first]
        logger.info(
            "Splitting '%s' (%d columns): %d in create, %d in %d add-column step(s).",
            table,
            len(columns),
            len(head),
            len(rest),
            -(-len(rest) // self._max_columns),
        )
        return [head] + chunked(rest, self._max_columns)

    def build_table(self, table: str) -> List[MigrationArtifact]:
        columns: List[str] = self._provider.list_columns(table)
        descriptors: Dict[str, ColumnDescriptor] = {
            column: self._provider.column_info(table, column) for column in columns
        }
        chunks: List[List[str]] = self.split_columns(table, columns)

        artifacts: List[MigrationArtifact] = [
            self._create_table(table, self._declare(chunks[0], descriptors))
        ]
        for part, chunk in enumerate(chunks[1:], start=1):
            artifacts.append(
                self._add_columns(table, part, chunk, self._declare(chunk, descriptors))
            )
        return artifacts

    def _declare(
        self, chunk: Sequence[str], descriptors: Dict[str, ColumnDescriptor]
    ) -> List[ColumnDeclaration]:
        return self._translator.declarations([descriptors[c] for c in chunk])

    def _create_table(self, table: str, declarations: List[ColumnDeclaration]) -> MigrationArtifact:
        return self._artifact(
            MigrationKind.CREATE_TABLE,
            f"create_{table}_table",
            table,
            operations=[MigrationOperation(
                kind=OperationKind.CREATE_TABLE, table=table, declarations=declarations
            )],
            inverse=[MigrationOperation(kind=OperationKind.DROP_TABLE, table=table)],
        )

    def _add_columns(
        self,
        table: str,
        part: int,
        chunk: List[str],
        declarations: List[ColumnDeclaration],
    ) -> MigrationArtifact:
        operations: List[MigrationOperation] = [
            MigrationOperation(
                kind=OperationKind.ADD_COLUMN,
                table=table,
                declarations=[decl],
                columns=decl.covered_columns(),
            )
            for decl in declarations
        ]
        return self._artifact(
            MigrationKind.ADD_COLUMNS,
            f"add_part_{part}_columns_to_{table}_table",
            table,
            operations=operations,
            inverse=[MigrationOperation(
                kind=OperationKind.DROP_COLUMN, table=table, columns=list(reversed(chunk))
            )],
        )

    # -----------------------------------------------------------------
    # Trailing foreign-key artifact
    # -----------------------------------------------------------------

    def build_foreign_keys(self, order: Sequence[str]) -> MigrationArtifact:
        """
        One artifact adding every foreign key between tables of *order*.

        Constraints are grouped by table in processing order; the inverse
        drops them grouped in reverse processing order.
        """
        members: Set[str] = set(order)
        groups: List[Tuple[str, List[ForeignKeyEdge]]] = []
        for table in order:
            edges: List[ForeignKeyEdge] = [
                edge for edge in self._provider.foreign_keys(table) if edge.to_table in members
            ]
            if edges:
                groups.append((table, edges))

        operations: List[MigrationOperation] = [
            MigrationOperation(kind=OperationKind.ADD_FOREIGN_KEY, table=table, foreign_key=edge)
            for table, edges in groups
            for edge in edges
        ]
        inverse: List[MigrationOperation] = [
            MigrationOperation(kind=OperationKind.DROP_FOREIGN_KEY, table=table, foreign_key=edge)
            for table, edges in reversed(groups)
            for edge in edges
        ]
        logger.info(
            "Foreign-key migration: %d constraint(s) across %d table(s).",
            len(operations),
            len(groups),
        )
        return self._artifact(
            MigrationKind.ADD_FOREIGN_KEYS,
            "add_foreign_keys_to_tables",
            None,
            operations=operations,
            inverse=inverse,
        )

    # -----------------------------------------------------------------
    # Naming
    # -----------------------------------------------------------------

    def _artifact(
        self,
        kind: MigrationKind,
        slug: str,
        table: Optional[str],
        *,
        operations: List[MigrationOperation],
        inverse: List[MigrationOperation],
    ) -> MigrationArtifact:
        moment: datetime = self._clock.tick()
        stamp: str = MigrationClock.stamp(moment)
        artifact: MigrationArtifact = MigrationArtifact(
            kind=kind,
            name=f"{stamp}_{slug}",
            revision=stamp,
            down_revision=self._last_revision,
            table=table,
            created_at=moment,
            operations=operations,
            inverse_operations=inverse,
        )
        self._last_revision = artifact.revision
        logger.debug("Built migration %s.", artifact.name)
        return artifact


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = ["MigrationClock", "MigrationGenerator", "STAMP_FORMAT"]

logger.debug("schemagen.migrations loaded.")
