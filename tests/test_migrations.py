"""
tests/test_migrations.py
Unit tests for schemagen.migrations (MigrationGenerator, MigrationClock).

Tests cover:
- Create-table artifacts and their inverse
- Column splitting for wide tables (partition invariants, threshold boundary)
- The trailing foreign-key artifact and its reversed inverse
- Timestamp naming and revision chaining
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable, List, Sequence

import pytest

from schemagen.dialects import MySqlProvider
from schemagen.migrations import MigrationClock, MigrationGenerator
from schemagen.models import MigrationArtifact, MigrationKind, OperationKind
from schemagen.translator import ColumnTranslator

from tests.conftest import MIGRATION_START, FakeSchemaSource, column, table


def _generator(source: FakeSchemaSource, max_columns: int = 15) -> MigrationGenerator:
    provider = MySqlProvider(source)
    return MigrationGenerator(
        provider,
        ColumnTranslator(provider.type_map),
        max_columns_per_migration=max_columns,
        clock=MigrationClock(MIGRATION_START),
    )


def _wide(names: Sequence[str]) -> dict:
    return {"wide": table([column(n, "int") for n in names])}


def _added(artifact: MigrationArtifact) -> List[str]:
    """Columns introduced by *artifact*, in declaration order."""
    return [c for op in artifact.operations for decl in op.declarations for c in decl.covered_columns()]


def _columns_of(artifacts: List[MigrationArtifact]) -> List[List[str]]:
    return [_added(a) for a in artifacts]


# ===========================================================================
# Clock
# ===========================================================================


class TestMigrationClock:
    """Strictly increasing, second-spaced timestamps."""

    def test_first_tick_is_start(self) -> None:
        clock = MigrationClock(datetime(2024, 5, 6, 7, 8, 9, 123456))
        assert clock.tick() == datetime(2024, 5, 6, 7, 8, 9)

    def test_ticks_one_second_apart(self) -> None:
        clock = MigrationClock(MIGRATION_START)
        ticks = [clock.tick() for _ in range(3)]
        assert ticks[1] - ticks[0] == timedelta(seconds=1)
        assert ticks[2] - ticks[1] == timedelta(seconds=1)

    def test_stamp_format(self) -> None:
        assert MigrationClock.stamp(datetime(2024, 1, 2, 3, 4, 5)) == "2024_01_02_030405"


# ===========================================================================
# Per-table artifacts
# ===========================================================================


class TestCreateTable:
    """Narrow tables produce a single create artifact."""

    @pytest.fixture()
    def generator(self, mysql_source: FakeSchemaSource) -> MigrationGenerator:
        return _generator(mysql_source)

    def test_single_artifact(self, generator: MigrationGenerator) -> None:
        [artifact] = generator.build_table("customers")
        assert artifact.kind == MigrationKind.CREATE_TABLE
        assert artifact.name == "2024_01_01_120000_create_customers_table"
        assert artifact.table == "customers"
        assert _added(artifact) == ["id", "name", "email", "created_at", "updated_at"]

    def test_inverse_drops_table(self, generator: MigrationGenerator) -> None:
        [artifact] = generator.build_table("customers")
        [inverse] = artifact.inverse_operations
        assert inverse.kind == OperationKind.DROP_TABLE
        assert inverse.table == "customers"

    def test_create_operation_holds_declarations(self, generator: MigrationGenerator) -> None:
        [artifact] = generator.build_table("orders")
        [op] = artifact.operations
        assert op.kind == OperationKind.CREATE_TABLE
        assert len(op.declarations) == 8  # timestamps pair collapses into one

    def test_invalid_max_columns(self, mysql_source: FakeSchemaSource) -> None:
        with pytest.raises(ValueError):
            _generator(mysql_source, max_columns=0)


class TestSplitting:
    """Wide tables are split across create + add-columns artifacts."""

    def test_exact_threshold_not_split(self, scripted_source: Callable[..., FakeSchemaSource]) -> None:
        names = ["id"] + [f"c{i}" for i in range(1, 15)]
        artifacts = _generator(scripted_source(MySqlProvider, _wide(names))).build_table("wide")
        assert len(names) == 15
        assert len(artifacts) == 1

    def test_one_over_threshold_splits(self, scripted_source: Callable[..., FakeSchemaSource]) -> None:
        names = ["id"] + [f"c{i}" for i in range(1, 16)]
        artifacts = _generator(scripted_source(MySqlProvider, _wide(names))).build_table("wide")
        assert [a.kind for a in artifacts] == [MigrationKind.CREATE_TABLE, MigrationKind.ADD_COLUMNS]
        assert _columns_of(artifacts) == [names[:15], ["c15"]]
        assert artifacts[1].name == "2024_01_01_120001_add_part_1_columns_to_wide_table"

    def test_special_columns_pulled_into_first_chunk(self, scripted_source: Callable[..., FakeSchemaSource]) -> None:
        names = ["id"] + [f"c{i}" for i in range(1, 17)] + ["created_at", "updated_at", "deleted_at"]
        artifacts = _generator(scripted_source(MySqlProvider, _wide(names))).build_table("wide")
        first, rest = _columns_of(artifacts)[0], _columns_of(artifacts)[1:]
        assert first == ["id"] + [f"c{i}" for i in range(1, 15)] + ["created_at", "updated_at", "deleted_at"]
        assert rest == [["c15", "c16"]]

    def test_primary_key_pulled_into_first_chunk(self, scripted_source: Callable[..., FakeSchemaSource]) -> None:
        names = [f"c{i}" for i in range(1, 6)] + ["uid"]
        schema = {"wide": table([column(n, "int") for n in names], pk=["uid"], auto=())}
        artifacts = _generator(scripted_source(MySqlProvider, schema), max_columns=2).build_table("wide")
        chunks = _columns_of(artifacts)
        assert chunks[0] == ["c1", "c2", "uid"]
        assert chunks[1:] == [["c3", "c4"], ["c5"]]

    @pytest.mark.parametrize("max_columns", [1, 2, 3, 5, 7])
    def test_partition_invariants(
        self, scripted_source: Callable[..., FakeSchemaSource], max_columns: int
    ) -> None:
        names = ["id", "a", "created_at", "b", "c", "updated_at", "d", "deleted_at", "e", "f"]
        artifacts = _generator(scripted_source(MySqlProvider, _wide(names)), max_columns).build_table("wide")
        chunks = _columns_of(artifacts)
        flat = [c for chunk in chunks for c in chunk]
        assert sorted(flat) == sorted(names)
        assert len(flat) == len(set(flat))
        assert "id" in chunks[0]
        for special in ("created_at", "updated_at", "deleted_at"):
            assert special in chunks[0]
        for chunk in chunks[1:]:
            assert len(chunk) <= max_columns
        # the timestamps pair is declared together at the position of created_at
        declared = ["id", "a", "created_at", "updated_at", "b", "c", "d", "deleted_at", "e", "f"]
        for chunk in chunks:
            assert chunk == [n for n in declared if n in chunk]

    def test_add_columns_operations_and_inverse(self, scripted_source: Callable[..., FakeSchemaSource]) -> None:
        names = ["id", "a", "b", "c"]
        artifacts = _generator(scripted_source(MySqlProvider, _wide(names)), max_columns=2).build_table("wide")
        add = artifacts[1]
        assert [op.kind for op in add.operations] == [OperationKind.ADD_COLUMN, OperationKind.ADD_COLUMN]
        assert [op.columns for op in add.operations] == [["b"], ["c"]]
        [inverse] = add.inverse_operations
        assert inverse.kind == OperationKind.DROP_COLUMN
        assert inverse.columns == ["c", "b"]


# ===========================================================================
# Foreign keys
# ===========================================================================


class TestForeignKeyArtifact:
    """One trailing artifact adds every constraint."""

    @pytest.fixture()
    def chain_source(self, scripted_source: Callable[..., FakeSchemaSource]) -> FakeSchemaSource:
        schema = {
            "a": table([column("id", "int")]),
            "b": table([column("id", "int"), column("a_id", "int")], fks=[("a_id", "a", "id")]),
            "c": table(
                [column("id", "int"), column("a_id", "int"), column("b_id", "int")],
                fks=[("a_id", "a", "id"), ("b_id", "b", "id")],
            ),
            "external": table([column("id", "int"), column("x_id", "int")], fks=[("x_id", "elsewhere", "id")]),
        }
        return scripted_source(MySqlProvider, schema)

    def test_grouped_in_processing_order(self, chain_source: FakeSchemaSource) -> None:
        artifact = _generator(chain_source).build_foreign_keys(["a", "b", "c"])
        assert artifact.kind == MigrationKind.ADD_FOREIGN_KEYS
        assert artifact.table is None
        assert [(op.table, op.foreign_key.from_column) for op in artifact.operations] == [
            ("b", "a_id"), ("c", "a_id"), ("c", "b_id"),
        ]
        assert all(op.kind == OperationKind.ADD_FOREIGN_KEY for op in artifact.operations)

    def test_inverse_in_reverse_table_order(self, chain_source: FakeSchemaSource) -> None:
        artifact = _generator(chain_source).build_foreign_keys(["a", "b", "c"])
        assert [(op.table, op.foreign_key.from_column) for op in artifact.inverse_operations] == [
            ("c", "a_id"), ("c", "b_id"), ("b", "a_id"),
        ]
        assert all(op.kind == OperationKind.DROP_FOREIGN_KEY for op in artifact.inverse_operations)

    def test_edges_leaving_the_set_skipped(self, chain_source: FakeSchemaSource) -> None:
        artifact = _generator(chain_source).build_foreign_keys(["b", "external"])
        assert artifact.operations == []
        assert artifact.inverse_operations == []

    def test_constraint_name(self, chain_source: FakeSchemaSource) -> None:
        artifact = _generator(chain_source).build_foreign_keys(["a", "b"])
        assert artifact.operations[0].foreign_key.constraint_name == "b_a_id_foreign"


# ===========================================================================
# Naming and chaining
# ===========================================================================


class TestNaming:
    """Artifacts sort by name in generation order and chain revisions."""

    def test_names_sort_in_generation_order(self, mysql_source: FakeSchemaSource) -> None:
        generator = _generator(mysql_source)
        artifacts = generator.build_table("customers") + generator.build_table("orders")
        artifacts.append(generator.build_foreign_keys(["customers", "orders"]))
        names = [a.name for a in artifacts]
        assert names == sorted(names)
        assert len(set(a.revision for a in artifacts)) == len(artifacts)
        assert names[-1] == "2024_01_01_120002_add_foreign_keys_to_tables"

    def test_revision_chain(self, mysql_source: FakeSchemaSource) -> None:
        generator = _generator(mysql_source)
        first = generator.build_table("customers")[0]
        second = generator.build_table("orders")[0]
        assert first.down_revision is None
        assert second.down_revision == first.revision
        fks = generator.build_foreign_keys(["customers", "orders"])
        assert fks.down_revision == second.revision
