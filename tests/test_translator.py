"""
tests/test_translator.py
Unit tests for schemagen.translator (ColumnTranslator) and default
normalization in schemagen.dialects.base.

Tests cover:
- Raw type → target type mapping (arguments, unsigned, unknown types)
- Default classification (number, null, boolean, use-current, string)
- Modifier ordering and the increments shorthand
- Length / precision extraction
- Timestamps and soft-delete grouping
"""

from __future__ import annotations

from typing import List, Optional

import pytest

from schemagen.dialects import MySqlProvider, PostgresProvider
from schemagen.dialects.base import normalize_default
from schemagen.models import (
    ColumnDescriptor,
    DeclarationKind,
    DefaultKind,
    ModifierKind,
    TargetType,
)
from schemagen.translator import ColumnTranslator


def _descriptor(
    name: str,
    raw_type: str,
    *,
    nullable: bool = False,
    default: Optional[str] = None,
    primary: bool = False,
    auto: bool = False,
    unique: bool = False,
) -> ColumnDescriptor:
    return ColumnDescriptor(
        name=name,
        raw_type=raw_type,
        is_nullable=nullable,
        default=default,
        is_primary_key=primary,
        is_auto_increment=auto,
        is_unique=unique,
    )


def _kinds(translator: ColumnTranslator, descriptor: ColumnDescriptor) -> List[ModifierKind]:
    return [m.kind for m in translator.translate(descriptor).modifiers]


# ===========================================================================
# Target types
# ===========================================================================


class TestTargetType:
    """Raw database types resolve through the dialect's type table."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("int", TargetType.INTEGER),
            ("int(11) unsigned", TargetType.INTEGER),
            ("INT UNSIGNED ZEROFILL", TargetType.INTEGER),
            ("bigint(20) unsigned", TargetType.BIG_INTEGER),
            ("varchar(255)", TargetType.STRING),
            ("decimal(10,2)", TargetType.DECIMAL),
            ("double precision", TargetType.DOUBLE),
            ("enum('a','b')", TargetType.STRING),
            ("tinyint(1)", TargetType.TINY_INTEGER),
            ("json", TargetType.JSON),
        ],
    )
    def test_mysql_types(self, mysql_translator: ColumnTranslator, raw: str, expected: TargetType) -> None:
        assert mysql_translator.target_type(raw) == expected

    def test_postgres_timestamp_with_time_zone(self) -> None:
        translator = ColumnTranslator(PostgresProvider.type_map)
        assert translator.target_type("timestamp with time zone") == TargetType.TIMESTAMP
        assert translator.target_type("character varying(120)") == TargetType.STRING

    def test_unknown_type_falls_back_to_string(
        self, mysql_translator: ColumnTranslator, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level("INFO", logger="schemagen.translator"):
            assert mysql_translator.target_type("geometry") == TargetType.STRING
        assert "geometry" in caplog.text


# ===========================================================================
# Defaults
# ===========================================================================


class TestDefaultModifier:
    """Normalized defaults are classified into typed modifiers."""

    @pytest.mark.parametrize("value", ["0", "1", "42", "-3", "0.00", "1.5e3"])
    def test_numbers(self, value: str) -> None:
        mod = ColumnTranslator.default_modifier(value)
        assert mod is not None
        assert mod.kind == ModifierKind.DEFAULT
        assert mod.value_kind == DefaultKind.NUMBER
        assert mod.value == value

    def test_null(self) -> None:
        mod = ColumnTranslator.default_modifier("NULL")
        assert mod is not None and mod.value_kind == DefaultKind.NULL

    @pytest.mark.parametrize("value, expected", [("true", True), ("FALSE", False)])
    def test_booleans(self, value: str, expected: bool) -> None:
        mod = ColumnTranslator.default_modifier(value)
        assert mod is not None
        assert mod.value_kind == DefaultKind.BOOLEAN
        assert mod.value is expected

    @pytest.mark.parametrize(
        "value", ["CURRENT_TIMESTAMP", "current_timestamp()", "CURRENT_TIMESTAMP(6)", "current_timestamp(3)"]
    )
    def test_use_current(self, value: str) -> None:
        mod = ColumnTranslator.default_modifier(value)
        assert mod is not None
        assert mod.kind == ModifierKind.USE_CURRENT

    def test_string(self) -> None:
        mod = ColumnTranslator.default_modifier("O'Brien")
        assert mod is not None
        assert mod.value_kind == DefaultKind.STRING
        assert mod.value == "O'Brien"

    def test_absent(self) -> None:
        assert ColumnTranslator.default_modifier(None) is None


class TestNormalizeDefault:
    """Dialect-native literals are reduced to plain text."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("'O\\'Brien'", "O'Brien"),
            ("'O''Brien'", "O'Brien"),
            ("'(none)'", "(none)"),
            ('"(draft)"', "(draft)"),
            ("((1))", "(1)"),
            ("('active')", "active"),
            ("CURRENT_TIMESTAMP", "CURRENT_TIMESTAMP"),
            ("  'padded'  ", "padded"),
            ("0", "0"),
            ("", ""),
        ],
    )
    def test_normalize(self, raw: str, expected: str) -> None:
        assert normalize_default(raw) == expected

    def test_none_passes_through(self) -> None:
        assert normalize_default(None) is None


# ===========================================================================
# Declarations
# ===========================================================================


class TestTranslate:
    """Single-column declarations."""

    def test_auto_increment_integer_primary_key_uses_increments(self, mysql_translator: ColumnTranslator) -> None:
        decl = mysql_translator.translate(_descriptor("id", "int unsigned", primary=True, auto=True))
        assert decl.target_type == TargetType.INCREMENTS
        assert decl.is_increments
        assert decl.modifiers == []

    def test_big_increments(self, mysql_translator: ColumnTranslator) -> None:
        decl = mysql_translator.translate(_descriptor("id", "bigint unsigned", primary=True, auto=True))
        assert decl.target_type == TargetType.BIG_INCREMENTS

    def test_non_auto_primary_key(self, mysql_translator: ColumnTranslator) -> None:
        decl = mysql_translator.translate(_descriptor("code", "char(2)", primary=True))
        assert decl.target_type == TargetType.CHAR
        assert decl.length == 2
        assert [m.kind for m in decl.modifiers] == [ModifierKind.PRIMARY]

    def test_auto_increment_non_integer_keeps_explicit_modifiers(self, mysql_translator: ColumnTranslator) -> None:
        kinds = _kinds(mysql_translator, _descriptor("id", "decimal(20,0)", primary=True, auto=True))
        assert kinds == [ModifierKind.AUTO_INCREMENT, ModifierKind.PRIMARY]

    def test_modifier_order(self, mysql_translator: ColumnTranslator) -> None:
        kinds = _kinds(
            mysql_translator,
            _descriptor("status", "varchar(20)", nullable=True, default="pending", unique=True),
        )
        assert kinds == [ModifierKind.NULLABLE, ModifierKind.DEFAULT, ModifierKind.UNIQUE]

    def test_use_current_position(self, mysql_translator: ColumnTranslator) -> None:
        kinds = _kinds(mysql_translator, _descriptor("placed_at", "datetime", nullable=True, default="CURRENT_TIMESTAMP"))
        assert kinds == [ModifierKind.NULLABLE, ModifierKind.USE_CURRENT]

    def test_fractional_second_current_timestamp(self, mysql_translator: ColumnTranslator) -> None:
        decl = mysql_translator.translate(_descriptor("placed_at", "datetime(6)", default="CURRENT_TIMESTAMP(6)"))
        assert [m.kind for m in decl.modifiers] == [ModifierKind.USE_CURRENT]
        assert decl.target_type == TargetType.DATETIME

    def test_unique_not_repeated_on_primary_key(self, mysql_translator: ColumnTranslator) -> None:
        kinds = _kinds(mysql_translator, _descriptor("code", "varchar(10)", primary=True, unique=True))
        assert ModifierKind.UNIQUE not in kinds

    def test_string_length(self, mysql_translator: ColumnTranslator) -> None:
        decl = mysql_translator.translate(_descriptor("email", "varchar(191)"))
        assert decl.length == 191
        assert decl.precision is None

    def test_decimal_precision_and_scale(self, mysql_translator: ColumnTranslator) -> None:
        decl = mysql_translator.translate(_descriptor("total", "decimal(10,2)"))
        assert (decl.precision, decl.scale) == (10, 2)
        assert decl.length is None

    def test_enum_arguments_ignored(self, mysql_translator: ColumnTranslator) -> None:
        decl = mysql_translator.translate(_descriptor("kind", "enum('a','b')"))
        assert decl.target_type == TargetType.STRING
        assert decl.length is None


class TestDeclarationGrouping:
    """Timestamps and soft deletes collapse into grouped declarations."""

    def test_timestamps_and_soft_deletes(self, mysql_translator: ColumnTranslator) -> None:
        decls = mysql_translator.declarations([
            _descriptor("id", "int", primary=True, auto=True),
            _descriptor("name", "varchar(50)"),
            _descriptor("created_at", "timestamp", nullable=True),
            _descriptor("updated_at", "timestamp", nullable=True),
            _descriptor("deleted_at", "timestamp", nullable=True),
        ])
        assert [d.kind for d in decls] == [
            DeclarationKind.COLUMN,
            DeclarationKind.COLUMN,
            DeclarationKind.TIMESTAMPS,
            DeclarationKind.SOFT_DELETES,
        ]
        assert decls[2].covered_columns() == ["created_at", "updated_at"]

    def test_lone_created_at_is_ordinary_column(self, mysql_translator: ColumnTranslator) -> None:
        decls = mysql_translator.declarations([
            _descriptor("id", "int", primary=True, auto=True),
            _descriptor("created_at", "timestamp", nullable=True),
        ])
        assert [d.kind for d in decls] == [DeclarationKind.COLUMN, DeclarationKind.COLUMN]
        assert decls[1].target_type == TargetType.TIMESTAMP

    def test_timestamps_placed_at_first_of_pair(self, mysql_translator: ColumnTranslator) -> None:
        decls = mysql_translator.declarations([
            _descriptor("updated_at", "timestamp", nullable=True),
            _descriptor("title", "varchar(50)"),
            _descriptor("created_at", "timestamp", nullable=True),
        ])
        assert [d.kind for d in decls] == [DeclarationKind.TIMESTAMPS, DeclarationKind.COLUMN]

    def test_every_column_covered_once(self, mysql_translator: ColumnTranslator) -> None:
        names = ["id", "created_at", "a", "updated_at", "deleted_at", "b"]
        decls = mysql_translator.declarations([_descriptor(n, "int") for n in names])
        covered = [c for d in decls for c in d.covered_columns()]
        assert sorted(covered) == sorted(names)
