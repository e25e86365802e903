"""
tests/test_utils.py
Unit tests for schemagen.utils.

Tests cover:
- Case conversion and naive English inflection
- Entity / module naming and safe Python identifiers
- Sequence helpers
- Atomic file writing and line counting
"""

from __future__ import annotations

import pathlib

import pytest

from schemagen.utils import (
    Timer,
    build_import_block,
    chunked,
    count_lines,
    py_string,
    safe_identifier,
    table_to_entity_name,
    table_to_module_name,
    to_pascal_case,
    to_plural,
    to_singular,
    to_snake_case,
    unique_preserving_order,
    write_file,
)


class TestCaseConversion:
    @pytest.mark.parametrize(
        "value, expected",
        [("OrderItem", "order_item"), ("order-items", "order_items"), ("HTTPRequest", "http_request"), ("", "")],
    )
    def test_snake_case(self, value: str, expected: str) -> None:
        assert to_snake_case(value) == expected

    @pytest.mark.parametrize(
        "value, expected",
        [("order_item", "OrderItem"), ("user2fa_token", "User2faToken"), ("customers", "Customers")],
    )
    def test_pascal_case(self, value: str, expected: str) -> None:
        assert to_pascal_case(value) == expected


class TestInflection:
    @pytest.mark.parametrize(
        "plural, singular",
        [
            ("customers", "customer"),
            ("categories", "category"),
            ("order_statuses", "order_status"),
            ("addresses", "address"),
            ("boxes", "box"),
            ("people", "person"),
            ("order_items", "order_item"),
            ("metadata", "metadata"),
        ],
    )
    def test_singular(self, plural: str, singular: str) -> None:
        assert to_singular(plural) == singular

    @pytest.mark.parametrize(
        "singular, plural",
        [
            ("order", "orders"),
            ("category", "categories"),
            ("box", "boxes"),
            ("day", "days"),
            ("person", "people"),
            ("invoice_line", "invoice_lines"),
            ("news", "news"),
        ],
    )
    def test_plural(self, singular: str, plural: str) -> None:
        assert to_plural(singular) == plural


class TestNaming:
    def test_entity_names(self) -> None:
        assert table_to_entity_name("customers") == "Customer"
        assert table_to_entity_name("order_items") == "OrderItem"
        assert table_to_entity_name("categories") == "Category"

    def test_module_names(self) -> None:
        assert table_to_module_name("OrderItem") == "order_item"
        assert table_to_module_name("Customer") == "customer"

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("email", "email"),
            ("customerID", "customerID"),
            ("class", "class_"),
            ("metadata", "metadata_"),
            ("first name", "first_name"),
            ("2fa_code", "_2fa_code"),
            ("", "_unnamed"),
        ],
    )
    def test_safe_identifier(self, name: str, expected: str) -> None:
        assert safe_identifier(name) == expected


class TestSequences:
    def test_unique_preserving_order(self) -> None:
        assert unique_preserving_order(["b", "a", "b", "c", "a"]) == ["b", "a", "c"]

    def test_chunked(self) -> None:
        assert chunked(["a", "b", "c", "d", "e"], 2) == [["a", "b"], ["c", "d"], ["e"]]
        assert chunked([], 3) == []

    def test_chunked_rejects_zero(self) -> None:
        with pytest.raises(ValueError):
            chunked(["a"], 0)

    def test_py_string(self) -> None:
        assert py_string('say "hi"') == '"say \\"hi\\""'
        assert py_string("back\\slash") == '"back\\\\slash"'


class TestImportBlock:
    def test_plain_before_from(self) -> None:
        block = build_import_block({
            "typing": {"Optional", "List"},
            "sqlalchemy as sa": set(),
            "alembic": {"op"},
        })
        assert block.splitlines() == [
            "import sqlalchemy as sa",
            "from alembic import op",
            "from typing import List, Optional",
        ]


class TestFileIO:
    def test_write_file_creates_parents(self, tmp_path: pathlib.Path) -> None:
        target = tmp_path / "a" / "b" / "out.py"
        size = write_file(target, "x = 1\n")
        assert target.read_text(encoding="utf-8") == "x = 1\n"
        assert size == 6

    def test_atomic_write_leaves_no_temp_files(self, tmp_path: pathlib.Path) -> None:
        target = tmp_path / "out.py"
        write_file(target, "first\n")
        write_file(target, "second\n")
        assert target.read_text(encoding="utf-8") == "second\n"
        assert [p.name for p in tmp_path.iterdir()] == ["out.py"]

    def test_non_atomic_write(self, tmp_path: pathlib.Path) -> None:
        target = tmp_path / "plain.py"
        write_file(target, "ü\n", atomic=False)
        assert target.read_bytes() == "ü\n".encode("utf-8")

    @pytest.mark.parametrize(
        "content, expected",
        [("", 0), ("one", 1), ("one\n", 1), ("one\ntwo", 2), ("one\ntwo\n", 2)],
    )
    def test_count_lines(self, content: str, expected: int) -> None:
        assert count_lines(content) == expected

    def test_timer(self) -> None:
        with Timer("noop") as t:
            pass
        assert t.elapsed >= 0.0
        assert "noop" in repr(t)
