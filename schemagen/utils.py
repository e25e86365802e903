# File: schemagen/utils.py
"""
schemagen - Utility Functions & Helpers
=========================================
Naming transformations, identifier sanitising, file I/O and timing helpers
shared by the generation pipeline.

Naming helpers are decorated with ``@lru_cache(maxsize=None)``: the same
table and column names are converted many times per run (entity names,
accessor names, file names) and the results never change.
"""

from __future__ import annotations

import functools
import keyword
import logging
import os
import re
import tempfile
import time
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Set, Tuple

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagen.utils")

# ---------------------------------------------------------------------------
# Pre-compiled regex patterns
# ---------------------------------------------------------------------------

_CAMEL_TO_SNAKE_RE1: re.Pattern[str] = re.compile(r"([A-Z]+)([A-Z][a-z])")
_CAMEL_TO_SNAKE_RE2: re.Pattern[str] = re.compile(r"([a-z0-9])([A-Z])")
_NON_ALPHANUM_RE: re.Pattern[str] = re.compile(r"[^a-zA-Z0-9]+")
_IDENTIFIER_RE: re.Pattern[str] = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# Attribute names the declarative base reserves on mapped classes
_RESERVED_ATTRIBUTES: FrozenSet[str] = frozenset({
    "metadata", "registry", "query", "__table__", "__tablename__", "__mapper__",
})

_IRREGULAR_PLURALS: Dict[str, str] = {
    "person": "people",
    "child": "children",
    "man": "men",
    "woman": "women",
    "mouse": "mice",
    "goose": "geese",
    "tooth": "teeth",
    "foot": "feet",
    "datum": "data",
    "index": "indices",
    "matrix": "matrices",
    "vertex": "vertices",
    "axis": "axes",
    "crisis": "crises",
    "analysis": "analyses",
    "status": "statuses",
    "address": "addresses",
    "criterion": "criteria",
}
_IRREGULAR_SINGULARS: Dict[str, str] = {v: k for k, v in _IRREGULAR_PLURALS.items()}

# Words whose singular and plural forms are identical
_UNCOUNTABLE: FrozenSet[str] = frozenset({
    "equipment", "information", "rice", "money", "species", "series",
    "fish", "sheep", "news", "metadata", "feedback", "media",
})


# ---------------------------------------------------------------------------
# Cached string transformation functions
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=None)
def to_snake_case(name: str) -> str:
    """
    Convert any string to snake_case.

    Examples:
        >>> to_snake_case("OrderItem")
        'order_item'
        >>> to_snake_case("order-items")
        'order_items'
    """
    if not name:
        return ""
    s: str = _CAMEL_TO_SNAKE_RE1.sub(r"\1_\2", name)
    s = _CAMEL_TO_SNAKE_RE2.sub(r"\1_\2", s)
    s = _NON_ALPHANUM_RE.sub("_", s)
    return s.strip("_").lower()


@functools.lru_cache(maxsize=None)
def to_pascal_case(name: str) -> str:
    """
    Convert any string to PascalCase (studly caps).

    Examples:
        >>> to_pascal_case("order_item")
        'OrderItem'
        >>> to_pascal_case("user2fa_token")
        'User2faToken'
    """
    words: Tuple[str, ...] = _split_words(name)
    return "".join(word[:1].upper() + word[1:] for word in words)


def _split_last_word(name: str) -> Tuple[str, str]:
    """Split ``order_items`` into (``order_``, ``items``)."""
    idx: int = max(name.rfind("_"), name.rfind("-"))
    if idx < 0:
        return "", name
    return name[: idx + 1], name[idx + 1:]


def _match_case(source: str, word: str) -> str:
    if source[:1].isupper():
        return word[:1].upper() + word[1:]
    return word


@functools.lru_cache(maxsize=None)
def to_plural(name: str) -> str:
    """
    Naive English pluralisation of the last word of an identifier.

    Examples:
        >>> to_plural("order_item")
        'order_items'
        >>> to_plural("category")
        'categories'
    """
    if not name:
        return ""
    head, word = _split_last_word(name)
    lower: str = word.lower()

    if lower in _UNCOUNTABLE or lower in _IRREGULAR_SINGULARS:
        return name
    if lower in _IRREGULAR_PLURALS:
        return head + _match_case(word, _IRREGULAR_PLURALS[lower])

    if lower.endswith(("sh", "ch", "x", "z", "ss", "us")):
        return name + "es"
    if lower.endswith("s"):
        return name
    if lower.endswith("y") and len(lower) > 1 and lower[-2] not in "aeiou":
        return name[:-1] + "ies"
    if lower.endswith("fe"):
        return name[:-2] + "ves"
    if lower.endswith("f") and not lower.endswith("ff"):
        return name[:-1] + "ves"
    if lower.endswith("o") and len(lower) > 1 and lower[-2] not in "aeiou":
        return name + "es"
    return name + "s"


@functools.lru_cache(maxsize=None)
def to_singular(name: str) -> str:
    """
    Naive English singularisation of the last word of an identifier.

    Examples:
        >>> to_singular("customers")
        'customer'
        >>> to_singular("order_statuses")
        'order_status'
    """
    if not name:
        return ""
    head, word = _split_last_word(name)
    lower: str = word.lower()

    if lower in _UNCOUNTABLE or lower in _IRREGULAR_PLURALS:
        return name
    if lower in _IRREGULAR_SINGULARS:
        return head + _match_case(word, _IRREGULAR_SINGULARS[lower])

    if lower.endswith("ies") and len(lower) > 3:
        return name[:-3] + "y"
    if lower.endswith("ves") and len(lower) > 3:
        return name[:-3] + "f"
    if lower.endswith(("sses", "shes", "ches", "xes", "zes")):
        return name[:-2]
    if lower.endswith("oes") and len(lower) > 3:
        return name[:-2]
    if lower.endswith("s") and not lower.endswith(("ss", "us", "is")):
        return name[:-1]
    return name


@functools.lru_cache(maxsize=None)
def _split_words(name: str) -> Tuple[str, ...]:
    """Split any casing style into lowercase words."""
    snake: str = to_snake_case(name)
    return tuple(w for w in snake.split("_") if w)


@functools.lru_cache(maxsize=None)
def safe_identifier(name: str) -> str:
    """
    Turn a column or table name into a usable Python attribute name.

    Valid identifiers are kept verbatim (``customerID`` stays as is) so the
    attribute matches the column; anything else is snake_cased.  Keywords
    and names the declarative base reserves get a trailing underscore.
    """
    result: str = name if _IDENTIFIER_RE.match(name or "") else to_snake_case(name)
    if not result:
        return "_unnamed"
    if result[0].isdigit():
        result = f"_{result}"
    if keyword.iskeyword(result) or result in _RESERVED_ATTRIBUTES:
        result = f"{result}_"
    return result


@functools.lru_cache(maxsize=None)
def table_to_entity_name(table_name: str) -> str:
    """``order_items`` → ``OrderItem``."""
    return to_pascal_case(to_singular(table_name))


@functools.lru_cache(maxsize=None)
def table_to_module_name(table_name: str) -> str:
    """File stem for an entity module: ``OrderItem`` → ``order_item``."""
    return to_snake_case(table_name)


# ---------------------------------------------------------------------------
# Sequence helpers
# ---------------------------------------------------------------------------


def unique_preserving_order(items: Iterable[str]) -> List[str]:
    """De-duplicate, keeping the first occurrence of every item."""
    seen: Set[str] = set()
    result: List[str] = []
    for item in items:
        if item not in seen:
            seen.add(item)
            result.append(item)
    return result


def chunked(items: Sequence[str], size: int) -> List[List[str]]:
    """Split *items* into consecutive lists of at most *size* elements."""
    if size < 1:
        raise ValueError(f"Chunk size must be >= 1, got {size}.")
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


def py_string(value: str) -> str:
    """Render *value* as a double-quoted Python string literal."""
    escaped: str = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


# ---------------------------------------------------------------------------
# File I/O helpers
# ---------------------------------------------------------------------------


def ensure_directory(path: Path) -> None:
    """Create directory (and parents) if it doesn't exist."""
    path.mkdir(parents=True, exist_ok=True)
    logger.debug("Ensured directory exists: %s", path)


def write_file(path: Path, content: str, atomic: bool = True) -> int:
    """
    Write *content* to *path*.

    When *atomic* is True the content goes to a temporary file in the same
    directory which then replaces the target, so a crash never leaves a
    half-written artifact behind.

    Returns the number of bytes written.
    """
    ensure_directory(path.parent)

    encoded: bytes = content.encode("utf-8")

    if atomic:
        fd, tmp_path = tempfile.mkstemp(
            dir=str(path.parent),
            prefix=f".{path.name}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(encoded)
            os.replace(tmp_path, str(path))
        except OSError:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
    else:
        path.write_bytes(encoded)

    logger.debug("Wrote %d bytes to %s", len(encoded), path)
    return len(encoded)


def count_lines(content: str) -> int:
    """Count the number of lines in a string."""
    if not content:
        return 0
    return content.count("\n") + (1 if not content.endswith("\n") else 0)


# ---------------------------------------------------------------------------
# Timer context manager
# ---------------------------------------------------------------------------


class Timer:
    """
    Context-manager timer for pipeline steps.

    Usage:
        with Timer("discover tables") as t:
            ...
        print(t.elapsed)
    """

    __slots__ = ("label", "start_time", "end_time", "elapsed")

    def __init__(self, label: str = "operation") -> None:
        self.label: str = label
        self.start_time: float = 0.0
        self.end_time: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> "Timer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Optional[object],
    ) -> None:
        self.end_time = time.perf_counter()
        self.elapsed = self.end_time - self.start_time
        logger.debug("Timer [%s]: %.4f seconds", self.label, self.elapsed)

    def __repr__(self) -> str:
        return f"<Timer {self.label}: {self.elapsed:.4f}s>"


# ---------------------------------------------------------------------------
# Import statement builder
# ---------------------------------------------------------------------------


def build_import_block(imports: Dict[str, Set[str]]) -> str:
    """
    Build a sorted import block from a mapping of module → names.

    An empty name set yields a plain ``import module`` line; plain imports
    come before ``from`` imports.

    Example:
        >>> build_import_block({"typing": {"List", "Optional"}, "sqlalchemy as sa": set()})
        'import sqlalchemy as sa\\nfrom typing import List, Optional'
    """
    plain: List[str] = []
    from_lines: List[str] = []
    for module in sorted(imports.keys()):
        names: List[str] = sorted(imports[module])
        if names:
            from_lines.append(f"from {module} import {', '.join(names)}")
        else:
            plain.append(f"import {module}")
    return "\n".join(plain + from_lines)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "to_snake_case",
    "to_pascal_case",
    "to_plural",
    "to_singular",
    "safe_identifier",
    "table_to_entity_name",
    "table_to_module_name",
    "unique_preserving_order",
    "chunked",
    "py_string",
    "ensure_directory",
    "write_file",
    "count_lines",
    "Timer",
    "build_import_block",
]

logger.debug("schemagen.utils loaded — %d public symbols.", len(__all__))
