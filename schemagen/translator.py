# File: schemagen/translator.py
"""
schemagen - Column Translator
===============================
Maps normalized ``ColumnDescriptor`` objects to portable
``ColumnDeclaration`` objects: a target type plus an ordered modifier chain.

Modifier order is fixed::

    nullable → default | use_current → auto_increment, primary → unique

Special columns:

    - ``deleted_at`` becomes a single soft-delete declaration.
    - ``created_at`` + ``updated_at`` become a single record-timestamps
      declaration, but only when both exist.

Unknown raw types degrade to ``TargetType.STRING`` with a log line.
"""

from __future__ import annotations

import logging
import re
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from schemagen.models import (
    INTEGER_INCREMENTS,
    ColumnDeclaration,
    ColumnDescriptor,
    ColumnModifier,
    DeclarationKind,
    DefaultKind,
    ModifierKind,
    TargetType,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagen.translator")

SOFT_DELETE_COLUMN: str = "deleted_at"
TIMESTAMP_COLUMNS: Tuple[str, str] = ("created_at", "updated_at")

_ARGS_RE: re.Pattern[str] = re.compile(r"\(([^)]*)\)")
_MODIFIER_WORDS_RE: re.Pattern[str] = re.compile(r"\b(unsigned|signed|zerofill)\b")
_NUMBER_RE: re.Pattern[str] = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")
# CURRENT_TIMESTAMP, CURRENT_TIMESTAMP(), CURRENT_TIMESTAMP(6) for fractional seconds
_CURRENT_TIMESTAMP_RE: re.Pattern[str] = re.compile(r"^current_timestamp(\(\d*\))?$")

_SIZED_TARGETS: frozenset = frozenset({TargetType.CHAR, TargetType.STRING, TargetType.BINARY})


def has_timestamps(columns: Sequence[str]) -> bool:
    return all(name in columns for name in TIMESTAMP_COLUMNS)


def has_soft_deletes(columns: Sequence[str]) -> bool:
    return SOFT_DELETE_COLUMN in columns


class ColumnTranslator:
    """Translate descriptors using one dialect's raw-type table."""

    def __init__(self, type_map: Mapping[str, TargetType]) -> None:
        self._type_map: Dict[str, TargetType] = {k.lower(): v for k, v in type_map.items()}

    # -----------------------------------------------------------------
    # Types
    # -----------------------------------------------------------------

    def target_type(self, raw_type: str) -> TargetType:
        key: str = self._base_type(raw_type)
        found: Optional[TargetType] = self._type_map.get(key)
        if found is None:
            logger.info("Unknown column type %r; falling back to string.", raw_type)
            return TargetType.STRING
        return found

    @staticmethod
    def _base_type(raw_type: str) -> str:
        lowered: str = _ARGS_RE.sub("", (raw_type or "").lower())
        lowered = _MODIFIER_WORDS_RE.sub("", lowered)
        return " ".join(lowered.split())

    @staticmethod
    def _type_arguments(raw_type: str) -> List[int]:
        match = _ARGS_RE.search(raw_type or "")
        if not match:
            return []
        values: List[int] = []
        for part in match.group(1).split(","):
            part = part.strip()
            if not part.isdigit():
                return []
            values.append(int(part))
        return values

    # -----------------------------------------------------------------
    # Defaults
    # -----------------------------------------------------------------

    @staticmethod
    def default_modifier(default: Optional[str]) -> Optional[ColumnModifier]:
        """
        Classify a normalized default.

        Numbers (and the literals ``0``/``1``) stay numeric, ``null`` and
        ``true``/``false`` become typed literals, ``CURRENT_TIMESTAMP`` (with or
        without a precision) becomes a use-current directive, everything else
        is a string.
        """
        if default is None:
            return None
        lowered: str = default.strip().lower()
        if default in ("0", "1") or _NUMBER_RE.match(default.strip()):
            return ColumnModifier(
                kind=ModifierKind.DEFAULT, value=default.strip(), value_kind=DefaultKind.NUMBER
            )
        if lowered == "null":
            return ColumnModifier(kind=ModifierKind.DEFAULT, value_kind=DefaultKind.NULL)
        if lowered in ("true", "false"):
            return ColumnModifier(
                kind=ModifierKind.DEFAULT, value=lowered == "true", value_kind=DefaultKind.BOOLEAN
            )
        if _CURRENT_TIMESTAMP_RE.match(lowered):
            return ColumnModifier(kind=ModifierKind.USE_CURRENT)
        return ColumnModifier(
            kind=ModifierKind.DEFAULT, value=default, value_kind=DefaultKind.STRING
        )

    # -----------------------------------------------------------------
    # Declarations
    # -----------------------------------------------------------------

    def translate(self, descriptor: ColumnDescriptor) -> ColumnDeclaration:
        """Declaration for one ordinary column."""
        target: TargetType = self.target_type(descriptor.raw_type)
        modifiers: List[ColumnModifier] = []

        if descriptor.is_nullable:
            modifiers.append(ColumnModifier(kind=ModifierKind.NULLABLE))

        default: Optional[ColumnModifier] = self.default_modifier(descriptor.default)
        if default is not None:
            modifiers.append(default)

        if descriptor.is_primary_key and descriptor.is_auto_increment:
            if target in INTEGER_INCREMENTS:
                target = INTEGER_INCREMENTS[target]
            else:
                modifiers.append(ColumnModifier(kind=ModifierKind.AUTO_INCREMENT))
                modifiers.append(ColumnModifier(kind=ModifierKind.PRIMARY))
        elif descriptor.is_primary_key:
            modifiers.append(ColumnModifier(kind=ModifierKind.PRIMARY))

        if descriptor.is_unique and not descriptor.is_primary_key:
            modifiers.append(ColumnModifier(kind=ModifierKind.UNIQUE))

        length: Optional[int] = None
        precision: Optional[int] = None
        scale: Optional[int] = None
        args: List[int] = self._type_arguments(descriptor.raw_type)
        if args and target in _SIZED_TARGETS and args[0] > 0:
            length = args[0]
        elif args and target == TargetType.DECIMAL:
            precision = args[0]
            scale = args[1] if len(args) > 1 else 0

        return ColumnDeclaration(
            kind=DeclarationKind.COLUMN,
            column=descriptor.name,
            columns=[descriptor.name],
            target_type=target,
            length=length,
            precision=precision,
            scale=scale,
            modifiers=modifiers,
        )

    def declarations(self, descriptors: Sequence[ColumnDescriptor]) -> List[ColumnDeclaration]:
        """
        Declarations for a table's columns, in column order.

        The timestamps declaration sits where the first of the pair appears;
        the soft-delete declaration sits where ``deleted_at`` appears.
        """
        names: List[str] = [d.name for d in descriptors]
        pair: bool = has_timestamps(names)
        result: List[ColumnDeclaration] = []
        timestamps_emitted: bool = False

        for descriptor in descriptors:
            if descriptor.name == SOFT_DELETE_COLUMN:
                result.append(ColumnDeclaration(
                    kind=DeclarationKind.SOFT_DELETES,
                    column=SOFT_DELETE_COLUMN,
                    columns=[SOFT_DELETE_COLUMN],
                ))
            elif pair and descriptor.name in TIMESTAMP_COLUMNS:
                if not timestamps_emitted:
                    result.append(ColumnDeclaration(
                        kind=DeclarationKind.TIMESTAMPS,
                        column=TIMESTAMP_COLUMNS[0],
                        columns=list(TIMESTAMP_COLUMNS),
                    ))
                    timestamps_emitted = True
            else:
                result.append(self.translate(descriptor))
        return result


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ColumnTranslator",
    "SOFT_DELETE_COLUMN",
    "TIMESTAMP_COLUMNS",
    "has_timestamps",
    "has_soft_deletes",
]

logger.debug("schemagen.translator loaded.")
