# File: schemagen/templates.py
"""
schemagen - Code Template Engine
==================================
Renders artifacts to Python source text:

    1. ``EntityArtifact``    → SQLAlchemy 2.0 declarative model module
                               (``Mapped[]`` / ``mapped_column()`` / ``relationship()``)
    2. ``MigrationArtifact`` → Alembic revision script
                               (``revision`` / ``down_revision`` / ``upgrade()`` / ``downgrade()``)

All string assembly uses the ``List[str]`` + ``"\\n".join()`` pattern.
Rendering is stateless apart from the configuration, so one instance can
render every artifact of a run.

When ``GenerationConfig.stub_path`` holds a ``model.stub`` or
``migration.stub`` file, that file replaces the built-in module layout.
Stubs are ``string.Template`` text:

    model.stub      $imports $class_name $base_class $table $body
    migration.stub  $title $revision $down_revision $create_date
                    $upgrade $downgrade

Unknown placeholders are left untouched.
"""

from __future__ import annotations

import logging
from pathlib import Path
from string import Template
from typing import Dict, List, Optional, Set, Tuple

from schemagen.models import (
    ColumnDeclaration,
    DeclarationKind,
    DefaultKind,
    EntityArtifact,
    ForeignKeyEdge,
    GenerationConfig,
    MigrationArtifact,
    MigrationOperation,
    ModifierKind,
    OperationKind,
    RelationshipAccessor,
    RelationshipKind,
    TargetType,
)
from schemagen.translator import SOFT_DELETE_COLUMN, TIMESTAMP_COLUMNS
from schemagen.utils import build_import_block, py_string, safe_identifier

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagen.templates")

_INDENT: str = " " * 4

# Stub files looked up in ``GenerationConfig.stub_path``
MODEL_STUB: str = "model.stub"
MIGRATION_STUB: str = "migration.stub"

# TargetType → (SQLAlchemy type constructor, Python annotation)
_TYPE_MAP: Dict[TargetType, Tuple[str, str]] = {
    TargetType.TINY_INTEGER: ("SmallInteger", "int"),
    TargetType.SMALL_INTEGER: ("SmallInteger", "int"),
    TargetType.MEDIUM_INTEGER: ("Integer", "int"),
    TargetType.INTEGER: ("Integer", "int"),
    TargetType.BIG_INTEGER: ("BigInteger", "int"),
    TargetType.TINY_INCREMENTS: ("SmallInteger", "int"),
    TargetType.SMALL_INCREMENTS: ("SmallInteger", "int"),
    TargetType.MEDIUM_INCREMENTS: ("Integer", "int"),
    TargetType.INCREMENTS: ("Integer", "int"),
    TargetType.BIG_INCREMENTS: ("BigInteger", "int"),
    TargetType.CHAR: ("CHAR", "str"),
    TargetType.STRING: ("String", "str"),
    TargetType.TEXT: ("Text", "str"),
    TargetType.MEDIUM_TEXT: ("Text", "str"),
    TargetType.LONG_TEXT: ("Text", "str"),
    TargetType.DECIMAL: ("Numeric", "Decimal"),
    TargetType.FLOAT: ("Float", "float"),
    TargetType.DOUBLE: ("Double", "float"),
    TargetType.DATE: ("Date", "date"),
    TargetType.DATETIME: ("DateTime", "datetime"),
    TargetType.TIMESTAMP: ("TIMESTAMP", "datetime"),
    TargetType.TIME: ("Time", "time"),
    TargetType.BOOLEAN: ("Boolean", "bool"),
    TargetType.BINARY: ("LargeBinary", "bytes"),
    TargetType.JSON: ("JSON", "Any"),
    TargetType.UUID: ("Uuid", "UUID"),
}

# Python annotation → import location
_PYTHON_TYPE_IMPORTS: Dict[str, Tuple[str, str]] = {
    "Decimal": ("decimal", "Decimal"),
    "date": ("datetime", "date"),
    "datetime": ("datetime", "datetime"),
    "time": ("datetime", "time"),
    "UUID": ("uuid", "UUID"),
    "Any": ("typing", "Any"),
}


def single_quoted(value: str) -> str:
    """Python single-quoted literal with ``\\'`` escaping: ``O'Brien`` → ``'O\\'Brien'``."""
    escaped: str = value.replace("\\", "\\\\").replace("'", "\\'").replace("\n", "\\n")
    return f"'{escaped}'"


def _title(slug: str) -> str:
    return slug.replace("_", " ")


# ---------------------------------------------------------------------------
# TemplateGenerator class
# ---------------------------------------------------------------------------


class TemplateGenerator:
    """
    Stateless renderer for entity and migration artifacts.

    Entity modules import the declarative base from
    ``config.base_module`` / ``config.base_class``.
    """

    def __init__(self, config: GenerationConfig) -> None:
        self._config: GenerationConfig = config
        self._model_stub: Optional[Template] = self._load_stub(MODEL_STUB)
        self._migration_stub: Optional[Template] = self._load_stub(MIGRATION_STUB)

    def _load_stub(self, filename: str) -> Optional[Template]:
        """Published stub from ``config.stub_path``; None keeps the built-in layout."""
        if self._config.stub_path is None:
            return None
        path: Path = Path(self._config.stub_path) / filename
        if not path.is_file():
            return None
        logger.info("Using custom stub %s", path)
        return Template(path.read_text(encoding="utf-8"))

    # ===================================================================
    # Shared: types and defaults
    # ===================================================================

    @staticmethod
    def _type_expr(decl: ColumnDeclaration, prefix: str, names: Set[str]) -> str:
        """
        Constructor expression for a declaration's type, e.g. ``sa.String(255)``.

        Records the bare SQLAlchemy names used in *names*.
        """
        target: TargetType = decl.target_type or TargetType.STRING
        type_name: str = _TYPE_MAP[target][0]
        names.add(type_name)

        args: str = ""
        if decl.length is not None and target in (TargetType.CHAR, TargetType.STRING, TargetType.BINARY):
            args = str(decl.length)
        elif target == TargetType.DECIMAL and decl.precision is not None:
            args = f"{decl.precision}, {decl.scale or 0}"
        elif target == TargetType.TIMESTAMP:
            args = "timezone=True"

        expr: str = f"{prefix}{type_name}({args})"
        if target == TargetType.BIG_INCREMENTS:
            # SQLite only auto-increments INTEGER PRIMARY KEY
            names.add("Integer")
            expr = f'{expr}.with_variant({prefix}Integer(), "sqlite")'
        return expr

    @staticmethod
    def _default_expr(decl: ColumnDeclaration, prefix: str, names: Set[str]) -> Optional[str]:
        if decl.has_modifier(ModifierKind.USE_CURRENT):
            names.add("func")
            return f"{prefix}func.current_timestamp()"

        default = decl.modifier(ModifierKind.DEFAULT)
        if default is None:
            return None
        if default.value_kind == DefaultKind.NUMBER:
            names.add("text")
            return f"{prefix}text({py_string(str(default.value))})"
        if default.value_kind == DefaultKind.NULL:
            names.add("text")
            return f'{prefix}text("NULL")'
        if default.value_kind == DefaultKind.BOOLEAN:
            fn: str = "true" if default.value is True else "false"
            names.add(fn)
            return f"{prefix}{fn}()"
        return single_quoted(str(default.value))

    def _column_kwargs(self, decl: ColumnDeclaration, prefix: str, names: Set[str]) -> List[str]:
        parts: List[str] = []
        primary: bool = decl.is_increments or decl.has_modifier(ModifierKind.PRIMARY)
        if primary:
            parts.append("primary_key=True")
        if decl.is_increments or decl.has_modifier(ModifierKind.AUTO_INCREMENT):
            parts.append("autoincrement=True")
        if not primary:
            parts.append(f"nullable={decl.has_modifier(ModifierKind.NULLABLE)}")
        if decl.has_modifier(ModifierKind.UNIQUE):
            parts.append("unique=True")
        server_default: Optional[str] = self._default_expr(decl, prefix, names)
        if server_default is not None:
            parts.append(f"server_default={server_default}")
        return parts

    # ===================================================================
    # 1. Entity module
    # ===================================================================

    def render_entity(self, entity: EntityArtifact) -> str:
        """Render a SQLAlchemy 2.0 model module for one entity."""
        sa_names: Set[str] = set()
        py_imports: Dict[str, Set[str]] = {}
        typing_names: Set[str] = set()

        fk_targets: Dict[str, ForeignKeyEdge] = {}
        for edge in entity.foreign_keys:
            fk_targets.setdefault(edge.from_column, edge)

        has_primary: bool = any(
            d.is_increments or d.has_modifier(ModifierKind.PRIMARY) for d in entity.declarations
        )

        body: List[str] = []
        for decl in entity.declarations:
            if decl.kind == DeclarationKind.TIMESTAMPS:
                sa_names.update({"DateTime", "func"})
                py_imports.setdefault("datetime", set()).add("datetime")
                typing_names.add("Optional")
                for column, extra in zip(TIMESTAMP_COLUMNS, ("", ", onupdate=func.now()")):
                    body.append(
                        f"{_INDENT}{safe_identifier(column)}: Mapped[Optional[datetime]] = "
                        f"mapped_column({self._name_arg(column)}DateTime, nullable=True, "
                        f"default=func.now(){extra})"
                    )
                continue
            if decl.kind == DeclarationKind.SOFT_DELETES:
                sa_names.add("DateTime")
                py_imports.setdefault("datetime", set()).add("datetime")
                typing_names.add("Optional")
                body.append(
                    f"{_INDENT}{safe_identifier(SOFT_DELETE_COLUMN)}: Mapped[Optional[datetime]] = "
                    f"mapped_column({self._name_arg(SOFT_DELETE_COLUMN)}DateTime, nullable=True)"
                )
                continue

            annotation: str = _TYPE_MAP[decl.target_type or TargetType.STRING][1]
            if annotation in _PYTHON_TYPE_IMPORTS:
                module, name = _PYTHON_TYPE_IMPORTS[annotation]
                py_imports.setdefault(module, set()).add(name)
            if decl.has_modifier(ModifierKind.NULLABLE):
                typing_names.add("Optional")
                annotation = f"Optional[{annotation}]"

            args: List[str] = [self._type_expr(decl, "", sa_names)]
            edge: Optional[ForeignKeyEdge] = fk_targets.get(decl.column)
            if edge is not None:
                sa_names.add("ForeignKey")
                args.append(f"ForeignKey({py_string(f'{edge.to_table}.{edge.to_column}')})")
            kwargs: List[str] = self._column_kwargs(decl, "", sa_names)
            if not has_primary and decl.column == entity.resolved_primary_key:
                kwargs = ["primary_key=True"] + [k for k in kwargs if not k.startswith("nullable")]
            body.append(
                f"{_INDENT}{safe_identifier(decl.column)}: Mapped[{annotation}] = "
                f"mapped_column({self._name_arg(decl.column)}{', '.join(args + kwargs)})"
            )

        # many-to-one accessors first, then the one-to-many collections
        rel_lines: List[str] = []
        for kind in (RelationshipKind.OWNING, RelationshipKind.OWNED):
            for accessor in entity.accessors_of(kind):
                rel_lines.append(f"{_INDENT}{self._relationship_line(entity, accessor, typing_names)}")

        imports: Dict[str, Set[str]] = {
            "sqlalchemy.orm": {"Mapped", "mapped_column"},
            self._config.base_module: {self._config.base_class},
        }
        if sa_names:
            imports["sqlalchemy"] = sa_names
        if rel_lines:
            imports["sqlalchemy.orm"].add("relationship")
        for module, names in py_imports.items():
            imports.setdefault(module, set()).update(names)
        if typing_names:
            imports.setdefault("typing", set()).update(typing_names)

        class_body: List[str] = [
            f"{_INDENT}__tablename__ = {py_string(entity.source_table)}",
            f"{_INDENT}__fillable__ = ({self._tuple_items(entity.fillable_columns)})",
        ]
        if entity.primary_key_column is not None:
            class_body.append(f"{_INDENT}__primary_key__ = {py_string(entity.primary_key_column)}")
        if entity.soft_deletes:
            class_body.append(f"{_INDENT}__soft_deletes__ = True")
        class_body.append("")
        class_body.extend(body)
        if rel_lines:
            class_body.append("")
            class_body.extend(rel_lines)

        import_block: str = build_import_block(imports)
        content: str
        if self._model_stub is not None:
            content = self._model_stub.safe_substitute(
                table=entity.source_table,
                class_name=entity.name,
                base_class=self._config.base_class,
                imports=import_block,
                body="\n".join(class_body),
            )
        else:
            lines: List[str] = [
                '"""',
                f"SQLAlchemy model for table: {entity.source_table}",
                "Generated by schemagen.",
                '"""',
                "",
                "from __future__ import annotations",
                "",
                import_block,
                "",
                "",
                f"class {entity.name}({self._config.base_class}):",
            ]
            lines.extend(class_body)
            lines.append("")
            content = "\n".join(lines)
        logger.debug("Rendered entity %s: %d lines.", entity.name, content.count("\n"))
        return content

    def _relationship_line(
        self,
        entity: EntityArtifact,
        accessor: RelationshipAccessor,
        typing_names: Set[str],
    ) -> str:
        target: str = accessor.target_entity
        parts: List[str] = [py_string(target)]
        if accessor.kind == RelationshipKind.OWNING:
            typing_names.add("Optional")
            hint: str = f'Mapped[Optional["{target}"]]'
            fk_ref: str = f"{entity.name}.{safe_identifier(accessor.local_column)}"
            parts.append(f"foreign_keys={py_string(f'[{fk_ref}]')}")
            if accessor.target_table == entity.source_table:
                remote: str = f"{target}.{safe_identifier(accessor.foreign_column)}"
                parts.append(f"remote_side={py_string(f'[{remote}]')}")
        else:
            typing_names.add("List")
            hint = f'Mapped[List["{target}"]]'
            fk_ref = f"{target}.{safe_identifier(accessor.foreign_column)}"
            parts.append(f"foreign_keys={py_string(f'[{fk_ref}]')}")
            parts.append("viewonly=True")
        return f"{accessor.accessor_name}: {hint} = relationship({', '.join(parts)})"

    @staticmethod
    def _name_arg(column: str) -> str:
        """Explicit column name when the attribute had to be renamed."""
        if safe_identifier(column) == column:
            return ""
        return f"{py_string(column)}, "

    @staticmethod
    def _tuple_items(values: List[str]) -> str:
        if not values:
            return ""
        rendered: str = ", ".join(py_string(v) for v in values)
        return rendered + ("," if len(values) == 1 else "")

    # ===================================================================
    # 2. Migration revision
    # ===================================================================

    def render_migration(self, migration: MigrationArtifact) -> str:
        """Render an Alembic revision script for one migration artifact."""
        upgrade: List[str] = self._render_operations(migration.operations)
        downgrade: List[str] = self._render_operations(migration.inverse_operations)
        slug: str = migration.name[len(migration.revision) + 1:]
        down: str = py_string(migration.down_revision) if migration.down_revision else "None"

        if self._migration_stub is not None:
            content: str = self._migration_stub.safe_substitute(
                title=_title(slug),
                revision=py_string(migration.revision),
                down_revision=down,
                create_date=migration.created_at.isoformat(sep=" "),
                upgrade="\n".join(upgrade or [f"{_INDENT}pass"]),
                downgrade="\n".join(downgrade or [f"{_INDENT}pass"]),
            )
            logger.debug("Rendered migration %s from stub.", migration.name)
            return content

        lines: List[str] = [
            '"""' + _title(slug),
            "",
            f"Revision ID: {migration.revision}",
            f"Revises: {migration.down_revision or ''}",
            f"Create Date: {migration.created_at.isoformat(sep=' ')}",
            "",
            "Generated by schemagen.",
            '"""',
            "",
            "from alembic import op",
            "import sqlalchemy as sa",
            "",
            f"revision = {py_string(migration.revision)}",
            f"down_revision = {down}",
            "branch_labels = None",
            "depends_on = None",
            "",
            "",
            "def upgrade() -> None:",
        ]
        lines.extend(upgrade or [f"{_INDENT}pass"])
        lines.append("")
        lines.append("")
        lines.append("def downgrade() -> None:")
        lines.extend(downgrade or [f"{_INDENT}pass"])
        lines.append("")

        content = "\n".join(lines)
        logger.debug("Rendered migration %s: %d lines.", migration.name, content.count("\n"))
        return content

    def _render_operations(self, operations: List[MigrationOperation]) -> List[str]:
        lines: List[str] = []
        batch: Optional[str] = None
        for op in operations:
            if op.kind == OperationKind.CREATE_TABLE:
                batch = None
                lines.append(f"{_INDENT}op.create_table(")
                lines.append(f"{_INDENT * 2}{py_string(op.table)},")
                for decl in op.declarations:
                    for column in self._sa_columns(decl):
                        lines.append(f"{_INDENT * 2}{column},")
                lines.append(f"{_INDENT})")
            elif op.kind == OperationKind.DROP_TABLE:
                batch = None
                lines.append(f"{_INDENT}op.drop_table({py_string(op.table)})")
            else:
                if batch != op.table:
                    lines.append(
                        f"{_INDENT}with op.batch_alter_table({py_string(op.table)}) as batch_op:"
                    )
                    batch = op.table
                lines.extend(f"{_INDENT * 2}{line}" for line in self._batch_statements(op))
        return lines

    def _batch_statements(self, op: MigrationOperation) -> List[str]:
        if op.kind == OperationKind.ADD_COLUMN:
            return [
                f"batch_op.add_column({column})"
                for decl in op.declarations
                for column in self._sa_columns(decl)
            ]
        if op.kind == OperationKind.DROP_COLUMN:
            return [f"batch_op.drop_column({py_string(column)})" for column in op.columns]

        edge: Optional[ForeignKeyEdge] = op.foreign_key
        if edge is None:
            raise ValueError(f"{op.kind.value} operation on '{op.table}' has no foreign key.")
        if op.kind == OperationKind.ADD_FOREIGN_KEY:
            return [
                f"batch_op.create_foreign_key({py_string(edge.constraint_name)}, "
                f"{py_string(edge.to_table)}, [{py_string(edge.from_column)}], "
                f'[{py_string(edge.to_column)}], ondelete="CASCADE")'
            ]
        return [f'batch_op.drop_constraint({py_string(edge.constraint_name)}, type_="foreignkey")']

    def _sa_columns(self, decl: ColumnDeclaration) -> List[str]:
        """``sa.Column(...)`` expressions for a declaration."""
        if decl.kind == DeclarationKind.TIMESTAMPS:
            return [
                f"sa.Column({py_string(column)}, sa.DateTime(), nullable=True)"
                for column in TIMESTAMP_COLUMNS
            ]
        if decl.kind == DeclarationKind.SOFT_DELETES:
            return [f"sa.Column({py_string(SOFT_DELETE_COLUMN)}, sa.DateTime(), nullable=True)"]

        names: Set[str] = set()
        parts: List[str] = [py_string(decl.column), self._type_expr(decl, "sa.", names)]
        parts.extend(self._column_kwargs(decl, "sa.", names))
        return [f"sa.Column({', '.join(parts)})"]


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = ["MIGRATION_STUB", "MODEL_STUB", "TemplateGenerator", "single_quoted"]

logger.debug("schemagen.templates loaded.")
