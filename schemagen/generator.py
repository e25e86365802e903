# File: schemagen/generator.py
"""
schemagen - Generation Pipeline (Orchestrator)
================================================

Connects every phase of a run:

    SchemaSource → MetadataProvider → SchemaGraph → Entity/Migration
    generators → TemplateGenerator → sinks

Workflow::

    1. Select the dialect adapter (``UnsupportedDialectError`` before any
       write) with a fresh ``MetadataCache`` owned by this run.
    2. Resolve the table set: the explicit list, or every discovered table
       minus the ignore list.
    3. Compute the processing order.
    4. For each table in order: build and render its entity and migration
       artifacts, then write them.  A table whose metadata fails writes
       nothing; tables already written stay on disk.
    5. Build, render and write the single foreign-key migration.
    6. Return a ``GenerationReport``.

Errors are fatal and propagate to the caller: a missing table would corrupt
ordering and relationships for every other table.

The module also loads the YAML/JSON configuration file.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import yaml
from pydantic import ValidationError

from schemagen.dialects import MetadataCache, MetadataProvider, get_provider
from schemagen.entities import EntityGenerator
from schemagen.exceptions import ConfigError
from schemagen.exporters import ArtifactSink
from schemagen.graph import SchemaGraph
from schemagen.migrations import MigrationClock, MigrationGenerator
from schemagen.models import EntityArtifact, GenerationConfig, MigrationArtifact
from schemagen.source import SchemaSource
from schemagen.templates import TemplateGenerator
from schemagen.translator import ColumnTranslator
from schemagen.utils import Timer, count_lines, unique_preserving_order

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagen.generator")


# ---------------------------------------------------------------------------
# Generation report
# ---------------------------------------------------------------------------


@dataclass(frozen=False, slots=True)
class GenerationStepMetric:
    """Timing and outcome for a single pipeline step."""

    step_name: str = ""
    success: bool = True
    elapsed_seconds: float = 0.0
    detail: str = ""


@dataclass(frozen=False, slots=True)
class GenerationReport:
    """Report produced by ``SchemaGenerator.generate()``."""

    success: bool = False
    dialect: str = ""

    processing_order: List[str] = field(default_factory=list)
    has_cycles: bool = False
    entities: List[str] = field(default_factory=list)
    migrations: List[str] = field(default_factory=list)

    total_lines: int = 0
    total_bytes: int = 0
    total_elapsed_seconds: float = 0.0

    step_metrics: List[GenerationStepMetric] = field(default_factory=list)

    @property
    def total_tables_processed(self) -> int:
        return len(self.processing_order)

    @property
    def total_artifacts(self) -> int:
        return len(self.entities) + len(self.migrations)

    def record(self, step_name: str, timer: Timer, detail: str = "") -> None:
        self.step_metrics.append(GenerationStepMetric(
            step_name=step_name,
            success=True,
            elapsed_seconds=timer.elapsed,
            detail=detail,
        ))

    def summary(self) -> str:
        """Return a human-readable summary string."""
        lines: List[str] = []
        status: str = "SUCCESS" if self.success else "FAILED"
        lines.append("=" * 60)
        lines.append("  schemagen — Generation Report")
        lines.append("=" * 60)
        lines.append(f"  Status:           {status}")
        lines.append(f"  Dialect:          {self.dialect}")
        lines.append(f"  Tables processed: {self.total_tables_processed}")
        lines.append(f"  Entities:         {len(self.entities)}")
        lines.append(f"  Migrations:       {len(self.migrations)}")
        lines.append(f"  Total lines:      {self.total_lines:,}")
        lines.append(f"  Total time:       {self.total_elapsed_seconds:.3f}s")
        if self.has_cycles:
            lines.append("  Note:             cyclic foreign keys; order not guaranteed across cycle")
        lines.append("─" * 60)

        if self.step_metrics:
            lines.append("  Pipeline Steps:")
            for step in self.step_metrics:
                icon: str = "✓" if step.success else "✗"
                lines.append(
                    f"    {icon} {step.step_name:<24s} "
                    f"{step.elapsed_seconds:>7.3f}s  {step.detail}"
                )

        if self.processing_order:
            lines.append("─" * 60)
            lines.append("  Processing order:")
            lines.append(f"    {' → '.join(self.processing_order)}")

        lines.append("=" * 60)
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Config loader helpers
# ---------------------------------------------------------------------------


def _load_json_file(path: Path) -> Dict[str, Any]:
    try:
        data: Any = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a JSON object at top level, got {type(data).__name__}.")
    return data


def _load_yaml_file(path: Path) -> Dict[str, Any]:
    try:
        data: Any = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping at top level, got {type(data).__name__}.")
    return data


def load_config_file(
    path: Path,
    overrides: Optional[Mapping[str, Any]] = None,
) -> GenerationConfig:
    """
    Load a configuration file (YAML or JSON, chosen by extension).

    Raises:
        ConfigError: if the file is missing, unparsable or invalid.
    """
    path = Path(path)
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    suffix: str = path.suffix.lower()
    if suffix == ".json":
        raw: Dict[str, Any] = _load_json_file(path)
    else:
        # YAML is a superset of JSON, so unknown extensions go through it
        raw = _load_yaml_file(path)
    logger.info("Loaded config file: %s", path)
    return parse_raw_config(raw, overrides)


def parse_raw_config(
    raw: Mapping[str, Any],
    overrides: Optional[Mapping[str, Any]] = None,
) -> GenerationConfig:
    """
    Validate a raw mapping into ``GenerationConfig``.

    Settings may sit at the top level or under a ``schemagen`` key.
    ``overrides`` (typically CLI flags) win over file values.
    """
    section: Any = raw.get("schemagen", raw)
    if not isinstance(section, Mapping):
        raise ConfigError("The 'schemagen' section must be a mapping.")
    data: Dict[str, Any] = dict(section)
    data.update({k: v for k, v in (overrides or {}).items() if v is not None})
    try:
        return GenerationConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


class SchemaGenerator:
    """
    Run orchestrator.

    Usage::

        generator = SchemaGenerator(config)
        with SqlAlchemySchemaSource.from_url(url) as source:
            report = generator.generate(source, entity_sink, migration_sink)
        print(report.summary())

    Reusable: every ``generate()`` call starts from an empty cache.
    """

    def __init__(self, config: Optional[GenerationConfig] = None) -> None:
        self._config: GenerationConfig = config or GenerationConfig()
        self._templates: TemplateGenerator = TemplateGenerator(self._config)

    @property
    def config(self) -> GenerationConfig:
        return self._config

    def generate(
        self,
        source: SchemaSource,
        entity_sink: ArtifactSink,
        migration_sink: ArtifactSink,
        tables: Optional[Sequence[str]] = None,
    ) -> GenerationReport:
        report: GenerationReport = GenerationReport()
        pipeline_start: float = time.perf_counter()

        # --- Step: dialect selection ---
        with Timer("select_dialect") as t:
            cache: MetadataCache = MetadataCache()
            provider: MetadataProvider = get_provider(
                source, cache, ignored_tables=self._config.ignored_tables
            )
        report.dialect = provider.dialect.value
        report.record("Select Dialect", t, type(provider).__name__)

        # --- Step: table set ---
        with Timer("resolve_tables") as t:
            requested: List[str] = (
                unique_preserving_order(tables) if tables else provider.list_tables()
            )
        report.record(
            "Resolve Tables", t, f"{len(requested)} table(s) {'requested' if tables else 'discovered'}"
        )

        # --- Step: ordering ---
        with Timer("dependency_order") as t:
            graph: SchemaGraph = SchemaGraph.build(requested, provider.foreign_keys)
            order: List[str] = graph.processing_order()
            report.has_cycles = graph.has_cycle()
        report.processing_order = order
        report.record("Dependency Order", t, f"{len(order)} table(s) ordered")
        logger.info("Processing order: %s", " → ".join(order) or "(empty)")
        if report.has_cycles:
            logger.info("Foreign keys form a cycle; order across the cycle is best-effort.")

        translator: ColumnTranslator = ColumnTranslator(provider.type_map)
        entities: EntityGenerator = EntityGenerator(provider, translator)
        migrations: MigrationGenerator = MigrationGenerator(
            provider,
            translator,
            max_columns_per_migration=self._config.max_columns_per_migration,
            clock=MigrationClock(self._config.migration_start),
        )

        # --- Step: per-table artifacts ---
        with Timer("tables") as t:
            for table in order:
                self._process_table(table, entities, migrations, entity_sink, migration_sink, report)
        report.record("Tables", t, f"{len(report.entities)} entities")

        # --- Step: foreign keys ---
        with Timer("foreign_keys") as t:
            fk_migration: MigrationArtifact = migrations.build_foreign_keys(order)
            self._write(migration_sink, fk_migration.name, self._templates.render_migration(fk_migration), report)
            report.migrations.append(fk_migration.name)
        report.record("Foreign Keys", t, f"{len(fk_migration.operations)} constraint(s)")

        report.success = True
        report.total_elapsed_seconds = time.perf_counter() - pipeline_start
        logger.info(
            "Generated %d entities and %d migrations in %.3fs.",
            len(report.entities),
            len(report.migrations),
            report.total_elapsed_seconds,
        )
        return report

    def _process_table(
        self,
        table: str,
        entities: EntityGenerator,
        migrations: MigrationGenerator,
        entity_sink: ArtifactSink,
        migration_sink: ArtifactSink,
        report: GenerationReport,
    ) -> None:
        # Everything is rendered before the first write for this table.
        entity: EntityArtifact = entities.build(table)
        rendered_entity: str = self._templates.render_entity(entity)
        rendered_migrations: List[Tuple[str, str]] = [
            (artifact.name, self._templates.render_migration(artifact))
            for artifact in migrations.build_table(table)
        ]

        self._write(entity_sink, entity.name, rendered_entity, report)
        report.entities.append(entity.name)
        for name, content in rendered_migrations:
            self._write(migration_sink, name, content, report)
            report.migrations.append(name)
        logger.info(
            "Table '%s': entity %s, %d migration(s).", table, entity.name, len(rendered_migrations)
        )

    @staticmethod
    def _write(sink: ArtifactSink, name: str, content: str, report: GenerationReport) -> None:
        sink.write(name, content)
        report.total_lines += count_lines(content)
        report.total_bytes += len(content.encode("utf-8"))


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "SchemaGenerator",
    "GenerationReport",
    "GenerationStepMetric",
    "load_config_file",
    "parse_raw_config",
]

logger.debug("schemagen.generator loaded.")
