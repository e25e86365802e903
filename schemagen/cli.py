# File: schemagen/cli.py
"""
schemagen - Command-Line Interface
====================================

CLI built on the standard-library ``argparse`` module.

Usage examples::

    # Inspect a database and write models + migrations
    python -m schemagen --database-url postgresql://user:pw@localhost/shop

    # Only some tables, into custom directories
    python -m schemagen -d sqlite:///shop.db --tables customers,orders \\
        --path-model app/models --path-migration migrations/versions

    # Settings from a file, preview only
    python -m schemagen -c schemagen.yaml --dry-run -v

Exit codes:
    0 — success
    1 — unsupported dialect
    2 — metadata query failure
    3 — write failure
    4 — input/argument/config error
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy.exc import ArgumentError

from schemagen.exceptions import ConfigError, MetadataQueryError, UnsupportedDialectError
from schemagen.exporters import ArtifactSink, DirectorySink, MemorySink
from schemagen.generator import GenerationReport, SchemaGenerator, load_config_file, parse_raw_config
from schemagen.models import GenerationConfig
from schemagen.source import SqlAlchemySchemaSource, sanitize_connection_string
from schemagen.utils import table_to_module_name, unique_preserving_order

# ---------------------------------------------------------------------------
# Logger (configured in _setup_logging)
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagen")


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

EXIT_SUCCESS: int = 0
EXIT_DIALECT_ERROR: int = 1
EXIT_METADATA_ERROR: int = 2
EXIT_WRITE_ERROR: int = 3
EXIT_INPUT_ERROR: int = 4


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(verbosity: int) -> None:
    """
    Configure the root schemagen logger based on verbosity level.

    Args:
        verbosity: -1 = ERROR, 0 = WARNING, 1 = INFO, 2+ = DEBUG.
    """
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity >= 1:
        level = logging.INFO
    elif verbosity == 0:
        level = logging.WARNING
    else:
        level = logging.ERROR

    handler: logging.StreamHandler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    fmt: str = "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s"
    datefmt: str = "%H:%M:%S"
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    root_logger: logging.Logger = logging.getLogger("schemagen")
    root_logger.setLevel(level)

    # Remove existing handlers to prevent duplication
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.propagate = False


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _split_names(values: Optional[Sequence[str]]) -> List[str]:
    """Accept both ``--tables a,b`` and ``--tables a b``."""
    names: List[str] = []
    for value in values or ():
        names.extend(part.strip() for part in value.split(",") if part.strip())
    return unique_preserving_order(names)


def _build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    from schemagen import __version__

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="schemagen",
        description=(
            "schemagen — reverse-engineer a live database.\n\n"
            "Reads table metadata from MySQL, PostgreSQL, SQLite or SQL Server "
            "and writes SQLAlchemy model modules plus ordered Alembic "
            "migration scripts."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  %(prog)s -d sqlite:///shop.db\n"
            "  %(prog)s -d mysql+pymysql://u:p@host/db --tables users,posts\n"
            "  %(prog)s -c schemagen.yaml --dry-run -v\n"
        ),
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"schemagen v{__version__}",
    )

    # --- Source ---
    source_group = parser.add_argument_group("source")
    source_group.add_argument(
        "-d", "--database-url",
        type=str,
        default=None,
        metavar="URL",
        help="SQLAlchemy URL of the database to inspect (overrides the config file).",
    )
    source_group.add_argument(
        "-c", "--config",
        type=str,
        default=None,
        metavar="PATH",
        help="Configuration file (YAML or JSON).",
    )

    # --- Selection ---
    selection_group = parser.add_argument_group("table selection")
    selection_group.add_argument(
        "--tables",
        nargs="+",
        default=None,
        metavar="TABLE",
        help="Only process these tables (comma or space separated).",
    )
    selection_group.add_argument(
        "--ignore",
        nargs="+",
        default=None,
        metavar="TABLE",
        help="Extra tables to skip, merged with the configured ignore list.",
    )

    # --- Output ---
    output_group = parser.add_argument_group("output")
    output_group.add_argument(
        "--path-model",
        type=str,
        default=None,
        metavar="DIR",
        help="Directory for generated model modules.",
    )
    output_group.add_argument(
        "--path-migration",
        type=str,
        default=None,
        metavar="DIR",
        help="Directory for generated migration scripts.",
    )
    output_group.add_argument(
        "--max-columns",
        type=int,
        default=None,
        metavar="N",
        help="Split tables wider than N columns across several migrations.",
    )
    output_group.add_argument(
        "--stub-path",
        type=str,
        default=None,
        metavar="DIR",
        help="Directory with model.stub / migration.stub files overriding the built-in layouts.",
    )
    output_group.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        help="Run the full pipeline but don't write files to disk.",
    )

    # --- Verbosity ---
    verbosity_group = parser.add_argument_group("verbosity")
    verbosity_group.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v for INFO, -vv for DEBUG).",
    )
    verbosity_group.add_argument(
        "-q", "--quiet",
        action="store_true",
        default=False,
        help="Suppress all output except errors.",
    )

    return parser


# ---------------------------------------------------------------------------
# Config resolution
# ---------------------------------------------------------------------------


def _build_config_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """Build a config override dictionary from CLI arguments."""
    overrides: Dict[str, Any] = {}

    if args.database_url is not None:
        overrides["database_url"] = args.database_url

    if args.path_model is not None:
        overrides["model_path"] = args.path_model

    if args.path_migration is not None:
        overrides["migration_path"] = args.path_migration

    if args.max_columns is not None:
        overrides["max_columns_per_migration"] = args.max_columns

    if args.stub_path is not None:
        overrides["stub_path"] = args.stub_path

    return overrides


def _resolve_config(args: argparse.Namespace) -> GenerationConfig:
    overrides: Dict[str, Any] = _build_config_overrides(args)
    if args.config:
        config: GenerationConfig = load_config_file(Path(args.config), overrides)
    else:
        config = parse_raw_config({}, overrides)

    extra_ignored: List[str] = _split_names(args.ignore)
    if extra_ignored:
        config.ignored_tables = unique_preserving_order(config.ignored_tables + extra_ignored)
    return config


def _build_sinks(config: GenerationConfig, dry_run: bool) -> Tuple[ArtifactSink, ArtifactSink]:
    if dry_run:
        logger.info("Dry-run mode: files will not be written to disk.")
        return MemorySink(), MemorySink()
    entity_sink: DirectorySink = DirectorySink(Path(config.model_path), naming=table_to_module_name)
    migration_sink: DirectorySink = DirectorySink(Path(config.migration_path))
    return entity_sink, migration_sink


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------


def _run_generation(config: GenerationConfig, args: argparse.Namespace) -> int:
    """
    Run the full generation pipeline.

    Returns the appropriate exit code.
    """
    database_url: str = config.database_url or ""
    tables: List[str] = _split_names(args.tables)
    entity_sink, migration_sink = _build_sinks(config, args.dry_run)
    generator: SchemaGenerator = SchemaGenerator(config)

    logger.info("Database: %s", sanitize_connection_string(database_url))
    logger.info("Models:   %s", config.model_path)
    logger.info("Migrations: %s", config.migration_path)

    try:
        for sink in (entity_sink, migration_sink):
            if isinstance(sink, DirectorySink):
                sink.prepare()
        with SqlAlchemySchemaSource.from_url(database_url) as source:
            report: GenerationReport = generator.generate(
                source, entity_sink, migration_sink, tables=tables or None
            )
    except ArgumentError as exc:
        logger.error("Invalid database URL: %s", exc)
        return EXIT_INPUT_ERROR
    except ImportError as exc:
        logger.error(
            "Database driver %s is not installed; install the DBAPI package named in the URL "
            "(e.g. pymysql, psycopg2, pyodbc).",
            exc.name or exc,
        )
        return EXIT_INPUT_ERROR
    except UnsupportedDialectError as exc:
        logger.error("%s", exc)
        return EXIT_DIALECT_ERROR
    except MetadataQueryError as exc:
        logger.error("Metadata lookup failed: %s", exc)
        return EXIT_METADATA_ERROR
    except OSError as exc:
        logger.error("Failed to write artifact: %s", exc)
        return EXIT_WRITE_ERROR

    print(report.summary())
    if args.dry_run:
        for sink in (entity_sink, migration_sink):
            if isinstance(sink, MemorySink):
                for name in sink.names:
                    print(f"  (dry-run) {name}")
    return EXIT_SUCCESS


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Main CLI entry point.

    Can be called from ``__main__.py`` or directly for testing.

    Args:
        argv: Optional argument list (defaults to sys.argv[1:]).

    Returns:
        The process exit code.
    """
    parser: argparse.ArgumentParser = _build_parser()
    args: argparse.Namespace = parser.parse_args(argv)

    verbosity: int = -1 if args.quiet else args.verbose
    _setup_logging(verbosity)

    if args.max_columns is not None and args.max_columns < 1:
        logger.error("--max-columns must be at least 1 (got %d).", args.max_columns)
        return EXIT_INPUT_ERROR

    try:
        config: GenerationConfig = _resolve_config(args)
    except ConfigError as exc:
        logger.error("%s", exc)
        return EXIT_INPUT_ERROR

    if not config.database_url:
        logger.error("A database URL is required. Use -d/--database-url or set database_url in the config file.")
        parser.print_usage(sys.stderr)
        return EXIT_INPUT_ERROR

    exit_code: int = _run_generation(config, args)

    if exit_code == EXIT_SUCCESS:
        logger.info("Generation completed successfully.")
    else:
        logger.error("Generation failed with exit code %d.", exit_code)
    return exit_code


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "main",
    "EXIT_SUCCESS",
    "EXIT_DIALECT_ERROR",
    "EXIT_METADATA_ERROR",
    "EXIT_WRITE_ERROR",
    "EXIT_INPUT_ERROR",
]

logger.debug("schemagen.cli loaded.")
