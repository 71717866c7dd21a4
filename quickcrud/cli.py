# File: quickcrud/cli.py
"""
QuickCRUD - Command-Line Interface
===================================

CLI built with the standard-library ``argparse`` module.

Usage examples::

    # Full CRUD set for Product, then migrate and seed
    quickcrud Product --fields "title:string,price:decimal,in_stock:boolean"

    # Against another application root, files only
    python -m quickcrud Product --fields "title:string" \\
        --base-path /srv/shop --no-migrate --no-seed

    # See what would happen
    quickcrud Product --fields "title:string" --dry-run -v

    # Show version
    quickcrud --version

Exit codes:
    0: success
    1: validation error (nothing generated)
    2: one or more steps errored
    4: input/argument error (config file, base path)
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, List, NoReturn, Optional, Sequence

from quickcrud.errors import InvalidFieldFormat

# ---------------------------------------------------------------------------
# Logger (configured in _setup_logging)
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("quickcrud")


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

EXIT_SUCCESS: int = 0
EXIT_VALIDATION_ERROR: int = 1
EXIT_GENERATION_ERROR: int = 2
EXIT_INPUT_ERROR: int = 4


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(verbosity: int) -> None:
    """
    Configure the root quickcrud logger based on verbosity level.

    Args:
        verbosity: 0 = WARNING, 1 = INFO, 2+ = DEBUG.
    """
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity >= 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    handler: logging.StreamHandler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    fmt: str = "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s"
    datefmt: str = "%H:%M:%S"
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    root_logger: logging.Logger = logging.getLogger("quickcrud")
    root_logger.setLevel(level)

    # Remove existing handlers to prevent duplication
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.propagate = False


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    from quickcrud import __version__

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="quickcrud",
        description=(
            "QuickCRUD: CRUD scaffolding for Laravel applications.\n\n"
            "Generates model, migration, form request, seeder, controller, "
            "views and data-table for one entity, registers its route and "
            "seeder, then runs the migration and the seeder."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            '  %(prog)s Product --fields "title:string,price:decimal"\n'
            '  %(prog)s Product --fields "title:string" --base-path ../shop\n'
            '  %(prog)s Product --fields "title:string" --dry-run -v\n'
        ),
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"QuickCRUD v{__version__}",
    )

    # --- Required arguments ---
    parser.add_argument(
        "name",
        metavar="NAME",
        help="Entity (model) name in PascalCase, e.g. 'Product'.",
    )
    parser.add_argument(
        "-f", "--fields",
        type=str,
        required=True,
        metavar="SPEC",
        help="Comma-separated name:type list, e.g. 'title:string,price:decimal'.",
    )

    # --- Locations ---
    location_group = parser.add_argument_group("locations")
    location_group.add_argument(
        "-b", "--base-path",
        type=str,
        default=".",
        metavar="DIR",
        help="Root of the Laravel application (default: current directory).",
    )
    location_group.add_argument(
        "-c", "--config",
        type=str,
        default=None,
        metavar="FILE",
        help="YAML config file (default: quickcrud.yaml in the base path, if any).",
    )

    # --- Modes ---
    mode_group = parser.add_argument_group("operation modes")
    mode_group.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        help="Report what would be written and run, without touching anything.",
    )
    mode_group.add_argument(
        "--no-migrate",
        action="store_true",
        default=False,
        help="Do not run 'php artisan migrate'.",
    )
    mode_group.add_argument(
        "--no-seed",
        action="store_true",
        default=False,
        help="Do not run the generated seeder.",
    )

    # --- Behaviour flags ---
    behaviour_group = parser.add_argument_group("behaviour flags")
    behaviour_group.add_argument(
        "--strict-types",
        action="store_true",
        default=False,
        help="Reject unknown field types instead of warning.",
    )
    behaviour_group.add_argument(
        "--fail-fast",
        action="store_true",
        default=False,
        help="Stop at the first errored step (remaining steps are not run).",
    )
    behaviour_group.add_argument(
        "--seed-rows",
        type=int,
        default=None,
        metavar="N",
        help="Rows inserted by the generated seeder (default: 5).",
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
        help="Suppress all log output.",
    )

    return parser


# ---------------------------------------------------------------------------
# Config override builder
# ---------------------------------------------------------------------------


def _build_config_overrides(args: argparse.Namespace) -> Dict[str, object]:
    """Build a config override dictionary from CLI arguments."""
    overrides: Dict[str, object] = {}

    if args.dry_run:
        overrides["dry_run"] = True

    if args.no_migrate:
        overrides["run_migrations"] = False

    if args.no_seed:
        overrides["run_seeder"] = False

    if args.strict_types:
        overrides["strict_types"] = True

    if args.fail_fast:
        overrides["continue_on_error"] = False

    if args.seed_rows is not None:
        overrides["seed_rows"] = args.seed_rows

    return overrides


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------


def _run_generation(args: argparse.Namespace) -> int:
    """
    Build the config, run the pipeline and print the report.

    Returns the appropriate exit code.
    """
    from quickcrud.generator import CrudGenerator, GenerationReport, build_config

    base_path: Path = Path(args.base_path).resolve()
    config_file: Optional[Path] = Path(args.config).resolve() if args.config else None

    try:
        config = build_config(
            base_path,
            config_file=config_file,
            overrides=_build_config_overrides(args),
        )
    except (FileNotFoundError, ValueError) as exc:
        logger.error("Configuration error: %s", exc)
        return EXIT_INPUT_ERROR

    if config.dry_run:
        logger.info("Dry-run mode: nothing will be written or executed.")

    generator: CrudGenerator = CrudGenerator(config)

    try:
        report: GenerationReport = generator.generate_from_input(args.name, args.fields)
    except InvalidFieldFormat as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_VALIDATION_ERROR

    print(report.summary())

    if report.validation_errors:
        return EXIT_VALIDATION_ERROR
    if not report.success:
        return EXIT_GENERATION_ERROR
    return EXIT_SUCCESS


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def cli_main(argv: Optional[Sequence[str]] = None) -> NoReturn:
    """
    Main CLI entry point.

    Can be called from ``__main__.py`` or directly for testing.

    Args:
        argv: Optional argument list (defaults to sys.argv[1:]).
    """
    parser: argparse.ArgumentParser = _build_parser()
    args: argparse.Namespace = parser.parse_args(argv)

    # --- Verbosity ---
    if args.quiet:
        verbosity: int = -1
        logging.disable(logging.CRITICAL)
    else:
        verbosity = args.verbose
        logging.disable(logging.NOTSET)

    _setup_logging(verbosity)

    logger.info("Entity:    %s", args.name)
    logger.info("Fields:    %s", args.fields)
    logger.info("Base path: %s", Path(args.base_path).resolve())

    exit_code: int = _run_generation(args)

    if exit_code == EXIT_SUCCESS:
        logger.info("Generation completed successfully.")
    else:
        logger.error("Generation failed with exit code %d.", exit_code)

    sys.exit(exit_code)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "cli_main",
    "EXIT_SUCCESS",
    "EXIT_VALIDATION_ERROR",
    "EXIT_GENERATION_ERROR",
    "EXIT_INPUT_ERROR",
]

logger.debug("quickcrud.cli loaded.")
