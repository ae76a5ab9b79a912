# File: scaffoldgen/cli.py
"""
ScaffoldGen - Command-Line Interface
======================================

``scaffoldgen -s schema.yaml -o .`` generates every artifact of the
document under ``./app/Modules``.  ``--dry-run`` reports what would be
written, ``--validate-only`` stops after the checks.

The process exit status tells a calling script what went wrong:
``0`` success, ``1`` validation, ``2`` generation, ``3`` writing files,
``4`` unreadable input or arguments.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, NoReturn, Optional, Sequence, Tuple

logger: logging.Logger = logging.getLogger("scaffoldgen")

EXIT_SUCCESS: int = 0
EXIT_VALIDATION_ERROR: int = 1
EXIT_GENERATION_ERROR: int = 2
EXIT_EXPORT_ERROR: int = 3
EXIT_INPUT_ERROR: int = 4

_LOG_FORMAT: str = "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s"
_LOG_LEVELS: Tuple[int, ...] = (logging.WARNING, logging.INFO, logging.DEBUG)


def _setup_logging(verbosity: int) -> None:
    """Send ``scaffoldgen.*`` records to stderr; ``-v`` is INFO, ``-vv`` DEBUG."""
    level: int = _LOG_LEVELS[max(0, min(verbosity, len(_LOG_LEVELS) - 1))]

    handler: logging.StreamHandler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt="%H:%M:%S"))

    package_logger: logging.Logger = logging.getLogger("scaffoldgen")
    package_logger.setLevel(level)
    package_logger.handlers.clear()
    package_logger.addHandler(handler)
    package_logger.propagate = False


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    from scaffoldgen import __version__

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="scaffoldgen",
        description=(
            "Write Laravel migrations, model classes, model config files and "
            "sidebar entries from a YAML/JSON model document."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  %(prog)s -s schema.yaml -o .\n"
            "  %(prog)s -s schema.json -o ./project --dry-run -v\n"
            "  %(prog)s -s schema.yaml --validate-only\n"
        ),
    )
    parser.add_argument("--version", action="version", version=f"ScaffoldGen v{__version__}")
    parser.add_argument(
        "-s", "--schema", required=True, metavar="PATH",
        help="Schema document (.yaml, .yml or .json).",
    )
    parser.add_argument(
        "-o", "--output", metavar="DIR",
        help="Project root; defaults to config.outputDir, else the current directory.",
    )

    modes = parser.add_argument_group("operation modes")
    modes.add_argument(
        "--validate-only", action="store_true",
        help="Run the checks and print a report; write nothing.",
    )
    modes.add_argument(
        "--dry-run", action="store_true",
        help="Plan every artifact without touching the disk.",
    )

    generation = parser.add_argument_group("generation")
    generation.add_argument(
        "--force", action="store_true",
        help="Replace existing artifacts even when a model has no 'override'.",
    )
    generation.add_argument(
        "--strict", action="store_true",
        help="Stop before writing when any validation error is found.",
    )
    generation.add_argument(
        "--stubs", metavar="DIR",
        help="Stub directory searched before the bundled stubs.",
    )
    generation.add_argument(
        "--no-sidebar", action="store_true",
        help="Leave sidebar_menu.php files alone.",
    )

    output = parser.add_argument_group("output")
    output.add_argument(
        "-v", "--verbose", action="count", default=0,
        help="-v for INFO logging, -vv for DEBUG.",
    )
    output.add_argument(
        "-q", "--quiet", action="store_true",
        help="Only print the final report.",
    )
    return parser


def _build_config_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """Config values given on the command line; unset flags are left out."""
    overrides: Dict[str, Any] = {}
    if args.output is not None:
        overrides["output_dir"] = Path(args.output).resolve()
    if args.stubs is not None:
        overrides["stub_dir"] = Path(args.stubs).resolve()
    for flag, key, value in (
        (args.force, "force", True),
        (args.dry_run, "dry_run", True),
        (args.no_sidebar, "generate_sidebar", False),
    ):
        if flag:
            overrides[key] = value
    return overrides


# ---------------------------------------------------------------------------
# Modes
# ---------------------------------------------------------------------------


def _validation_report(schema_path: Path, model_count: int, result: Any, elapsed: float) -> str:
    rule: str = "=" * 50
    lines: List[str] = [
        "",
        rule,
        "  Schema Validation Report",
        rule,
        f"  File:     {schema_path.name}",
        f"  Models:   {model_count}",
        f"  Time:     {elapsed:.3f}s",
        f"  Valid:    {'Yes' if result.is_valid else 'No'}",
    ]
    for title, icon, items in (
        ("Errors", "✗", result.errors),
        ("Warnings", "⚠", result.warnings),
    ):
        if items:
            lines.append(f"\n  {title} ({len(items)}):")
            lines.extend(f"    {icon} {item}" for item in items)
    if result.is_valid and not result.warnings:
        lines.append("\n  ✅ All validations passed!")
    lines.extend([rule, ""])
    return "\n".join(lines)


def _run_validate_only(schema_path: Path) -> int:
    from scaffoldgen.errors import SchemaLoadError
    from scaffoldgen.generator import load_schema_file, parse_raw_schema
    from scaffoldgen.utils import Timer
    from scaffoldgen.validators import validate_full

    try:
        schema, _ = parse_raw_schema(load_schema_file(schema_path), source_path=schema_path)
    except SchemaLoadError as exc:
        logger.error("Failed to load schema: %s", exc)
        return EXIT_INPUT_ERROR

    with Timer("validation") as t:
        result = validate_full(schema)

    print(_validation_report(schema_path, len(schema.models), result, t.elapsed))
    return EXIT_SUCCESS if result.is_valid else EXIT_VALIDATION_ERROR


def _exit_code_for(report: Any) -> int:
    """The most severe failure category of a finished run."""
    if report.success:
        return EXIT_SUCCESS
    for errors, code in (
        (report.validation_errors, EXIT_VALIDATION_ERROR),
        (report.generation_errors, EXIT_GENERATION_ERROR),
        (report.export_errors, EXIT_EXPORT_ERROR),
    ):
        if errors:
            return code
    return EXIT_GENERATION_ERROR


def _run_generation(schema_path: Path, args: argparse.Namespace) -> int:
    from scaffoldgen.errors import SchemaLoadError
    from scaffoldgen.generator import ScaffoldGenerator

    try:
        generator, schema = ScaffoldGenerator.from_file(
            schema_path,
            overrides=_build_config_overrides(args),
            strict=args.strict,
        )
    except SchemaLoadError as exc:
        logger.error("Failed to load schema: %s", exc)
        return EXIT_INPUT_ERROR

    logger.info(
        "Generating from %s into %s%s",
        schema_path,
        args.output or "the document's outputDir",
        " (dry run)" if args.dry_run else "",
    )
    report = generator.generate(schema)
    print(report.summary())
    return _exit_code_for(report)


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


def cli_main(argv: Optional[Sequence[str]] = None) -> NoReturn:
    """Parse *argv* (default ``sys.argv[1:]``), run, and exit with the status."""
    args: argparse.Namespace = _build_parser().parse_args(argv)

    if args.quiet:
        logging.disable(logging.CRITICAL)
    _setup_logging(args.verbose)

    schema_path: Path = Path(args.schema).resolve()
    if not schema_path.is_file():
        reason: str = "not found" if not schema_path.exists() else "not a file"
        logger.error("Schema %s: %s", reason, schema_path)
        sys.exit(EXIT_INPUT_ERROR)

    if args.validate_only:
        sys.exit(_run_validate_only(schema_path))

    exit_code: int = _run_generation(schema_path, args)
    if exit_code != EXIT_SUCCESS:
        logger.error("Generation failed with exit code %d.", exit_code)
    sys.exit(exit_code)


def main() -> None:
    """Console-script entry point."""
    cli_main()


__all__: List[str] = [
    "cli_main",
    "main",
    "EXIT_SUCCESS",
    "EXIT_VALIDATION_ERROR",
    "EXIT_GENERATION_ERROR",
    "EXIT_EXPORT_ERROR",
    "EXIT_INPUT_ERROR",
]

logger.debug("scaffoldgen.cli loaded.")
