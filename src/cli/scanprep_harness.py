# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Command-line harness for analysis input generation."""

import argparse
import json
import logging
import os
import sys
from collections.abc import Mapping
from pathlib import Path
from typing import TextIO

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from scanprep.config import (
    SCANNER_PARAMS_ENV,
    AnalysisConfig,
    ConfigError,
    load_config,
    parse_scanner_params,
)
from scanprep.descriptor import DescriptorError
from scanprep.generator import GenerationResult, InputGenerator, status_counts
from scanprep.merger import ProjectRecord

logger = logging.getLogger(__name__)

TABLE_COLUMN_RATIOS: dict[str, int] = {
    "guid": 3,
    "name": 2,
    "status": 2,
    "files": 1,
    "extra_sources": 1,
    "extra_tests": 1,
}


class ValidationError(RuntimeError):
    """Represent user input validation failure."""


def configure_logging(level: int = logging.INFO) -> None:
    """Configure application logging with Rich handler.

    Args:
        level: Logging severity threshold.
    """
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


def build_parser() -> argparse.ArgumentParser:
    """Build CLI parser."""
    parser = argparse.ArgumentParser(prog="scanprep")
    parser.add_argument("--config", help="YAML configuration file.")
    parser.add_argument(
        "--output-dir", help="Analysis output directory holding project descriptors."
    )
    parser.add_argument("--project-key", help="Root project key (required unless set in --config).")
    parser.add_argument("--project-name", help="Root project name.")
    parser.add_argument("--project-version", help="Root project version.")
    parser.add_argument(
        "--working-directory", help="Working directory used as base directory candidate."
    )
    parser.add_argument("--server-version", help="Server version, e.g. 10.4.")
    parser.add_argument("--server-url", help="Server URL used when no host URL is set.")
    parser.add_argument(
        "--no-scan-all",
        action="store_true",
        help="Do not classify additional files found on disk.",
    )
    parser.add_argument(
        "-D",
        "--define",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Local analysis property; may be repeated.",
    )
    parser.add_argument(
        "--payload-output",
        help="Optional file receiving the engine payload on success.",
    )
    parser.add_argument(
        "--format",
        choices=("table", "json"),
        default="table",
        help="Output format of the project summary.",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser


def run(
    argv: list[str],
    stdout: TextIO,
    stderr: TextIO,
    environ: Mapping[str, str] | None = None,
) -> int:
    """Run generation command.

    Args:
        argv: CLI arguments.
        stdout: Standard output stream.
        stderr: Standard error stream.
        environ: Environment mapping. Defaults to ``os.environ``.

    Returns:
        Exit code: 0 on success, 1 when generation did not complete, 2 on usage errors.
    """
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit:
        logger.warning("Argument parsing failed (argv=%s)", argv)
        return 2
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    environ = os.environ if environ is None else environ
    try:
        config = _build_config(args=args, environ=environ)
    except (ValidationError, ConfigError) as exc:
        logger.warning("Configuration failed (error=%s)", exc)
        stderr.write(f"{exc}\n")
        return 2

    console = Console(file=stdout, force_terminal=False, color_system="truecolor")
    _emit_marker(console=console, phase="generate", state="start")
    try:
        result = InputGenerator(config=config).generate()
    except DescriptorError as exc:
        logger.warning("Descriptor loading failed (error=%s)", exc)
        stderr.write(f"{exc}\n")
        return 2
    _emit_marker(console=console, phase="generate", state="done")

    if args.format == "json":
        _write_json(result=result, console=console)
    else:
        _write_table(records=list(result.records), console=console)
    _emit_summary(console=console, summary=status_counts(result.records))

    if not result.ran_to_completion:
        console.print("status=failed")
        return 1
    if args.payload_output and result.engine_payload is not None:
        try:
            _write_payload(payload=result.engine_payload, output_path=Path(args.payload_output))
        except OSError as exc:
            logger.warning(
                f"Failed to write payload file (output_path={args.payload_output} error={exc})"
            )
            stderr.write(f"Failed to write payload file: {args.payload_output}\n")
            return 2
    console.print(f"properties_path={result.properties_path}", soft_wrap=True)
    console.print("status=success")
    return 0


def _build_config(args: argparse.Namespace, environ: Mapping[str, str]) -> AnalysisConfig:
    """Merge the optional YAML file with command-line overrides.

    Args:
        args: Parsed CLI arguments.
        environ: Environment mapping.

    Returns:
        Run configuration.

    Raises:
        ValidationError: If required arguments are missing or malformed.
        ConfigError: If the YAML file is invalid.
    """
    if args.config:
        config = load_config(Path(args.config), environ=environ)
    elif args.output_dir:
        config = AnalysisConfig(
            output_dir=Path(args.output_dir).resolve(),
            environment_settings=parse_scanner_params(environ.get(SCANNER_PARAMS_ENV)),
        )
    else:
        raise ValidationError("Either --config or --output-dir is required")

    if args.config and args.output_dir:
        config.output_dir = Path(args.output_dir).resolve()
    if args.project_key:
        config.project_key = args.project_key
    if args.project_name:
        config.project_name = args.project_name
    if args.project_version:
        config.project_version = args.project_version
    if args.working_directory:
        config.working_directory = Path(args.working_directory).resolve()
    if args.server_version:
        config.server_version = args.server_version
    if args.server_url:
        config.server_url = args.server_url
    if args.no_scan_all:
        config.scan_all_files = False
    for definition in args.define:
        key, separator, value = definition.partition("=")
        if not separator or not key.strip():
            raise ValidationError(f"Invalid property definition: {definition}")
        config.local_settings[key.strip()] = value
    if not config.project_key.strip():
        raise ValidationError("A project key is required (--project-key or project_key)")
    return config


def _emit_marker(console: Console, phase: str, state: str) -> None:
    console.print(f"{phase}:{state}")


def _emit_summary(console: Console, summary: Mapping[str, int]) -> None:
    fields = " ".join(f"{key}={value}" for key, value in summary.items())
    console.print(fields)


def _write_table(records: list[ProjectRecord], console: Console) -> None:
    """Write project records as a table.

    Args:
        records: Records of the run, all statuses.
        console: Output console.
    """
    table = Table(show_header=True, show_lines=False, expand=True)
    table.add_column("guid", ratio=TABLE_COLUMN_RATIOS["guid"], overflow="fold")
    table.add_column("name", ratio=TABLE_COLUMN_RATIOS["name"], overflow="fold")
    table.add_column("status", ratio=TABLE_COLUMN_RATIOS["status"], overflow="fold")
    for column in ("files", "extra_sources", "extra_tests"):
        table.add_column(column, ratio=TABLE_COLUMN_RATIOS[column], justify="right")
    for record in records:
        table.add_row(
            record.guid,
            record.descriptor.project_name,
            record.status,
            str(len(record.module_files)),
            str(len(record.extra_sources)),
            str(len(record.extra_tests)),
        )
    console.print(table)


def _write_json(result: GenerationResult, console: Console) -> None:
    payload = {
        "ran_to_completion": result.ran_to_completion,
        "properties_path": str(result.properties_path) if result.properties_path else None,
        "base_dir": str(result.root.path) if result.root else None,
        "projects": [
            {
                "guid": record.guid,
                "name": record.descriptor.project_name,
                "status": record.status,
                "files": [str(path) for path in record.module_files],
                "extra_sources": [str(path) for path in record.extra_sources],
                "extra_tests": [str(path) for path in record.extra_tests],
            }
            for record in result.records
        ],
    }
    console.print(
        json.dumps(payload, indent=2, sort_keys=True),
        markup=False,
        highlight=False,
        soft_wrap=True,
    )


def _write_payload(payload: str, output_path: Path) -> None:
    """Write the engine payload to a file.

    Raises:
        OSError: If directory creation or file writing fails.
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(payload, encoding="utf-8")


def main() -> None:
    """Run the CLI application and exit."""
    configure_logging()
    exit_code = run(sys.argv[1:], stdout=sys.stdout, stderr=sys.stderr)
    raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
