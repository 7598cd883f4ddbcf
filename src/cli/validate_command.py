"""Fixture validation and schema listing commands for Conduit CLI."""

from __future__ import annotations

import argparse
from typing import Any

from cli.run_command import load_cli_settings
from core.constants import SUPPORTED_PIPELINES
from core.entity_schemas import ENTITY_SCHEMAS
from core.schema import validate_table
from extract.file_source import list_entity_files, read_table
from pipeline.definitions import get_pipeline_definition


def add_validate_command(subparsers: Any) -> None:
    """Register validate subcommand."""
    parser = subparsers.add_parser(
        "validate",
        help="Validate fixture files for a pipeline against entity schemas",
    )
    parser.add_argument("--pipeline", choices=SUPPORTED_PIPELINES, help="Override CONDUIT_PIPELINE")
    parser.add_argument("--input-dir", help="Override CONDUIT_INPUT_DIR")


def add_schemas_command(subparsers: Any) -> None:
    """Register schemas subcommand."""
    subparsers.add_parser("schemas", help="List entity schemas")


def run_validate_command(args: argparse.Namespace) -> int:
    """Validate every fixture file the configured pipeline would read."""
    settings = load_cli_settings(
        args,
        {"pipeline": args.pipeline, "input_dir": args.input_dir, "source_kind": "file"},
    )
    definition = get_pipeline_definition(settings.pipeline)
    for schema in definition.entities:
        for file_path in list_entity_files(settings.input_dir, schema.name):
            table = validate_table(read_table(file_path, schema), schema, str(file_path))
            print(f"{schema.name}\t{file_path}\t{table.num_rows}")
    return 0


def run_schemas_command(args: argparse.Namespace) -> int:
    """Print one line per entity schema."""
    _ = args
    for name in sorted(ENTITY_SCHEMAS):
        print(f"{name}\t{ENTITY_SCHEMAS[name].describe()}")
    return 0
