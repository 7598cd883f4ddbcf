"""Conduit CLI entry points.
This module exposes the run, validate, and schemas commands.
It maps argparse commands onto settings loading and pipeline calls.
"""

from __future__ import annotations

import argparse
import sys
from typing import Sequence

from cli.run_command import add_run_command, run_run_command
from cli.validate_command import (
    add_schemas_command,
    add_validate_command,
    run_schemas_command,
    run_validate_command,
)
from core.errors import ConduitConfigError, ConduitError, ConduitStageError
from core.logging_config import configure_logging


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="conduit", description="Conduit pipeline runner")
    parser.add_argument("--settings-file", help="Optional YAML settings file")
    subparsers = parser.add_subparsers(dest="command", required=True)
    add_run_command(subparsers)
    add_validate_command(subparsers)
    add_schemas_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the Conduit CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code: 0 on success, 1 on any pipeline failure.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging()
    try:
        if args.command == "run":
            return run_run_command(args)
        if args.command == "validate":
            return run_validate_command(args)
        if args.command == "schemas":
            return run_schemas_command(args)
    except ConduitError as error:
        print(f"error={_error_stage(error, args.command)}: {_root_message(error)}", file=sys.stderr)
        return 1
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _error_stage(error: ConduitError, command: str) -> str:
    if isinstance(error, ConduitStageError):
        return error.stage
    if isinstance(error, ConduitConfigError):
        return "config"
    return command


def _root_message(error: ConduitError) -> str:
    if isinstance(error, ConduitStageError):
        return str(error.cause)
    return str(error)
