"""Run command wiring for Conduit CLI."""

from __future__ import annotations

import argparse
from typing import Any

from core.config import Settings
from core.constants import SUPPORTED_ML_MODES, SUPPORTED_PIPELINES, SUPPORTED_SOURCE_KINDS
from pipeline.report import render_report
from pipeline.runner import run_pipeline


def add_run_command(subparsers: Any) -> None:
    """Register run subcommand."""
    parser = subparsers.add_parser(
        "run",
        help="Run the configured pipeline end to end",
    )
    parser.add_argument("--pipeline", choices=SUPPORTED_PIPELINES, help="Override CONDUIT_PIPELINE")
    parser.add_argument(
        "--source",
        dest="source_kind",
        choices=SUPPORTED_SOURCE_KINDS,
        help="Override CONDUIT_SOURCE_KIND",
    )
    parser.add_argument("--input-dir", help="Override CONDUIT_INPUT_DIR")
    parser.add_argument("--output-uri", help="Override CONDUIT_OUTPUT_URI")
    parser.add_argument(
        "--mode",
        dest="ml_mode",
        choices=SUPPORTED_ML_MODES,
        help="Override CONDUIT_ML_MODE for ML pipelines",
    )


def run_run_command(args: argparse.Namespace) -> int:
    """Handle run command invocation."""
    settings = load_cli_settings(
        args,
        {
            "pipeline": args.pipeline,
            "source_kind": args.source_kind,
            "input_dir": args.input_dir,
            "output_uri": args.output_uri,
            "ml_mode": args.ml_mode,
        },
    )
    report = run_pipeline(settings)
    print(render_report(report, settings.report_max_rows), end="")
    return 0


def load_cli_settings(args: argparse.Namespace, overrides: dict[str, object]) -> Settings:
    """Load settings with CLI flags as the highest-precedence layer."""
    return Settings.load(overrides=overrides, settings_file=args.settings_file)
