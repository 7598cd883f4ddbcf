"""Unit tests for structured logging configuration."""

from __future__ import annotations

import json

import pytest

from core.logging_config import configure_logging, get_logger


def test_logs_are_json_on_stderr(capsys: pytest.CaptureFixture[str]) -> None:
    """Events should render as JSON lines on stderr, leaving stdout empty."""
    configure_logging("info")

    get_logger(__name__).info("stage_completed", stage="extract", rows=3)
    captured = capsys.readouterr()
    payload = json.loads(captured.err.strip().splitlines()[-1])

    assert (
        captured.out == ""
        and payload["event"] == "stage_completed"
        and payload["rows"] == 3
        and payload["level"] == "info"
        and "timestamp" in payload
    )


def test_level_filters_lower_events(capsys: pytest.CaptureFixture[str]) -> None:
    """Events below the configured level should be dropped."""
    configure_logging("warning")

    get_logger(__name__).info("ignored_event")
    captured = capsys.readouterr()
    configure_logging("info")

    assert "ignored_event" not in captured.err
