"""Pytest configuration for Conduit test runs."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

_PROJECT_ROOT = Path(__file__).resolve().parent.parent


def pytest_sessionstart() -> None:
    """Make the src packages and the tests package importable."""
    for import_path in (_PROJECT_ROOT / "src", _PROJECT_ROOT):
        if str(import_path) not in sys.path:
            sys.path.insert(0, str(import_path))


@pytest.fixture(autouse=True)
def _reset_logging() -> None:
    """Start every test from the default structured logging level."""
    from core.logging_config import configure_logging

    configure_logging()
