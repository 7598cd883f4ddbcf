"""Extraction strategy selection.

Strategies form a closed set keyed by ``Settings.source_kind``. Each one
satisfies the same contract: produce a validated dataset for a schema.
"""

from __future__ import annotations

from typing import Mapping, Protocol

from core.config import Settings
from core.constants import SUPPORTED_SOURCE_KINDS
from core.errors import ConduitConfigError
from core.schema import Schema
from core.types import Dataset
from extract.api_source import ApiSource
from extract.file_source import FileSource


class ExtractionStrategy(Protocol):
    """Capability contract shared by every source kind."""

    kind: str

    def extract(self, settings: Settings, schema: Schema) -> Dataset: ...


def default_strategies() -> dict[str, ExtractionStrategy]:
    """Build the registry of built-in strategies."""
    return {"file": FileSource(), "api": ApiSource()}


def select_strategy(
    settings: Settings,
    strategies: Mapping[str, ExtractionStrategy] | None = None,
) -> ExtractionStrategy:
    """Pick the strategy named by ``settings.source_kind``.

    Raises:
        ConduitConfigError: If no strategy matches the source kind.
    """
    registry = default_strategies() if strategies is None else strategies
    strategy = registry.get(settings.source_kind)
    if strategy is None:
        supported_rows = ", ".join(SUPPORTED_SOURCE_KINDS)
        raise ConduitConfigError(
            f"Unsupported source kind '{settings.source_kind}'. Use one of: {supported_rows}."
        )
    return strategy


def extract_entity(
    settings: Settings,
    schema: Schema,
    strategies: Mapping[str, ExtractionStrategy] | None = None,
) -> Dataset:
    """Produce a validated dataset for one entity from the configured source."""
    return select_strategy(settings, strategies).extract(settings, schema)
