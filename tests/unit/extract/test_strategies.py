"""Unit tests for extraction strategy selection."""

from __future__ import annotations

import pyarrow as pa
import pytest

from core.config import Settings
from core.entity_schemas import ORDERS_SCHEMA
from core.errors import ConduitConfigError
from core.schema import Schema, empty_table
from core.types import Dataset
from extract.api_source import ApiSource
from extract.file_source import FileSource
from extract.strategies import default_strategies, extract_entity, select_strategy


class _StaticSource:
    kind = "file"

    def extract(self, settings: Settings, schema: Schema) -> Dataset:
        return Dataset(schema_name=schema.name, table=empty_table(schema), sources=("static",))


def test_default_strategies_cover_file_and_api() -> None:
    """The built-in registry should hold one strategy per source kind."""
    strategies = default_strategies()

    assert isinstance(strategies["file"], FileSource) and isinstance(strategies["api"], ApiSource)


def test_select_strategy_uses_source_kind() -> None:
    """The configured source kind should pick the strategy."""
    settings = Settings(source_kind="api", api_base_url="https://data.example.com")

    strategy = select_strategy(settings)

    assert strategy.kind == "api"


def test_select_strategy_rejects_unregistered_kind() -> None:
    """A registry without the configured kind should raise a config error."""
    with pytest.raises(ConduitConfigError, match="Unsupported source kind 'file'"):
        select_strategy(Settings(), {})


def test_extract_entity_delegates_to_selected_strategy() -> None:
    """extract_entity should return what the strategy produced."""
    dataset = extract_entity(Settings(), ORDERS_SCHEMA, {"file": _StaticSource()})

    assert (
        dataset.sources == ("static",)
        and dataset.num_rows == 0
        and dataset.table.schema == ORDERS_SCHEMA.arrow_schema()
        and isinstance(dataset.table, pa.Table)
    )
