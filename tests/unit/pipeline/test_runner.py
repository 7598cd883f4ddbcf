"""Unit tests for pipeline orchestration."""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path

import pytest

from core.config import Settings
from core.errors import ConduitExtractError, ConduitLoadError, ConduitStageError
from core.schema import Schema, empty_table
from core.types import Dataset
from pipeline.runner import PipelineRunner, run_pipeline
from tests.fixture_paths import fixture_path


class _FailingSource:
    kind = "file"

    def extract(self, settings: Settings, schema: Schema) -> Dataset:
        raise ConduitExtractError(f"source for {schema.name} is offline")


class _BrokenDiskSource:
    kind = "file"

    def extract(self, settings: Settings, schema: Schema) -> Dataset:
        raise OSError("disk unplugged")


class _EmptySource:
    kind = "file"

    def extract(self, settings: Settings, schema: Schema) -> Dataset:
        return Dataset(schema_name=schema.name, table=empty_table(schema))


class _FixedGenerator:
    def generate(self, prompt: str) -> str:
        return json.dumps({"channel": "email", "audience": "smb", "region": "emea"})


def _settings(tmp_path: Path, **overrides: object) -> Settings:
    values: dict[str, object] = {
        "input_dir": fixture_path("retail"),
        "output_uri": str(tmp_path / "out"),
        "as_of_date": date(2024, 6, 1),
    }
    values.update(overrides)
    return Settings(**values)


def test_run_records_metrics_for_every_stage(tmp_path: Path) -> None:
    """A successful run should report each stage in order with row counts."""
    report = run_pipeline(_settings(tmp_path))

    assert (
        [metric.stage for metric in report.stage_metrics]
        == ["extract", "transform", "stage", "load"]
        and [metric.rows for metric in report.stage_metrics] == [6, 2, 2, 2]
        and report.load_result.destination == str(tmp_path / "out" / "customer_summary.csv")
        and report.flagged_records == 0
    )


def test_stage_failure_carries_stage_name(tmp_path: Path) -> None:
    """The first failing stage should stop the run with its name attached."""
    runner = PipelineRunner(_settings(tmp_path), strategies={"file": _FailingSource()})

    with pytest.raises(ConduitStageError) as error_info:
        runner.run()

    assert (
        error_info.value.stage == "extract"
        and "offline" in str(error_info.value)
        and not (tmp_path / "out").exists()
    )


def test_load_failure_is_reported_as_load_stage(tmp_path: Path) -> None:
    """Destination errors should be attributed to the load stage."""
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")

    with pytest.raises(ConduitStageError) as error_info:
        run_pipeline(_settings(tmp_path, output_uri=str(blocker)))

    assert error_info.value.stage == "load"


def test_unloadable_database_scheme_is_reported_as_load_stage(tmp_path: Path) -> None:
    """URIs without an installed SQLAlchemy dialect should fail in the load stage."""
    with pytest.raises(ConduitStageError) as error_info:
        run_pipeline(_settings(tmp_path, output_uri="ftp://host/warehouse"))

    assert (
        error_info.value.stage == "load"
        and isinstance(error_info.value.cause, ConduitLoadError)
        and "ftp" in str(error_info.value)
    )


def test_library_errors_keep_their_stage(tmp_path: Path) -> None:
    """Non-domain exceptions raised inside a stage should still name the stage."""
    runner = PipelineRunner(_settings(tmp_path), strategies={"file": _BrokenDiskSource()})

    with pytest.raises(ConduitStageError) as error_info:
        runner.run()

    assert (
        error_info.value.stage == "extract"
        and isinstance(error_info.value.cause, OSError)
        and "disk unplugged" in str(error_info.value)
    )


def test_empty_extract_loads_empty_output(tmp_path: Path) -> None:
    """An empty source should still produce a valid empty output."""
    runner = PipelineRunner(_settings(tmp_path), strategies={"file": _EmptySource()})

    report = runner.run()

    assert report.load_result.rows_written == 0 and report.dataset.num_rows == 0


def test_generate_pipeline_uses_injected_generator(tmp_path: Path) -> None:
    """Enrichment runs should use the injected generator and report details."""
    settings = _settings(
        tmp_path,
        pipeline="campaign_enrichment",
        input_dir=fixture_path("campaigns"),
        llm_base_url="http://llm.local/v1",
    )

    report = run_pipeline(settings, generator=_FixedGenerator())

    assert (
        report.flagged_records == 0
        and report.details == {"enriched_records": "2"}
        and report.dataset.table["channel"].to_pylist() == ["email", "email"]
    )
