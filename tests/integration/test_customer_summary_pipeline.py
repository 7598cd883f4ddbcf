"""Integration tests for the customer summary pipeline."""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from pathlib import Path

import httpx
import pyarrow.csv as pa_csv
from sqlalchemy import create_engine, text

from core.config import Settings
from core.entity_schemas import ORDERS_SCHEMA
from extract.api_source import ApiSource
from extract.file_source import FileSource
from pipeline.report import render_report
from pipeline.runner import run_pipeline
from tests.fixture_paths import fixture_path


def _settings(tmp_path: Path) -> Settings:
    return Settings.load(
        overrides={
            "pipeline": "customer_summary",
            "input_dir": str(fixture_path("retail")),
            "output_uri": str(tmp_path / "out"),
            "as_of_date": "2024-06-01",
        },
        environ={},
        dotenv_path=tmp_path / ".env",
    )


def test_fixture_run_writes_summary_and_report(tmp_path: Path) -> None:
    """A file-sourced run should write one row per customer and summarize it."""
    settings = _settings(tmp_path)

    report = run_pipeline(settings)
    written = pa_csv.read_csv(tmp_path / "out" / "customer_summary.csv")
    report_lines = render_report(report, settings.report_max_rows).splitlines()

    assert (
        written.column("customer_id").to_pylist() == ["C1", "C2"]
        and written.column("order_count").to_pylist() == [2, 1]
        and written.column("segment").to_pylist() == ["active", "new"]
        and "rows_extracted=6" in report_lines
        and "rows_loaded=2" in report_lines
        and "flagged_records=0" in report_lines
    )


def test_rerun_to_database_does_not_duplicate_rows(tmp_path: Path) -> None:
    """Loading the same run twice into a database should keep one copy."""
    database_url = f"sqlite:///{tmp_path / 'warehouse.db'}"
    settings = replace(_settings(tmp_path), output_uri=database_url)

    run_pipeline(settings)
    report = run_pipeline(settings)
    engine = create_engine(database_url)
    with engine.connect() as connection:
        row_count = connection.execute(text("SELECT COUNT(*) FROM customer_summary")).scalar_one()
    engine.dispose()

    assert row_count == 2 and report.load_result.rows_written == 2


def test_api_and_file_sources_produce_identical_output(tmp_path: Path) -> None:
    """Switching source kind should not change the loaded dataset."""
    file_settings = _settings(tmp_path)
    file_rows = FileSource().extract(file_settings, ORDERS_SCHEMA).to_rows()
    payload = [{**row, "order_date": row["order_date"].isoformat()} for row in file_rows]

    def _handler(request: httpx.Request) -> httpx.Response:
        offset = int(request.url.params["offset"])
        limit = int(request.url.params["limit"])
        return httpx.Response(200, json={"data": payload[offset:offset + limit]})

    api_settings = replace(
        file_settings,
        source_kind="api",
        api_base_url="https://data.example.com",
        batch_size=4,
        output_uri=str(tmp_path / "api-out"),
    )
    api_strategies = {"api": ApiSource(transport=httpx.MockTransport(_handler))}

    file_report = run_pipeline(file_settings)
    api_report = run_pipeline(api_settings, strategies=api_strategies)

    assert api_report.dataset.table.equals(file_report.dataset.table) and (
        api_report.source_kind == "api"
    )


def test_as_of_date_is_parsed_from_overrides(tmp_path: Path) -> None:
    """String overrides should be parsed into a reference date."""
    assert _settings(tmp_path).as_of_date == date(2024, 6, 1)
