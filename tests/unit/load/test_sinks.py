"""Unit tests for destination selection and load confirmation."""

from __future__ import annotations

from pathlib import Path

import pyarrow as pa
import pytest

from core.config import Settings
from core.entity_schemas import CUSTOMERS_SCHEMA
from core.errors import ConduitLoadError, ConduitSchemaError
from core.schema import validate_table
from core.types import Dataset, LoadResult
from load import sinks
from load.sinks import confirm_load, load_dataset, resolve_destination_kind


def _customers() -> Dataset:
    raw = pa.table({"customer_id": ["C1", "C2"], "signup_date": ["2024-01-01", "2024-02-01"]})
    return Dataset(schema_name="customers", table=validate_table(raw, CUSTOMERS_SCHEMA, "test"))


@pytest.mark.parametrize(
    ("output_uri", "expected_kind"),
    [
        ("output", "file"),
        ("./exports/daily", "file"),
        ("s3://bucket/prefix", "s3"),
        ("https://sink.example.com/rows", "api"),
        ("sqlite:///conduit.db", "database"),
        ("postgresql://user:pw@db/analytics", "database"),
    ],
)
def test_resolve_destination_kind(output_uri: str, expected_kind: str) -> None:
    """Output URIs should map onto one destination kind."""
    assert resolve_destination_kind(output_uri) == expected_kind


def test_load_dataset_writes_directory_output(tmp_path: Path) -> None:
    """Directory destinations should receive <pipeline>.<format>."""
    settings = Settings(output_uri=str(tmp_path), output_format="csv")

    result = load_dataset(_customers(), CUSTOMERS_SCHEMA, settings, "churn")

    assert result.rows_written == 2 and (tmp_path / "churn.csv").is_file()


def test_load_dataset_validates_output_schema(tmp_path: Path) -> None:
    """Datasets that break the output schema should never reach the sink."""
    dataset = _customers().derive(_customers().table.drop_columns(["signup_date"]))
    settings = Settings(output_uri=str(tmp_path))

    with pytest.raises(ConduitSchemaError, match="signup_date"):
        load_dataset(dataset, CUSTOMERS_SCHEMA, settings, "churn")

    assert list(tmp_path.iterdir()) == []


def test_load_dataset_rejects_row_count_mismatch(monkeypatch: pytest.MonkeyPatch) -> None:
    """A sink reporting fewer rows than the dataset holds should fail the load."""

    def _lossy_upload(dataset, settings, file_stem, s3_client=None):
        return LoadResult(destination="s3://bucket/prefix/churn.csv", rows_written=1)

    monkeypatch.setattr(sinks, "upload_dataset", _lossy_upload)
    settings = Settings(output_uri="s3://bucket/prefix")

    with pytest.raises(ConduitLoadError, match="wrote 1 row"):
        load_dataset(_customers(), CUSTOMERS_SCHEMA, settings, "churn")


def test_confirm_load_accepts_matching_counts() -> None:
    """Matching row counts should pass confirmation."""
    confirm_load(_customers(), LoadResult(destination="out", rows_written=2))
