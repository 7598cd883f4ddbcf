"""Destination selection and load confirmation.

The destination kind is derived from ``Settings.output_uri``. After a
sink reports success, the written row count must match the dataset or
the load is treated as failed.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from core.config import Settings
from core.errors import ConduitLoadError
from core.logging_config import get_logger
from core.schema import Schema, validate_table
from core.types import Dataset, LoadResult
from load.api_sink import post_dataset
from load.database_sink import is_database_url, replace_table_rows
from load.file_sink import write_dataset_file
from load.s3_sink import upload_dataset

DestinationKind = Literal["file", "s3", "api", "database"]

_LOGGER = get_logger(__name__)


def resolve_destination_kind(output_uri: str) -> DestinationKind:
    """Classify an output URI."""
    if output_uri.startswith("s3://"):
        return "s3"
    if output_uri.startswith(("http://", "https://")):
        return "api"
    if "://" in output_uri and is_database_url(output_uri):
        return "database"
    return "file"


def load_dataset(
    dataset: Dataset,
    schema: Schema,
    settings: Settings,
    pipeline_name: str,
) -> LoadResult:
    """Validate a final dataset and persist it to the configured destination.

    Args:
        dataset: Dataset produced by the optional stage.
        schema: Output schema the dataset must satisfy.
        settings: Destination and batching settings.
        pipeline_name: Used as file stem, table name, or payload tag.

    Returns:
        Confirmed load result.

    Raises:
        ConduitSchemaError: If the dataset violates the output schema.
        ConduitLoadError: If persistence fails or drops rows.
    """
    validated = dataset.derive(validate_table(dataset.table, schema, f"load:{pipeline_name}"))
    destination_kind = resolve_destination_kind(settings.output_uri)
    if destination_kind == "s3":
        result = upload_dataset(validated, settings, pipeline_name)
    elif destination_kind == "api":
        result = post_dataset(validated, settings, pipeline_name)
    elif destination_kind == "database":
        result = replace_table_rows(
            validated, schema, settings.output_uri, pipeline_name, settings.batch_size
        )
    else:
        output_dir = Path(settings.output_uri).expanduser()
        result = write_dataset_file(validated, output_dir, pipeline_name, settings.output_format)
    confirm_load(validated, result)
    _LOGGER.info(
        "load_completed",
        destination_kind=destination_kind,
        destination=result.destination,
        rows_written=result.rows_written,
    )
    return result


def confirm_load(dataset: Dataset, result: LoadResult) -> None:
    """Fail when a sink wrote a different number of rows than requested.

    Raises:
        ConduitLoadError: On row count mismatch.
    """
    if result.rows_written != dataset.num_rows:
        raise ConduitLoadError(
            f"Load to {result.destination} wrote {result.rows_written} row(s) "
            f"but the dataset has {dataset.num_rows}. Re-run the pipeline; loads are idempotent."
        )
