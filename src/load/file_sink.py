"""Local file destination.

Writes go to a hidden temporary sibling first and are renamed into
place, so readers never observe a partially written output and re-runs
replace the previous file.
"""

from __future__ import annotations

from pathlib import Path

import pyarrow.csv as pa_csv
import pyarrow.parquet as pq

from core.errors import ConduitLoadError
from core.types import Dataset, LoadResult
from load.row_payload import rows_to_jsonl


def write_dataset_file(
    dataset: Dataset,
    output_dir: Path,
    file_stem: str,
    output_format: str,
) -> LoadResult:
    """Write a dataset into ``output_dir/<file_stem>.<output_format>``.

    Raises:
        ConduitLoadError: If the directory or file cannot be written.
    """
    output_path = output_dir / f"{file_stem}.{output_format}"
    temporary_path = output_dir / f".{output_path.name}.tmp"
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        write_table_file(dataset, temporary_path, output_format)
        temporary_path.replace(output_path)
    except OSError as error:
        if temporary_path.exists():
            temporary_path.unlink()
        raise ConduitLoadError(
            f"Failed to write output at {output_path}: {error}. "
            "Check write permissions and available disk space."
        ) from error
    return LoadResult(destination=str(output_path), rows_written=dataset.num_rows)


def write_table_file(dataset: Dataset, file_path: Path, output_format: str) -> None:
    """Serialize a dataset to one file in the requested format."""
    if output_format == "csv":
        pa_csv.write_csv(dataset.table, file_path)
    elif output_format == "parquet":
        pq.write_table(dataset.table, file_path)
    elif output_format == "jsonl":
        file_path.write_text(rows_to_jsonl(dataset.to_rows()), encoding="utf-8")
    else:
        raise ConduitLoadError(
            f"Unsupported output format '{output_format}'. Use csv, jsonl, or parquet."
        )
