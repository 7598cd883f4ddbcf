"""Fixture file extraction.

This module reads every file for one entity from the input directory,
validates each file on its own against the entity schema, and
concatenates the results into one dataset.
"""

from __future__ import annotations

from pathlib import Path

import pyarrow as pa
import pyarrow.csv as pa_csv
import pyarrow.json as pa_json
import pyarrow.parquet as pq

from core.config import Settings
from core.constants import SUPPORTED_INPUT_EXTENSIONS
from core.errors import ConduitExtractError
from core.logging_config import get_logger
from core.schema import Schema, validate_table
from core.types import Dataset

_LOGGER = get_logger(__name__)


class FileSource:
    """Extraction strategy backed by local structured files."""

    kind = "file"

    def extract(self, settings: Settings, schema: Schema) -> Dataset:
        """Read, validate, and concatenate entity files.

        Args:
            settings: Runtime settings holding ``input_dir``.
            schema: Entity schema; its name selects ``<name>*.<ext>`` files.

        Returns:
            Validated dataset in sorted file order.

        Raises:
            ConduitExtractError: If no file matches or a file is unreadable.
            ConduitSchemaError: If any file violates the schema.
        """
        file_paths = list_entity_files(settings.input_dir, schema.name)
        tables = [validate_table(read_table(path, schema), schema, str(path)) for path in file_paths]
        table = pa.concat_tables(tables)
        _LOGGER.info(
            "file_extract_completed",
            entity=schema.name,
            file_count=len(file_paths),
            row_count=table.num_rows,
        )
        return Dataset(
            schema_name=schema.name,
            table=table,
            sources=tuple(str(path) for path in file_paths),
        )


def list_entity_files(input_dir: Path, entity_name: str) -> list[Path]:
    """List supported files for one entity in sorted order.

    Raises:
        ConduitExtractError: If the directory is missing or holds no match.
    """
    if not input_dir.is_dir():
        raise ConduitExtractError(
            f"Failed to read input directory {input_dir}: path is not a directory. "
            "Set CONDUIT_INPUT_DIR to an existing fixture directory."
        )
    file_paths = [
        path
        for path in sorted(input_dir.glob(f"{entity_name}*"))
        if path.is_file() and path.suffix.lower() in SUPPORTED_INPUT_EXTENSIONS
    ]
    if not file_paths:
        raise ConduitExtractError(
            f"No '{entity_name}' files found under {input_dir}. "
            f"Supported extensions: {SUPPORTED_INPUT_EXTENSIONS}."
        )
    return file_paths


def read_table(file_path: Path, schema: Schema) -> pa.Table:
    """Read one structured file into a raw table.

    CSV columns named by the schema are read as text so the schema
    validator owns all type coercion.

    Raises:
        ConduitExtractError: If the file cannot be read or parsed.
    """
    suffix = file_path.suffix.lower()
    try:
        if suffix == ".csv":
            convert_options = pa_csv.ConvertOptions(
                column_types={name: pa.string() for name in schema.field_names},
                strings_can_be_null=True,
            )
            return pa_csv.read_csv(file_path, convert_options=convert_options)
        if suffix == ".jsonl":
            return pa_json.read_json(file_path)
        return pq.read_table(file_path)
    except (OSError, pa.ArrowInvalid) as error:
        raise ConduitExtractError(
            f"Failed to read {file_path}: {error}. Fix the file contents and retry."
        ) from error
