"""Declarative schema contracts and table validation.

This module defines field-level contracts for tabular entities and the
validator that coerces raw tables into their declared shape. The same
validator guards file fixtures, API responses, and load-time outputs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

import pyarrow as pa
import pyarrow.compute as pc

from core.errors import ConduitSchemaError

FieldType = Literal["string", "int", "float", "bool", "date"]

_ARROW_TYPES: dict[str, pa.DataType] = {
    "string": pa.string(),
    "int": pa.int64(),
    "float": pa.float64(),
    "bool": pa.bool_(),
    "date": pa.date32(),
}
_DATE_FORMAT = "%Y-%m-%d"


@dataclass(frozen=True)
class FieldSpec:
    """One column contract.

    Attributes:
        name: Column name.
        type_name: Logical column type.
        required: Whether the column must exist and contain no nulls.
    """

    name: str
    type_name: FieldType
    required: bool = True

    @property
    def arrow_type(self) -> pa.DataType:
        return _ARROW_TYPES[self.type_name]


@dataclass(frozen=True)
class Schema:
    """Structural contract for one named data domain.

    Attributes:
        name: Domain name, e.g. ``orders``.
        fields: Ordered column contracts.
    """

    name: str
    fields: tuple[FieldSpec, ...]

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(field.name for field in self.fields)

    def arrow_schema(self) -> pa.Schema:
        """Build the pyarrow schema for validated tables."""
        return pa.schema(
            [pa.field(field.name, field.arrow_type, nullable=not field.required)
             for field in self.fields]
        )

    def describe(self) -> str:
        """Render a one-line column summary."""
        columns = [
            f"{field.name}:{field.type_name}{'' if field.required else '?'}"
            for field in self.fields
        ]
        return ", ".join(columns)


def validate_table(table: pa.Table, schema: Schema, source: str) -> pa.Table:
    """Validate and coerce a table against a schema.

    Args:
        table: Raw table as read from a file or API payload.
        schema: Contract the table must satisfy.
        source: File path or URL used in error messages.

    Returns:
        Table with exactly the declared columns, order, and types.

    Raises:
        ConduitSchemaError: If columns are missing, unknown, uncoercible,
            or a required column contains nulls.
    """
    present_columns = set(table.column_names)
    _check_unknown_columns(present_columns, schema, source)
    columns: list[pa.ChunkedArray] = []
    for field in schema.fields:
        if field.name not in present_columns:
            if field.required:
                raise ConduitSchemaError(
                    f"Schema '{schema.name}' violation in {source}: missing required "
                    f"column '{field.name}'. Add the column and retry."
                )
            columns.append(pa.chunked_array([pa.nulls(table.num_rows, field.arrow_type)]))
            continue
        column = _coerce_column(table.column(field.name), field, schema, source)
        if field.required and column.null_count > 0:
            raise ConduitSchemaError(
                f"Schema '{schema.name}' violation in {source}: required column "
                f"'{field.name}' contains {column.null_count} empty value(s)."
            )
        columns.append(column)
    return pa.Table.from_arrays(columns, schema=schema.arrow_schema())


def empty_table(schema: Schema) -> pa.Table:
    """Build a zero-row table for a schema."""
    return schema.arrow_schema().empty_table()


def _check_unknown_columns(present_columns: set[str], schema: Schema, source: str) -> None:
    unknown_columns = sorted(present_columns - set(schema.field_names))
    if unknown_columns:
        raise ConduitSchemaError(
            f"Schema '{schema.name}' violation in {source}: unknown column(s) "
            f"{', '.join(unknown_columns)}. Declared columns: {', '.join(schema.field_names)}."
        )


def _coerce_column(
    column: pa.ChunkedArray,
    field: FieldSpec,
    schema: Schema,
    source: str,
) -> pa.ChunkedArray:
    target_type = field.arrow_type
    if column.type == target_type:
        return column
    try:
        if field.type_name == "date" and _is_text(column.type):
            parsed = pc.strptime(column, format=_DATE_FORMAT, unit="s")
            return parsed.cast(target_type)
        if field.type_name != "string" and _is_text(column.type):
            column = pc.utf8_trim_whitespace(column)
        return column.cast(target_type)
    except (pa.ArrowInvalid, pa.ArrowNotImplementedError, pa.ArrowTypeError) as error:
        raise ConduitSchemaError(
            f"Schema '{schema.name}' violation in {source}: column '{field.name}' "
            f"cannot be read as {field.type_name} ({error})."
        ) from error


def _is_text(data_type: pa.DataType) -> bool:
    return pa.types.is_string(data_type) or pa.types.is_large_string(data_type)
