"""SQL database destination.

The target table is named after the pipeline and fully replaced inside
one transaction, so a failed load leaves the previous contents intact
and a re-run never duplicates rows.
"""

from __future__ import annotations

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    Date,
    Float,
    MetaData,
    String,
    Table,
    create_engine,
    delete,
    func,
    insert,
    select,
)
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError, SQLAlchemyError
from sqlalchemy.types import TypeEngine

from core.errors import ConduitLoadError
from core.schema import Schema
from core.types import Dataset, LoadResult

_COLUMN_TYPES: dict[str, type[TypeEngine]] = {
    "string": String,
    "int": BigInteger,
    "float": Float,
    "bool": Boolean,
    "date": Date,
}


def is_database_url(uri: str) -> bool:
    """Return whether a URI parses as a SQLAlchemy database URL."""
    try:
        make_url(uri)
    except ArgumentError:
        return False
    return True


def build_table(table_name: str, schema: Schema, metadata: MetaData) -> Table:
    """Map a schema onto a SQLAlchemy table definition."""
    columns = [
        Column(field.name, _COLUMN_TYPES[field.type_name](), nullable=not field.required)
        for field in schema.fields
    ]
    return Table(table_name, metadata, *columns)


def replace_table_rows(
    dataset: Dataset,
    schema: Schema,
    database_url: str,
    table_name: str,
    batch_size: int,
) -> LoadResult:
    """Replace all rows of ``table_name`` with the dataset rows.

    Returns:
        Load result whose row count is read back inside the transaction.

    Raises:
        ConduitLoadError: If the database write fails.
    """
    metadata = MetaData()
    table = build_table(table_name, schema, metadata)
    rows = dataset.to_rows()
    try:
        engine = create_engine(database_url)
    except (SQLAlchemyError, ImportError) as error:
        raise ConduitLoadError(
            f"Cannot open database for table '{table_name}': {error}. "
            "Check CONDUIT_OUTPUT_URI and that the database driver is installed."
        ) from error
    try:
        with engine.begin() as connection:
            metadata.create_all(connection)
            connection.execute(delete(table))
            for start in range(0, len(rows), batch_size):
                connection.execute(insert(table), rows[start:start + batch_size])
            rows_written = connection.execute(select(func.count()).select_from(table)).scalar_one()
    except SQLAlchemyError as error:
        raise ConduitLoadError(
            f"Failed to load {len(rows)} row(s) into table '{table_name}': {error}. "
            "The previous table contents were kept."
        ) from error
    finally:
        engine.dispose()
    return LoadResult(
        destination=f"{engine.url.render_as_string(hide_password=True)}#{table_name}",
        rows_written=int(rows_written),
    )
