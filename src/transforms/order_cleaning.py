"""Order cleaning transform.

This module normalizes identifiers, removes non-revenue rows, and drops
duplicate order ids. Applying it to its own output changes nothing.
"""

from __future__ import annotations

import pyarrow as pa
import pyarrow.compute as pc

from core.constants import EXCLUDED_ORDER_STATUSES
from core.types import Dataset


def clean_orders(orders: Dataset) -> Dataset:
    """Return cleaned orders sorted by date and id.

    Args:
        orders: Validated ``orders`` dataset.

    Returns:
        New dataset with trimmed ids, positive amounts, revenue statuses,
        and one row per order id (first occurrence wins).
    """
    table = orders.table
    table = _trim_column(table, "order_id")
    table = _trim_column(table, "customer_id")
    normalized_status = pc.utf8_lower(pc.utf8_trim_whitespace(pc.fill_null(table["status"], "")))
    excluded_status = pc.is_in(normalized_status, value_set=pa.array(EXCLUDED_ORDER_STATUSES))
    keep_mask = pc.and_(pc.greater(table["amount"], 0.0), pc.invert(excluded_status))
    table = table.filter(keep_mask)
    table = keep_first_per_key(table, "order_id")
    table = table.sort_by([("order_date", "ascending"), ("order_id", "ascending")])
    return orders.derive(table)


def keep_first_per_key(table: pa.Table, key: str) -> pa.Table:
    """Drop rows whose key already appeared earlier in the table."""
    seen_keys: set[object] = set()
    mask: list[bool] = []
    for value in table[key].to_pylist():
        mask.append(value not in seen_keys)
        seen_keys.add(value)
    return table.filter(pa.array(mask, type=pa.bool_()))


def _trim_column(table: pa.Table, column_name: str) -> pa.Table:
    index = table.schema.get_field_index(column_name)
    trimmed = pc.utf8_trim_whitespace(table[column_name])
    return table.set_column(index, table.schema.field(index), trimmed)
