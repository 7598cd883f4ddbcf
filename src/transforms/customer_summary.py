"""Per-customer order aggregation.

This module derives lifetime value metrics and a segment label for each
customer. Day counts are measured against ``Settings.as_of_date`` so the
transform never reads the clock.
"""

from __future__ import annotations

import pyarrow as pa
import pyarrow.compute as pc

from core.config import Settings
from core.entity_schemas import CUSTOMER_SUMMARY_SCHEMA
from core.schema import empty_table
from core.types import Dataset


def summarize_customers(orders: Dataset, settings: Settings) -> Dataset:
    """Aggregate cleaned orders into one row per customer.

    Args:
        orders: Cleaned ``orders`` dataset.
        settings: Source of the reference date and segment thresholds.

    Returns:
        ``customer_summary`` dataset sorted by customer id.
    """
    if orders.num_rows == 0:
        return orders.derive(empty_table(CUSTOMER_SUMMARY_SCHEMA), CUSTOMER_SUMMARY_SCHEMA.name)
    grouped = orders.table.group_by("customer_id").aggregate(
        [
            ("order_id", "count"),
            ("amount", "sum"),
            ("order_date", "min"),
            ("order_date", "max"),
        ]
    )
    as_of = pa.scalar(settings.as_of_date, type=pa.date32())
    order_count = grouped["order_id_count"].cast(pa.int64())
    amount_sum = grouped["amount_sum"]
    days_since_first = pc.days_between(grouped["order_date_min"], as_of)
    days_since_last = pc.days_between(grouped["order_date_max"], as_of)
    segments = [
        assign_segment(count, first_days, last_days, settings)
        for count, first_days, last_days in zip(
            order_count.to_pylist(), days_since_first.to_pylist(), days_since_last.to_pylist()
        )
    ]
    summary = pa.Table.from_arrays(
        [
            grouped["customer_id"],
            order_count,
            pc.round(amount_sum, 2),
            pc.round(pc.divide(amount_sum, order_count.cast(pa.float64())), 2),
            grouped["order_date_min"],
            grouped["order_date_max"],
            days_since_first.cast(pa.int64()),
            days_since_last.cast(pa.int64()),
            pa.array(segments, type=pa.string()),
        ],
        schema=CUSTOMER_SUMMARY_SCHEMA.arrow_schema(),
    )
    summary = summary.sort_by([("customer_id", "ascending")])
    return orders.derive(summary, CUSTOMER_SUMMARY_SCHEMA.name)


def assign_segment(
    order_count: int,
    days_since_first_purchase: int,
    days_since_last_purchase: int,
    settings: Settings,
) -> str:
    """Classify a customer; the first matching rule wins."""
    if days_since_last_purchase > settings.at_risk_days:
        return "at_risk"
    if days_since_first_purchase <= settings.new_customer_days:
        return "new"
    if order_count >= settings.loyal_min_orders:
        return "loyal"
    return "active"
