"""Customer churn feature derivation.

This module joins per-customer order metrics onto the customer roster so
customers without any orders still receive a feature row.
"""

from __future__ import annotations

from typing import Any

import pyarrow as pa

from core.config import Settings
from core.entity_schemas import CUSTOMER_FEATURES_SCHEMA
from core.types import Dataset
from transforms.customer_summary import summarize_customers
from transforms.order_cleaning import keep_first_per_key


def build_churn_features(orders: Dataset, customers: Dataset, settings: Settings) -> Dataset:
    """Build one feature row per customer.

    Args:
        orders: Cleaned ``orders`` dataset.
        customers: Validated ``customers`` dataset.
        settings: Source of the reference date.

    Returns:
        ``customer_features`` dataset sorted by customer id.
    """
    summary_rows = {
        row["customer_id"]: row for row in summarize_customers(orders, settings).to_rows()
    }
    roster = keep_first_per_key(customers.table, "customer_id")
    roster = roster.sort_by([("customer_id", "ascending")])
    feature_rows = [
        _feature_row(customer, summary_rows.get(customer["customer_id"]), settings)
        for customer in roster.to_pylist()
    ]
    table = pa.Table.from_pylist(feature_rows, schema=CUSTOMER_FEATURES_SCHEMA.arrow_schema())
    return Dataset(
        schema_name=CUSTOMER_FEATURES_SCHEMA.name,
        table=table,
        sources=orders.sources + customers.sources,
    )


def _feature_row(
    customer: dict[str, Any],
    summary: dict[str, Any] | None,
    settings: Settings,
) -> dict[str, Any]:
    tenure_days = (settings.as_of_date - customer["signup_date"]).days
    if summary is None:
        return {
            "customer_id": customer["customer_id"],
            "signup_date": customer["signup_date"],
            "tenure_days": tenure_days,
            "order_count": 0,
            "total_spent": 0.0,
            "average_order_value": 0.0,
            "first_purchase_date": None,
            "last_purchase_date": None,
            "days_since_last_purchase": tenure_days,
            "churned": customer["churned"],
        }
    return {
        "customer_id": customer["customer_id"],
        "signup_date": customer["signup_date"],
        "tenure_days": tenure_days,
        "order_count": summary["order_count"],
        "total_spent": summary["total_spent"],
        "average_order_value": summary["average_order_value"],
        "first_purchase_date": summary["first_purchase_date"],
        "last_purchase_date": summary["last_purchase_date"],
        "days_since_last_purchase": summary["days_since_last_purchase"],
        "churned": customer["churned"],
    }
