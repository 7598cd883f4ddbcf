"""Campaign cleaning transform.

This module normalizes campaign names, fills missing spend, and derives
budget utilization. The derived column is rebuilt on every call, so the
transform is idempotent.
"""

from __future__ import annotations

import pyarrow as pa
import pyarrow.compute as pc

from core.entity_schemas import CLEAN_CAMPAIGNS_SCHEMA
from core.types import Dataset


def clean_campaigns(campaigns: Dataset) -> Dataset:
    """Return cleaned campaigns sorted by campaign id.

    Args:
        campaigns: Validated ``campaigns`` or previously cleaned dataset.

    Returns:
        ``clean_campaigns`` dataset with positive budgets only.
    """
    table = campaigns.table.filter(pc.greater(campaigns.table["budget"], 0.0))
    names = pc.replace_substring_regex(
        pc.utf8_trim_whitespace(table["campaign_name"]), pattern=r"\s+", replacement=" "
    )
    spend = pc.fill_null(table["spend"], 0.0)
    utilization = pc.round(pc.divide(spend, table["budget"]), 4)
    cleaned = pa.Table.from_arrays(
        [
            pc.utf8_trim_whitespace(table["campaign_id"]),
            names,
            table["start_date"],
            table["budget"],
            spend,
            utilization,
        ],
        schema=CLEAN_CAMPAIGNS_SCHEMA.arrow_schema(),
    )
    cleaned = cleaned.sort_by([("campaign_id", "ascending")])
    return campaigns.derive(cleaned, CLEAN_CAMPAIGNS_SCHEMA.name)
