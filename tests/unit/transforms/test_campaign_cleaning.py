"""Unit tests for campaign cleaning."""

from __future__ import annotations

from core.config import Settings
from core.entity_schemas import CAMPAIGNS_SCHEMA
from extract.file_source import FileSource
from tests.fixture_paths import fixture_path
from transforms.campaign_cleaning import clean_campaigns


def _campaigns():
    settings = Settings(input_dir=fixture_path("campaigns"))
    return FileSource().extract(settings, CAMPAIGNS_SCHEMA)


def test_clean_campaigns_drops_non_positive_budgets_and_sorts() -> None:
    """Zero-budget campaigns should be removed and rows sorted by id."""
    cleaned = clean_campaigns(_campaigns())

    assert (
        cleaned.schema_name == "clean_campaigns"
        and cleaned.table["campaign_id"].to_pylist() == ["K1", "K2"]
    )


def test_clean_campaigns_normalizes_names_and_spend() -> None:
    """Names should be trimmed and collapsed while missing spend becomes zero."""
    rows = clean_campaigns(_campaigns()).to_rows()

    assert (
        [row["campaign_name"] for row in rows] == ["2024_q1_email_smb_emea", "spring promo"]
        and [row["spend"] for row in rows] == [250.0, 0.0]
        and [row["budget_utilization"] for row in rows] == [0.25, 0.0]
    )


def test_clean_campaigns_is_idempotent() -> None:
    """Cleaning cleaned campaigns should change nothing."""
    once = clean_campaigns(_campaigns())
    twice = clean_campaigns(once)

    assert twice.table.equals(once.table)
