"""Generative campaign enrichment stage.

Each campaign row becomes one prompt for the text generation service.
Calls run on a bounded thread pool; every task returns a result or a
flag instead of raising, and results are reassembled in input order.
A record that cannot be enriched is flagged in the output; the run only
fails when the service could not be reached for any record.
"""

from __future__ import annotations

import json
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Mapping

import httpx
import pyarrow as pa

from core.config import Settings
from core.constants import (
    ENRICHMENT_OUTPUT_FIELDS,
    ENRICHMENT_STATUS_FLAGGED,
    ENRICHMENT_STATUS_OK,
)
from core.entity_schemas import CAMPAIGN_ENRICHMENT_SCHEMA
from core.errors import ConduitGenerationError
from core.logging_config import get_logger
from core.types import Dataset, StageOutcome
from stages.generation_client import ChatCompletionsClient, TextGenerator

_LOGGER = get_logger(__name__)
_PROMPT_FIELDS = ("campaign_id", "campaign_name", "start_date", "budget")


@dataclass(frozen=True)
class EnrichmentResult:
    """Outcome of enriching one record.

    Attributes:
        values: Parsed output fields; all ``None`` when flagged.
        status: ``ok`` or ``flagged``.
        error: Reason the record was flagged.
        unreachable: Whether the service could not be contacted at all.
    """

    values: Mapping[str, str | None]
    status: str
    error: str | None = None
    unreachable: bool = False


def enrich_campaigns(
    dataset: Dataset,
    settings: Settings,
    generator: TextGenerator | None = None,
) -> StageOutcome:
    """Enrich every campaign with generated channel, audience, and region.

    Args:
        dataset: ``clean_campaigns`` dataset.
        settings: Concurrency bound and generation service settings.
        generator: Optional text generator; defaults to the HTTP client.

    Returns:
        Stage outcome with the enriched dataset and flagged row count.

    Raises:
        ConduitGenerationError: If every call failed to reach the service.
    """
    rows = dataset.to_rows()
    if generator is None:
        with ChatCompletionsClient(settings) as client:
            results = enrich_records(rows, client, settings.max_concurrency)
    else:
        results = enrich_records(rows, generator, settings.max_concurrency)
    if results and all(result.unreachable for result in results):
        raise ConduitGenerationError(
            f"Text generation service was unreachable for all {len(results)} record(s): "
            f"{results[0].error}. Check CONDUIT_LLM_BASE_URL and network access."
        )
    flagged_count = 0
    for row, result in zip(rows, results):
        if result.status == ENRICHMENT_STATUS_FLAGGED:
            flagged_count += 1
            _LOGGER.warning(
                "campaign_enrichment_flagged",
                campaign_id=row["campaign_id"],
                reason=result.error,
            )
    table = _append_results(dataset.table, results)
    _LOGGER.info(
        "campaign_enrichment_completed",
        row_count=len(rows),
        flagged_count=flagged_count,
        max_concurrency=settings.max_concurrency,
    )
    return StageOutcome(
        dataset=dataset.derive(table, CAMPAIGN_ENRICHMENT_SCHEMA.name),
        flagged_records=flagged_count,
        details={"enriched_records": str(len(rows) - flagged_count)},
    )


def enrich_records(
    rows: list[dict[str, Any]],
    generator: TextGenerator,
    max_concurrency: int,
) -> list[EnrichmentResult]:
    """Enrich rows with at most ``max_concurrency`` calls in flight.

    Returns:
        One result per row, in input order.
    """
    if not rows:
        return []
    with ThreadPoolExecutor(max_workers=max_concurrency) as executor:
        return list(executor.map(lambda row: enrich_record(row, generator), rows))


def enrich_record(row: Mapping[str, Any], generator: TextGenerator) -> EnrichmentResult:
    """Enrich one row, converting per-record failures into a flag."""
    try:
        response_text = generator.generate(build_prompt(row))
    except httpx.TransportError as error:
        return _flagged(f"service unreachable: {error}", unreachable=True)
    except httpx.HTTPStatusError as error:
        return _flagged(f"service returned HTTP {error.response.status_code}")
    except (httpx.HTTPError, ValueError) as error:
        return _flagged(f"invalid service response: {error}")
    except Exception as error:
        return _flagged(f"generation failed: {error}")
    return parse_enrichment(response_text)


def build_prompt(row: Mapping[str, Any]) -> str:
    """Build the enrichment prompt from record fields."""
    record_lines = "\n".join(f"{name}: {row.get(name)}" for name in _PROMPT_FIELDS)
    output_keys = ", ".join(f'"{name}"' for name in ENRICHMENT_OUTPUT_FIELDS)
    return (
        "Campaign names follow the pattern <year>_<quarter>_<channel>_<audience>_<region>.\n"
        f"Return a JSON object with the string keys {output_keys}.\n"
        'If the name cannot be interpreted, return {"error": "<reason>"} instead.\n\n'
        f"{record_lines}"
    )


def parse_enrichment(response_text: str) -> EnrichmentResult:
    """Parse a generation response into output fields or a flag."""
    try:
        payload = json.loads(response_text)
    except json.JSONDecodeError:
        return _flagged("unparsable response: expected a JSON object")
    if not isinstance(payload, dict):
        return _flagged("unparsable response: expected a JSON object")
    if "error" in payload:
        return _flagged(f"service could not enrich record: {payload['error']}")
    values: dict[str, str | None] = {}
    for name in ENRICHMENT_OUTPUT_FIELDS:
        value = payload.get(name)
        if not isinstance(value, str) or not value.strip():
            return _flagged(f"missing field '{name}' in response")
        values[name] = value.strip()
    return EnrichmentResult(values=values, status=ENRICHMENT_STATUS_OK)


def _flagged(reason: str, unreachable: bool = False) -> EnrichmentResult:
    return EnrichmentResult(
        values={name: None for name in ENRICHMENT_OUTPUT_FIELDS},
        status=ENRICHMENT_STATUS_FLAGGED,
        error=reason,
        unreachable=unreachable,
    )


def _append_results(table: pa.Table, results: list[EnrichmentResult]) -> pa.Table:
    for name in ENRICHMENT_OUTPUT_FIELDS:
        table = table.append_column(
            pa.field(name, pa.string()),
            pa.array([result.values[name] for result in results], type=pa.string()),
        )
    table = table.append_column(
        pa.field("enrichment_status", pa.string(), nullable=False),
        pa.array([result.status for result in results], type=pa.string()),
    )
    return table.append_column(
        pa.field("enrichment_error", pa.string()),
        pa.array([result.error for result in results], type=pa.string()),
    )
