"""HTTP API destination.

Rows are posted in fixed-size batches. Each batch carries an
``Idempotency-Key`` derived from its content and position, so a retried
run is recognized by the receiving service instead of duplicating rows.
"""

from __future__ import annotations

import httpx

from core.config import Settings
from core.errors import ConduitLoadError
from core.logging_config import get_logger
from core.types import Dataset, LoadResult
from load.row_payload import payload_digest, row_to_payload

_LOGGER = get_logger(__name__)


def post_dataset(
    dataset: Dataset,
    settings: Settings,
    pipeline_name: str,
    transport: httpx.BaseTransport | None = None,
) -> LoadResult:
    """Post dataset rows to ``settings.output_uri`` in batches.

    Raises:
        ConduitLoadError: If any batch is rejected or cannot be sent.
    """
    rows = [row_to_payload(row) for row in dataset.to_rows()]
    headers = {"Content-Type": "application/json"}
    if settings.api_key:
        headers["Authorization"] = f"Bearer {settings.api_key}"
    rows_written = 0
    client = httpx.Client(headers=headers, timeout=settings.request_timeout, transport=transport)
    with client:
        for batch_index, start in enumerate(range(0, len(rows), settings.batch_size)):
            batch_rows = rows[start:start + settings.batch_size]
            body = {"pipeline": pipeline_name, "batch_index": batch_index, "rows": batch_rows}
            _post_batch(client, settings.output_uri, body)
            rows_written += len(batch_rows)
            _LOGGER.debug("api_batch_posted", batch_index=batch_index, row_count=len(batch_rows))
    return LoadResult(destination=settings.output_uri, rows_written=rows_written)


def _post_batch(client: httpx.Client, url: str, body: dict[str, object]) -> None:
    idempotency_key = payload_digest(body)
    try:
        response = client.post(url, json=body, headers={"Idempotency-Key": idempotency_key})
        response.raise_for_status()
    except httpx.HTTPStatusError as error:
        raise ConduitLoadError(
            f"Destination {url} rejected batch {body['batch_index']} with HTTP "
            f"{error.response.status_code}. Earlier batches are safe to resend."
        ) from error
    except httpx.HTTPError as error:
        raise ConduitLoadError(
            f"Failed to send batch {body['batch_index']} to {url}: {error}."
        ) from error
