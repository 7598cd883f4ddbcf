"""Remote API extraction.

This module pages through ``GET {api_base_url}/{entity}`` and validates
the collected rows with the same schema used for fixture files, so
switching the source kind never changes downstream behavior.
"""

from __future__ import annotations

from typing import Any

import httpx
import pyarrow as pa

from core.config import Settings
from core.errors import ConduitAuthError, ConduitExtractError, ConduitSchemaError
from core.logging_config import get_logger
from core.schema import Schema, empty_table, validate_table
from core.types import Dataset

_LOGGER = get_logger(__name__)
_AUTH_FAILURE_CODES = (401, 403)


class ApiSource:
    """Extraction strategy backed by a paginated JSON API."""

    kind = "api"

    def __init__(self, transport: httpx.BaseTransport | None = None) -> None:
        self._transport = transport

    def extract(self, settings: Settings, schema: Schema) -> Dataset:
        """Fetch every page for an entity and validate the rows.

        Args:
            settings: Runtime settings with base URL, key, and page size.
            schema: Entity schema; its name is the endpoint path.

        Returns:
            Validated dataset in API order.

        Raises:
            ConduitAuthError: If the API rejects the credentials.
            ConduitExtractError: For network, HTTP, or payload failures.
            ConduitSchemaError: If rows violate the schema.
        """
        if not settings.api_base_url:
            raise ConduitExtractError(
                "API extraction requires api_base_url. Set CONDUIT_API_BASE_URL."
            )
        url = f"{settings.api_base_url.rstrip('/')}/{schema.name}"
        with self._build_client(settings) as client:
            rows = _fetch_all_rows(client, url, settings.batch_size)
        raw_table = _rows_to_table(rows, url) if rows else empty_table(schema)
        table = validate_table(raw_table, schema, url)
        _LOGGER.info("api_extract_completed", entity=schema.name, url=url, row_count=len(rows))
        return Dataset(schema_name=schema.name, table=table, sources=(url,))

    def _build_client(self, settings: Settings) -> httpx.Client:
        headers = {"Accept": "application/json"}
        if settings.api_key:
            headers["Authorization"] = f"Bearer {settings.api_key}"
        return httpx.Client(
            headers=headers,
            timeout=settings.request_timeout,
            transport=self._transport,
        )


def _fetch_all_rows(client: httpx.Client, url: str, page_size: int) -> list[dict[str, Any]]:
    rows: list[dict[str, Any]] = []
    previous_page: list[dict[str, Any]] | None = None
    offset = 0
    while True:
        page = _fetch_page(client, url, page_size, offset)
        if page and page == previous_page:
            raise ConduitExtractError(
                f"API at {url} returned the same page for offsets {offset - page_size} and "
                f"{offset}. The server must honor the limit and offset query parameters."
            )
        rows.extend(page)
        if len(page) < page_size:
            return rows
        previous_page = page
        offset += page_size


def _fetch_page(
    client: httpx.Client,
    url: str,
    page_size: int,
    offset: int,
) -> list[dict[str, Any]]:
    try:
        response = client.get(url, params={"limit": page_size, "offset": offset})
    except httpx.HTTPError as error:
        raise ConduitExtractError(
            f"Failed to reach {url}: {error}. Check CONDUIT_API_BASE_URL and network access."
        ) from error
    if response.status_code in _AUTH_FAILURE_CODES:
        raise ConduitAuthError(
            f"API at {url} rejected credentials with HTTP {response.status_code}. "
            "Check CONDUIT_API_KEY."
        )
    try:
        response.raise_for_status()
    except httpx.HTTPStatusError as error:
        raise ConduitExtractError(
            f"API request to {url} failed with HTTP {response.status_code} at offset {offset}."
        ) from error
    try:
        payload = response.json()
    except ValueError as error:
        raise ConduitExtractError(f"API response from {url} is not valid JSON.") from error
    return _parse_rows(payload, url)


def _parse_rows(payload: object, url: str) -> list[dict[str, Any]]:
    if isinstance(payload, dict):
        payload = payload.get("data")
    if not isinstance(payload, list):
        raise ConduitExtractError(
            f"Unexpected API payload from {url}: expected a list or a 'data' list."
        )
    for index, row in enumerate(payload):
        if not isinstance(row, dict):
            raise ConduitExtractError(
                f"Unexpected API payload from {url}: row {index} is {type(row).__name__}, "
                "expected an object."
            )
    return payload


def _rows_to_table(rows: list[dict[str, Any]], url: str) -> pa.Table:
    """Build a table from the union of keys across all rows."""
    column_names = list(dict.fromkeys(key for row in rows for key in row))
    try:
        return pa.table({name: [row.get(name) for row in rows] for name in column_names})
    except (pa.ArrowInvalid, pa.ArrowTypeError) as error:
        raise ConduitSchemaError(
            f"API payload from {url} mixes value types within a column: {error}."
        ) from error
