"""Unit tests for paginated API extraction."""

from __future__ import annotations

import httpx
import pytest

from core.config import Settings
from core.entity_schemas import CAMPAIGNS_SCHEMA, ORDERS_SCHEMA
from core.errors import ConduitAuthError, ConduitExtractError, ConduitSchemaError
from extract.api_source import ApiSource
from extract.file_source import FileSource
from tests.fixture_paths import fixture_path

_ORDER_ROWS = [
    {"order_id": "O1", "customer_id": "C1", "order_date": "2024-01-05", "amount": 10.0},
    {"order_id": "O2", "customer_id": "C1", "order_date": "2024-01-06", "amount": 5.5},
    {
        "order_id": "O3",
        "customer_id": "C2",
        "order_date": "2024-01-07",
        "amount": 8.0,
        "status": "completed",
    },
]


def _settings(batch_size: int = 2) -> Settings:
    return Settings(
        source_kind="api",
        api_base_url="https://data.example.com/v1/",
        api_key="token-123",
        batch_size=batch_size,
    )


def _paging_transport(rows: list[dict], requests: list[httpx.Request]) -> httpx.MockTransport:
    def _handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        limit = int(request.url.params["limit"])
        offset = int(request.url.params["offset"])
        return httpx.Response(200, json=rows[offset:offset + limit])

    return httpx.MockTransport(_handler)


def test_extract_pages_until_short_page() -> None:
    """API extraction should follow limit/offset pages until a short page."""
    requests: list[httpx.Request] = []
    source = ApiSource(transport=_paging_transport(_ORDER_ROWS, requests))

    dataset = source.extract(_settings(), ORDERS_SCHEMA)

    assert (
        dataset.table["order_id"].to_pylist() == ["O1", "O2", "O3"]
        and [request.url.params["offset"] for request in requests] == ["0", "2"]
        and requests[0].url.path == "/v1/orders"
        and requests[0].headers["Authorization"] == "Bearer token-123"
    )


def test_extract_keeps_keys_that_only_appear_in_later_rows() -> None:
    """Columns present only in later rows should still be validated and kept."""
    source = ApiSource(transport=_paging_transport(_ORDER_ROWS, []))

    dataset = source.extract(_settings(batch_size=10), ORDERS_SCHEMA)

    assert dataset.table["status"].to_pylist() == [None, None, "completed"]


def test_extract_accepts_data_envelope() -> None:
    """A {"data": [...]} payload should be unwrapped."""

    def _handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"data": _ORDER_ROWS[:1]})

    source = ApiSource(transport=httpx.MockTransport(_handler))

    dataset = source.extract(_settings(), ORDERS_SCHEMA)

    assert dataset.num_rows == 1 and dataset.sources == ("https://data.example.com/v1/orders",)


def test_extract_matches_file_schema_for_equivalent_data() -> None:
    """File and API extraction of the same records should yield one schema."""
    file_dataset = FileSource().extract(
        Settings(input_dir=fixture_path("campaigns")), CAMPAIGNS_SCHEMA
    )
    api_rows = [
        {
            "campaign_id": row["campaign_id"],
            "campaign_name": row["campaign_name"],
            "start_date": row["start_date"].isoformat(),
            "budget": row["budget"],
            "spend": row["spend"],
        }
        for row in file_dataset.to_rows()
    ]
    source = ApiSource(transport=_paging_transport(api_rows, []))

    api_dataset = source.extract(_settings(batch_size=10), CAMPAIGNS_SCHEMA)

    assert api_dataset.table.equals(file_dataset.table)


def test_extract_raises_auth_error_on_401() -> None:
    """Rejected credentials should raise a dedicated auth error."""

    def _handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"detail": "bad token"})

    source = ApiSource(transport=httpx.MockTransport(_handler))

    with pytest.raises(ConduitAuthError, match="CONDUIT_API_KEY"):
        source.extract(_settings(), ORDERS_SCHEMA)


def test_extract_raises_extract_error_on_server_error() -> None:
    """Non-auth HTTP failures should raise an extract error."""

    def _handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503)

    source = ApiSource(transport=httpx.MockTransport(_handler))

    with pytest.raises(ConduitExtractError, match="HTTP 503"):
        source.extract(_settings(), ORDERS_SCHEMA)


def test_extract_raises_extract_error_when_unreachable() -> None:
    """Network failures should raise an extract error."""

    def _handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    source = ApiSource(transport=httpx.MockTransport(_handler))

    with pytest.raises(ConduitExtractError, match="Failed to reach"):
        source.extract(_settings(), ORDERS_SCHEMA)


def test_extract_rejects_non_list_payload() -> None:
    """Payloads that are not row lists should raise an extract error."""

    def _handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"rows": []})

    source = ApiSource(transport=httpx.MockTransport(_handler))

    with pytest.raises(ConduitExtractError, match="expected a list"):
        source.extract(_settings(), ORDERS_SCHEMA)


def test_extract_validates_rows_with_entity_schema() -> None:
    """API rows should go through the same schema validation as files."""

    def _handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=[{"order_id": "O1", "customer_id": "C1"}])

    source = ApiSource(transport=httpx.MockTransport(_handler))

    with pytest.raises(ConduitSchemaError, match="order_date"):
        source.extract(_settings(), ORDERS_SCHEMA)


def test_extract_rejects_server_that_ignores_offset() -> None:
    """A server repeating the same full page should fail instead of looping forever."""
    requests: list[httpx.Request] = []

    def _handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json=_ORDER_ROWS[:2])

    source = ApiSource(transport=httpx.MockTransport(_handler))

    with pytest.raises(ConduitExtractError, match="returned the same page"):
        source.extract(_settings(), ORDERS_SCHEMA)

    assert len(requests) == 2
