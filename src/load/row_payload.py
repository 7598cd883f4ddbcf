"""JSON payload conversion for dataset rows.

Row values from Arrow tables include ``datetime.date`` objects, which
JSON cannot encode directly. Dates are rendered as ISO strings.
"""

from __future__ import annotations

import hashlib
import json
from datetime import date
from typing import Any, Mapping

from core.constants import HASH_ALGORITHM


def row_to_payload(row: Mapping[str, Any]) -> dict[str, object]:
    """Convert one row into JSON-serializable values."""
    return {key: _json_value(value) for key, value in row.items()}


def rows_to_jsonl(rows: list[dict[str, Any]]) -> str:
    """Render rows as JSON lines with stable key order."""
    lines = [json.dumps(row_to_payload(row), sort_keys=True) for row in rows]
    return "\n".join(lines) + "\n" if lines else ""


def payload_digest(payload: object) -> str:
    """Hash a JSON payload with the configured digest algorithm."""
    hasher = hashlib.new(HASH_ALGORITHM)
    hasher.update(json.dumps(payload, sort_keys=True).encode("utf-8"))
    return hasher.hexdigest()


def _json_value(value: object) -> object:
    if isinstance(value, date):
        return value.isoformat()
    return value
