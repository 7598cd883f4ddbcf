"""Type-safe value parsing helpers for settings.

This module centralizes primitive parsing so every settings layer
(overrides, environment, dotenv, secrets, YAML) produces consistent
validation errors. Raw values arrive as strings from the environment and
as native values from YAML or explicit overrides.
"""

from __future__ import annotations

from datetime import date, datetime
from pathlib import Path
from typing import Sequence

from core.errors import ConduitConfigError


def parse_string(raw_value: object, field_name: str) -> str:
    """Parse a required non-empty string value."""
    value = parse_optional_string(raw_value, field_name)
    if value is None:
        raise ConduitConfigError(f"Setting '{field_name}' must be a non-empty string.")
    return value


def parse_optional_string(raw_value: object, field_name: str) -> str | None:
    """Parse an optional string value, treating blanks as unset."""
    if raw_value is None:
        return None
    if isinstance(raw_value, str):
        stripped = raw_value.strip()
        return stripped if stripped else None
    raise ConduitConfigError(
        f"Setting '{field_name}' must be a string, got {type(raw_value).__name__}."
    )


def parse_choice(raw_value: object, field_name: str, choices: Sequence[str]) -> str:
    """Parse a string restricted to a closed set of choices."""
    value = parse_string(raw_value, field_name).lower()
    if value in choices:
        return value
    supported_rows = ", ".join(choices)
    raise ConduitConfigError(
        f"Invalid {field_name} '{value}'. Use one of: {supported_rows}."
    )


def parse_int(raw_value: object, field_name: str, minimum: int | None = None) -> int:
    """Parse an integer value with an optional lower bound."""
    if isinstance(raw_value, bool):
        raise ConduitConfigError(f"Setting '{field_name}' must be an integer.")
    if isinstance(raw_value, int):
        value = raw_value
    elif isinstance(raw_value, str):
        try:
            value = int(raw_value.strip())
        except ValueError as error:
            raise ConduitConfigError(
                f"Invalid {field_name} value: expected integer, got '{raw_value}'."
            ) from error
    else:
        raise ConduitConfigError(f"Setting '{field_name}' must be an integer.")
    if minimum is not None and value < minimum:
        raise ConduitConfigError(f"Setting '{field_name}' must be >= {minimum}, got {value}.")
    return value


def parse_float(
    raw_value: object,
    field_name: str,
    minimum: float | None = None,
    maximum: float | None = None,
) -> float:
    """Parse a numeric value with optional inclusive bounds."""
    if isinstance(raw_value, bool):
        raise ConduitConfigError(f"Setting '{field_name}' must be numeric.")
    if isinstance(raw_value, (int, float)):
        value = float(raw_value)
    elif isinstance(raw_value, str):
        try:
            value = float(raw_value.strip())
        except ValueError as error:
            raise ConduitConfigError(
                f"Invalid {field_name} value: expected number, got '{raw_value}'."
            ) from error
    else:
        raise ConduitConfigError(f"Setting '{field_name}' must be numeric.")
    if minimum is not None and value < minimum:
        raise ConduitConfigError(f"Setting '{field_name}' must be >= {minimum}, got {value}.")
    if maximum is not None and value > maximum:
        raise ConduitConfigError(f"Setting '{field_name}' must be <= {maximum}, got {value}.")
    return value


def parse_path(raw_value: object, field_name: str) -> Path:
    """Parse a filesystem path and resolve it."""
    if isinstance(raw_value, Path):
        return raw_value.expanduser().resolve()
    return Path(parse_string(raw_value, field_name)).expanduser().resolve()


def parse_date(raw_value: object, field_name: str) -> date:
    """Parse an ISO ``YYYY-MM-DD`` date."""
    if isinstance(raw_value, datetime):
        return raw_value.date()
    if isinstance(raw_value, date):
        return raw_value
    text_value = parse_string(raw_value, field_name)
    try:
        return date.fromisoformat(text_value)
    except ValueError as error:
        raise ConduitConfigError(
            f"Invalid {field_name} value: expected YYYY-MM-DD, got '{text_value}'."
        ) from error
