"""Raw settings layers.

Each reader returns a flat mapping of setting names to raw values.
``core.config`` merges the layers by precedence and parses the result.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping, cast

import yaml
from dotenv import dotenv_values

from core.constants import ENV_PREFIX, SETTINGS_FILE_ENV_VAR
from core.errors import ConduitConfigError, ConduitDependencyError


def read_environment_values(
    environ: Mapping[str, str],
    known_fields: frozenset[str],
) -> dict[str, object]:
    """Collect ``CONDUIT_*`` variables that name known settings."""
    values: dict[str, object] = {}
    for key, value in environ.items():
        if not key.startswith(ENV_PREFIX) or key == SETTINGS_FILE_ENV_VAR:
            continue
        field_name = key[len(ENV_PREFIX):].lower()
        if field_name in known_fields:
            values[field_name] = value
    return values


def read_dotenv_values(dotenv_path: Path, known_fields: frozenset[str]) -> dict[str, object]:
    """Read a local ``.env`` file without touching the process environment."""
    if not dotenv_path.is_file():
        return {}
    raw_values = {
        key: value for key, value in dotenv_values(dotenv_path).items() if value is not None
    }
    return read_environment_values(raw_values, known_fields)


def read_settings_file(settings_path: Path, known_fields: frozenset[str]) -> dict[str, object]:
    """Read a YAML settings file.

    Raises:
        ConduitConfigError: If the file is missing, unparsable, or has
            unknown keys.
    """
    if not settings_path.is_file():
        raise ConduitConfigError(
            f"Settings file does not exist at {settings_path}. Provide a valid YAML file path."
        )
    try:
        payload = cast(object, yaml.safe_load(settings_path.read_text(encoding="utf-8")))
    except OSError as error:
        raise ConduitConfigError(
            f"Failed to read settings file at {settings_path}: {error}."
        ) from error
    except yaml.YAMLError as error:
        raise ConduitConfigError(
            f"Failed to parse YAML settings at {settings_path}: {error}. Fix YAML syntax and retry."
        ) from error
    if payload is None:
        return {}
    if not isinstance(payload, Mapping):
        raise ConduitConfigError(
            f"Invalid settings file {settings_path}: expected a mapping, "
            f"got {type(payload).__name__}."
        )
    values = {str(key): value for key, value in payload.items()}
    check_known_fields(values, known_fields, f"settings file {settings_path}")
    return values


def read_secret_values(
    secret_id: str,
    known_fields: frozenset[str],
    region: str | None,
    profile: str | None,
) -> dict[str, object]:
    """Read a JSON secret from AWS Secrets Manager.

    Keys may be plain setting names or ``CONDUIT_``-prefixed names.
    Unrelated keys in the secret are ignored.

    Raises:
        ConduitDependencyError: If boto3 is unavailable.
        ConduitConfigError: If the secret cannot be fetched or decoded.
    """
    client = _create_secrets_client(region, profile)
    try:
        response = client.get_secret_value(SecretId=secret_id)
    except Exception as error:
        raise ConduitConfigError(
            f"Failed to read secret '{secret_id}' from Secrets Manager: {error}. "
            "Check AWS credentials and the secret id."
        ) from error
    secret_string = response.get("SecretString")
    if not isinstance(secret_string, str):
        raise ConduitConfigError(
            f"Secret '{secret_id}' has no SecretString. Store settings as a JSON object."
        )
    try:
        payload = json.loads(secret_string)
    except json.JSONDecodeError as error:
        raise ConduitConfigError(
            f"Secret '{secret_id}' is not valid JSON: {error.msg}."
        ) from error
    if not isinstance(payload, dict):
        raise ConduitConfigError(f"Secret '{secret_id}' must hold a JSON object.")
    values: dict[str, object] = {}
    for key, value in payload.items():
        field_name = str(key)
        if field_name.startswith(ENV_PREFIX):
            field_name = field_name[len(ENV_PREFIX):].lower()
        if field_name in known_fields:
            values[field_name] = value
    return values


def check_known_fields(
    values: Mapping[str, object],
    known_fields: frozenset[str],
    context: str,
) -> None:
    """Reject setting names that do not exist."""
    unknown_keys = sorted(set(values) - known_fields)
    if unknown_keys:
        raise ConduitConfigError(f"Unknown settings in {context}: {', '.join(unknown_keys)}.")


def _create_secrets_client(region: str | None, profile: str | None) -> Any:
    try:
        import boto3
    except ImportError as error:
        raise ConduitDependencyError(
            "Secrets Manager settings require boto3, but it is not installed. "
            "Install boto3 or unset CONDUIT_SECRET_ID."
        ) from error
    session_kwargs: dict[str, str] = {}
    if profile:
        session_kwargs["profile_name"] = profile
    if region:
        session_kwargs["region_name"] = region
    session = boto3.session.Session(**session_kwargs)
    return session.client("secretsmanager")
