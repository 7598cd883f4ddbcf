"""Runtime configuration model for Conduit.

This module owns all settings parsing and validation. Other modules
consume one immutable ``Settings`` value passed in explicitly instead of
reading environment variables on their own.

Precedence, highest first: explicit overrides, ``CONDUIT_*`` environment
variables, a local ``.env`` file (development only), an AWS Secrets
Manager secret (production only), a YAML settings file, defaults.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from datetime import date
from pathlib import Path
from typing import Any, Callable, Mapping

from core.constants import (
    DEFAULT_AT_RISK_DAYS,
    DEFAULT_BATCH_SIZE,
    DEFAULT_DOTENV_PATH,
    DEFAULT_ENVIRONMENT,
    DEFAULT_INPUT_DIR,
    DEFAULT_LLM_MODEL,
    DEFAULT_LOG_LEVEL,
    DEFAULT_LOYAL_MIN_ORDERS,
    DEFAULT_MAX_CONCURRENCY,
    DEFAULT_ML_MODE,
    DEFAULT_MODEL_PATH,
    DEFAULT_NEW_CUSTOMER_DAYS,
    DEFAULT_OUTPUT_FORMAT,
    DEFAULT_OUTPUT_URI,
    DEFAULT_PIPELINE,
    DEFAULT_PREDICTION_THRESHOLD,
    DEFAULT_RANDOM_SEED,
    DEFAULT_REPORT_MAX_ROWS,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_SOURCE_KIND,
    DEFAULT_TRAIN_EPOCHS,
    DEFAULT_TRAIN_LEARNING_RATE,
    SETTINGS_FILE_ENV_VAR,
    SUPPORTED_ENVIRONMENTS,
    SUPPORTED_LOG_LEVELS,
    SUPPORTED_ML_MODES,
    SUPPORTED_OUTPUT_FORMATS,
    SUPPORTED_PIPELINES,
    SUPPORTED_SOURCE_KINDS,
)
from core.errors import ConduitConfigError
from core.settings_fields import (
    parse_choice,
    parse_date,
    parse_float,
    parse_int,
    parse_optional_string,
    parse_path,
    parse_string,
)
from core.settings_sources import (
    check_known_fields,
    read_dotenv_values,
    read_environment_values,
    read_secret_values,
    read_settings_file,
)


@dataclass(frozen=True)
class Settings:
    """Validated runtime configuration for one pipeline run.

    Attributes:
        environment: ``development`` or ``production``.
        pipeline: Pipeline to run.
        source_kind: Extraction strategy, ``file`` or ``api``.
        input_dir: Directory holding fixture files for the ``file`` source.
        output_uri: Directory, ``s3://`` URI, database URL, or HTTP endpoint.
        output_format: File format for directory and S3 destinations.
        batch_size: API page size, database insert chunk, and HTTP post size.
        api_base_url: Base URL of the production data API.
        api_key: Bearer token for the production data API.
        request_timeout: Timeout in seconds for outbound HTTP calls.
        llm_base_url: OpenAI-compatible text generation base URL.
        llm_api_key: Bearer token for the text generation service.
        llm_model: Model identifier sent to the text generation service.
        max_concurrency: Upper bound on in-flight generation calls.
        ml_mode: ``train`` or ``predict`` for ML pipelines.
        model_path: Model artifact location.
        epochs: Training epochs.
        learning_rate: Optimizer learning rate.
        random_seed: Seed used for deterministic training.
        prediction_threshold: Probability cutoff for positive predictions.
        as_of_date: Reference date for day-count fields.
        at_risk_days: Days since last purchase after which a customer is at risk.
        new_customer_days: Days since first purchase within which a customer is new.
        loyal_min_orders: Minimum order count for the loyal segment.
        report_max_rows: Maximum table rows printed in the run report.
        secret_id: Secrets Manager id read in production.
        aws_region: Optional AWS region for boto3 sessions.
        aws_profile: Optional AWS profile for boto3 sessions.
        log_level: Minimum structured log level.
    """

    environment: str = DEFAULT_ENVIRONMENT
    pipeline: str = DEFAULT_PIPELINE
    source_kind: str = DEFAULT_SOURCE_KIND
    input_dir: Path = DEFAULT_INPUT_DIR
    output_uri: str = DEFAULT_OUTPUT_URI
    output_format: str = DEFAULT_OUTPUT_FORMAT
    batch_size: int = DEFAULT_BATCH_SIZE
    api_base_url: str | None = None
    api_key: str | None = None
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    llm_base_url: str | None = None
    llm_api_key: str | None = None
    llm_model: str = DEFAULT_LLM_MODEL
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    ml_mode: str = DEFAULT_ML_MODE
    model_path: Path = DEFAULT_MODEL_PATH
    epochs: int = DEFAULT_TRAIN_EPOCHS
    learning_rate: float = DEFAULT_TRAIN_LEARNING_RATE
    random_seed: int = DEFAULT_RANDOM_SEED
    prediction_threshold: float = DEFAULT_PREDICTION_THRESHOLD
    as_of_date: date = field(default_factory=date.today)
    at_risk_days: int = DEFAULT_AT_RISK_DAYS
    new_customer_days: int = DEFAULT_NEW_CUSTOMER_DAYS
    loyal_min_orders: int = DEFAULT_LOYAL_MIN_ORDERS
    report_max_rows: int = DEFAULT_REPORT_MAX_ROWS
    secret_id: str | None = None
    aws_region: str | None = None
    aws_profile: str | None = None
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def field_names(cls) -> frozenset[str]:
        return frozenset(item.name for item in fields(cls))

    @classmethod
    def load(
        cls,
        overrides: Mapping[str, object] | None = None,
        environ: Mapping[str, str] | None = None,
        dotenv_path: Path = DEFAULT_DOTENV_PATH,
        settings_file: str | None = None,
    ) -> "Settings":
        """Build settings from all configured layers.

        Args:
            overrides: Explicit values, e.g. from CLI flags. ``None`` values
                are ignored so unset flags do not mask lower layers.
            environ: Environment mapping, defaults to ``os.environ``.
            dotenv_path: Local environment file read in development.
            settings_file: Optional YAML file; falls back to
                ``CONDUIT_SETTINGS_FILE``.

        Returns:
            A validated settings object.

        Raises:
            ConduitConfigError: If any layer holds invalid values.
        """
        known_fields = cls.field_names()
        environment_values = os.environ if environ is None else environ
        override_values = {
            key: value for key, value in (overrides or {}).items() if value is not None
        }
        check_known_fields(override_values, known_fields, "overrides")
        env_values = read_environment_values(environment_values, known_fields)
        file_path = settings_file or environment_values.get(SETTINGS_FILE_ENV_VAR)
        file_values = (
            read_settings_file(Path(file_path).expanduser(), known_fields) if file_path else {}
        )
        merged_values = {**file_values, **env_values, **override_values}
        if _resolve_environment(merged_values) == "development":
            dotenv_values = read_dotenv_values(dotenv_path, known_fields)
            # The environment is already fixed once .env is in play.
            dotenv_values.pop("environment", None)
            merged_values = {**file_values, **dotenv_values, **env_values, **override_values}
        elif merged_values.get("secret_id"):
            secret_values = read_secret_values(
                secret_id=parse_string(merged_values["secret_id"], "secret_id"),
                known_fields=known_fields,
                region=parse_optional_string(merged_values.get("aws_region"), "aws_region"),
                profile=parse_optional_string(merged_values.get("aws_profile"), "aws_profile"),
            )
            merged_values = {**file_values, **secret_values, **env_values, **override_values}
        settings = cls(**_parse_values(merged_values))
        validate_settings(settings)
        return settings


def validate_settings(settings: Settings) -> None:
    """Apply cross-field checks.

    Raises:
        ConduitConfigError: If related settings are inconsistent.
    """
    if settings.source_kind == "api" and not settings.api_base_url:
        raise ConduitConfigError(
            "Source kind 'api' requires api_base_url. Set CONDUIT_API_BASE_URL "
            "or switch CONDUIT_SOURCE_KIND to 'file'."
        )
    if settings.pipeline == "campaign_enrichment" and not settings.llm_base_url:
        raise ConduitConfigError(
            "Pipeline 'campaign_enrichment' requires llm_base_url. Set CONDUIT_LLM_BASE_URL."
        )


def _resolve_environment(values: Mapping[str, object]) -> str:
    raw_value = values.get("environment", DEFAULT_ENVIRONMENT)
    return parse_choice(raw_value, "environment", SUPPORTED_ENVIRONMENTS)


def _choice(choices: tuple[str, ...]) -> Callable[[object, str], Any]:
    return lambda raw_value, name: parse_choice(raw_value, name, choices)


def _bounded_int(minimum: int) -> Callable[[object, str], Any]:
    return lambda raw_value, name: parse_int(raw_value, name, minimum=minimum)


def _bounded_float(minimum: float, maximum: float | None = None) -> Callable[[object, str], Any]:
    return lambda raw_value, name: parse_float(raw_value, name, minimum, maximum)


_FIELD_PARSERS: dict[str, Callable[[object, str], Any]] = {
    "environment": _choice(SUPPORTED_ENVIRONMENTS),
    "pipeline": _choice(SUPPORTED_PIPELINES),
    "source_kind": _choice(SUPPORTED_SOURCE_KINDS),
    "input_dir": parse_path,
    "output_uri": parse_string,
    "output_format": _choice(SUPPORTED_OUTPUT_FORMATS),
    "batch_size": _bounded_int(1),
    "api_base_url": parse_optional_string,
    "api_key": parse_optional_string,
    "request_timeout": _bounded_float(0.001),
    "llm_base_url": parse_optional_string,
    "llm_api_key": parse_optional_string,
    "llm_model": parse_string,
    "max_concurrency": _bounded_int(1),
    "ml_mode": _choice(SUPPORTED_ML_MODES),
    "model_path": parse_path,
    "epochs": _bounded_int(1),
    "learning_rate": _bounded_float(1e-9),
    "random_seed": lambda raw_value, name: parse_int(raw_value, name),
    "prediction_threshold": _bounded_float(0.0, 1.0),
    "as_of_date": parse_date,
    "at_risk_days": _bounded_int(0),
    "new_customer_days": _bounded_int(0),
    "loyal_min_orders": _bounded_int(1),
    "report_max_rows": _bounded_int(0),
    "secret_id": parse_optional_string,
    "aws_region": parse_optional_string,
    "aws_profile": parse_optional_string,
    "log_level": _choice(SUPPORTED_LOG_LEVELS),
}


def _parse_values(raw_values: Mapping[str, object]) -> dict[str, Any]:
    """Parse merged raw values into typed constructor arguments."""
    return {
        name: _FIELD_PARSERS[name](raw_value, name) for name, raw_value in raw_values.items()
    }
