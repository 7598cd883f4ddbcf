"""Unit tests for layered settings loading."""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path

import pytest

from core.config import Settings
from core.errors import ConduitConfigError
from tests.fixture_paths import fixture_path


def _load(tmp_path: Path, **kwargs) -> Settings:
    kwargs.setdefault("environ", {})
    return Settings.load(dotenv_path=tmp_path / ".env", **kwargs)


def test_load_uses_defaults_without_any_layer(tmp_path: Path) -> None:
    """Settings should fall back to built-in defaults."""
    settings = _load(tmp_path)

    assert (
        settings.pipeline == "customer_summary"
        and settings.source_kind == "file"
        and settings.batch_size == 100
        and settings.at_risk_days == 90
    )


def test_environment_variables_override_defaults(tmp_path: Path) -> None:
    """CONDUIT_* variables should be parsed into typed fields."""
    environ = {
        "CONDUIT_PIPELINE": "CHURN",
        "CONDUIT_BATCH_SIZE": "7",
        "CONDUIT_AS_OF_DATE": "2024-06-01",
        "UNRELATED": "ignored",
    }

    settings = _load(tmp_path, environ=environ)

    assert (
        settings.pipeline == "churn"
        and settings.batch_size == 7
        and settings.as_of_date == date(2024, 6, 1)
    )


def test_overrides_take_precedence_and_ignore_none(tmp_path: Path) -> None:
    """Explicit overrides should win while None values leave lower layers intact."""
    environ = {"CONDUIT_BATCH_SIZE": "7", "CONDUIT_OUTPUT_URI": "from-env"}

    settings = _load(tmp_path, environ=environ, overrides={"batch_size": 3, "output_uri": None})

    assert settings.batch_size == 3 and settings.output_uri == "from-env"


def test_dotenv_is_read_in_development(tmp_path: Path) -> None:
    """A local .env file should feed settings below real environment variables."""
    (tmp_path / ".env").write_text(
        "CONDUIT_BATCH_SIZE=11\nCONDUIT_REPORT_MAX_ROWS=3\n", encoding="utf-8"
    )

    settings = _load(tmp_path, environ={"CONDUIT_REPORT_MAX_ROWS": "5"})

    assert settings.batch_size == 11 and settings.report_max_rows == 5


def test_dotenv_is_ignored_in_production(tmp_path: Path) -> None:
    """Production runs should never read a local .env file."""
    (tmp_path / ".env").write_text("CONDUIT_BATCH_SIZE=11\n", encoding="utf-8")

    settings = _load(tmp_path, environ={"CONDUIT_ENVIRONMENT": "production"})

    assert settings.batch_size == 100


def test_settings_file_is_lowest_explicit_layer(tmp_path: Path) -> None:
    """YAML settings should apply but yield to environment variables."""
    settings = _load(
        tmp_path,
        environ={"CONDUIT_BATCH_SIZE": "50"},
        settings_file=str(fixture_path("settings/valid.yaml")),
    )

    assert (
        settings.pipeline == "campaign_enrichment"
        and settings.batch_size == 50
        and settings.max_concurrency == 2
        and settings.as_of_date == date(2024, 6, 1)
    )


def test_settings_file_path_can_come_from_environment(tmp_path: Path) -> None:
    """CONDUIT_SETTINGS_FILE should select the YAML layer."""
    environ = {"CONDUIT_SETTINGS_FILE": str(fixture_path("settings/valid.yaml"))}

    settings = _load(tmp_path, environ=environ)

    assert settings.llm_base_url == "http://llm.local/v1"


def test_settings_file_rejects_unknown_keys(tmp_path: Path) -> None:
    """Unknown YAML keys should fail fast instead of being ignored."""
    with pytest.raises(ConduitConfigError, match="colour"):
        _load(tmp_path, settings_file=str(fixture_path("settings/unknown_key.yaml")))


def test_missing_settings_file_raises(tmp_path: Path) -> None:
    """A settings file path that does not exist should be a config error."""
    with pytest.raises(ConduitConfigError, match="does not exist"):
        _load(tmp_path, settings_file=str(tmp_path / "missing.yaml"))


def test_invalid_integer_raises(tmp_path: Path) -> None:
    """Non-numeric integer settings should raise a config error."""
    with pytest.raises(ConduitConfigError, match="batch_size"):
        _load(tmp_path, environ={"CONDUIT_BATCH_SIZE": "many"})


def test_invalid_choice_lists_supported_values(tmp_path: Path) -> None:
    """Unknown pipeline names should list the supported ones."""
    with pytest.raises(ConduitConfigError, match="customer_summary, churn, campaign_enrichment"):
        _load(tmp_path, environ={"CONDUIT_PIPELINE": "inventory"})


def test_unknown_override_raises(tmp_path: Path) -> None:
    """Overrides naming unknown settings should be rejected."""
    with pytest.raises(ConduitConfigError, match="colour"):
        _load(tmp_path, overrides={"colour": "blue"})


def test_api_source_requires_base_url(tmp_path: Path) -> None:
    """Cross-field validation should require api_base_url for the api source."""
    with pytest.raises(ConduitConfigError, match="CONDUIT_API_BASE_URL"):
        _load(tmp_path, environ={"CONDUIT_SOURCE_KIND": "api"})


def test_campaign_enrichment_requires_llm_base_url(tmp_path: Path) -> None:
    """Cross-field validation should require llm_base_url for enrichment."""
    with pytest.raises(ConduitConfigError, match="CONDUIT_LLM_BASE_URL"):
        _load(tmp_path, environ={"CONDUIT_PIPELINE": "campaign_enrichment"})


def test_production_reads_secrets_manager(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Production settings should merge a JSON secret below environment variables."""
    captured: dict[str, object] = {}

    class _FakeSecretsClient:
        def get_secret_value(self, SecretId: str) -> dict[str, str]:
            captured["secret_id"] = SecretId
            payload = {"CONDUIT_API_KEY": "secret-key", "batch_size": 40, "unrelated": "x"}
            return {"SecretString": json.dumps(payload)}

    def _fake_client(region, profile):
        captured["region"] = region
        return _FakeSecretsClient()

    monkeypatch.setattr("core.settings_sources._create_secrets_client", _fake_client)
    environ = {
        "CONDUIT_ENVIRONMENT": "production",
        "CONDUIT_SECRET_ID": "conduit/prod",
        "CONDUIT_AWS_REGION": "eu-west-1",
        "CONDUIT_BATCH_SIZE": "60",
    }

    settings = _load(tmp_path, environ=environ)

    assert (
        settings.api_key == "secret-key"
        and settings.batch_size == 60
        and captured == {"secret_id": "conduit/prod", "region": "eu-west-1"}
    )


def test_settings_are_immutable(tmp_path: Path) -> None:
    """Settings should be frozen once loaded."""
    settings = _load(tmp_path)

    with pytest.raises(AttributeError):
        settings.batch_size = 5  # type: ignore[misc]


def test_dotenv_cannot_switch_environment(tmp_path: Path) -> None:
    """A .env file should not change the environment it was read under."""
    (tmp_path / ".env").write_text(
        "CONDUIT_ENVIRONMENT=production\nCONDUIT_BATCH_SIZE=11\n", encoding="utf-8"
    )

    settings = _load(tmp_path)

    assert settings.environment == "development" and settings.batch_size == 11
