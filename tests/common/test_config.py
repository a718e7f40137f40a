from __future__ import annotations

import logging
import os

import pytest

from pharmasync.config import (
    ConfigurationError,
    MainStoreConfig,
    MissingConfigurationError,
    configure_logging,
    get_bus_config,
    get_sync_config,
    level_from_environment,
    require_env_vars,
)
from pharmasync.config.env import env_flag


def test_require_env_vars_returns_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "value")

    result = require_env_vars(["EXAMPLE_VAR"])

    assert result["EXAMPLE_VAR"] == "value"


def test_require_env_vars_raises_when_any_missing(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MISSING_VAR", raising=False)

    with pytest.raises(MissingConfigurationError) as exc:
        require_env_vars(["MISSING_VAR"])

    assert "MISSING_VAR" in str(exc.value)


def test_require_env_vars_handles_blank_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "   ")

    with pytest.raises(MissingConfigurationError):
        require_env_vars(["EXAMPLE_VAR"])


def test_sync_config_requires_tenant(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("PHARMASYNC_TENANT_ID", raising=False)

    with pytest.raises(MissingConfigurationError):
        get_sync_config()


def test_sync_config_reads_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PHARMASYNC_TENANT_ID", "hospital-9")
    monkeypatch.setenv("PHARMASYNC_COMPLIANCE_WINDOW_DAYS", "7")
    monkeypatch.setenv("PHARMASYNC_INVENTORY_TOLERANCE", "0.25")
    monkeypatch.delenv("PHARMASYNC_SERVICE_NAME", raising=False)

    config = get_sync_config()

    assert config.tenant_id == "hospital-9"
    assert config.compliance_window_days == 7
    assert config.inventory_tolerance == pytest.approx(0.25)
    assert config.service_name == "pharmacy"


def test_sync_config_rejects_malformed_numbers(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PHARMASYNC_TENANT_ID", "hospital-9")
    monkeypatch.setenv("PHARMASYNC_COMPLIANCE_WINDOW_DAYS", "a week")

    with pytest.raises(ConfigurationError):
        get_sync_config()


def test_bus_config_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "REDIS_URL",
        "PHARMASYNC_CONSUMER_GROUP",
        "PHARMASYNC_POLL_TIMEOUT_MS",
        "PHARMASYNC_CLAIM_IDLE_MS",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("PHARMASYNC_CONSUMER_NAME", "worker-1")

    config = get_bus_config()

    assert config.redis_url == "redis://localhost:6379/0"
    assert config.consumer_group == "pharmacy-sync-group"
    assert config.consumer_name == "worker-1"
    assert config.poll_timeout_ms == 5000
    assert config.claim_idle_ms == 60_000
    assert config.topics.dead_letter == "pharmacy.dlq"
    assert config.topics.audit_events not in config.topics.inbound()


def test_bus_config_claim_idle_zero_disables_claiming(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PHARMASYNC_CONSUMER_NAME", "worker-1")
    monkeypatch.setenv("PHARMASYNC_CLAIM_IDLE_MS", "0")

    assert get_bus_config().claim_idle_ms is None


def test_main_store_config_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MAIN_STORE_BASE_URL", "https://main.example")
    monkeypatch.setenv("PHARMASYNC_TENANT_ID", "hospital-1")
    monkeypatch.setenv("MAIN_STORE_API_TOKEN", "")
    monkeypatch.setenv("MAIN_STORE_TIMEOUT_SECONDS", "2.5")

    config = MainStoreConfig.from_environment()

    assert config.base_url == "https://main.example"
    assert config.api_token is None
    assert config.timeout_seconds == pytest.approx(2.5)


def test_main_store_config_requires_base_url(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MAIN_STORE_BASE_URL", raising=False)
    monkeypatch.setenv("PHARMASYNC_TENANT_ID", "hospital-1")

    with pytest.raises(MissingConfigurationError) as exc:
        MainStoreConfig.from_environment()

    assert "MAIN_STORE_BASE_URL" in str(exc.value)
    assert os.getenv("PHARMASYNC_TENANT_ID") == "hospital-1"


def test_malformed_number_names_the_variable(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PHARMASYNC_TENANT_ID", "hospital-9")
    monkeypatch.setenv("PHARMASYNC_INVENTORY_TOLERANCE", "ten percent")

    with pytest.raises(ConfigurationError) as exc:
        get_sync_config()

    assert exc.value.variables == ("PHARMASYNC_INVENTORY_TOLERANCE",)


@pytest.mark.parametrize(
    ("raw", "expected"), [("1", True), ("TRUE", True), ("off", False), ("", False)]
)
def test_env_flag(monkeypatch: pytest.MonkeyPatch, raw: str, expected: bool) -> None:
    monkeypatch.setenv("EXAMPLE_FLAG", raw)

    assert env_flag("EXAMPLE_FLAG") is expected


def test_env_flag_rejects_unknown_words(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_FLAG", "maybe")

    with pytest.raises(ConfigurationError):
        env_flag("EXAMPLE_FLAG")


def test_level_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PHARMASYNC_LOG_LEVEL", "debug")
    assert level_from_environment() == logging.DEBUG

    monkeypatch.setenv("PHARMASYNC_LOG_LEVEL", "chatty")
    with pytest.raises(ConfigurationError):
        level_from_environment()

    monkeypatch.delenv("PHARMASYNC_LOG_LEVEL")
    assert level_from_environment(logging.WARNING) == logging.WARNING


def test_configure_logging_quiets_http_client() -> None:
    configure_logging(level=logging.INFO, force=True)
    assert logging.getLogger("httpx").level == logging.WARNING

    configure_logging(level=logging.DEBUG, force=True)
    assert logging.getLogger("httpx").level == logging.DEBUG
