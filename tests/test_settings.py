"""Tests de configuración por variables de entorno."""

import pytest

from weatherstation_ingest.common.config import get_settings
from weatherstation_ingest.ingest_api.infrastructure.persistence import StorageGuardConfig


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in (
        "DATABASE_URL",
        "INGEST_REPORT_DEADLINE_SECONDS",
        "INGEST_STRICT_PARSING",
        "INGEST_AUTO_MIGRATE",
        "LOG_LEVEL",
        "CB_FAILURE_THRESHOLD",
        "CB_RECOVERY_TIMEOUT",
        "CB_SUCCESS_THRESHOLD",
    ):
        # setenv + delenv: monkeypatch restaura también lo que escriba load_dotenv
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.setenv("WEATHER_INGEST_ENV_FILE", str(tmp_path / "missing.env"))


def test_defaults():
    s = get_settings()

    assert s.database_url == "sqlite:///./weather_ingest.db"
    assert s.report_deadline_seconds == 5.0
    assert s.strict_parsing is False
    assert s.auto_migrate is True
    assert s.log_level == "INFO"


def test_overrides(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql+psycopg2://u:p@db/weather")
    monkeypatch.setenv("INGEST_REPORT_DEADLINE_SECONDS", "2.5")
    monkeypatch.setenv("INGEST_STRICT_PARSING", "true")
    monkeypatch.setenv("INGEST_AUTO_MIGRATE", "0")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    s = get_settings()

    assert s.database_url == "postgresql+psycopg2://u:p@db/weather"
    assert s.report_deadline_seconds == 2.5
    assert s.strict_parsing is True
    assert s.auto_migrate is False
    assert s.log_level == "DEBUG"


@pytest.mark.parametrize("raw", ["abc", "-1", "0", ""])
def test_invalid_deadline_falls_back_to_default(monkeypatch, raw):
    monkeypatch.setenv("INGEST_REPORT_DEADLINE_SECONDS", raw)
    assert get_settings().report_deadline_seconds == 5.0


def test_env_file_does_not_override_real_environment(monkeypatch, tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("INGEST_STRICT_PARSING=1\nLOG_LEVEL=WARNING\n", encoding="utf-8")
    monkeypatch.setenv("WEATHER_INGEST_ENV_FILE", str(env_file))
    monkeypatch.setenv("LOG_LEVEL", "ERROR")

    s = get_settings()

    assert s.strict_parsing is True
    assert s.log_level == "ERROR"


def test_circuit_breaker_config_from_env(monkeypatch):
    monkeypatch.setenv("CB_FAILURE_THRESHOLD", "7")
    monkeypatch.setenv("CB_RECOVERY_TIMEOUT", "12.5")

    cfg = StorageGuardConfig.from_env()

    assert cfg.failure_threshold == 7
    assert cfg.recovery_timeout_seconds == 12.5
    assert cfg.success_threshold == 2


@pytest.mark.parametrize("raw", ["abc", "1.5", "0", "-3"])
def test_circuit_breaker_config_malformed_falls_back_to_default(monkeypatch, raw):
    monkeypatch.setenv("CB_FAILURE_THRESHOLD", raw)
    monkeypatch.setenv("CB_RECOVERY_TIMEOUT", raw if raw != "1.5" else "soon")
    monkeypatch.setenv("CB_SUCCESS_THRESHOLD", raw)

    cfg = StorageGuardConfig.from_env()

    assert cfg.failure_threshold == 5
    assert cfg.recovery_timeout_seconds == 30.0
    assert cfg.success_threshold == 2
