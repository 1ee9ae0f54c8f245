from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


def _default_env_file() -> str:
    # .env junto al directorio de trabajo del proceso (docker / systemd).
    return str(Path.cwd() / ".env")


def read_float(name: str, default: float) -> float:
    """Float positivo de env; vacío, malformado o <= 0 devuelve el default."""
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        parsed = float(value)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def read_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        parsed = int(value)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    database_url: str

    report_deadline_seconds: float
    strict_parsing: bool
    auto_migrate: bool

    log_level: str


def get_settings() -> Settings:
    # Load env file (if present) but still allow overriding via real environment variables.
    env_file = os.getenv("WEATHER_INGEST_ENV_FILE", _default_env_file())
    if env_file and Path(env_file).exists():
        load_dotenv(env_file, override=False)

    database_url = os.getenv("DATABASE_URL", "sqlite:///./weather_ingest.db")

    # Presupuesto por reporte: todas las llamadas a la BD de un mismo reporte
    # comparten este deadline.
    report_deadline_seconds = read_float("INGEST_REPORT_DEADLINE_SECONDS", 5.0)

    # Modo estricto: rechaza reportes con campos malformados en vez de
    # ponerlos a cero.
    strict_parsing = _read_bool("INGEST_STRICT_PARSING", False)
    auto_migrate = _read_bool("INGEST_AUTO_MIGRATE", True)

    log_level = (os.getenv("LOG_LEVEL") or "INFO").strip().upper() or "INFO"

    return Settings(
        database_url=database_url,
        report_deadline_seconds=report_deadline_seconds,
        strict_parsing=strict_parsing,
        auto_migrate=auto_migrate,
        log_level=log_level,
    )
