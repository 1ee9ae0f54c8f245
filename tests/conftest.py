"""Fixtures compartidas: BD SQLite en archivo por test + repositorios."""

from typing import Dict

import pytest
from sqlalchemy import text

from weatherstation_ingest.common.config import Settings
from weatherstation_ingest.common.db import build_engine
from weatherstation_ingest.ingest_api.core.domain import SensorDescriptor, StationDescriptor
from weatherstation_ingest.ingest_api.infrastructure.persistence import (
    ReadingStore,
    SensorRepository,
    StationRepository,
    StorageGuard,
    StorageGuardConfig,
    ensure_schema,
)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'ingest.db'}",
        report_deadline_seconds=5.0,
        strict_parsing=False,
        auto_migrate=True,
        log_level="INFO",
    )


@pytest.fixture
def engine(settings):
    """Un archivo por test: los threads de los tests de concurrencia comparten la BD."""
    eng = build_engine(settings.database_url)
    ensure_schema(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def guard(engine) -> StorageGuard:
    return StorageGuard(
        engine,
        config=StorageGuardConfig(failure_threshold=3, recovery_timeout_seconds=30.0, success_threshold=1),
    )


@pytest.fixture
def station_repository(guard) -> StationRepository:
    return StationRepository(guard)


@pytest.fixture
def sensor_repository(guard) -> SensorRepository:
    return SensorRepository(guard)


@pytest.fixture
def reading_store(guard) -> ReadingStore:
    return ReadingStore(guard)


@pytest.fixture
def station_id(station_repository) -> str:
    return station_repository.ensure_station(
        StationDescriptor(pass_key="A1B2C3D4E5F6", station_type="EasyWeatherPro_V5.1.6", model="GW2000A")
    )


@pytest.fixture
def descriptors() -> Dict[str, SensorDescriptor]:
    return {
        "tempf": SensorDescriptor("tempf", "Temperature", "Outdoor", "Temperature"),
        "humidity": SensorDescriptor("humidity", "Humidity", "Outdoor", "Humidity"),
        "baromrelin": SensorDescriptor("baromrelin", "PressureRelative", "Indoor", "Barometric Pressure"),
    }


@pytest.fixture
def ecowitt_params() -> Dict[str, str]:
    """Reporte real de un GW2000A (valores redondeados)."""
    return {
        "PASSKEY": "A1B2C3D4E5F6",
        "stationtype": "EasyWeatherPro_V5.1.6",
        "runtime": "123456",
        "heap": "98765",
        "dateutc": "2024-01-15 10:30:00",
        "tempinf": "72.5",
        "humidityin": "45",
        "baromrelin": "29.92",
        "baromabsin": "29.85",
        "tempf": "68.0",
        "humidity": "60",
        "winddir": "180",
        "windspeedmph": "10.0",
        "windgustmph": "15.0",
        "maxdailygust": "20.0",
        "solarradiation": "500.5",
        "uv": "5",
        "rainratein": "0.1",
        "eventrainin": "0.2",
        "hourlyrainin": "0.1",
        "dailyrainin": "0.5",
        "weeklyrainin": "1.0",
        "monthlyrainin": "2.0",
        "yearlyrainin": "10.0",
        "totalrainin": "50.0",
        "vpd": "0.8",
        "wh65batt": "0",
        "freq": "868M",
        "model": "GW2000A",
        "interval": "60",
    }


@pytest.fixture
def count_rows(engine):
    def _count(table: str) -> int:
        with engine.connect() as conn:
            return int(conn.execute(text(f"SELECT COUNT(*) FROM {table}")).scalar_one())

    return _count
