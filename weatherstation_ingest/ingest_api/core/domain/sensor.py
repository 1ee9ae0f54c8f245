"""Modelos de sensor: descriptor efímero, identidad persistente y lectura."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class SensorKind(str, Enum):
    """Tipos de sensor estándar."""
    TEMPERATURE = "Temperature"
    HUMIDITY = "Humidity"
    DEW_POINT = "DewPoint"
    PRESSURE_RELATIVE = "PressureRelative"
    PRESSURE_ABSOLUTE = "PressureAbsolute"
    WIND_DIRECTION = "WindDirection"
    WIND_SPEED = "WindSpeed"
    WIND_GUST = "WindGust"
    WIND_GUST_MAX_DAILY = "WindGustMaxDaily"
    SOLAR_RADIATION = "SolarRadiation"
    UV_INDEX = "UVIndex"
    RAINFALL_RATE = "RainfallRate"
    RAINFALL_EVENT = "RainfallEvent"
    RAINFALL_HOURLY = "RainfallHourly"
    RAINFALL_DAILY = "RainfallDaily"
    RAINFALL_WEEKLY = "RainfallWeekly"
    RAINFALL_MONTHLY = "RainfallMonthly"
    RAINFALL_YEARLY = "RainfallYearly"
    RAINFALL_TOTAL = "RainfallTotal"
    VPD = "VPD"
    BATTERY = "Battery"


@dataclass(frozen=True)
class SensorDescriptor:
    """Sensor tal como lo describe un reporte.

    Se reconstruye en cada reporte; `remote_id` sólo es único dentro de
    la estación que lo envía.
    """
    remote_id: str
    kind: str
    location: str
    name: str = ""
    model: Optional[str] = None
    battery_level: Optional[int] = None
    signal_strength: Optional[int] = None
    enabled: bool = True


@dataclass(frozen=True)
class SensorIdentity:
    """Fila persistente de sensor.

    (station_id, remote_id) es único e inmutable; el resto de atributos se
    sobrescribe en cada reconciliación.
    """
    id: str
    station_id: str
    remote_id: str
    kind: str
    location: str
    name: str = ""
    model: Optional[str] = None
    battery_level: Optional[int] = None
    signal_strength: Optional[int] = None
    enabled: bool = True

    @classmethod
    def from_descriptor(
        cls,
        sensor_id: str,
        station_id: str,
        descriptor: SensorDescriptor,
    ) -> "SensorIdentity":
        return cls(
            id=sensor_id,
            station_id=station_id,
            remote_id=descriptor.remote_id,
            kind=descriptor.kind,
            location=descriptor.location,
            name=descriptor.name,
            model=descriptor.model,
            battery_level=descriptor.battery_level,
            signal_strength=descriptor.signal_strength,
            enabled=descriptor.enabled,
        )

    def with_attributes(self, descriptor: SensorDescriptor) -> "SensorIdentity":
        """Copia con los atributos mutables del descriptor; id y binding intactos."""
        return replace(
            self,
            kind=descriptor.kind,
            location=descriptor.location,
            name=descriptor.name,
            model=descriptor.model,
            battery_level=descriptor.battery_level,
            signal_strength=descriptor.signal_strength,
            enabled=descriptor.enabled,
        )


@dataclass(frozen=True)
class SensorReading:
    """Lectura almacenada. Se crea una vez y nunca se modifica."""
    id: str
    sensor_id: str
    value: float
    observed_at: datetime
    stored_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
