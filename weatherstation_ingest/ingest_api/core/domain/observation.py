"""Observación canónica: todas las magnitudes en unidad nativa y en SI."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Optional


@dataclass
class CanonicalObservation:
    """Medidas normalizadas de un reporte.

    Los campos ausentes o malformados quedan en cero; `date_utc` queda en
    None cuando el timestamp no se pudo parsear.
    """
    date_utc: Optional[datetime] = None

    # Sistema
    runtime: int = 0
    heap: int = 0

    # Interior
    temp_in_f: float = 0.0
    temp_in_c: float = 0.0
    humidity_in: int = 0

    # Exterior
    temp_out_f: float = 0.0
    temp_out_c: float = 0.0
    humidity_out: int = 0
    dew_point_f: float = 0.0
    dew_point_c: float = 0.0

    # Presión barométrica
    barom_rel_in: float = 0.0
    barom_rel_hpa: float = 0.0
    barom_abs_in: float = 0.0
    barom_abs_hpa: float = 0.0

    # Viento
    wind_dir: int = 0
    wind_speed_mph: float = 0.0
    wind_speed_ms: float = 0.0
    wind_speed_kmh: float = 0.0
    wind_gust_mph: float = 0.0
    wind_gust_ms: float = 0.0
    wind_gust_kmh: float = 0.0
    max_daily_gust_mph: float = 0.0
    max_daily_gust_ms: float = 0.0
    max_daily_gust_kmh: float = 0.0

    # Solar & UV
    solar_radiation: float = 0.0
    uv: int = 0

    # Lluvia
    rain_rate_in: float = 0.0
    rain_rate_mm_h: float = 0.0
    event_rain_in: float = 0.0
    event_rain_mm: float = 0.0
    hourly_rain_in: float = 0.0
    hourly_rain_mm: float = 0.0
    daily_rain_in: float = 0.0
    daily_rain_mm: float = 0.0
    weekly_rain_in: float = 0.0
    weekly_rain_mm: float = 0.0
    monthly_rain_in: float = 0.0
    monthly_rain_mm: float = 0.0
    yearly_rain_in: float = 0.0
    yearly_rain_mm: float = 0.0
    total_rain_in: float = 0.0
    total_rain_mm: float = 0.0

    # Otros
    vpd: float = 0.0
    wh65_batt: int = 0

    def to_dict(self) -> dict:
        data = asdict(self)
        data["date_utc"] = self.date_utc.isoformat() if self.date_utc else None
        return data
