"""Adapter para el protocolo "Ecowitt" (upload personalizado de GW1000/GW2000).

La estación envía unidades imperiales; se conservan junto a su
equivalente SI.
"""

from __future__ import annotations

from ...core.domain import CanonicalObservation, ParsedReport, StationDescriptor
from ..base import ParamReader, Params, ProtocolAdapter, collect_sensors
from ..units import fahrenheit_to_celsius, inches_to_mm, inhg_to_hpa, mph_to_kmh, mph_to_ms
from .sensors import ECOWITT_SENSORS

# Orden de prioridad: el firmware antiguo envía el '+' sin decodificar.
TIMESTAMP_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d+%H:%M:%S",
)


class EcowittAdapter(ProtocolAdapter):
    """Protocolo Ecowitt."""

    ENDPOINT = "/data/report"
    STATION_TYPE = "Ecowitt"

    def endpoint_path(self) -> str:
        return self.ENDPOINT

    def station_type(self) -> str:
        return self.STATION_TYPE

    def parse(self, params: Params) -> ParsedReport:
        reader = ParamReader(params)

        station = StationDescriptor(
            pass_key=reader.get("PASSKEY"),
            station_type=reader.get("stationtype"),
            model=reader.get("model"),
            freq=reader.get("freq"),
            interval=reader.get_int("interval"),
        )
        observation = self._parse_observation(reader)
        sensors, measurements = collect_sensors(reader, ECOWITT_SENSORS)

        return ParsedReport(
            observation=observation,
            station=station,
            sensors=sensors,
            measurements=measurements,
            issues=list(reader.issues),
        )

    def _parse_observation(self, reader: ParamReader) -> CanonicalObservation:
        obs = CanonicalObservation(
            date_utc=reader.get_timestamp("dateutc", TIMESTAMP_FORMATS),
            runtime=reader.get_int("runtime"),
            heap=reader.get_int("heap"),
        )

        # Temperatura (°F)
        obs.temp_in_f, obs.temp_in_c = reader.get_dual("tempinf", fahrenheit_to_celsius)
        obs.humidity_in = reader.get_int("humidityin")
        obs.temp_out_f, obs.temp_out_c = reader.get_dual("tempf", fahrenheit_to_celsius)
        obs.humidity_out = reader.get_int("humidity")

        # Presión (inHg)
        obs.barom_rel_in, obs.barom_rel_hpa = reader.get_dual("baromrelin", inhg_to_hpa)
        obs.barom_abs_in, obs.barom_abs_hpa = reader.get_dual("baromabsin", inhg_to_hpa)

        # Viento (mph)
        obs.wind_dir = reader.get_int("winddir")
        obs.wind_speed_mph, obs.wind_speed_ms = reader.get_dual("windspeedmph", mph_to_ms)
        obs.wind_gust_mph, obs.wind_gust_ms = reader.get_dual("windgustmph", mph_to_ms)
        obs.max_daily_gust_mph, obs.max_daily_gust_ms = reader.get_dual("maxdailygust", mph_to_ms)
        obs.wind_speed_kmh = mph_to_kmh(obs.wind_speed_mph)
        obs.wind_gust_kmh = mph_to_kmh(obs.wind_gust_mph)
        obs.max_daily_gust_kmh = mph_to_kmh(obs.max_daily_gust_mph)

        obs.solar_radiation = reader.get_float("solarradiation")
        obs.uv = reader.get_int("uv")

        # Lluvia (in)
        obs.rain_rate_in, obs.rain_rate_mm_h = reader.get_dual("rainratein", inches_to_mm)
        obs.event_rain_in, obs.event_rain_mm = reader.get_dual("eventrainin", inches_to_mm)
        obs.hourly_rain_in, obs.hourly_rain_mm = reader.get_dual("hourlyrainin", inches_to_mm)
        obs.daily_rain_in, obs.daily_rain_mm = reader.get_dual("dailyrainin", inches_to_mm)
        obs.weekly_rain_in, obs.weekly_rain_mm = reader.get_dual("weeklyrainin", inches_to_mm)
        obs.monthly_rain_in, obs.monthly_rain_mm = reader.get_dual("monthlyrainin", inches_to_mm)
        obs.yearly_rain_in, obs.yearly_rain_mm = reader.get_dual("yearlyrainin", inches_to_mm)
        obs.total_rain_in, obs.total_rain_mm = reader.get_dual("totalrainin", inches_to_mm)

        obs.vpd = reader.get_float("vpd")
        obs.wh65_batt = reader.get_int("wh65batt")

        return obs
