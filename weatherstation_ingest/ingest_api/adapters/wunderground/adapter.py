"""Adapter para el protocolo de upload de Weather Underground (PWS).

Muchas consolas (Ambient, Davis vía WeatherLink, Ecowitt en modo WU)
hablan este protocolo además del propio.
"""

from __future__ import annotations

from typing import Tuple

from ...core.domain import CanonicalObservation, ParsedReport, SensorKind, StationDescriptor
from ..base import ParamReader, Params, ProtocolAdapter, SensorSpec, collect_sensors
from ..ecowitt.adapter import TIMESTAMP_FORMATS
from ..units import fahrenheit_to_celsius, inches_to_mm, inhg_to_hpa, mph_to_kmh, mph_to_ms

WUNDERGROUND_SENSORS: Tuple[SensorSpec, ...] = (
    SensorSpec("indoortempf", SensorKind.TEMPERATURE, "Indoor", "Temperature", fahrenheit_to_celsius),
    SensorSpec("indoorhumidity", SensorKind.HUMIDITY, "Indoor", "Humidity", integer=True),
    SensorSpec("baromin", SensorKind.PRESSURE_RELATIVE, "Indoor", "Barometric Pressure", inhg_to_hpa),
    SensorSpec("tempf", SensorKind.TEMPERATURE, "Outdoor", "Temperature", fahrenheit_to_celsius),
    SensorSpec("humidity", SensorKind.HUMIDITY, "Outdoor", "Humidity", integer=True),
    SensorSpec("dewptf", SensorKind.DEW_POINT, "Outdoor", "Dew Point", fahrenheit_to_celsius),
    SensorSpec("winddir", SensorKind.WIND_DIRECTION, "Outdoor", "Wind Direction", integer=True),
    SensorSpec("windspeedmph", SensorKind.WIND_SPEED, "Outdoor", "Wind Speed", mph_to_ms),
    SensorSpec("windgustmph", SensorKind.WIND_GUST, "Outdoor", "Wind Gust", mph_to_ms),
    SensorSpec("rainin", SensorKind.RAINFALL_HOURLY, "Outdoor", "Rain (Hourly)", inches_to_mm),
    SensorSpec("dailyrainin", SensorKind.RAINFALL_DAILY, "Outdoor", "Rain (Daily)", inches_to_mm),
    SensorSpec("weeklyrainin", SensorKind.RAINFALL_WEEKLY, "Outdoor", "Rain (Weekly)", inches_to_mm),
    SensorSpec("monthlyrainin", SensorKind.RAINFALL_MONTHLY, "Outdoor", "Rain (Monthly)", inches_to_mm),
    SensorSpec("yearlyrainin", SensorKind.RAINFALL_YEARLY, "Outdoor", "Rain (Yearly)", inches_to_mm),
    SensorSpec("solarradiation", SensorKind.SOLAR_RADIATION, "Outdoor", "Solar Radiation"),
    SensorSpec("UV", SensorKind.UV_INDEX, "Outdoor", "UV Index", integer=True),
)


class WundergroundAdapter(ProtocolAdapter):
    """Protocolo Weather Underground."""

    ENDPOINT = "/weatherstation/updateweatherstation.php"
    STATION_TYPE = "WeatherUnderground"

    def endpoint_path(self) -> str:
        return self.ENDPOINT

    def station_type(self) -> str:
        return self.STATION_TYPE

    def parse(self, params: Params) -> ParsedReport:
        reader = ParamReader(params)

        # El ID de la PWS es la identidad; PASSWORD nunca se guarda.
        station = StationDescriptor(
            pass_key=reader.get("ID"),
            station_type=reader.get("softwaretype"),
        )

        obs = CanonicalObservation()
        # "now" = hora de recepción; se resuelve en el pipeline.
        if reader.get("dateutc").lower() != "now":
            obs.date_utc = reader.get_timestamp("dateutc", TIMESTAMP_FORMATS)

        obs.temp_in_f, obs.temp_in_c = reader.get_dual("indoortempf", fahrenheit_to_celsius)
        obs.humidity_in = reader.get_int("indoorhumidity")
        obs.temp_out_f, obs.temp_out_c = reader.get_dual("tempf", fahrenheit_to_celsius)
        obs.humidity_out = reader.get_int("humidity")
        obs.dew_point_f, obs.dew_point_c = reader.get_dual("dewptf", fahrenheit_to_celsius)

        obs.barom_rel_in, obs.barom_rel_hpa = reader.get_dual("baromin", inhg_to_hpa)

        obs.wind_dir = reader.get_int("winddir")
        obs.wind_speed_mph, obs.wind_speed_ms = reader.get_dual("windspeedmph", mph_to_ms)
        obs.wind_gust_mph, obs.wind_gust_ms = reader.get_dual("windgustmph", mph_to_ms)
        obs.wind_speed_kmh = mph_to_kmh(obs.wind_speed_mph)
        obs.wind_gust_kmh = mph_to_kmh(obs.wind_gust_mph)

        obs.hourly_rain_in, obs.hourly_rain_mm = reader.get_dual("rainin", inches_to_mm)
        obs.daily_rain_in, obs.daily_rain_mm = reader.get_dual("dailyrainin", inches_to_mm)
        obs.weekly_rain_in, obs.weekly_rain_mm = reader.get_dual("weeklyrainin", inches_to_mm)
        obs.monthly_rain_in, obs.monthly_rain_mm = reader.get_dual("monthlyrainin", inches_to_mm)
        obs.yearly_rain_in, obs.yearly_rain_mm = reader.get_dual("yearlyrainin", inches_to_mm)

        obs.solar_radiation = reader.get_float("solarradiation")
        obs.uv = reader.get_int("UV")

        sensors, measurements = collect_sensors(reader, WUNDERGROUND_SENSORS)

        return ParsedReport(
            observation=obs,
            station=station,
            sensors=sensors,
            measurements=measurements,
            issues=list(reader.issues),
        )
