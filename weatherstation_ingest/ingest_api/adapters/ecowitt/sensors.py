"""Catálogo de sensores Ecowitt (GW1000/GW2000 + array WH65)."""

from __future__ import annotations

from typing import Tuple

from ...core.domain import SensorKind
from ..base import SensorSpec
from ..units import fahrenheit_to_celsius, inches_to_mm, inhg_to_hpa, mph_to_ms

INDOOR = "Indoor"
OUTDOOR = "Outdoor"


ECOWITT_SENSORS: Tuple[SensorSpec, ...] = (
    # Interior
    SensorSpec("tempinf", SensorKind.TEMPERATURE, INDOOR, "Temperature", fahrenheit_to_celsius),
    SensorSpec("humidityin", SensorKind.HUMIDITY, INDOOR, "Humidity", integer=True),
    SensorSpec("baromrelin", SensorKind.PRESSURE_RELATIVE, INDOOR, "Barometric Pressure (Relative)", inhg_to_hpa),
    SensorSpec("baromabsin", SensorKind.PRESSURE_ABSOLUTE, INDOOR, "Barometric Pressure (Absolute)", inhg_to_hpa),
    # Exterior
    SensorSpec("tempf", SensorKind.TEMPERATURE, OUTDOOR, "Temperature", fahrenheit_to_celsius),
    SensorSpec("humidity", SensorKind.HUMIDITY, OUTDOOR, "Humidity", integer=True),
    SensorSpec("winddir", SensorKind.WIND_DIRECTION, OUTDOOR, "Wind Direction", integer=True),
    SensorSpec("windspeedmph", SensorKind.WIND_SPEED, OUTDOOR, "Wind Speed", mph_to_ms),
    SensorSpec("windgustmph", SensorKind.WIND_GUST, OUTDOOR, "Wind Gust", mph_to_ms),
    SensorSpec("maxdailygust", SensorKind.WIND_GUST_MAX_DAILY, OUTDOOR, "Wind Gust (Max Daily)", mph_to_ms),
    SensorSpec("solarradiation", SensorKind.SOLAR_RADIATION, OUTDOOR, "Solar Radiation"),
    SensorSpec("uv", SensorKind.UV_INDEX, OUTDOOR, "UV Index", integer=True),
    SensorSpec("rainratein", SensorKind.RAINFALL_RATE, OUTDOOR, "Rain Rate", inches_to_mm),
    SensorSpec("eventrainin", SensorKind.RAINFALL_EVENT, OUTDOOR, "Rain (Event)", inches_to_mm),
    SensorSpec("hourlyrainin", SensorKind.RAINFALL_HOURLY, OUTDOOR, "Rain (Hourly)", inches_to_mm),
    SensorSpec("dailyrainin", SensorKind.RAINFALL_DAILY, OUTDOOR, "Rain (Daily)", inches_to_mm),
    SensorSpec("weeklyrainin", SensorKind.RAINFALL_WEEKLY, OUTDOOR, "Rain (Weekly)", inches_to_mm),
    SensorSpec("monthlyrainin", SensorKind.RAINFALL_MONTHLY, OUTDOOR, "Rain (Monthly)", inches_to_mm),
    SensorSpec("yearlyrainin", SensorKind.RAINFALL_YEARLY, OUTDOOR, "Rain (Yearly)", inches_to_mm),
    SensorSpec("totalrainin", SensorKind.RAINFALL_TOTAL, OUTDOOR, "Rain (Total)", inches_to_mm),
    SensorSpec("vpd", SensorKind.VPD, OUTDOOR, "Vapour Pressure Deficit"),
    SensorSpec("wh65batt", SensorKind.BATTERY, OUTDOOR, "Battery (Outdoor Device)", integer=True),
)
