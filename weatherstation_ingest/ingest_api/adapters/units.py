"""Conversión de unidades imperiales a SI.

Las constantes deben coincidir exactamente con las del firmware de la
estación.
"""

from __future__ import annotations

INHG_TO_HPA = 33.8639
MPH_TO_MS = 0.44704
MPH_TO_KMH = 1.60934
INCH_TO_MM = 25.4


def fahrenheit_to_celsius(fahrenheit: float) -> float:
    return (fahrenheit - 32) * 5 / 9


def inhg_to_hpa(inches_of_mercury: float) -> float:
    return inches_of_mercury * INHG_TO_HPA


def mph_to_ms(miles_per_hour: float) -> float:
    return miles_per_hour * MPH_TO_MS


def mph_to_kmh(miles_per_hour: float) -> float:
    return miles_per_hour * MPH_TO_KMH


def inches_to_mm(inches: float) -> float:
    return inches * INCH_TO_MM


def identity(value: float) -> float:
    return value
