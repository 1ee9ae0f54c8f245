"""Descriptor de estación."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class StationDescriptor:
    """Estación tal como se declara en un reporte.

    `pass_key` es el token del fabricante y la identidad de la estación.
    """
    pass_key: str
    station_type: str = ""
    model: str = ""
    freq: str = ""
    interval: int = 0
    mode: str = "push"
