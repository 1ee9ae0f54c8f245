"""Resultado del parseo de un reporte."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

from .observation import CanonicalObservation
from .sensor import SensorDescriptor
from .station import StationDescriptor


@dataclass(frozen=True)
class FieldIssue:
    """Campo presente pero no parseable; se registra, nunca se lanza."""
    key: str
    raw: str
    reason: str


@dataclass
class ParsedReport:
    """Salida de ProtocolAdapter.parse.

    `measurements` mapea remote_id -> valor en unidad SI, sólo para los
    sensores cuyo valor se pudo parsear.
    """
    observation: CanonicalObservation
    station: StationDescriptor
    sensors: Dict[str, SensorDescriptor] = field(default_factory=dict)
    measurements: Dict[str, float] = field(default_factory=dict)
    issues: List[FieldIssue] = field(default_factory=list)
