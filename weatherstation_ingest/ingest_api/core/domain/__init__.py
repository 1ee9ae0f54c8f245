"""Domain layer - Modelos de estación, sensor y observación."""

from .observation import CanonicalObservation
from .report import FieldIssue, ParsedReport
from .sensor import SensorDescriptor, SensorIdentity, SensorKind, SensorReading
from .station import StationDescriptor

__all__ = [
    "CanonicalObservation",
    "FieldIssue",
    "ParsedReport",
    "SensorDescriptor",
    "SensorIdentity",
    "SensorKind",
    "SensorReading",
    "StationDescriptor",
]
