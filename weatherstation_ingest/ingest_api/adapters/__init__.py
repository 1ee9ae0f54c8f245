"""Adapters de protocolo de estación y su registro."""

from .base import ParamReader, ProtocolAdapter, SensorSpec, collect_sensors, first_value
from .ecowitt import EcowittAdapter
from .registry import AdapterRegistry, build_default_registry, get_registry
from .wunderground import WundergroundAdapter

__all__ = [
    "AdapterRegistry",
    "EcowittAdapter",
    "ParamReader",
    "ProtocolAdapter",
    "SensorSpec",
    "WundergroundAdapter",
    "build_default_registry",
    "collect_sensors",
    "first_value",
    "get_registry",
]
