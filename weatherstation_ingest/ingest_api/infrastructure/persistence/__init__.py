"""Persistencia de estaciones, sensores y lecturas."""

from .reading_store import ReadingStore
from .schema import ensure_schema
from .sensor_repository import SensorRepository
from .station_repository import StationRepository, mask_pass_key
from .storage_guard import (
    CircuitState,
    Deadline,
    StorageGuard,
    StorageGuardConfig,
    is_unique_violation,
)

__all__ = [
    "CircuitState",
    "Deadline",
    "ReadingStore",
    "SensorRepository",
    "StationRepository",
    "StorageGuard",
    "StorageGuardConfig",
    "ensure_schema",
    "is_unique_violation",
    "mask_pass_key",
]
