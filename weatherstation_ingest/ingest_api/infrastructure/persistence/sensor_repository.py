"""Repositorio de sensores.

Operaciones atómicas sobre la tabla `sensors`. No hay read-modify-write
dentro de una misma transacción: la decisión de insertar o actualizar la
toma el reconciliador, y el índice único (station_id, remote_id) es el
árbitro cuando dos reportes compiten por el mismo sensor.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, Optional

from sqlalchemy import text

from ...core.domain import SensorDescriptor, SensorIdentity
from ...errors import PersistenceError
from .storage_guard import Deadline, StorageGuard

logger = logging.getLogger(__name__)

_SELECT_COLUMNS = (
    "id, station_id, remote_id, sensor_type, location, name, model, "
    "battery_level, signal_strength, enabled"
)


def _row_to_identity(row: Any) -> SensorIdentity:
    m = row._mapping
    return SensorIdentity(
        id=str(m["id"]),
        station_id=str(m["station_id"]),
        remote_id=m["remote_id"],
        kind=m["sensor_type"],
        location=m["location"],
        name=m["name"] or "",
        model=m["model"],
        battery_level=m["battery_level"],
        signal_strength=m["signal_strength"],
        enabled=bool(m["enabled"]) if m["enabled"] is not None else True,
    )


def _attribute_params(descriptor: SensorDescriptor) -> Dict[str, Any]:
    return {
        "sensor_type": descriptor.kind,
        "location": descriptor.location,
        "name": descriptor.name,
        "model": descriptor.model,
        "battery_level": descriptor.battery_level,
        "signal_strength": descriptor.signal_strength,
        "enabled": descriptor.enabled,
    }


class SensorRepository:
    """Sensores por (station_id, remote_id)."""

    def __init__(self, guard: StorageGuard):
        self._guard = guard

    def find(
        self,
        station_id: str,
        remote_id: str,
        deadline: Optional[Deadline] = None,
    ) -> Optional[SensorIdentity]:
        with self._guard.transaction(
            "sensor.find", deadline, station_id=station_id, remote_id=remote_id
        ) as conn:
            row = conn.execute(
                text(
                    f"SELECT {_SELECT_COLUMNS} FROM sensors "
                    "WHERE station_id = :station_id AND remote_id = :remote_id"
                ),
                {"station_id": station_id, "remote_id": remote_id},
            ).first()

        return _row_to_identity(row) if row else None

    def insert(
        self,
        station_id: str,
        descriptor: SensorDescriptor,
        deadline: Optional[Deadline] = None,
    ) -> SensorIdentity:
        """Crea el sensor con un id nuevo.

        Raises:
            ReconciliationConflict: otra llamada ya creó (station_id, remote_id)
        """
        sensor_id = str(uuid.uuid4())
        params = _attribute_params(descriptor)
        params.update(id=sensor_id, station_id=station_id, remote_id=descriptor.remote_id)

        with self._guard.transaction(
            "sensor.insert", deadline, station_id=station_id, remote_id=descriptor.remote_id
        ) as conn:
            conn.execute(
                text(
                    """
                    INSERT INTO sensors (
                        id, station_id, remote_id, sensor_type, location, name, model,
                        battery_level, signal_strength, enabled
                    )
                    VALUES (
                        :id, :station_id, :remote_id, :sensor_type, :location, :name, :model,
                        :battery_level, :signal_strength, :enabled
                    )
                    """
                ),
                params,
            )

        logger.info(
            "[Sensor] created station_id=%s remote_id=%s id=%s",
            station_id,
            descriptor.remote_id,
            sensor_id,
        )
        return SensorIdentity.from_descriptor(sensor_id, station_id, descriptor)

    def update(
        self,
        existing: SensorIdentity,
        descriptor: SensorDescriptor,
        deadline: Optional[Deadline] = None,
    ) -> SensorIdentity:
        """Sobrescribe los atributos mutables; id, station_id y remote_id no cambian."""
        params = _attribute_params(descriptor)
        params["id"] = existing.id

        with self._guard.transaction(
            "sensor.update", deadline, station_id=existing.station_id, remote_id=existing.remote_id
        ) as conn:
            result = conn.execute(
                text(
                    """
                    UPDATE sensors
                    SET sensor_type = :sensor_type,
                        location = :location,
                        name = :name,
                        model = :model,
                        battery_level = :battery_level,
                        signal_strength = :signal_strength,
                        enabled = :enabled,
                        updated_at = CURRENT_TIMESTAMP
                    WHERE id = :id
                    """
                ),
                params,
            )

        if result.rowcount == 0:
            raise PersistenceError(
                "sensor.update",
                {"station_id": existing.station_id, "remote_id": existing.remote_id},
                "sensor row not found",
            )

        return existing.with_attributes(descriptor)
