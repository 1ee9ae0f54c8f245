"""Reading Store: historial append-only de lecturas por sensor."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, bindparam, text

from ...core.domain import SensorIdentity, SensorReading
from .storage_guard import Deadline, StorageGuard

logger = logging.getLogger(__name__)

_INSERT_READING = text(
    """
    INSERT INTO sensor_readings (id, sensor_id, value, date_utc, created_at)
    VALUES (:id, :sensor_id, :value, :date_utc, :created_at)
    """
).bindparams(
    bindparam("date_utc", type_=DateTime(timezone=True)),
    bindparam("created_at", type_=DateTime(timezone=True)),
)


class ReadingStore:
    """Sólo agrega filas: nunca actualiza ni borra lecturas."""

    def __init__(self, guard: StorageGuard):
        self._guard = guard

    def append(
        self,
        sensor: SensorIdentity,
        value: float,
        observed_at: datetime,
        deadline: Optional[Deadline] = None,
    ) -> SensorReading:
        if observed_at.tzinfo is None:
            observed_at = observed_at.replace(tzinfo=timezone.utc)

        reading = SensorReading(
            id=str(uuid.uuid4()),
            sensor_id=sensor.id,
            value=float(value),
            observed_at=observed_at,
        )

        with self._guard.transaction(
            "reading.append", deadline, sensor_id=sensor.id, remote_id=sensor.remote_id
        ) as conn:
            conn.execute(
                _INSERT_READING,
                {
                    "id": reading.id,
                    "sensor_id": reading.sensor_id,
                    "value": reading.value,
                    "date_utc": reading.observed_at,
                    "created_at": reading.stored_at,
                },
            )

        logger.debug(
            "[Reading] appended sensor_id=%s value=%s observed_at=%s",
            sensor.id,
            reading.value,
            reading.observed_at.isoformat(),
        )
        return reading
