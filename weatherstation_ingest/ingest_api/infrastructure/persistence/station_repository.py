"""Repositorio de estaciones."""

from __future__ import annotations

import logging
import uuid
from typing import Optional

from sqlalchemy import text

from ...core.domain import StationDescriptor
from ...errors import PersistenceError
from .storage_guard import Deadline, StorageGuard

logger = logging.getLogger(__name__)


def mask_pass_key(pass_key: str) -> str:
    # El pass_key es un secreto del fabricante: nunca completo en logs
    if len(pass_key) <= 4:
        return "****"
    return f"{pass_key[:4]}****"


class StationRepository:
    """Estaciones identificadas por su pass_key."""

    def __init__(self, guard: StorageGuard):
        self._guard = guard

    def ensure_station(
        self,
        station: StationDescriptor,
        deadline: Optional[Deadline] = None,
    ) -> str:
        """Crea la estación o refresca sus atributos; devuelve su id.

        Un único INSERT ... ON CONFLICT: dos primeros reportes concurrentes
        de la misma estación convergen en la misma fila.
        """
        masked = mask_pass_key(station.pass_key)
        with self._guard.transaction("station.ensure", deadline, pass_key=masked) as conn:
            row = conn.execute(
                text(
                    """
                    INSERT INTO stations (id, pass_key, station_type, model, freq, interval_seconds, mode)
                    VALUES (:id, :pass_key, :station_type, :model, :freq, :interval_seconds, :mode)
                    ON CONFLICT (pass_key) DO UPDATE
                    SET station_type = excluded.station_type,
                        model = excluded.model,
                        freq = excluded.freq,
                        interval_seconds = excluded.interval_seconds,
                        updated_at = CURRENT_TIMESTAMP
                    RETURNING id
                    """
                ),
                {
                    "id": str(uuid.uuid4()),
                    "pass_key": station.pass_key,
                    "station_type": station.station_type,
                    "model": station.model,
                    "freq": station.freq,
                    "interval_seconds": station.interval,
                    "mode": station.mode,
                },
            ).first()

        if not row:
            raise PersistenceError("station.ensure", {"pass_key": masked}, "no id returned")

        station_id = str(row[0])
        logger.debug("[Station] ensured pass_key=%s id=%s", masked, station_id)
        return station_id
