"""Reconciliación de identidad de sensores.

Mapea los descriptores efímeros de un reporte (remote_id -> descriptor) a
filas persistentes estables. Por cada entrada:

1. find(station_id, remote_id)
2. si no existe: insert; si otro reporte ganó la carrera el índice único
   lo rechaza (ReconciliationConflict) y se vuelve a find + update
3. si existe: update de los atributos mutables, conservando el id

No hay locks ni caché en la aplicación: cada reconciliación vuelve a
consultar la BD y el índice único es el único punto de serialización.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

from ..core.domain import SensorDescriptor, SensorIdentity
from ..errors import (
    BatchPartialFailure,
    EntryFailure,
    PersistenceError,
    ReconciliationConflict,
)
from ..infrastructure.persistence import Deadline, SensorRepository

logger = logging.getLogger(__name__)


@dataclass
class ReconciliationResult:
    """Resultado de un lote: identidades resueltas + fallos por entrada."""
    resolved: Dict[str, SensorIdentity] = field(default_factory=dict)
    failures: List[EntryFailure] = field(default_factory=list)

    @property
    def partial(self) -> bool:
        return bool(self.failures)

    def raise_for_failures(self) -> None:
        if self.failures:
            raise BatchPartialFailure(self.failures, resolved_count=len(self.resolved))


class SensorReconciler:
    """Único dueño de la decisión crear-o-actualizar sobre sensores."""

    def __init__(self, repository: SensorRepository):
        self._repository = repository

    def reconcile(
        self,
        station_id: str,
        descriptors: Mapping[str, SensorDescriptor],
        deadline: Optional[Deadline] = None,
    ) -> ReconciliationResult:
        """Resuelve todo el lote sin abortar ante fallos individuales.

        El mapa de entrada no se modifica; se devuelve uno nuevo.
        """
        result = ReconciliationResult()

        # La clave del resultado es la que se persiste, no la del mapa de entrada
        for descriptor in descriptors.values():
            remote_id = descriptor.remote_id
            try:
                result.resolved[remote_id] = self.resolve_one(station_id, descriptor, deadline)
            except PersistenceError as e:
                logger.warning(
                    "[Reconciler] entry failed station_id=%s remote_id=%s err=%s",
                    station_id,
                    remote_id,
                    e,
                )
                result.failures.append(EntryFailure(remote_id=remote_id, error=e))

        if result.failures:
            logger.warning(
                "[Reconciler] partial batch station_id=%s resolved=%d failed=%d",
                station_id,
                len(result.resolved),
                len(result.failures),
            )
        else:
            logger.debug(
                "[Reconciler] batch ok station_id=%s resolved=%d",
                station_id,
                len(result.resolved),
            )
        return result

    def resolve_one(
        self,
        station_id: str,
        descriptor: SensorDescriptor,
        deadline: Optional[Deadline] = None,
    ) -> SensorIdentity:
        existing = self._repository.find(station_id, descriptor.remote_id, deadline)
        if existing is not None:
            return self._repository.update(existing, descriptor, deadline)

        try:
            return self._repository.insert(station_id, descriptor, deadline)
        except ReconciliationConflict:
            logger.info(
                "[Reconciler] insert race lost station_id=%s remote_id=%s, falling back to update",
                station_id,
                descriptor.remote_id,
            )

        existing = self._repository.find(station_id, descriptor.remote_id, deadline)
        if existing is None:
            raise PersistenceError(
                "sensor.reconcile",
                {"station_id": station_id, "remote_id": descriptor.remote_id},
                "row missing after unique violation",
            )
        return self._repository.update(existing, descriptor, deadline)
