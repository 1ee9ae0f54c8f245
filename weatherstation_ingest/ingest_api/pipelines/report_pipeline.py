"""Pipeline de ingesta de un reporte.

parse → estación → reconciliación de sensores → lecturas.

Un reporte = una unidad de trabajo con su propio deadline; todas las
llamadas a la BD del reporte lo comparten.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional

from ...common.config import Settings
from ..adapters import AdapterRegistry, ProtocolAdapter, get_registry
from ..adapters.base import Params
from ..core.domain import CanonicalObservation, FieldIssue, SensorIdentity, SensorReading
from ..core.monitoring import IngestStats
from ..errors import EntryFailure, IngestError, PersistenceError, ReportRejected
from ..infrastructure.persistence import (
    Deadline,
    ReadingStore,
    StationRepository,
    mask_pass_key,
)
from .sensor_reconciler import SensorReconciler

logger = logging.getLogger(__name__)


@dataclass
class IngestOutcome:
    """Resultado de un reporte ingerido (posiblemente parcial)."""
    station_id: str
    observation: CanonicalObservation
    resolved: Dict[str, SensorIdentity] = field(default_factory=dict)
    readings: List[SensorReading] = field(default_factory=list)
    failures: List[EntryFailure] = field(default_factory=list)
    issues: List[FieldIssue] = field(default_factory=list)

    @property
    def partial(self) -> bool:
        return bool(self.failures)


class ReportIngestor:
    """Orquesta la ingesta de un reporte ya despachado a su adapter."""

    def __init__(
        self,
        station_repository: StationRepository,
        reconciler: SensorReconciler,
        reading_store: ReadingStore,
        settings: Settings,
        stats: Optional[IngestStats] = None,
        registry: Optional[AdapterRegistry] = None,
    ):
        self._stations = station_repository
        self._reconciler = reconciler
        self._readings = reading_store
        self._settings = settings
        self._stats = stats or IngestStats()
        self._registry = registry

    @property
    def stats(self) -> IngestStats:
        return self._stats

    def ingest_by_type(
        self,
        station_type: str,
        params: Params,
        deadline: Optional[Deadline] = None,
    ) -> IngestOutcome:
        """Despacha por station type y procesa.

        Raises:
            UnknownStationType: si no hay adapter para el tipo
        """
        if self._registry is None:
            self._registry = get_registry()
        adapter = self._registry.lookup(station_type)
        return self.ingest(adapter, params, deadline)

    def ingest(
        self,
        adapter: ProtocolAdapter,
        params: Params,
        deadline: Optional[Deadline] = None,
    ) -> IngestOutcome:
        """Procesa un reporte completo.

        Un campo malformado no detiene el reporte (salvo en modo estricto) y un
        sensor que no se puede reconciliar no impide guardar las lecturas de
        los demás.

        Raises:
            ReportRejected: modo estricto con campos inválidos, o sin pass_key
            PersistenceError: fallo al registrar la estación
        """
        self._stats.record_received()
        if deadline is None:
            deadline = Deadline.after(self._settings.report_deadline_seconds)

        parsed = adapter.parse(params)

        if parsed.issues:
            logger.debug(
                "[Ingest] %s field issues: %s",
                adapter.station_type(),
                ", ".join(f"{i.key}={i.raw!r} ({i.reason})" for i in parsed.issues),
            )

        if self._settings.strict_parsing and parsed.issues:
            self._stats.record_rejected()
            logger.warning(
                "[Ingest] %s report rejected (strict) issues=%s",
                adapter.station_type(),
                [issue.key for issue in parsed.issues],
            )
            raise ReportRejected("malformed fields in strict mode", parsed.issues)

        if not parsed.station.pass_key:
            self._stats.record_rejected()
            logger.warning("[Ingest] %s report rejected: missing pass key", adapter.station_type())
            raise ReportRejected("missing station pass key", parsed.issues)

        try:
            station_id = self._stations.ensure_station(parsed.station, deadline)
        except IngestError:
            self._stats.record_failed()
            raise

        reconciliation = self._reconciler.reconcile(station_id, parsed.sensors, deadline)
        failures = list(reconciliation.failures)

        observed_at = parsed.observation.date_utc or datetime.now(timezone.utc)
        readings: List[SensorReading] = []

        for remote_id, identity in reconciliation.resolved.items():
            value = parsed.measurements.get(remote_id)
            if value is None:
                continue
            try:
                readings.append(self._readings.append(identity, value, observed_at, deadline))
            except PersistenceError as e:
                logger.warning(
                    "[Ingest] append failed station_id=%s remote_id=%s err=%s",
                    station_id,
                    remote_id,
                    e,
                )
                failures.append(EntryFailure(remote_id=remote_id, error=e, stage="append"))

        self._stats.record_processed(
            sensors_resolved=len(reconciliation.resolved),
            readings_stored=len(readings),
            entry_failures=len(failures),
        )

        logger.info(
            "[Ingest] %s report station=%s sensors=%d readings=%d failures=%d issues=%d",
            adapter.station_type(),
            mask_pass_key(parsed.station.pass_key),
            len(reconciliation.resolved),
            len(readings),
            len(failures),
            len(parsed.issues),
        )

        return IngestOutcome(
            station_id=station_id,
            observation=parsed.observation,
            resolved=dict(reconciliation.resolved),
            readings=readings,
            failures=failures,
            issues=list(parsed.issues),
        )
