from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI
from sqlalchemy.engine import Engine

from ..common.config import Settings, get_settings
from ..common.db import get_engine
from .adapters import AdapterRegistry, get_registry
from .core.monitoring import IngestStats
from .endpoints import build_report_router, health_router
from .infrastructure.persistence import (
    ReadingStore,
    SensorRepository,
    StationRepository,
    StorageGuard,
    ensure_schema,
)
from .pipelines import ReportIngestor, SensorReconciler

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    engine: Optional[Engine] = None,
    registry: Optional[AdapterRegistry] = None,
) -> FastAPI:
    """Construye la aplicación con todas sus dependencias.

    Las rutas de reporte salen del registro, que debe estar congelado:
    a partir de aquí sólo se lee concurrentemente.
    """
    settings = settings or get_settings()
    engine = engine or get_engine(settings)
    if registry is None:
        registry = get_registry()
    registry.freeze()

    if settings.auto_migrate:
        ensure_schema(engine)

    guard = StorageGuard(engine)
    stats = IngestStats()
    ingestor = ReportIngestor(
        station_repository=StationRepository(guard),
        reconciler=SensorReconciler(SensorRepository(guard)),
        reading_store=ReadingStore(guard),
        settings=settings,
        stats=stats,
        registry=registry,
    )

    app = FastAPI(title="Weather Station Ingest Service", version="0.1.0")
    app.state.settings = settings
    app.state.registry = registry
    app.state.storage_guard = guard
    app.state.ingestor = ingestor

    app.include_router(health_router)
    app.include_router(build_report_router(registry))

    logger.info(
        "[App] Ready adapters=%s strict_parsing=%s deadline=%.1fs",
        sorted(a.station_type() for a in registry.list_all()),
        settings.strict_parsing,
        settings.report_deadline_seconds,
    )
    return app
