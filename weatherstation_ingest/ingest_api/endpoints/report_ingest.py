"""Endpoints de reporte de estación.

Cada adapter registrado expone su propio path (p.ej. /data/report para
Ecowitt). Las estaciones envían pares clave/valor planos por query string
(GET) o form-urlencoded (POST); ambos se combinan en un mismo mapa.
"""

from __future__ import annotations

import logging
from typing import Callable, List

from fastapi import APIRouter, HTTPException, Request, status
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import MultiDict

from ..adapters import AdapterRegistry, ProtocolAdapter
from ..errors import (
    DeadlineExceeded,
    PersistenceError,
    ReportRejected,
    StorageUnavailable,
    UnknownStationType,
)
from ..pipelines import IngestOutcome, ReportIngestor
from ..schemas import (
    AdapterOut,
    FieldIssueOut,
    IngestFailureOut,
    IngestStatus,
    ReportIngestResult,
)

logger = logging.getLogger(__name__)


async def read_report_params(request: Request) -> MultiDict:
    """Query string + cuerpo de formulario (si lo hay)."""
    items = list(request.query_params.multi_items())
    if request.method == "POST":
        form = await request.form()
        items.extend((k, v) for k, v in form.multi_items() if isinstance(v, str))
    return MultiDict(items)


def to_result(outcome: IngestOutcome) -> ReportIngestResult:
    return ReportIngestResult(
        status=IngestStatus.PARTIAL if outcome.partial else IngestStatus.OK,
        station_id=outcome.station_id,
        observed_at=outcome.observation.date_utc,
        observation=outcome.observation.to_dict(),
        sensors_resolved=len(outcome.resolved),
        readings_stored=len(outcome.readings),
        failures=[IngestFailureOut(**f.to_dict()) for f in outcome.failures],
        issues=[FieldIssueOut(key=i.key, reason=i.reason) for i in outcome.issues],
    )


async def _run_ingest(label: str, call: Callable[[], IngestOutcome]) -> ReportIngestResult:
    try:
        outcome = await run_in_threadpool(call)
    except UnknownStationType as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ReportRejected as e:
        raise HTTPException(
            status_code=400,
            detail={
                "reason": e.reason,
                "issues": [{"key": i.key, "reason": i.reason} for i in e.issues],
            },
        )
    except StorageUnavailable:
        raise HTTPException(status_code=503, detail="storage unavailable")
    except DeadlineExceeded:
        raise HTTPException(status_code=504, detail="storage deadline exceeded")
    except PersistenceError as e:
        # ISO 27001: el detalle queda en logs, al cliente sólo el tipo
        logger.error("DB error in %s err=%s", label, e)
        raise HTTPException(status_code=500, detail=f"DB error: {type(e).__name__}")

    return to_result(outcome)


def _adapter_endpoint(adapter: ProtocolAdapter):
    async def ingest_report(request: Request) -> ReportIngestResult:
        ingestor: ReportIngestor = request.app.state.ingestor
        params = await read_report_params(request)
        return await _run_ingest(
            adapter.endpoint_path(),
            lambda: ingestor.ingest(adapter, params),
        )

    ingest_report.__name__ = f"ingest_{adapter.station_type().lower()}_report"
    return ingest_report


def build_report_router(registry: AdapterRegistry) -> APIRouter:
    """Una ruta GET/POST por adapter registrado.

    Se construye después de freeze(): añadir un fabricante es registrar
    su adapter, sin tocar este módulo.
    """
    router = APIRouter(tags=["ingest"])

    for adapter in registry.list_all():
        router.add_api_route(
            adapter.endpoint_path(),
            _adapter_endpoint(adapter),
            methods=["GET", "POST"],
            response_model=ReportIngestResult,
            status_code=status.HTTP_201_CREATED,
            summary=f"{adapter.station_type()} station report",
        )

    @router.get("/adapters", response_model=List[AdapterOut])
    def list_adapters() -> List[AdapterOut]:
        return [
            AdapterOut(station_type=a.station_type(), endpoint=a.endpoint_path())
            for a in sorted(registry.list_all(), key=lambda a: a.station_type())
        ]

    @router.api_route(
        "/ingest/{station_type}",
        methods=["GET", "POST"],
        response_model=ReportIngestResult,
        status_code=status.HTTP_201_CREATED,
    )
    async def ingest_by_station_type(station_type: str, request: Request) -> ReportIngestResult:
        """Despacho explícito por station type (404 si no hay adapter)."""
        ingestor: ReportIngestor = request.app.state.ingestor
        params = await read_report_params(request)
        return await _run_ingest(
            f"/ingest/{station_type}",
            lambda: ingestor.ingest_by_type(station_type, params),
        )

    return router
