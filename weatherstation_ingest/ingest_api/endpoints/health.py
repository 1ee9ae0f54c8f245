"""Health, readiness y métricas."""

from fastapi import APIRouter, HTTPException, Request

router = APIRouter(tags=["health"])


@router.get("/health")
def health():
    """Liveness probe — always returns ok if process is running."""
    return {"status": "ok"}


@router.get("/ready")
def ready(request: Request):
    """Readiness probe — SELECT 1 a través del storage guard.

    ISO 27001: No expone detalles de error al cliente.
    """
    guard = request.app.state.storage_guard
    if not guard.ping():
        raise HTTPException(status_code=503, detail="not ready")
    return {"status": "ready", "storage": guard.state.value}


@router.get("/metrics")
def metrics(request: Request):
    """Contadores de ingesta + estado del storage guard."""
    state = request.app.state
    return {
        "ingest": state.ingestor.stats.to_dict(),
        "storage": state.storage_guard.get_stats(),
        "adapters": sorted(a.station_type() for a in state.registry.list_all()),
    }
