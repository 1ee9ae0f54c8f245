"""Módulo de endpoints HTTP.

Contiene los endpoints de la API de ingesta organizados por función.
"""

from .health import router as health_router
from .report_ingest import build_report_router

__all__ = [
    "health_router",
    "build_report_router",
]
