"""Pipelines de ingesta: reconciliación de sensores y procesamiento de reportes."""

from .report_pipeline import IngestOutcome, ReportIngestor
from .sensor_reconciler import ReconciliationResult, SensorReconciler

__all__ = [
    "IngestOutcome",
    "ReconciliationResult",
    "ReportIngestor",
    "SensorReconciler",
]
