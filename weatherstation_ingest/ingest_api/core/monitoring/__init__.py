"""Monitoring - contadores de ingesta."""

from .stats import IngestStats

__all__ = ["IngestStats"]
