"""Estadísticas de ingesta."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass
class IngestStats:
    """Contadores de ingesta del proceso.

    Los reportes se procesan en paralelo (threadpool), así que toda
    modificación pasa por el lock.
    """

    received: int = 0
    processed: int = 0
    rejected: int = 0
    failed: int = 0
    sensors_resolved: int = 0
    readings_stored: int = 0
    entry_failures: int = 0
    last_report_at: float = 0
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def __str__(self) -> str:
        return (
            f"IngestStats: received={self.received} processed={self.processed} "
            f"rejected={self.rejected} failed={self.failed}"
        )

    def record_received(self) -> None:
        with self._lock:
            self.received += 1
            self.last_report_at = time.time()

    def record_processed(self, sensors_resolved: int, readings_stored: int, entry_failures: int) -> None:
        with self._lock:
            self.processed += 1
            self.sensors_resolved += sensors_resolved
            self.readings_stored += readings_stored
            self.entry_failures += entry_failures

    def record_rejected(self) -> None:
        with self._lock:
            self.rejected += 1

    def record_failed(self) -> None:
        with self._lock:
            self.failed += 1

    def to_dict(self) -> dict:
        """Convierte a diccionario."""
        with self._lock:
            return {
                "received": self.received,
                "processed": self.processed,
                "rejected": self.rejected,
                "failed": self.failed,
                "sensors_resolved": self.sensors_resolved,
                "readings_stored": self.readings_stored,
                "entry_failures": self.entry_failures,
                "last_report_at": self.last_report_at,
                "started_at": self.started_at.isoformat(),
                "success_rate": self._success_rate(),
            }

    def _success_rate(self) -> float:
        total = self.processed + self.failed
        if total == 0:
            return 1.0
        return self.processed / total

    def reset(self) -> None:
        """Reinicia estadísticas."""
        with self._lock:
            self.received = 0
            self.processed = 0
            self.rejected = 0
            self.failed = 0
            self.sensors_resolved = 0
            self.readings_stored = 0
            self.entry_failures = 0
            self.last_report_at = 0
            self.started_at = datetime.now(timezone.utc)
