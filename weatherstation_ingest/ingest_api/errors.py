"""Errores de ingesta.

Los problemas de campo (FieldIssue) no son excepciones: el parseo es
permisivo y los registra en el ParsedReport. Todo lo demás se modela aquí.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence


class IngestError(Exception):
    """Base de todos los errores de ingesta."""


class UnknownStationType(IngestError, LookupError):
    """No hay adapter registrado para el station type pedido."""

    def __init__(self, station_type: str):
        self.station_type = station_type
        super().__init__(f"No adapter registered for station type '{station_type}'")


class RegistryFrozenError(IngestError, RuntimeError):
    """Se intentó registrar un adapter después del arranque."""


class ReportRejected(IngestError):
    """El reporte no se puede ingerir (modo estricto o sin identidad de estación)."""

    def __init__(self, reason: str, issues: Sequence[Any] = ()):
        self.reason = reason
        self.issues = list(issues)
        super().__init__(reason)


class PersistenceError(IngestError):
    """Fallo de almacenamiento, con la operación y las claves afectadas."""

    def __init__(self, operation: str, keys: Optional[Mapping[str, Any]] = None, message: str = ""):
        self.operation = operation
        self.keys: Dict[str, Any] = dict(keys or {})
        detail = " ".join(f"{k}={v}" for k, v in self.keys.items())
        text = f"{operation} failed"
        if detail:
            text = f"{text} ({detail})"
        if message:
            text = f"{text}: {message}"
        super().__init__(text)


class StorageUnavailable(PersistenceError):
    """El backend está marcado como no sano; la llamada no se emitió."""


class DeadlineExceeded(PersistenceError):
    """El deadline del reporte se agotó antes de emitir la llamada."""


class ReconciliationConflict(PersistenceError):
    """Violación de unicidad (station_id, remote_id) al crear un sensor."""


@dataclass(frozen=True)
class EntryFailure:
    """Fallo de una entrada individual dentro de un lote."""
    remote_id: str
    error: Exception
    stage: str = "reconcile"

    def to_dict(self) -> dict:
        return {
            "remote_id": self.remote_id,
            "stage": self.stage,
            "error": f"{type(self.error).__name__}: {self.error}",
        }


class BatchPartialFailure(IngestError):
    """Una o más entradas del lote fallaron mientras otras se resolvieron."""

    def __init__(self, failures: List[EntryFailure], resolved_count: int = 0):
        self.failures = list(failures)
        self.resolved_count = resolved_count
        remote_ids = ", ".join(f.remote_id for f in self.failures)
        super().__init__(
            f"{len(self.failures)} entries failed ({remote_ids}); "
            f"{resolved_count} resolved"
        )
