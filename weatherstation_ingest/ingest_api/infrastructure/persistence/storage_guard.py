"""Guardia de almacenamiento: deadline por reporte + circuit breaker.

Toda llamada a la BD pasa por `StorageGuard.transaction`:
- si el circuito está abierto se rechaza sin emitir la llamada;
- si el deadline del reporte ya se agotó, también;
- en PostgreSQL el tiempo restante se aplica como statement_timeout.

Los errores de SQLAlchemy se convierten en PersistenceError aquí y no
salen de este paquete.
"""

from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterator, Mapping, Optional

from sqlalchemy import text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from ....common.config import read_float, read_int
from ...errors import (
    DeadlineExceeded,
    PersistenceError,
    ReconciliationConflict,
    StorageUnavailable,
)

logger = logging.getLogger(__name__)

_UNIQUE_VIOLATION = "23505"
_QUERY_CANCELED = "57014"


@dataclass(frozen=True)
class Deadline:
    """Instante límite (reloj monotónico) para las llamadas de un reporte."""
    expires_at: float

    @classmethod
    def after(cls, seconds: float) -> "Deadline":
        return cls(expires_at=time.monotonic() + seconds)

    def remaining(self) -> float:
        return max(0.0, self.expires_at - time.monotonic())

    @property
    def expired(self) -> bool:
        return time.monotonic() >= self.expires_at


class CircuitState(str, Enum):
    """Estados del circuit breaker."""
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass
class StorageGuardConfig:
    """Configuración del circuit breaker de la BD."""
    failure_threshold: int = 5
    recovery_timeout_seconds: float = 30.0
    success_threshold: int = 2

    @classmethod
    def from_env(cls) -> "StorageGuardConfig":
        return cls(
            failure_threshold=read_int("CB_FAILURE_THRESHOLD", 5),
            recovery_timeout_seconds=read_float("CB_RECOVERY_TIMEOUT", 30.0),
            success_threshold=read_int("CB_SUCCESS_THRESHOLD", 2),
        )


def _sqlstate(exc: SQLAlchemyError) -> Optional[str]:
    orig = getattr(exc, "orig", None)
    # psycopg2 expone pgcode, psycopg 3 sqlstate
    return getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)


def is_unique_violation(exc: IntegrityError) -> bool:
    if _sqlstate(exc) == _UNIQUE_VIOLATION:
        return True
    # SQLite: "UNIQUE constraint failed: sensors.station_id, sensors.remote_id"
    return "unique" in str(getattr(exc, "orig", exc)).lower()


class StorageGuard:
    """Protege las llamadas a la BD.

    Uso:
        guard = StorageGuard(engine)

        with guard.transaction("sensor.insert", deadline, remote_id="tempf") as conn:
            conn.execute(...)
    """

    def __init__(
        self,
        engine: Engine,
        config: Optional[StorageGuardConfig] = None,
        name: str = "database",
        clock: Callable[[], float] = time.monotonic,
    ):
        self.name = name
        self._engine = engine
        self._config = config or StorageGuardConfig.from_env()
        self._clock = clock

        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._success_count = 0
        self._last_failure_time: float = 0.0
        self._lock = threading.Lock()

        cfg = self._config
        logger.info(
            "[Storage] Guard '%s' ready backend=%s open_after=%d retry_after=%.1fs close_after=%d",
            name,
            engine.dialect.name,
            cfg.failure_threshold,
            cfg.recovery_timeout_seconds,
            cfg.success_threshold,
        )

    @property
    def engine(self) -> Engine:
        return self._engine

    @property
    def state(self) -> CircuitState:
        with self._lock:
            self._check_state_transition()
            return self._state

    @property
    def is_healthy(self) -> bool:
        return self.state != CircuitState.OPEN

    def ensure_available(
        self,
        operation: str,
        deadline: Optional[Deadline] = None,
        keys: Optional[Mapping[str, Any]] = None,
    ) -> None:
        """Rechaza la llamada antes de emitirla si no puede completarse.

        Raises:
            StorageUnavailable: circuito abierto
            DeadlineExceeded: deadline agotado
        """
        with self._lock:
            self._check_state_transition()
            if self._state == CircuitState.OPEN:
                raise StorageUnavailable(
                    operation,
                    keys,
                    f"storage '{self.name}' unhealthy, retry in {self._get_remaining_timeout():.1f}s",
                )

        if deadline is not None and deadline.expired:
            raise DeadlineExceeded(operation, keys, "deadline exceeded before call")

    @contextmanager
    def transaction(
        self,
        operation: str,
        deadline: Optional[Deadline] = None,
        **keys: Any,
    ) -> Iterator[Connection]:
        """Transacción corta protegida por el guard.

        Raises:
            ReconciliationConflict: violación de unicidad
            DeadlineExceeded: deadline agotado (antes o durante la llamada)
            StorageUnavailable: circuito abierto
            PersistenceError: cualquier otro fallo de la BD
        """
        self.ensure_available(operation, deadline, keys)

        try:
            with self._engine.begin() as conn:
                self._apply_deadline(conn, deadline)
                yield conn
        except IntegrityError as e:
            # La BD respondió: no cuenta como fallo del backend.
            self._on_success()
            if is_unique_violation(e):
                raise ReconciliationConflict(operation, keys, "unique constraint violated") from e
            raise PersistenceError(operation, keys, str(getattr(e, "orig", e))) from e
        except (OperationalError, InterfaceError, PoolTimeoutError) as e:
            self._on_failure(e)
            if _sqlstate(e) == _QUERY_CANCELED:
                raise DeadlineExceeded(operation, keys, "statement timeout") from e
            logger.warning(
                "[Storage] %s failed keys=%s err=%s",
                operation,
                keys,
                type(e).__name__,
            )
            raise PersistenceError(operation, keys, type(e).__name__) from e
        except SQLAlchemyError as e:
            logger.exception("[Storage] %s failed keys=%s", operation, keys)
            raise PersistenceError(operation, keys, type(e).__name__) from e
        else:
            self._on_success()

    def ping(self, timeout: float = 2.0) -> bool:
        """SELECT 1 directo (ignora el circuito); actualiza el estado."""
        try:
            with self._engine.connect() as conn:
                self._apply_deadline(conn, Deadline.after(timeout))
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            self._on_failure(e)
            return False

        with self._lock:
            if self._state == CircuitState.OPEN:
                self._transition(CircuitState.HALF_OPEN, "ping ok")
        self._on_success()
        return True

    def _apply_deadline(self, conn: Connection, deadline: Optional[Deadline]) -> None:
        if deadline is None or conn.dialect.name != "postgresql":
            return
        timeout_ms = max(1, int(deadline.remaining() * 1000))
        conn.execute(
            text("SELECT set_config('statement_timeout', :timeout_ms, true)"),
            {"timeout_ms": str(timeout_ms)},
        )

    def _transition(self, new_state: CircuitState, reason: str) -> None:
        """Cambia de estado con el lock tomado."""
        old_state, self._state = self._state, new_state
        if new_state == CircuitState.HALF_OPEN:
            self._success_count = 0
        elif new_state == CircuitState.CLOSED:
            self._failure_count = 0
        log = logger.warning if new_state == CircuitState.OPEN else logger.info
        log("[Storage] Guard '%s': %s -> %s (%s)", self.name, old_state.name, new_state.name, reason)

    def _check_state_transition(self) -> None:
        if self._state != CircuitState.OPEN:
            return
        if self._clock() - self._last_failure_time >= self._config.recovery_timeout_seconds:
            self._transition(CircuitState.HALF_OPEN, "recovery timeout elapsed")

    def _on_success(self) -> None:
        with self._lock:
            if self._state == CircuitState.CLOSED:
                self._failure_count = 0
                return
            if self._state != CircuitState.HALF_OPEN:
                return
            self._success_count += 1
            if self._success_count >= self._config.success_threshold:
                self._transition(CircuitState.CLOSED, "recovered")

    def _on_failure(self, error: Exception) -> None:
        with self._lock:
            self._failure_count += 1
            self._last_failure_time = self._clock()
            detail = str(error)[:100]

            if self._state == CircuitState.HALF_OPEN:
                self._transition(CircuitState.OPEN, f"probe failed: {detail}")
            elif (
                self._state == CircuitState.CLOSED
                and self._failure_count >= self._config.failure_threshold
            ):
                self._transition(
                    CircuitState.OPEN,
                    f"failures={self._failure_count}/{self._config.failure_threshold}: {detail}",
                )

    def _get_remaining_timeout(self) -> float:
        elapsed = self._clock() - self._last_failure_time
        return max(0.0, self._config.recovery_timeout_seconds - elapsed)

    def reset(self) -> None:
        """Vuelve a CLOSED sin esperar el recovery timeout."""
        with self._lock:
            self._success_count = 0
            self._transition(CircuitState.CLOSED, "reset")

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            self._check_state_transition()
            cfg = self._config
            return {
                "name": self.name,
                "state": self._state.value,
                "failures": self._failure_count,
                "successes": self._success_count,
                "failure_threshold": cfg.failure_threshold,
                "recovery_timeout_seconds": cfg.recovery_timeout_seconds,
                "success_threshold": cfg.success_threshold,
            }
