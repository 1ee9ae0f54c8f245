"""Tests del storage guard: deadline, circuit breaker y clasificación de errores."""

from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from weatherstation_ingest.ingest_api.errors import (
    DeadlineExceeded,
    PersistenceError,
    ReconciliationConflict,
    StorageUnavailable,
)
from weatherstation_ingest.ingest_api.infrastructure.persistence import (
    CircuitState,
    Deadline,
    StorageGuard,
    StorageGuardConfig,
)


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class _PgError(Exception):
    def __init__(self, pgcode: str, message: str = "pg error"):
        super().__init__(message)
        self.pgcode = pgcode


def _failing_engine(exc: Exception) -> MagicMock:
    """Engine cuyo begin() falla al entrar (BD caída)."""
    engine = MagicMock()
    engine.begin.return_value.__enter__.side_effect = exc
    engine.connect.return_value.__enter__.side_effect = exc
    return engine


def _operational_error() -> OperationalError:
    return OperationalError("SELECT 1", {}, Exception("connection refused"))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def config() -> StorageGuardConfig:
    return StorageGuardConfig(failure_threshold=2, recovery_timeout_seconds=10.0, success_threshold=1)


# =============================================================================
# DEADLINE
# =============================================================================

class TestDeadline:
    def test_expired_deadline_rejects_before_call(self, guard, engine):
        expired = Deadline(expires_at=0.0)

        with pytest.raises(DeadlineExceeded) as exc_info:
            with guard.transaction("sensor.find", expired, remote_id="tempf"):
                pytest.fail("body must not run")

        assert exc_info.value.operation == "sensor.find"
        assert exc_info.value.keys == {"remote_id": "tempf"}

    def test_remaining(self):
        d = Deadline.after(60)
        assert 0 < d.remaining() <= 60
        assert not d.expired

    def test_deadline_exceeded_is_a_persistence_error(self):
        assert issubclass(DeadlineExceeded, PersistenceError)


# =============================================================================
# CIRCUIT BREAKER
# =============================================================================

class TestCircuitBreaker:
    def test_opens_after_threshold_and_rejects_immediately(self, config, clock):
        engine = _failing_engine(_operational_error())
        guard = StorageGuard(engine, config=config, clock=clock)

        for _ in range(2):
            with pytest.raises(PersistenceError):
                with guard.transaction("sensor.insert"):
                    pass

        assert guard.state == CircuitState.OPEN
        assert not guard.is_healthy

        calls_before = engine.begin.call_count
        with pytest.raises(StorageUnavailable):
            with guard.transaction("sensor.insert"):
                pass
        assert engine.begin.call_count == calls_before

    def test_half_open_after_recovery_timeout(self, config, clock):
        guard = StorageGuard(_failing_engine(_operational_error()), config=config, clock=clock)
        for _ in range(2):
            with pytest.raises(PersistenceError):
                with guard.transaction("sensor.insert"):
                    pass

        clock.now += 10.0

        assert guard.state == CircuitState.HALF_OPEN

    def test_recovers_on_success(self, engine, config, clock):
        guard = StorageGuard(engine, config=config, clock=clock)
        guard._on_failure(RuntimeError("x"))
        guard._on_failure(RuntimeError("x"))
        assert guard.state == CircuitState.OPEN

        clock.now += 10.0
        with guard.transaction("sensor.find") as conn:
            conn.exec_driver_sql("SELECT 1")

        assert guard.state == CircuitState.CLOSED

    def test_ping_moves_open_to_half_open(self, engine, clock):
        guard = StorageGuard(
            engine,
            config=StorageGuardConfig(failure_threshold=1, recovery_timeout_seconds=300.0, success_threshold=2),
            clock=clock,
        )
        guard._on_failure(RuntimeError("x"))
        assert guard.state == CircuitState.OPEN

        assert guard.ping() is True
        assert guard.state == CircuitState.HALF_OPEN

    def test_ping_failure(self, config, clock):
        guard = StorageGuard(_failing_engine(_operational_error()), config=config, clock=clock)
        assert guard.ping() is False
        assert guard.get_stats()["failures"] == 1

    def test_reset(self, engine, config, clock):
        guard = StorageGuard(engine, config=config, clock=clock)
        guard._on_failure(RuntimeError("x"))
        guard._on_failure(RuntimeError("x"))

        guard.reset()

        assert guard.state == CircuitState.CLOSED


# =============================================================================
# CLASIFICACIÓN DE ERRORES
# =============================================================================

class TestErrorClassification:
    def test_pg_unique_violation_is_conflict_and_not_a_failure(self, config, clock):
        exc = IntegrityError("INSERT", {}, _PgError("23505", "duplicate key"))
        guard = StorageGuard(_failing_engine(exc), config=config, clock=clock)

        for _ in range(3):
            with pytest.raises(ReconciliationConflict):
                with guard.transaction("sensor.insert", remote_id="tempf"):
                    pass

        assert guard.state == CircuitState.CLOSED

    def test_other_integrity_error_is_persistence_error(self, config, clock):
        exc = IntegrityError("INSERT", {}, _PgError("23503", "foreign key violation"))
        guard = StorageGuard(_failing_engine(exc), config=config, clock=clock)

        with pytest.raises(PersistenceError) as exc_info:
            with guard.transaction("sensor.insert"):
                pass

        assert not isinstance(exc_info.value, ReconciliationConflict)

    def test_pg_statement_timeout_is_deadline_exceeded(self, config, clock):
        exc = OperationalError("SELECT", {}, _PgError("57014", "canceling statement"))
        guard = StorageGuard(_failing_engine(exc), config=config, clock=clock)

        with pytest.raises(DeadlineExceeded):
            with guard.transaction("sensor.find"):
                pass

    def test_sqlite_unique_violation(self, guard, station_id, sensor_repository, descriptors):
        sensor_repository.insert(station_id, descriptors["tempf"])

        with pytest.raises(ReconciliationConflict) as exc_info:
            sensor_repository.insert(station_id, descriptors["tempf"])

        assert exc_info.value.keys["remote_id"] == "tempf"
        assert "sensor.insert failed" in str(exc_info.value)
