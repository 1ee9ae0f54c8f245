"""Tests de reconciliación de identidad de sensores.

Cubre idempotencia, concurrencia sobre remote_ids distintos, la carrera
insert/insert sobre el mismo par (station_id, remote_id) y los fallos
parciales de lote.

Ejecutar:
    pytest tests/test_sensor_reconciler.py -v
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy import text

from weatherstation_ingest.ingest_api.core.domain import SensorDescriptor
from weatherstation_ingest.ingest_api.errors import (
    BatchPartialFailure,
    PersistenceError,
    ReconciliationConflict,
)
from weatherstation_ingest.ingest_api.infrastructure.persistence import SensorRepository
from weatherstation_ingest.ingest_api.pipelines import SensorReconciler


class _RacingRepository(SensorRepository):
    """La primera búsqueda de cada thread espera a las demás.

    Así todos los threads ven "no existe" antes de que nadie inserte.
    """

    def __init__(self, guard, parties: int):
        super().__init__(guard)
        self._barrier = threading.Barrier(parties, timeout=10)
        self._local = threading.local()
        self.conflicts = 0
        self._conflicts_lock = threading.Lock()

    def find(self, station_id, remote_id, deadline=None):
        found = super().find(station_id, remote_id, deadline)
        if not getattr(self._local, "waited", False):
            self._local.waited = True
            self._barrier.wait()
        return found

    def insert(self, station_id, descriptor, deadline=None):
        try:
            return super().insert(station_id, descriptor, deadline)
        except ReconciliationConflict:
            with self._conflicts_lock:
                self.conflicts += 1
            raise


@pytest.fixture
def reconciler(sensor_repository) -> SensorReconciler:
    return SensorReconciler(sensor_repository)


# =============================================================================
# IDEMPOTENCIA
# =============================================================================

class TestIdempotence:
    def test_same_batch_twice_yields_same_ids(self, reconciler, station_id, descriptors, count_rows):
        first = reconciler.reconcile(station_id, descriptors)
        second = reconciler.reconcile(station_id, descriptors)

        assert not first.partial and not second.partial
        assert {k: v.id for k, v in first.resolved.items()} == {k: v.id for k, v in second.resolved.items()}
        assert count_rows("sensors") == len(descriptors)

    def test_result_is_a_new_mapping(self, reconciler, station_id, descriptors):
        snapshot = dict(descriptors)

        result = reconciler.reconcile(station_id, descriptors)

        assert descriptors == snapshot
        assert result.resolved is not descriptors
        assert all(identity.station_id == station_id for identity in result.resolved.values())

    def test_same_remote_id_on_other_station_is_a_different_sensor(
        self, reconciler, station_id, station_repository, descriptors
    ):
        from weatherstation_ingest.ingest_api.core.domain import StationDescriptor

        other_station = station_repository.ensure_station(StationDescriptor(pass_key="FFEEDDCCBBAA"))

        a = reconciler.reconcile(station_id, descriptors).resolved["tempf"]
        b = reconciler.reconcile(other_station, descriptors).resolved["tempf"]

        assert a.id != b.id
        assert a.remote_id == b.remote_id == "tempf"

    def test_empty_batch(self, reconciler, station_id):
        result = reconciler.reconcile(station_id, {})
        assert result.resolved == {}
        assert result.failures == []


# =============================================================================
# ACTUALIZACIÓN
# =============================================================================

class TestUpdatePreservesIdentity:
    def test_changed_attributes_keep_id_and_binding(self, reconciler, station_id, descriptors, engine):
        original = reconciler.reconcile(station_id, descriptors).resolved["tempf"]

        changed = dict(descriptors)
        changed["tempf"] = replace(
            descriptors["tempf"],
            location="Garden",
            name="Outdoor Temp (WH32)",
            battery_level=80,
            signal_strength=4,
            model="WH32",
        )
        updated = reconciler.reconcile(station_id, changed).resolved["tempf"]

        assert updated.id == original.id
        assert updated.remote_id == "tempf"
        assert updated.station_id == station_id
        assert updated.location == "Garden"
        assert updated.battery_level == 80

        with engine.connect() as conn:
            row = conn.execute(
                text(
                    "SELECT id, remote_id, location, name, model, battery_level, signal_strength "
                    "FROM sensors WHERE remote_id = 'tempf'"
                )
            ).one()
        assert row.id == original.id
        assert row.location == "Garden"
        assert row.name == "Outdoor Temp (WH32)"
        assert row.model == "WH32"
        assert row.battery_level == 80
        assert row.signal_strength == 4

    def test_disabling_a_sensor(self, reconciler, station_id, descriptors, sensor_repository):
        reconciler.reconcile(station_id, descriptors)

        changed = {"humidity": replace(descriptors["humidity"], enabled=False)}
        reconciler.reconcile(station_id, changed)

        assert sensor_repository.find(station_id, "humidity").enabled is False


# =============================================================================
# CONCURRENCIA
# =============================================================================

class TestConcurrency:
    def test_distinct_remote_ids_in_parallel(self, guard, station_id, count_rows):
        n = 12
        reconciler = SensorReconciler(SensorRepository(guard))
        batches = [
            {f"temp{i}f": SensorDescriptor(f"temp{i}f", "Temperature", f"Channel {i}", f"Temperature CH{i}")}
            for i in range(n)
        ]

        with ThreadPoolExecutor(max_workers=n) as pool:
            results = list(pool.map(lambda batch: reconciler.reconcile(station_id, batch), batches))

        assert all(not r.partial for r in results)
        ids = {identity.id for r in results for identity in r.resolved.values()}
        assert len(ids) == n
        assert count_rows("sensors") == n

    def test_same_pair_race_recovers(self, guard, station_id, count_rows):
        """Dos reconciliaciones del mismo sensor nuevo: una inserta, la otra actualiza."""
        repository = _RacingRepository(guard, parties=2)
        reconciler = SensorReconciler(repository)
        descriptor = SensorDescriptor("tempf", "Temperature", "Outdoor", "Temperature")

        with ThreadPoolExecutor(max_workers=2) as pool:
            futures = [pool.submit(reconciler.reconcile, station_id, {"tempf": descriptor}) for _ in range(2)]
            results = [f.result(timeout=30) for f in futures]

        assert all(not r.partial for r in results)
        assert results[0].resolved["tempf"].id == results[1].resolved["tempf"].id
        assert repository.conflicts == 1
        assert count_rows("sensors") == 1

    def test_many_reports_same_batch(self, guard, station_id, descriptors, count_rows):
        reconciler = SensorReconciler(SensorRepository(guard))

        with ThreadPoolExecutor(max_workers=6) as pool:
            results = list(pool.map(lambda _: reconciler.reconcile(station_id, descriptors), range(6)))

        assert all(not r.partial for r in results)
        for remote_id in descriptors:
            assert len({r.resolved[remote_id].id for r in results}) == 1
        assert count_rows("sensors") == len(descriptors)


# =============================================================================
# FALLO PARCIAL DE LOTE
# =============================================================================

class TestBatchPartialFailure:
    def test_one_failing_entry_does_not_affect_others(self, sensor_repository, station_id, descriptors, count_rows):
        real_insert = sensor_repository.insert

        def failing_insert(sid, descriptor, deadline=None):
            if descriptor.remote_id == "humidity":
                raise PersistenceError("sensor.insert", {"remote_id": "humidity"}, "disk full")
            return real_insert(sid, descriptor, deadline)

        with patch.object(sensor_repository, "insert", side_effect=failing_insert):
            result = SensorReconciler(sensor_repository).reconcile(station_id, descriptors)

        assert set(result.resolved) == {"tempf", "baromrelin"}
        assert len(result.failures) == 1
        assert result.failures[0].remote_id == "humidity"
        assert isinstance(result.failures[0].error, PersistenceError)
        assert result.partial
        assert count_rows("sensors") == 2

    def test_raise_for_failures(self, station_id, descriptors):
        repository = MagicMock()
        repository.find.side_effect = PersistenceError("sensor.find", {}, "timeout")

        result = SensorReconciler(repository).reconcile(station_id, descriptors)

        assert result.resolved == {}
        assert len(result.failures) == 3
        with pytest.raises(BatchPartialFailure) as exc_info:
            result.raise_for_failures()
        assert exc_info.value.resolved_count == 0
        assert len(exc_info.value.failures) == 3

    def test_conflict_fallback_that_finds_nothing_is_an_entry_failure(self, station_id, descriptors):
        repository = MagicMock()
        repository.find.return_value = None
        repository.insert.side_effect = ReconciliationConflict("sensor.insert", {}, "unique")

        result = SensorReconciler(repository).reconcile(station_id, {"tempf": descriptors["tempf"]})

        assert result.resolved == {}
        assert result.failures[0].remote_id == "tempf"
        assert repository.find.call_count == 2
        repository.update.assert_not_called()

    def test_unexpected_errors_propagate(self, station_id, descriptors):
        repository = MagicMock()
        repository.find.side_effect = ValueError("bug")

        with pytest.raises(ValueError):
            SensorReconciler(repository).reconcile(station_id, descriptors)

    def test_results_are_keyed_by_descriptor_remote_id(self, reconciler, station_id, descriptors, sensor_repository):
        result = reconciler.reconcile(station_id, {"alias": descriptors["tempf"]})

        assert list(result.resolved) == ["tempf"]
        assert result.resolved["tempf"].remote_id == "tempf"
        assert sensor_repository.find(station_id, "alias") is None
