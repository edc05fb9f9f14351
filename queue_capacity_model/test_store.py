"""
Tests for the SQLite scenario store.
"""

import sqlite3
import pytest

from .model import SimulationInput, run_simulation
from .store import ScenarioStore, open_store
from .validation import InputValidationError


def make_input(rps=100) -> SimulationInput:
    return SimulationInput(
        requests_per_second=rps,
        average_latency_ms=200,
        thread_pool_size=40,
        queue_size=500,
        target_utilization_pct=80,
        timeout_threshold_ms=2000,
        cpu_cores=4,
    )


@pytest.fixture
def store():
    connection = sqlite3.connect(":memory:")
    yield ScenarioStore(connection)
    connection.close()


def save(store, name, rps=100):
    inp = make_input(rps)
    return store.create(name, inp, run_simulation(inp))


class TestCreate:

    def test_returns_stored_record(self, store):
        record = save(store, "baseline")
        assert record.id == 1
        assert record.name == "baseline"
        assert record.created_at
        assert record.input == make_input()
        assert record.output == run_simulation(make_input())

    def test_name_trimmed(self, store):
        assert save(store, "  peak hour  ").name == "peak hour"

    @pytest.mark.parametrize("name", ["x", "   y   ", "z" * 121])
    def test_invalid_name(self, store, name):
        with pytest.raises(InputValidationError):
            save(store, name)
        assert store.list() == []

    def test_output_with_no_wait_estimate(self, store):
        record = save(store, "overloaded", rps=1000)
        assert record.output.autoscaling_advisor.estimated_queue_wait_ms is None


class TestQuery:

    def test_list_newest_first(self, store):
        for name in ("first", "second", "third"):
            save(store, name)
        assert [r.name for r in store.list()] == ["third", "second", "first"]

    def test_list_limit(self, store):
        for i in range(5):
            save(store, f"scenario {i}")
        assert [r.id for r in store.list(limit=2)] == [5, 4]

    def test_get_missing(self, store):
        assert store.get(42) is None

    def test_delete(self, store):
        record = save(store, "temporary")
        assert store.delete(record.id) is True
        assert store.get(record.id) is None
        assert store.delete(record.id) is False

    def test_to_dict(self, store):
        d = save(store, "baseline").to_dict()
        assert set(d) == {"id", "name", "createdAt", "input", "output"}
        assert d["input"]["cpuCores"] == 4


class TestOpenStore:

    def test_persists_across_connections(self, tmp_path):
        path = tmp_path / "data" / "simulations.db"
        with open_store(path) as store:
            save(store, "baseline")
        with open_store(path) as store:
            assert [r.name for r in store.list()] == ["baseline"]

    def test_connection_closed(self, tmp_path):
        with open_store(tmp_path / "s.db") as store:
            connection = store.connection
        with pytest.raises(sqlite3.ProgrammingError):
            connection.execute("SELECT 1")
