"""
Bulk sync orchestrator tests.

Demonstrates:
1. Cities are synced one at a time, in order, with failures requeued at
   the back until the retry budget is spent.
2. Progress and summary reflect completed + failed cities.
3. Stop and restart discard results that settle after the run they
   belong to has ended.
"""

import asyncio

import pytest

from src.domain.entities import SyncResult, SyncTask
from src.domain.enums import SyncStatus
from src.infrastructure.places_client import ExternalSyncFailure
from src.workers.sync_orchestrator import (
    SyncAlreadyRunning,
    SyncOrchestrator,
    SyncQueueState,
)


class FakeSyncCity:
    """Records calls; fails a slug a set number of times, optionally gated."""

    def __init__(self, failures=None, gates=None):
        self.failures = dict(failures or {})
        self.gates = gates or {}
        self.calls: list[str] = []

    async def __call__(self, slug: str) -> SyncResult:
        self.calls.append(slug)
        gate = self.gates.get(slug)
        if gate is not None:
            await gate.wait()
        remaining = self.failures.get(slug, 0)
        if remaining:
            if remaining > 0:
                self.failures[slug] = remaining - 1
            raise ExternalSyncFailure(f"HTTP error! status: 503 ({slug})")
        return SyncResult(processed=3, created=1, updated=2, city_name=slug.title())


ALWAYS = -1


async def _until(condition, attempts: int = 200) -> None:
    for _ in range(attempts):
        if condition():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition never became true")


def _orchestrator(sync_city, max_retries: int = 3) -> SyncOrchestrator:
    return SyncOrchestrator(sync_city, max_retries=max_retries, delay_seconds=0)


class TestSequentialSync:
    @pytest.mark.asyncio
    async def test_all_cities_succeed_in_order(self):
        sync_city = FakeSyncCity()
        orchestrator = _orchestrator(sync_city)

        orchestrator.start(["podgorica", "bar", "kotor"])
        await orchestrator.wait()

        state = orchestrator.state
        assert sync_city.calls == ["podgorica", "bar", "kotor"]
        assert [t.city_slug for t in state.completed] == ["podgorica", "bar", "kotor"]
        assert state.failed == []
        assert state.in_progress is False
        assert state.current is None
        assert all(t.status == SyncStatus.SUCCESS for t in state.completed)

    @pytest.mark.asyncio
    async def test_failed_city_is_retried_at_back_of_queue(self):
        sync_city = FakeSyncCity(failures={"b": 2})
        orchestrator = _orchestrator(sync_city)

        orchestrator.start(["a", "b", "c"])
        await orchestrator.wait()

        state = orchestrator.state
        assert sync_city.calls == ["a", "b", "c", "b", "b"]
        assert [t.city_slug for t in state.completed] == ["a", "c", "b"]
        assert state.failed == []
        retried = state.completed[-1]
        assert retried.retry_count == 2
        assert retried.error is None
        assert retried.result.processed == 3

    @pytest.mark.asyncio
    async def test_city_fails_permanently_after_retry_budget(self):
        sync_city = FakeSyncCity(failures={"x": ALWAYS})
        orchestrator = _orchestrator(sync_city, max_retries=3)

        orchestrator.start(["x"])
        await orchestrator.wait()

        state = orchestrator.state
        assert sync_city.calls == ["x"] * 4
        assert state.completed == []
        [task] = state.failed
        assert task.status == SyncStatus.ERROR
        assert task.retry_count == 3
        assert task.error == "HTTP error! status: 503 (x)"
        assert state.queue == []

    @pytest.mark.asyncio
    async def test_zero_retries_fails_on_first_error(self):
        sync_city = FakeSyncCity(failures={"x": ALWAYS})
        orchestrator = _orchestrator(sync_city, max_retries=0)

        orchestrator.start(["x", "y"])
        await orchestrator.wait()

        assert sync_city.calls == ["x", "y"]
        assert [t.city_slug for t in orchestrator.state.failed] == ["x"]

    @pytest.mark.asyncio
    async def test_city_name_comes_from_result(self):
        orchestrator = _orchestrator(FakeSyncCity())
        orchestrator.start(["niksic"], {"niksic": "Nikšić"})
        assert orchestrator.state.pending[0].city_name == "Nikšić"
        await orchestrator.wait()
        assert orchestrator.state.completed[0].city_name == "Niksic"

    @pytest.mark.asyncio
    async def test_only_one_call_in_flight(self):
        in_flight = 0
        peak = 0

        async def sync_city(slug):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0)
            in_flight -= 1
            return SyncResult(1, 0, 1)

        orchestrator = _orchestrator(sync_city)
        orchestrator.start(["a", "b", "c", "d"])
        await orchestrator.wait()
        assert peak == 1


class TestProgress:
    def test_empty_state(self):
        state = SyncQueueState()
        assert state.progress_percent == 0
        assert state.processed_cities == 0
        assert not state.finished

    def test_half_percent_rounds_up(self):
        state = SyncQueueState(total_cities=8)
        state.completed.append(SyncTask(city_slug="bar", city_name="Bar"))
        assert state.progress_percent == 13

        state.completed.extend(
            SyncTask(city_slug=f"c{i}", city_name=f"C{i}") for i in range(2)
        )
        assert state.progress_percent == 38

    @pytest.mark.asyncio
    async def test_progress_and_summary_after_run(self):
        orchestrator = _orchestrator(FakeSyncCity(failures={"b": ALWAYS}), max_retries=1)
        orchestrator.start(["a", "b", "c"])
        await orchestrator.wait()

        state = orchestrator.state
        assert state.total_cities == 3
        assert state.processed_cities == 3
        assert state.progress_percent == 100
        assert state.finished
        assert state.summary() == "2 cities synced successfully, 1 failed."

    @pytest.mark.asyncio
    async def test_progress_mid_run(self):
        gate = asyncio.Event()
        orchestrator = _orchestrator(FakeSyncCity(gates={"c": gate}))
        orchestrator.start(["a", "b", "c"])

        await _until(lambda: orchestrator.state.current is not None
                     and orchestrator.state.current.city_slug == "c")
        state = orchestrator.state
        assert state.processed_cities == 2
        assert state.progress_percent == 67
        assert state.current.status == SyncStatus.SYNCING
        assert not state.finished

        gate.set()
        await orchestrator.wait()
        assert orchestrator.state.progress_percent == 100


class TestRunControl:
    def test_start_requires_cities(self):
        orchestrator = _orchestrator(FakeSyncCity())
        with pytest.raises(ValueError):
            orchestrator.start([])
        assert not orchestrator.in_progress

    @pytest.mark.asyncio
    async def test_start_while_running_is_rejected(self):
        gate = asyncio.Event()
        orchestrator = _orchestrator(FakeSyncCity(gates={"a": gate}))
        orchestrator.start(["a", "b"])

        with pytest.raises(SyncAlreadyRunning):
            orchestrator.start(["c"])
        assert orchestrator.state.total_cities == 2

        gate.set()
        await orchestrator.wait()

    @pytest.mark.asyncio
    async def test_stop_discards_in_flight_result(self):
        gate = asyncio.Event()
        sync_city = FakeSyncCity(gates={"a": gate})
        orchestrator = _orchestrator(sync_city)
        orchestrator.start(["a", "b"])

        await _until(lambda: orchestrator.state.current is not None)
        orchestrator.stop()
        assert not orchestrator.in_progress

        gate.set()
        await orchestrator.wait()

        state = orchestrator.state
        assert sync_city.calls == ["a"]
        assert state.completed == []
        assert state.failed == []
        assert state.queue == ["b"]
        # the abandoned task is left as it was when the run stopped
        assert state.current.city_slug == "a"
        assert state.current.status == SyncStatus.SYNCING

    @pytest.mark.asyncio
    async def test_stop_when_idle_is_noop(self):
        orchestrator = _orchestrator(FakeSyncCity())
        orchestrator.stop()
        assert orchestrator.state.total_cities == 0

    @pytest.mark.asyncio
    async def test_restart_ignores_result_of_previous_run(self):
        gate = asyncio.Event()
        sync_city = FakeSyncCity(gates={"old": gate})
        orchestrator = _orchestrator(sync_city)

        orchestrator.start(["old"])
        first_run = orchestrator._task
        await _until(lambda: orchestrator.state.current is not None)
        orchestrator.stop()

        orchestrator.start(["new"])
        await orchestrator.wait()
        gate.set()
        await first_run

        state = orchestrator.state
        assert [t.city_slug for t in state.completed] == ["new"]
        assert state.failed == []
        assert state.total_cities == 1
        assert state.finished

    @pytest.mark.asyncio
    async def test_clear_resets_finished_run(self):
        orchestrator = _orchestrator(FakeSyncCity())
        orchestrator.start(["a"])
        await orchestrator.wait()

        orchestrator.clear()
        state = orchestrator.state
        assert state.completed == []
        assert state.total_cities == 0
        assert state.current is None

    @pytest.mark.asyncio
    async def test_clear_while_running_is_rejected(self):
        gate = asyncio.Event()
        orchestrator = _orchestrator(FakeSyncCity(gates={"a": gate}))
        orchestrator.start(["a"])

        with pytest.raises(SyncAlreadyRunning):
            orchestrator.clear()

        gate.set()
        await orchestrator.wait()

    @pytest.mark.asyncio
    async def test_shutdown_cancels_in_flight_call(self):
        gate = asyncio.Event()
        orchestrator = _orchestrator(FakeSyncCity(gates={"a": gate}))
        orchestrator.start(["a"])
        await _until(lambda: orchestrator.state.current is not None)

        await orchestrator.shutdown()

        assert not orchestrator.in_progress
        assert orchestrator._task.done()
