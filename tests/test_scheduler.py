"""
Tests for queue ordering, admission and queue statistics.
"""
import pytest

from batch_runtime.config import QueueConfig
from batch_runtime.errors import InvalidPriorityError, ValidationError
from batch_runtime.events import HookManager, RecordingHook
from batch_runtime.jobs import InMemoryJobStore, JobPriority, JobStatus, LifecycleController
from batch_runtime.queue import QueueScheduler, optimize_order, priority_order

from .conftest import T0, FakeClock, make_job, make_running_job


def _ids(jobs):
    return [j.job_id for j in jobs]


def _scheduler(store, *, max_concurrent_jobs=3, recorder=None):
    hooks = HookManager([recorder] if recorder else [])
    config = QueueConfig(max_concurrent_jobs=max_concurrent_jobs)
    controller = LifecycleController(store, config=config, hooks=hooks, clock=FakeClock())
    return QueueScheduler(store, controller, config=config, hooks=hooks)


class TestOrdering:
    """Test the pure ordering functions."""

    def test_optimize_order(self):
        jobs = [
            make_job("1", priority=JobPriority.LOW, duration=50),
            make_job("2", priority=JobPriority.CRITICAL, duration=30),
            make_job("3", priority=JobPriority.MEDIUM, duration=70),
        ]

        assert _ids(optimize_order(jobs)) == ["2", "1", "3"]

    def test_optimize_critical_before_shorter(self):
        jobs = [
            make_job("short", priority=JobPriority.HIGH, duration=5),
            make_job("crit-long", priority=JobPriority.CRITICAL, duration=500),
            make_job("crit-short", priority=JobPriority.CRITICAL, duration=10),
        ]

        assert _ids(optimize_order(jobs)) == ["crit-short", "crit-long", "short"]

    def test_optimize_duration_tie_breaks_on_priority(self):
        jobs = [
            make_job("low", priority=JobPriority.LOW, duration=30),
            make_job("high", priority=JobPriority.HIGH, duration=30),
        ]

        assert _ids(optimize_order(jobs)) == ["high", "low"]

    def test_priority_order(self):
        jobs = [
            make_job("low", priority=JobPriority.LOW),
            make_job("high-running", priority=JobPriority.HIGH, status=JobStatus.RUNNING),
            make_job("high-pending", priority=JobPriority.HIGH),
            make_job("critical", priority=JobPriority.CRITICAL, status=JobStatus.FAILED),
        ]

        assert _ids(priority_order(jobs)) == ["critical", "high-pending", "high-running", "low"]

    def test_priority_order_is_stable(self):
        jobs = [make_job(x) for x in "cab"]

        assert _ids(priority_order(jobs)) == ["c", "a", "b"]


class TestStartNext:
    """Test concurrency-capped admission."""

    @pytest.mark.asyncio
    async def test_fills_free_slots_in_order(self):
        store = InMemoryJobStore([make_job("A"), make_job("B"), make_job("C")])

        started = await _scheduler(store).start_next(2)

        assert _ids(started) == ["A", "B"]
        assert (await store.require("A")).status == JobStatus.RUNNING
        assert (await store.require("B")).status == JobStatus.RUNNING
        assert (await store.require("C")).status == JobStatus.PENDING

    @pytest.mark.asyncio
    async def test_counts_running_jobs(self):
        store = InMemoryJobStore([make_running_job("R"), make_job("A"), make_job("B")])

        started = await _scheduler(store, max_concurrent_jobs=2).start_next()

        assert _ids(started) == ["A"]
        assert (await store.require("B")).status == JobStatus.PENDING

    @pytest.mark.asyncio
    async def test_no_free_slots(self):
        store = InMemoryJobStore([make_running_job("R"), make_job("A")])

        assert await _scheduler(store).start_next(1) == []
        assert (await store.require("A")).status == JobStatus.PENDING

    @pytest.mark.asyncio
    async def test_prefers_higher_priority(self):
        store = InMemoryJobStore([
            make_job("low", priority=JobPriority.LOW),
            make_job("crit", priority=JobPriority.CRITICAL),
            make_job("sched", status=JobStatus.SCHEDULED, priority=JobPriority.HIGH),
        ])

        started = await _scheduler(store).start_next(2)

        assert _ids(started) == ["crit", "sched"]

    @pytest.mark.asyncio
    async def test_skips_non_queued(self):
        store = InMemoryJobStore([
            make_job("paused", status=JobStatus.PAUSED),
            make_job("failed", status=JobStatus.FAILED),
            make_job("done", status=JobStatus.COMPLETED),
        ])

        assert await _scheduler(store).start_next() == []

    @pytest.mark.asyncio
    async def test_emits_started_events(self):
        recorder = RecordingHook()
        store = InMemoryJobStore([make_job("A"), make_job("B")])

        await _scheduler(store, recorder=recorder).start_next(5)

        assert recorder.types() == ["job.started", "job.started"]

    @pytest.mark.asyncio
    async def test_deterministic(self):
        def seed():
            return InMemoryJobStore([
                make_job("a", priority=JobPriority.MEDIUM),
                make_job("b", priority=JobPriority.HIGH),
                make_job("c", priority=JobPriority.MEDIUM),
                make_job("d", priority=JobPriority.HIGH),
            ])

        first = await _scheduler(seed()).start_next(3)
        second = await _scheduler(seed()).start_next(3)

        assert _ids(first) == _ids(second) == ["b", "d", "a"]


class TestQueueCommands:
    """Test reorder, optimize and priority commands."""

    @pytest.mark.asyncio
    async def test_optimize_queue_persists_order(self):
        recorder = RecordingHook()
        store = InMemoryJobStore([
            make_job("1", priority=JobPriority.LOW, duration=50),
            make_job("2", priority=JobPriority.CRITICAL, duration=30),
            make_job("3", priority=JobPriority.MEDIUM, duration=70),
        ])

        ordered = await _scheduler(store, recorder=recorder).optimize_queue()

        assert _ids(ordered) == ["2", "1", "3"]
        assert _ids(await store.list()) == ["2", "1", "3"]
        assert recorder.types() == ["queue.reordered"]
        assert recorder.events[0].data["mode"] == "optimize"

    @pytest.mark.asyncio
    async def test_optimize_queue_twice_is_stable(self):
        store = InMemoryJobStore([
            make_job("b", priority=JobPriority.MEDIUM, duration=40),
            make_job("a", priority=JobPriority.MEDIUM, duration=40),
            make_job("c", priority=JobPriority.CRITICAL, duration=90),
            make_job("d", priority=JobPriority.LOW, duration=10),
        ])
        scheduler = _scheduler(store)

        first = _ids(await scheduler.optimize_queue())
        second = _ids(await scheduler.optimize_queue())

        assert first == second == ["c", "d", "b", "a"]
        assert _ids(await store.list()) == first

    @pytest.mark.asyncio
    async def test_queue_events_use_clock(self):
        recorder = RecordingHook()
        clock = FakeClock()
        clock.advance(minutes=3)
        store = InMemoryJobStore([make_job("a"), make_job("b")])
        config = QueueConfig()
        controller = LifecycleController(store, config=config, clock=clock)
        scheduler = QueueScheduler(
            store, controller, config=config, hooks=HookManager([recorder]), clock=clock
        )

        await scheduler.set_priority("a", "high")
        await scheduler.reorder_queue(["b", "a"])

        assert recorder.types() == ["queue.priority_changed", "queue.reordered"]
        assert [e.timestamp for e in recorder.events] == [T0 + 180, T0 + 180]

    @pytest.mark.asyncio
    async def test_reorder_queue(self):
        store = InMemoryJobStore([make_job("a"), make_job("b"), make_job("c")])

        ordered = await _scheduler(store).reorder_queue(["c", "b", "a"])

        assert _ids(ordered) == ["c", "b", "a"]

    @pytest.mark.asyncio
    async def test_set_priority(self):
        recorder = RecordingHook()
        store = InMemoryJobStore([make_job("a")])

        job = await _scheduler(store, recorder=recorder).set_priority("a", "critical")

        assert job.priority == JobPriority.CRITICAL
        assert recorder.types() == ["queue.priority_changed"]
        assert recorder.events[0].data["previous_priority"] == "medium"

    @pytest.mark.asyncio
    async def test_set_same_priority_is_noop(self):
        recorder = RecordingHook()
        original = make_job("a", priority=JobPriority.HIGH)
        store = InMemoryJobStore([original])

        job = await _scheduler(store, recorder=recorder).set_priority("a", JobPriority.HIGH)

        assert job is original
        assert recorder.events == []

    @pytest.mark.asyncio
    async def test_set_invalid_priority(self):
        store = InMemoryJobStore([make_job("a")])

        with pytest.raises(InvalidPriorityError):
            await _scheduler(store).set_priority("a", "urgent")


class TestConcurrencySetting:
    """Test the max concurrent jobs setting."""

    def test_set_within_bounds(self):
        scheduler = _scheduler(InMemoryJobStore())

        scheduler.set_max_concurrent_jobs(7)

        assert scheduler.max_concurrent_jobs == 7

    @pytest.mark.parametrize("value", [0, 11])
    def test_out_of_bounds(self, value):
        scheduler = _scheduler(InMemoryJobStore())

        with pytest.raises(ValidationError):
            scheduler.set_max_concurrent_jobs(value)
        assert scheduler.max_concurrent_jobs == 3


class TestQueueStats:
    """Test queue statistics."""

    @pytest.mark.asyncio
    async def test_stats(self):
        store = InMemoryJobStore([
            make_running_job("r"),
            make_job("a", priority=JobPriority.CRITICAL, duration=30),
            make_job("b", status=JobStatus.SCHEDULED, duration=45),
            make_job("c", status=JobStatus.COMPLETED),
        ])

        stats = await _scheduler(store, max_concurrent_jobs=2).queue_stats()

        assert stats.total_in_queue == 2
        assert stats.running == 1
        assert stats.critical_pending == 1
        assert stats.estimated_wait_minutes == 75
        assert stats.available_slots == 1
        assert stats.can_start_more
        assert stats.to_dict()["max_concurrent_jobs"] == 2
