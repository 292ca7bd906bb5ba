"""
Monitoring aggregator.

On every tick the aggregator recomputes MonitoringMetrics from the full
job store; nothing but the store carries over between ticks. As a hook
it also turns lifecycle events into notifications kept in a bounded
buffer, and when a stall timeout is configured it flags running jobs
that stopped reporting progress.

With `synthetic_progress_percent` configured and an estimator attached,
each tick also advances every running job by that share of its records
through the regular progress path.
"""

from __future__ import annotations

import asyncio
import contextlib
import time
from collections.abc import Callable, Iterable

from ..config import MonitoringConfig
from ..events import EventBus, JobEvent, JobEventType
from ..jobs import BatchJob, JobStatus, JobStore
from ..logging import StructuredLogger, get_logger, timed
from ..progress import ProgressEstimator, synthetic_update
from .notifications import NotificationBuffer
from .types import JobStats, MonitoringMetrics, Notification, NotificationType


def compute_metrics(jobs: Iterable[BatchJob]) -> MonitoringMetrics:
    """Derive the system-wide metrics snapshot from a job list."""
    jobs = list(jobs)
    running = [j for j in jobs if j.status == JobStatus.RUNNING]
    completed = [j for j in jobs if j.status == JobStatus.COMPLETED]
    queued = [j for j in jobs if j.status.is_queued]

    durations = [
        (j.end_time - j.start_time) / 60.0
        for j in completed
        if j.start_time is not None and j.end_time is not None
    ]
    average = sum(durations) / len(completed) if completed else 0.0

    return MonitoringMetrics(
        total_throughput=sum(j.throughput or 0.0 for j in running),
        average_job_duration=average,
        system_load=min(100.0, 100.0 * len(running) / max(1, len(jobs))),
        queue_length=len(queued),
        active_jobs=len(running),
    )


def compute_job_stats(jobs: Iterable[BatchJob]) -> JobStats:
    """Per-status totals over a job list."""
    jobs = list(jobs)
    counts = {status: 0 for status in JobStatus}
    for job in jobs:
        counts[job.status] += 1
    return JobStats(
        total=len(jobs),
        pending=counts[JobStatus.PENDING],
        scheduled=counts[JobStatus.SCHEDULED],
        running=counts[JobStatus.RUNNING],
        paused=counts[JobStatus.PAUSED],
        completed=counts[JobStatus.COMPLETED],
        failed=counts[JobStatus.FAILED],
        total_records_processed=sum(j.records_processed for j in jobs),
        total_errors=sum(j.error_count for j in jobs),
        running_throughput=sum(
            j.throughput or 0.0 for j in jobs if j.status == JobStatus.RUNNING
        ),
    )


def notification_for(event: JobEvent) -> Notification | None:
    """Map a job event to the notification it produces, if any."""
    name = event.job_name or event.job_id
    reason = event.data.get("cancellation_reason")

    if event.type == JobEventType.JOB_COMPLETED:
        kind, message = NotificationType.SUCCESS, f'Job "{name}" completed successfully'
    elif event.type == JobEventType.JOB_STOPPED:
        kind, message = NotificationType.ERROR, f'Job "{name}" failed: {reason or "stopped"}'
    elif event.type == JobEventType.JOB_CANCELLED:
        kind, message = NotificationType.WARNING, f'Job "{name}" cancelled'
    elif event.type == JobEventType.JOB_STALLED:
        minutes = event.data.get("idle_minutes", 0.0)
        kind, message = (
            NotificationType.WARNING,
            f'Job "{name}" has not reported progress for {minutes:.0f} minutes',
        )
    elif event.type == JobEventType.MONITORING_STARTED:
        kind, message = NotificationType.INFO, "Real-time monitoring started"
    elif event.type == JobEventType.MONITORING_STOPPED:
        kind, message = NotificationType.INFO, "Real-time monitoring stopped"
    else:
        return None

    return Notification(type=kind, message=message, timestamp=event.timestamp, job_id=event.job_id)


class MonitoringAggregator:
    """Periodic metrics aggregation and notification buffer.

    Register the aggregator with the runtime's HookManager so lifecycle
    events reach `emit`.
    """

    def __init__(
        self,
        store: JobStore,
        *,
        config: MonitoringConfig | None = None,
        estimator: ProgressEstimator | None = None,
        event_bus: EventBus | None = None,
        lock: asyncio.Lock | None = None,
        logger: StructuredLogger | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self._store = store
        self._config = config or MonitoringConfig()
        self._estimator = estimator
        self._event_bus = event_bus
        self._lock = lock
        self._logger = logger or get_logger()
        self._clock = clock

        self._buffer = NotificationBuffer(self._config.notification_capacity)
        self._metrics = MonitoringMetrics()
        self._stalled: dict[str, float | None] = {}
        self._task: asyncio.Task[None] | None = None

    @property
    def metrics(self) -> MonitoringMetrics:
        """The snapshot produced by the last tick."""
        return self._metrics

    @property
    def is_monitoring(self) -> bool:
        return self._task is not None and not self._task.done()

    def notifications(self) -> list[Notification]:
        """Most recent notifications, newest first."""
        return self._buffer.list()

    def clear_notifications(self) -> None:
        self._buffer.clear()

    def emit(self, event: JobEvent) -> None:
        """Hook entry point: record the notification an event maps to."""
        notification = notification_for(event)
        if notification is not None:
            self._buffer.append(notification)

    async def tick(self) -> MonitoringMetrics:
        """Advance synthetic progress, recompute metrics and run the stall check."""
        with timed() as timer:
            if self._lock is not None:
                async with self._lock:
                    jobs = await self._advance_and_list()
            else:
                jobs = await self._advance_and_list()

            self._metrics = compute_metrics(jobs)
            stalled = self._detect_stalls(jobs)

        for event in stalled:
            await self._announce(event)

        self._logger.debug(
            "Monitoring tick",
            duration_ms=round(timer.elapsed_ms, 3),
            **self._metrics.to_dict(),
        )
        return self._metrics

    async def _advance_and_list(self) -> list[BatchJob]:
        jobs = await self._store.list()
        percent = self._config.synthetic_progress_percent
        if percent is None or self._estimator is None:
            return jobs

        now = self._clock()
        for job in jobs:
            if job.status == JobStatus.RUNNING:
                await self._estimator.report(synthetic_update(job, percent, now))
        return await self._store.list()

    def _detect_stalls(self, jobs: list[BatchJob]) -> list[JobEvent]:
        timeout = self._config.stall_timeout_minutes
        if timeout is None:
            return []

        now = self._clock()
        running = {j.job_id: j for j in jobs if j.status == JobStatus.RUNNING}

        # Forget jobs that stopped running or reported progress since flagged.
        for job_id, flagged_at in list(self._stalled.items()):
            job = running.get(job_id)
            if job is None or job.last_progress_at != flagged_at:
                del self._stalled[job_id]

        events = []
        for job in running.values():
            if job.job_id in self._stalled:
                continue
            last = job.last_progress_at if job.last_progress_at is not None else job.start_time
            if last is None:
                continue
            idle_minutes = (now - last) / 60.0
            if idle_minutes >= timeout:
                self._stalled[job.job_id] = job.last_progress_at
                events.append(JobEvent(
                    type=JobEventType.JOB_STALLED,
                    timestamp=now,
                    job_id=job.job_id,
                    job_name=job.name,
                    data={"idle_minutes": idle_minutes},
                ))
        return events

    def stalled_jobs(self) -> list[str]:
        """Ids of running jobs currently flagged as stalled."""
        return list(self._stalled)

    async def start(self) -> None:
        """Start the periodic tick loop. Starting twice is a no-op."""
        if self.is_monitoring:
            return
        await self._announce(JobEvent(type=JobEventType.MONITORING_STARTED, timestamp=self._clock()))
        self._task = asyncio.create_task(self._run())
        self._logger.info(
            "Monitoring started",
            tick_interval_seconds=self._config.tick_interval_seconds,
        )

    async def stop(self) -> None:
        """Stop the tick loop. Stopping while idle is a no-op."""
        if self._task is None:
            return
        task, self._task = self._task, None
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        await self._announce(JobEvent(type=JobEventType.MONITORING_STOPPED, timestamp=self._clock()))
        self._logger.info("Monitoring stopped")

    async def _run(self) -> None:
        while True:
            try:
                await self.tick()
            except Exception as e:
                self._logger.log_error(e, "Monitoring tick failed")
            await asyncio.sleep(self._config.tick_interval_seconds)

    async def _announce(self, event: JobEvent) -> None:
        self.emit(event)
        if self._event_bus is not None:
            await self._event_bus.publish(event)


__all__ = [
    "MonitoringAggregator",
    "compute_metrics",
    "compute_job_stats",
    "notification_for",
]
