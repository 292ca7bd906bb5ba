"""
Batch runtime - the command surface for the job queue.

This module provides the BatchRuntime that wires the job store,
lifecycle controller, progress estimator, queue scheduler and monitoring
aggregator together, and exposes the command vocabulary consumed by the
UI/API layer. Every mutating command passes through one asyncio.Lock, so
updates to a job are applied one at a time.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any

from .config import Settings
from .errors import BatchRuntimeError
from .events import (
    EventBus,
    EventSubscription,
    HookManager,
    InMemoryEventBus,
    JobEvent,
    JobEventType,
)
from .jobs import (
    BatchJob,
    InMemoryJobStore,
    JobAction,
    JobFilter,
    JobPriority,
    JobSpec,
    JobStore,
    LifecycleController,
)
from .logging import StructuredLogger
from .monitoring import (
    JobStats,
    MonitoringAggregator,
    MonitoringMetrics,
    Notification,
    compute_job_stats,
)
from .progress import ProgressEstimator, ProgressUpdate
from .queue import QueueScheduler, QueueStats


class BatchRuntime:
    """Job queue runtime.

    Construct one per process with `BatchRuntime.create()` and hand it to
    every collaborator that needs to issue commands or read jobs.

    Example:
        ```python
        runtime = BatchRuntime.create()
        job = await runtime.create_job(JobSpec(name="Customers", records_total=1000))
        await runtime.start_next()
        await runtime.report_progress(job.job_id, 250)
        metrics = await runtime.refresh_metrics()
        ```
    """

    def __init__(
        self,
        *,
        store: JobStore,
        controller: LifecycleController,
        estimator: ProgressEstimator,
        scheduler: QueueScheduler,
        aggregator: MonitoringAggregator,
        hooks: HookManager,
        event_bus: EventBus,
        settings: Settings,
        logger: StructuredLogger,
        lock: asyncio.Lock,
        clock: Callable[[], float] = time.time,
    ):
        self._store = store
        self._controller = controller
        self._estimator = estimator
        self._scheduler = scheduler
        self._aggregator = aggregator
        self._hooks = hooks
        self._event_bus = event_bus
        self._settings = settings
        self._logger = logger
        self._lock = lock
        self._clock = clock

    @classmethod
    def create(
        cls,
        settings: Settings | None = None,
        *,
        store: JobStore | None = None,
        event_bus: EventBus | None = None,
        logger: StructuredLogger | None = None,
        clock: Callable[[], float] = time.time,
    ) -> BatchRuntime:
        """Create a runtime with in-memory defaults for anything not supplied."""
        settings = settings or Settings()
        store = store or InMemoryJobStore()
        event_bus = event_bus or InMemoryEventBus()
        logger = logger or StructuredLogger(
            "batch_runtime",
            level=settings.logging.level,
            json_output=settings.logging.format == "json",
        )
        lock = asyncio.Lock()
        hooks = HookManager()

        controller = LifecycleController(
            store,
            config=settings.queue,
            hooks=hooks,
            logger=logger,
            clock=clock,
        )
        estimator = ProgressEstimator(
            store,
            controller,
            config=settings.monitoring,
            hooks=hooks,
            logger=logger,
        )
        scheduler = QueueScheduler(
            store,
            controller,
            config=settings.queue,
            hooks=hooks,
            logger=logger,
            clock=clock,
        )
        aggregator = MonitoringAggregator(
            store,
            config=settings.monitoring,
            estimator=estimator,
            event_bus=event_bus,
            lock=lock,
            logger=logger,
            clock=clock,
        )
        hooks.add(aggregator)
        hooks.add(event_bus)

        return cls(
            store=store,
            controller=controller,
            estimator=estimator,
            scheduler=scheduler,
            aggregator=aggregator,
            hooks=hooks,
            event_bus=event_bus,
            settings=settings,
            logger=logger,
            lock=lock,
            clock=clock,
        )

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def store(self) -> JobStore:
        return self._store

    @property
    def event_bus(self) -> EventBus:
        return self._event_bus

    @property
    def aggregator(self) -> MonitoringAggregator:
        return self._aggregator

    @asynccontextmanager
    async def _command(self, operation: str, **context: Any) -> AsyncIterator[None]:
        """Serialize a mutating command and log any error it surfaces."""
        async with self._lock:
            with self._logger.trace_context(operation=operation, **context):
                try:
                    yield
                except BatchRuntimeError as e:
                    self._logger.log_error(e, f"{operation} failed")
                    raise

    # === Commands ===

    async def create_job(self, spec: JobSpec, *, actor: str | None = None) -> BatchJob:
        """Validate a spec and add the job at the end of the queue.

        Raises:
            InvalidJobSpecError: If the spec is malformed
            DuplicateJobError: If spec.job_id is already taken
        """
        async with self._command("create_job"):
            job = await self._store.create(spec.build(self._clock()))
            self._logger.info(
                f"Job {job.job_id} created ({job.status.value})",
                job_id=job.job_id,
                priority=job.priority.value,
            )
            await self._hooks.emit(JobEvent(
                type=JobEventType.JOB_CREATED,
                timestamp=job.created_at,
                job_id=job.job_id,
                job_name=job.name,
                actor=actor or job.created_by,
                data={"status": job.status.value, "priority": job.priority.value},
            ))
            return job

    async def apply_action(
        self,
        job_id: str,
        action: JobAction | str,
        *,
        actor: str | None = None,
    ) -> BatchJob:
        """Apply start/pause/resume/stop/cancel/retry/delete to a job."""
        name = action.value if isinstance(action, JobAction) else str(action)
        async with self._command("apply_action", job_id=job_id, action=name):
            return await self._controller.apply(job_id, action, actor=actor)

    async def set_priority(
        self,
        job_id: str,
        priority: JobPriority | str,
        *,
        actor: str | None = None,
    ) -> BatchJob:
        async with self._command("set_priority", job_id=job_id):
            return await self._scheduler.set_priority(job_id, priority, actor=actor)

    async def reorder_queue(
        self,
        job_ids: list[str],
        *,
        actor: str | None = None,
    ) -> list[BatchJob]:
        async with self._command("reorder_queue"):
            return await self._scheduler.reorder_queue(job_ids, actor=actor)

    async def optimize_queue(self, *, actor: str | None = None) -> list[BatchJob]:
        async with self._command("optimize_queue"):
            return await self._scheduler.optimize_queue(actor=actor)

    async def start_next(
        self,
        max_concurrent_jobs: int | None = None,
        *,
        actor: str | None = None,
    ) -> list[BatchJob]:
        """Admit waiting jobs up to the cap; returns the jobs started."""
        async with self._command("start_next"):
            return await self._scheduler.start_next(max_concurrent_jobs, actor=actor)

    async def report_progress(
        self,
        job_id: str,
        records_processed_delta: int,
        timestamp: float | None = None,
        *,
        error_count_delta: int = 0,
    ) -> BatchJob:
        """Executor-facing progress feed."""
        update = ProgressUpdate(
            job_id=job_id,
            records_processed_delta=records_processed_delta,
            timestamp=self._clock() if timestamp is None else timestamp,
            error_count_delta=error_count_delta,
        )
        async with self._command("report_progress", job_id=job_id):
            return await self._estimator.report(update)

    def set_max_concurrent_jobs(self, value: int) -> None:
        self._scheduler.set_max_concurrent_jobs(value)

    # === Read model ===

    async def get_job(self, job_id: str) -> BatchJob:
        """Get a job or raise JobNotFoundError."""
        return await self._store.require(job_id)

    async def list_jobs(self, filter: JobFilter | None = None) -> list[BatchJob]:
        """Jobs in queue order."""
        return await self._store.list(filter)

    async def queue_view(self, filter: JobFilter | None = None) -> list[BatchJob]:
        """Jobs in display (priority) order."""
        return await self._scheduler.queue_view(filter)

    async def queue_stats(self) -> QueueStats:
        return await self._scheduler.queue_stats()

    async def job_stats(self) -> JobStats:
        return compute_job_stats(await self._store.list())

    def get_metrics(self) -> MonitoringMetrics:
        """Metrics from the last monitoring tick."""
        return self._aggregator.metrics

    async def refresh_metrics(self) -> MonitoringMetrics:
        """Run one monitoring tick now and return its metrics."""
        return await self._aggregator.tick()

    def get_notifications(self) -> list[Notification]:
        return self._aggregator.notifications()

    def clear_notifications(self) -> None:
        self._aggregator.clear_notifications()

    # === Monitoring ===

    @property
    def is_monitoring(self) -> bool:
        return self._aggregator.is_monitoring

    async def start_monitoring(self) -> None:
        await self._aggregator.start()

    async def stop_monitoring(self) -> None:
        await self._aggregator.stop()

    # === Events ===

    def subscribe(
        self,
        job_id: str | None = None,
        event_types: set[JobEventType] | None = None,
    ) -> EventSubscription:
        return self._event_bus.subscribe(job_id=job_id, event_types=event_types)

    def events(self, subscription: EventSubscription) -> AsyncIterator[JobEvent]:
        return self._event_bus.events(subscription)

    async def close(self) -> None:
        """Stop monitoring and close the event bus."""
        await self._aggregator.stop()
        await self._event_bus.close()

    async def __aenter__(self) -> BatchRuntime:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()


__all__ = [
    "BatchRuntime",
]
