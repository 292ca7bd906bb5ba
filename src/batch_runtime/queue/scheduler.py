"""
Queue scheduler: ordering and admission of waiting jobs.

This module provides:
- priority_order: display ordering by priority, then status
- optimize_order: critical first, then shortest job first
- QueueScheduler: reordering commands and concurrency-capped admission
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from ..config import MAX_CONCURRENT_JOBS, MIN_CONCURRENT_JOBS, QueueConfig
from ..errors import ErrorContext, ValidationError
from ..events import HookManager, JobEvent, JobEventType
from ..jobs import (
    PRIORITY_RANK,
    STATUS_RANK,
    BatchJob,
    JobAction,
    JobFilter,
    JobPriority,
    JobStatus,
    JobStore,
    LifecycleController,
    coerce_priority,
)
from ..logging import StructuredLogger, get_logger

QUEUED_STATUSES = {JobStatus.PENDING, JobStatus.SCHEDULED}


def priority_order(jobs: Iterable[BatchJob]) -> list[BatchJob]:
    """Sort by priority rank, then status rank. Ties keep queue order."""
    return sorted(jobs, key=lambda j: (PRIORITY_RANK[j.priority], STATUS_RANK[j.status]))


def optimize_order(jobs: Iterable[BatchJob]) -> list[BatchJob]:
    """Sort critical jobs first, then by ascending baseline duration, then priority."""
    return sorted(
        jobs,
        key=lambda j: (
            0 if j.priority == JobPriority.CRITICAL else 1,
            j.estimated_duration_minutes,
            PRIORITY_RANK[j.priority],
        ),
    )


@dataclass(frozen=True)
class QueueStats:
    """Summary of the waiting queue."""
    total_in_queue: int
    running: int
    critical_pending: int
    estimated_wait_minutes: float
    max_concurrent_jobs: int

    @property
    def available_slots(self) -> int:
        return max(0, self.max_concurrent_jobs - self.running)

    @property
    def can_start_more(self) -> bool:
        return self.running < self.max_concurrent_jobs

    def to_dict(self) -> dict[str, object]:
        return {
            "total_in_queue": self.total_in_queue,
            "running": self.running,
            "critical_pending": self.critical_pending,
            "estimated_wait_minutes": self.estimated_wait_minutes,
            "max_concurrent_jobs": self.max_concurrent_jobs,
            "available_slots": self.available_slots,
            "can_start_more": self.can_start_more,
        }


class QueueScheduler:
    """Orders waiting jobs and admits them under the concurrency cap."""

    def __init__(
        self,
        store: JobStore,
        controller: LifecycleController,
        *,
        config: QueueConfig | None = None,
        hooks: HookManager | None = None,
        logger: StructuredLogger | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self._store = store
        self._controller = controller
        self._config = config or controller.config
        self._hooks = hooks or HookManager()
        self._logger = logger or get_logger()
        self._clock = clock

    @property
    def max_concurrent_jobs(self) -> int:
        return self._config.max_concurrent_jobs

    def set_max_concurrent_jobs(self, value: int) -> None:
        """Change the concurrency cap (1..10)."""
        if not MIN_CONCURRENT_JOBS <= value <= MAX_CONCURRENT_JOBS:
            raise ValidationError(
                f"max_concurrent_jobs must be between {MIN_CONCURRENT_JOBS} "
                f"and {MAX_CONCURRENT_JOBS}, got {value}",
                context=ErrorContext(operation="set_max_concurrent_jobs"),
            )
        self._config.max_concurrent_jobs = value
        self._logger.info("Concurrency cap changed", max_concurrent_jobs=value)

    async def queue_view(self, filter: JobFilter | None = None) -> list[BatchJob]:
        """Jobs matching the filter in display (priority) order."""
        return priority_order(await self._store.list(filter))

    async def optimize_queue(self, *, actor: str | None = None) -> list[BatchJob]:
        """Reorder the whole queue with the optimize key and return it."""
        jobs = optimize_order(await self._store.list())
        ordered = await self._store.reorder([j.job_id for j in jobs])
        await self._emit_reordered(ordered, "optimize", actor)
        return ordered

    async def reorder_queue(
        self,
        job_ids: list[str],
        *,
        actor: str | None = None,
    ) -> list[BatchJob]:
        """Apply an explicit manual ordering of the listed jobs."""
        ordered = await self._store.reorder(job_ids)
        await self._emit_reordered(ordered, "manual", actor)
        return ordered

    async def set_priority(
        self,
        job_id: str,
        priority: JobPriority | str,
        *,
        actor: str | None = None,
    ) -> BatchJob:
        """Change a job's priority. Setting the current priority is a no-op."""
        priority = coerce_priority(priority)
        job = await self._store.require(job_id)
        if job.priority == priority:
            return job

        updated = await self._store.update(job.evolve(priority=priority))
        self._logger.info(
            f"Job {job_id} priority {job.priority.value} -> {priority.value}",
            job_id=job_id,
        )
        await self._hooks.emit(JobEvent(
            type=JobEventType.JOB_PRIORITY_CHANGED,
            timestamp=self._clock(),
            job_id=job_id,
            job_name=job.name,
            actor=actor or self._config.default_actor,
            data={"priority": priority.value, "previous_priority": job.priority.value},
        ))
        return updated

    async def start_next(
        self,
        max_concurrent_jobs: int | None = None,
        *,
        actor: str | None = None,
    ) -> list[BatchJob]:
        """Start waiting jobs in priority order until the cap is reached.

        Returns:
            The jobs that were started (empty when no slot is free).
        """
        cap = max_concurrent_jobs if max_concurrent_jobs is not None else self.max_concurrent_jobs
        jobs = await self._store.list()
        running = sum(1 for j in jobs if j.status == JobStatus.RUNNING)
        slots = cap - running
        if slots <= 0:
            self._logger.debug("No free slots", running=running, max_concurrent_jobs=cap)
            return []

        candidates = priority_order(j for j in jobs if j.status in QUEUED_STATUSES)[:slots]
        started = []
        for job in candidates:
            result = await self._controller.apply(
                job.job_id,
                JobAction.START,
                actor=actor,
                max_concurrent_jobs=cap,
            )
            if result.status == JobStatus.RUNNING:
                started.append(result)
        return started

    async def queue_stats(self) -> QueueStats:
        """Compute the queue summary shown above the queue table."""
        jobs = await self._store.list()
        queued = [j for j in jobs if j.status in QUEUED_STATUSES]
        return QueueStats(
            total_in_queue=len(queued),
            running=sum(1 for j in jobs if j.status == JobStatus.RUNNING),
            critical_pending=sum(1 for j in queued if j.priority == JobPriority.CRITICAL),
            estimated_wait_minutes=sum(j.estimated_duration_minutes for j in queued),
            max_concurrent_jobs=self.max_concurrent_jobs,
        )

    async def _emit_reordered(
        self,
        jobs: list[BatchJob],
        mode: str,
        actor: str | None,
    ) -> None:
        self._logger.info(f"Queue reordered ({mode})", job_count=len(jobs))
        await self._hooks.emit(JobEvent(
            type=JobEventType.QUEUE_REORDERED,
            timestamp=self._clock(),
            actor=actor or self._config.default_actor,
            data={"mode": mode, "order": [j.job_id for j in jobs]},
        ))


__all__ = [
    "QueueScheduler",
    "QueueStats",
    "priority_order",
    "optimize_order",
    "QUEUED_STATUSES",
]
