"""
Progress estimation for running jobs.

Executors report progress as record-count deltas. The estimator folds
each report into the job snapshot, derives throughput (records/minute)
and the estimated time remaining, and completes the job when it reaches
100%. The arithmetic is a pure function of the stored job and the event
so a stream of reports can be replayed deterministically.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from ..config import MonitoringConfig
from ..errors import ErrorContext, InvalidProgressError
from ..events import HookManager, JobEvent, JobEventType
from ..jobs import BatchJob, JobStatus, JobStore, LifecycleController
from ..logging import StructuredLogger, get_logger


@dataclass(frozen=True)
class ProgressUpdate:
    """One progress report from the executor feed."""
    job_id: str
    records_processed_delta: int
    timestamp: float
    error_count_delta: int = 0

    def validate(self) -> None:
        if self.records_processed_delta < 0:
            raise InvalidProgressError(
                "records_processed_delta cannot be negative",
                context=ErrorContext(job_id=self.job_id, operation="report_progress"),
            )
        if self.error_count_delta < 0:
            raise InvalidProgressError(
                "error_count_delta cannot be negative",
                context=ErrorContext(job_id=self.job_id, operation="report_progress"),
            )


@dataclass(frozen=True)
class ProgressEstimate:
    """Derived figures for one progress report."""
    records_processed: int
    progress: float
    elapsed_minutes: float
    throughput: float
    estimated_time_remaining_minutes: float
    error_count: int

    @property
    def completed(self) -> bool:
        return self.progress >= 100.0


def estimate_progress(
    job: BatchJob,
    update: ProgressUpdate,
    *,
    min_elapsed_minutes: float = 1.0,
) -> ProgressEstimate:
    """Compute the new progress figures for a running job."""
    records = min(job.records_total, job.records_processed + update.records_processed_delta)

    if job.records_total > 0:
        progress = max(job.progress, 100.0 * records / job.records_total)
    else:
        progress = job.progress
    progress = min(100.0, progress)

    if job.start_time is None:
        elapsed = min_elapsed_minutes
    else:
        elapsed = max(min_elapsed_minutes, (update.timestamp - job.start_time) / 60.0)

    throughput = records / elapsed
    if throughput > 0:
        remaining = (job.records_total - records) / throughput
    else:
        remaining = job.estimated_duration_minutes

    return ProgressEstimate(
        records_processed=records,
        progress=progress,
        elapsed_minutes=elapsed,
        throughput=throughput,
        estimated_time_remaining_minutes=remaining,
        error_count=job.error_count + update.error_count_delta,
    )


def apply_estimate(job: BatchJob, estimate: ProgressEstimate, timestamp: float) -> BatchJob:
    """Fold an estimate into a new job snapshot (status unchanged)."""
    return job.evolve(
        records_processed=estimate.records_processed,
        progress=estimate.progress,
        throughput=estimate.throughput,
        estimated_time_remaining_minutes=estimate.estimated_time_remaining_minutes,
        error_count=estimate.error_count,
        last_progress_at=timestamp,
    )


def synthetic_update(job: BatchJob, percent: float, timestamp: float) -> ProgressUpdate:
    """Build a report advancing a job by a fixed share of its records.

    Stands in for an executor feed in demos; the increment is fixed so
    repeated runs produce identical histories.
    """
    delta = math.ceil(job.records_total * max(0.0, percent) / 100.0)
    return ProgressUpdate(job_id=job.job_id, records_processed_delta=delta, timestamp=timestamp)


class ProgressEstimator:
    """Applies progress reports to running jobs."""

    def __init__(
        self,
        store: JobStore,
        controller: LifecycleController,
        *,
        config: MonitoringConfig | None = None,
        hooks: HookManager | None = None,
        logger: StructuredLogger | None = None,
    ):
        self._store = store
        self._controller = controller
        self._config = config or MonitoringConfig()
        self._hooks = hooks or HookManager()
        self._logger = logger or get_logger()

    async def report(self, update: ProgressUpdate) -> BatchJob:
        """Apply one progress report.

        Reports for jobs that are not running are ignored and the
        unchanged job is returned.

        Raises:
            JobNotFoundError: If the job doesn't exist
            InvalidProgressError: If a delta is negative
        """
        update.validate()
        job = await self._store.require(update.job_id)

        if job.status != JobStatus.RUNNING:
            self._logger.log_noop(
                job.job_id, "report_progress", job.status.value, "job is not running"
            )
            return job

        estimate = estimate_progress(
            job, update, min_elapsed_minutes=self._config.min_elapsed_minutes
        )
        updated = apply_estimate(job, estimate, update.timestamp)

        if estimate.completed:
            return await self._controller.complete(updated, now=update.timestamp)

        updated = await self._store.update(updated)
        self._logger.debug(
            f"Job {job.job_id} progress {estimate.progress:.1f}%",
            job_id=job.job_id,
            records_processed=estimate.records_processed,
            throughput=round(estimate.throughput, 2),
        )
        await self._hooks.emit(JobEvent(
            type=JobEventType.JOB_PROGRESS,
            timestamp=update.timestamp,
            job_id=job.job_id,
            job_name=job.name,
            data={
                "progress": estimate.progress,
                "records_processed": estimate.records_processed,
                "throughput": estimate.throughput,
                "estimated_time_remaining_minutes": estimate.estimated_time_remaining_minutes,
            },
        ))
        return updated


__all__ = [
    "ProgressUpdate",
    "ProgressEstimate",
    "ProgressEstimator",
    "estimate_progress",
    "apply_estimate",
    "synthetic_update",
]
