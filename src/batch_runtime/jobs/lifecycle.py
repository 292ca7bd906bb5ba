"""
Lifecycle controller for job state transitions.

This module applies named actions (start/pause/resume/stop/cancel/retry/
delete) to jobs, enforcing the status state machine, recording the action
history trail and emitting a JobEvent for every applied transition.

Actions issued from a status that does not permit them are no-ops by
default: the unchanged job is returned. With strict transitions enabled
they raise InvalidTransitionError instead.
"""

from __future__ import annotations

import dataclasses
import time
from collections.abc import Callable

from ..config import QueueConfig
from ..errors import ConcurrencyLimitError, InvalidTransitionError
from ..events import HookManager, JobEvent, JobEventType
from ..logging import StructuredLogger, get_logger
from .store import JobFilter, JobStore
from .types import TARGET_STATUS, BatchJob, JobAction, JobParameters, JobStatus, coerce_action

STOP_REASON = "Stopped by user"
CANCEL_REASON = "Cancelled by user"

ACTION_EVENTS: dict[JobAction, JobEventType] = {
    JobAction.START: JobEventType.JOB_STARTED,
    JobAction.PAUSE: JobEventType.JOB_PAUSED,
    JobAction.RESUME: JobEventType.JOB_RESUMED,
    JobAction.STOP: JobEventType.JOB_STOPPED,
    JobAction.CANCEL: JobEventType.JOB_CANCELLED,
    JobAction.RETRY: JobEventType.JOB_RETRIED,
    JobAction.DELETE: JobEventType.JOB_DELETED,
}

# Actions that move a job into a concurrency slot.
CAPPED_ACTIONS = frozenset({JobAction.START, JobAction.RESUME})


def transition(job: BatchJob, action: JobAction, now: float, actor: str) -> BatchJob:
    """Apply the side effects of a valid action and return the new snapshot.

    The caller is responsible for checking `job.can_apply(action)`; DELETE
    has no resulting snapshot and is not accepted here.
    """
    if action == JobAction.DELETE:
        raise ValueError("delete has no resulting job snapshot")

    params = job.parameters.with_action(action.value, now, actor)
    status = TARGET_STATUS[action]

    if action == JobAction.START:
        return job.evolve(
            status=status,
            start_time=now,
            throughput=0.0,
            last_progress_at=now,
            parameters=params,
        )

    if action == JobAction.PAUSE:
        remaining = job.estimated_time_remaining_minutes
        if remaining is None:
            remaining = job.estimated_duration_minutes
        return job.evolve(
            status=status,
            estimated_time_remaining_minutes=remaining,
            parameters=params,
        )

    if action == JobAction.RESUME:
        return job.evolve(
            status=status,
            start_time=job.start_time if job.start_time is not None else now,
            last_progress_at=now,
            parameters=params,
        )

    if action in (JobAction.STOP, JobAction.CANCEL):
        reason = STOP_REASON if action == JobAction.STOP else CANCEL_REASON
        return job.evolve(
            status=status,
            end_time=now,
            throughput=0.0,
            estimated_time_remaining_minutes=0.0,
            parameters=_replace_params(params, cancellation_reason=reason),
        )

    # RETRY
    return job.evolve(
        status=status,
        progress=0.0,
        records_processed=0,
        start_time=None,
        end_time=None,
        last_progress_at=None,
        throughput=0.0,
        error_count=0,
        estimated_time_remaining_minutes=job.estimated_duration_minutes,
        parameters=_replace_params(
            params,
            retry_count=params.retry_count + 1,
            retry_timestamp=now,
        ),
    )


def complete(job: BatchJob, now: float, actor: str = "system") -> BatchJob:
    """Terminal transition of a running job that reached 100%."""
    return job.evolve(
        status=JobStatus.COMPLETED,
        progress=100.0,
        records_processed=job.records_total,
        end_time=now,
        estimated_time_remaining_minutes=0.0,
        parameters=job.parameters.with_action("complete", now, actor),
    )


def _replace_params(params: JobParameters, **changes) -> JobParameters:
    return dataclasses.replace(params, **changes)


class LifecycleController:
    """Applies lifecycle actions to jobs held in a JobStore.

    The controller does not serialize callers itself; the runtime funnels
    every mutating command through one lock before calling in.
    """

    def __init__(
        self,
        store: JobStore,
        *,
        config: QueueConfig | None = None,
        hooks: HookManager | None = None,
        logger: StructuredLogger | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self._store = store
        self._config = config or QueueConfig()
        self._hooks = hooks or HookManager()
        self._logger = logger or get_logger()
        self._clock = clock

    @property
    def config(self) -> QueueConfig:
        return self._config

    async def apply(
        self,
        job_id: str,
        action: JobAction | str,
        *,
        actor: str | None = None,
        max_concurrent_jobs: int | None = None,
    ) -> BatchJob:
        """Apply a named action to a job.

        `max_concurrent_jobs` overrides the configured cap for this call.

        Returns:
            The new job snapshot; the unchanged job for a no-op; the last
            snapshot of the job for a successful delete.

        Raises:
            JobNotFoundError: If the job doesn't exist
            InvalidActionError: If the action name is unknown
            InvalidTransitionError: Invalid action in strict mode
            ConcurrencyLimitError: Start or resume over the cap in strict mode
        """
        action = coerce_action(action)
        actor = actor or self._config.default_actor
        job = await self._store.require(job_id)

        if not job.can_apply(action):
            return self._reject(job, action)

        if action in CAPPED_ACTIONS and self._config.enforce_cap_on_start:
            cap = (
                max_concurrent_jobs
                if max_concurrent_jobs is not None
                else self._config.max_concurrent_jobs
            )
            running = await self._store.count(JobFilter(status=JobStatus.RUNNING))
            if running >= cap:
                if self._config.strict_transitions:
                    raise ConcurrencyLimitError(job.job_id, cap, action=action.value)
                self._logger.log_noop(
                    job.job_id, action.value, job.status.value, "concurrency limit reached"
                )
                return job

        now = self._clock()

        if action == JobAction.DELETE:
            await self._store.delete(job.job_id)
            self._logger.log_transition(job.job_id, action.value, job.status.value, None)
            await self._emit(job, JobEventType.JOB_DELETED, actor, now, job.status)
            return job

        updated = await self._store.update(transition(job, action, now, actor))
        self._logger.log_transition(
            job.job_id, action.value, job.status.value, updated.status.value
        )
        await self._emit(updated, ACTION_EVENTS[action], actor, now, job.status)
        return updated

    async def complete(
        self,
        job: BatchJob,
        *,
        now: float | None = None,
        actor: str = "system",
    ) -> BatchJob:
        """Move a running job to completed and announce it."""
        if now is None:
            now = self._clock()
        updated = await self._store.update(complete(job, now, actor))
        self._logger.log_transition(
            job.job_id, "complete", job.status.value, updated.status.value
        )
        await self._emit(updated, JobEventType.JOB_COMPLETED, actor, now, job.status)
        return updated

    def _reject(self, job: BatchJob, action: JobAction) -> BatchJob:
        if self._config.strict_transitions:
            raise InvalidTransitionError(job.job_id, action.value, job.status.value)
        self._logger.log_noop(
            job.job_id, action.value, job.status.value, "action not valid from this status"
        )
        return job

    async def _emit(
        self,
        job: BatchJob,
        event_type: JobEventType,
        actor: str,
        now: float,
        previous_status: JobStatus,
    ) -> None:
        await self._hooks.emit(JobEvent(
            type=event_type,
            timestamp=now,
            job_id=job.job_id,
            job_name=job.name,
            actor=actor,
            data={
                "status": job.status.value,
                "previous_status": previous_status.value,
                "progress": job.progress,
                "cancellation_reason": job.parameters.cancellation_reason,
            },
        ))


__all__ = [
    "LifecycleController",
    "transition",
    "complete",
    "ACTION_EVENTS",
    "CAPPED_ACTIONS",
    "STOP_REASON",
    "CANCEL_REASON",
]
