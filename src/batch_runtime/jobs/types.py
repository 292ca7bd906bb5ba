"""
Job types for batch runtime.

This module defines the JobStatus/JobPriority/JobAction enums and the
BatchJob dataclass that form the core of the job lifecycle system.

Jobs are immutable snapshots: every change produces a new BatchJob that the
store swaps in atomically, so readers never observe a half-applied update.
"""

from __future__ import annotations

import dataclasses
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..errors import InvalidActionError, InvalidJobSpecError, InvalidPriorityError


class JobStatus(str, Enum):
    """Job lifecycle states.

    State transitions:
    - PENDING/SCHEDULED -> RUNNING (start)
    - RUNNING -> PAUSED (pause)
    - PAUSED -> RUNNING (resume)
    - RUNNING -> FAILED (stop, cancel)
    - RUNNING -> COMPLETED (progress reaches 100%)
    - FAILED -> PENDING (retry)
    - * except RUNNING -> removed (delete)
    """
    PENDING = "pending"
    SCHEDULED = "scheduled"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        """Check if this is a terminal state."""
        return self in {JobStatus.COMPLETED, JobStatus.FAILED}

    @property
    def is_queued(self) -> bool:
        """Check if the job is waiting for admission."""
        return self in {JobStatus.PENDING, JobStatus.SCHEDULED}


class JobPriority(str, Enum):
    """Operator-assigned urgency class."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return PRIORITY_RANK[self]


class JobAction(str, Enum):
    """Named lifecycle commands."""
    START = "start"
    PAUSE = "pause"
    RESUME = "resume"
    STOP = "stop"
    CANCEL = "cancel"
    RETRY = "retry"
    DELETE = "delete"


PRIORITY_RANK: dict[JobPriority, int] = {
    JobPriority.CRITICAL: 0,
    JobPriority.HIGH: 1,
    JobPriority.MEDIUM: 2,
    JobPriority.LOW: 3,
}

STATUS_RANK: dict[JobStatus, int] = {
    JobStatus.PENDING: 0,
    JobStatus.SCHEDULED: 1,
    JobStatus.RUNNING: 2,
    JobStatus.PAUSED: 3,
    JobStatus.COMPLETED: 4,
    JobStatus.FAILED: 5,
}

# Valid source states per action. DELETE is handled separately (any but running).
VALID_TRANSITIONS: dict[JobAction, frozenset[JobStatus]] = {
    JobAction.START: frozenset({JobStatus.PENDING, JobStatus.SCHEDULED}),
    JobAction.PAUSE: frozenset({JobStatus.RUNNING}),
    JobAction.RESUME: frozenset({JobStatus.PAUSED}),
    JobAction.STOP: frozenset({JobStatus.RUNNING}),
    JobAction.CANCEL: frozenset({JobStatus.RUNNING}),
    JobAction.RETRY: frozenset({JobStatus.FAILED}),
    JobAction.DELETE: frozenset(set(JobStatus) - {JobStatus.RUNNING}),
}

TARGET_STATUS: dict[JobAction, JobStatus | None] = {
    JobAction.START: JobStatus.RUNNING,
    JobAction.PAUSE: JobStatus.PAUSED,
    JobAction.RESUME: JobStatus.RUNNING,
    JobAction.STOP: JobStatus.FAILED,
    JobAction.CANCEL: JobStatus.FAILED,
    JobAction.RETRY: JobStatus.PENDING,
    JobAction.DELETE: None,
}


def coerce_priority(value: JobPriority | str) -> JobPriority:
    """Parse a priority name, raising InvalidPriorityError on junk."""
    if isinstance(value, JobPriority):
        return value
    try:
        return JobPriority(str(value).lower())
    except ValueError:
        raise InvalidPriorityError(str(value)) from None


def coerce_action(value: JobAction | str) -> JobAction:
    """Parse an action name, raising InvalidActionError on junk."""
    if isinstance(value, JobAction):
        return value
    try:
        return JobAction(str(value).lower())
    except ValueError:
        raise InvalidActionError(str(value)) from None


@dataclass(frozen=True)
class ActionHistoryEntry:
    """One applied lifecycle command."""
    action: str
    timestamp: float
    actor: str

    def to_dict(self) -> dict[str, Any]:
        return {"action": self.action, "timestamp": self.timestamp, "actor": self.actor}


@dataclass(frozen=True)
class JobParameters:
    """Structured parameter bag carried by every job.

    The named fields are maintained by the lifecycle controller; `extra`
    holds the job configuration supplied at creation (column mappings,
    filters, performance hints, ...).
    """
    retry_count: int = 0
    retry_timestamp: float | None = None
    cancellation_reason: str | None = None
    last_modified: float | None = None
    modified_by: str | None = None
    action_history: tuple[ActionHistoryEntry, ...] = ()
    extra: dict[str, Any] = field(default_factory=dict)

    def with_action(self, action: str, timestamp: float, actor: str) -> JobParameters:
        """Append an action-history entry."""
        return dataclasses.replace(
            self,
            last_modified=timestamp,
            modified_by=actor,
            action_history=self.action_history + (ActionHistoryEntry(action, timestamp, actor),),
            extra=dict(self.extra),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "retry_count": self.retry_count,
            "retry_timestamp": self.retry_timestamp,
            "cancellation_reason": self.cancellation_reason,
            "last_modified": self.last_modified,
            "modified_by": self.modified_by,
            "action_history": [entry.to_dict() for entry in self.action_history],
            **self.extra,
        }


@dataclass(frozen=True)
class BatchJob:
    """Snapshot of one anonymization unit of work."""
    # Identity
    job_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    # Descriptive metadata
    name: str = ""
    description: str = ""
    technique: str = ""
    source_table: str = ""
    target_table: str = ""
    created_by: str = "system"

    # Status
    status: JobStatus = JobStatus.PENDING
    priority: JobPriority = JobPriority.MEDIUM

    # Progress
    progress: float = 0.0  # 0 to 100
    records_total: int = 0
    records_processed: int = 0
    error_count: int = 0

    # Estimates (minutes / records per minute)
    estimated_duration_minutes: float = 60.0
    estimated_time_remaining_minutes: float | None = None
    throughput: float | None = None

    # Timestamps (epoch seconds)
    created_at: float = field(default_factory=time.time)
    scheduled_time: float | None = None
    start_time: float | None = None
    end_time: float | None = None
    last_progress_at: float | None = None

    parameters: JobParameters = field(default_factory=JobParameters)

    @property
    def records_remaining(self) -> int:
        return max(0, self.records_total - self.records_processed)

    def can_apply(self, action: JobAction) -> bool:
        """Check if the action is valid from the current status."""
        return self.status in VALID_TRANSITIONS[action]

    def evolve(self, **changes: Any) -> BatchJob:
        """Create a new BatchJob with the given fields replaced."""
        return dataclasses.replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "job_id": self.job_id,
            "name": self.name,
            "description": self.description,
            "technique": self.technique,
            "source_table": self.source_table,
            "target_table": self.target_table,
            "created_by": self.created_by,
            "status": self.status.value,
            "priority": self.priority.value,
            "progress": self.progress,
            "records_total": self.records_total,
            "records_processed": self.records_processed,
            "error_count": self.error_count,
            "estimated_duration_minutes": self.estimated_duration_minutes,
            "estimated_time_remaining_minutes": self.estimated_time_remaining_minutes,
            "throughput": self.throughput,
            "created_at": self.created_at,
            "scheduled_time": self.scheduled_time,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "last_progress_at": self.last_progress_at,
            "parameters": self.parameters.to_dict(),
        }


@dataclass
class JobSpec:
    """Specification for creating a new job (the CreateJob command)."""
    name: str
    description: str = ""
    technique: str = ""
    source_table: str = ""
    target_table: str = ""
    priority: JobPriority | str = JobPriority.MEDIUM

    # None means "run immediately" (pending); a timestamp means scheduled.
    scheduled_time: float | None = None

    records_total: int = 0
    estimated_duration_minutes: float = 60.0
    created_by: str = "system"
    parameters: dict[str, Any] | None = None
    job_id: str | None = None

    def validate(self) -> None:
        """Raise InvalidJobSpecError if the spec is malformed."""
        if not self.name or not self.name.strip():
            raise InvalidJobSpecError("Job name is required", field_name="name")
        if self.records_total < 0:
            raise InvalidJobSpecError(
                "records_total cannot be negative", field_name="records_total"
            )
        if self.estimated_duration_minutes < 0:
            raise InvalidJobSpecError(
                "estimated_duration_minutes cannot be negative",
                field_name="estimated_duration_minutes",
            )
        try:
            coerce_priority(self.priority)
        except InvalidPriorityError as exc:
            raise InvalidJobSpecError(str(exc.message), field_name="priority") from exc

    def build(self, now: float) -> BatchJob:
        """Validate and materialize the initial job snapshot."""
        self.validate()
        kwargs: dict[str, Any] = {}
        if self.job_id:
            kwargs["job_id"] = self.job_id
        return BatchJob(
            name=self.name.strip(),
            description=self.description,
            technique=self.technique,
            source_table=self.source_table,
            target_table=self.target_table,
            created_by=self.created_by,
            status=JobStatus.PENDING if self.scheduled_time is None else JobStatus.SCHEDULED,
            priority=coerce_priority(self.priority),
            records_total=self.records_total,
            estimated_duration_minutes=self.estimated_duration_minutes,
            created_at=now,
            scheduled_time=self.scheduled_time,
            parameters=JobParameters(extra=dict(self.parameters or {})),
            **kwargs,
        )


__all__ = [
    "JobStatus",
    "JobPriority",
    "JobAction",
    "PRIORITY_RANK",
    "STATUS_RANK",
    "VALID_TRANSITIONS",
    "TARGET_STATUS",
    "coerce_priority",
    "coerce_action",
    "ActionHistoryEntry",
    "JobParameters",
    "BatchJob",
    "JobSpec",
]
