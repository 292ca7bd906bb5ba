"""
Job system for batch runtime.

This module provides the job lifecycle management:
- BatchJob: Immutable job snapshot
- JobStore: Authoritative job collection with an in-memory implementation
- LifecycleController: Named actions over the status state machine
"""

from .types import (
    JobStatus,
    JobPriority,
    JobAction,
    PRIORITY_RANK,
    STATUS_RANK,
    VALID_TRANSITIONS,
    ActionHistoryEntry,
    JobParameters,
    BatchJob,
    JobSpec,
    coerce_action,
    coerce_priority,
)
from .store import (
    JobStore,
    InMemoryJobStore,
    JobFilter,
)
from .lifecycle import (
    LifecycleController,
)

__all__ = [
    "JobStatus",
    "JobPriority",
    "JobAction",
    "PRIORITY_RANK",
    "STATUS_RANK",
    "VALID_TRANSITIONS",
    "ActionHistoryEntry",
    "JobParameters",
    "BatchJob",
    "JobSpec",
    "coerce_action",
    "coerce_priority",
    "JobStore",
    "InMemoryJobStore",
    "JobFilter",
    "LifecycleController",
]
