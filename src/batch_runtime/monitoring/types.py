"""
Monitoring read-model types.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class NotificationType(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass(frozen=True)
class Notification:
    """An immutable user-facing notice about a job or the monitor itself."""
    type: NotificationType
    message: str
    timestamp: float = field(default_factory=time.time)
    job_id: str | None = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "message": self.message,
            "timestamp": self.timestamp,
            "job_id": self.job_id,
        }


@dataclass(frozen=True)
class MonitoringMetrics:
    """System-wide snapshot recomputed on every tick."""
    total_throughput: float = 0.0
    average_job_duration: float = 0.0  # minutes
    system_load: float = 0.0  # percent
    queue_length: int = 0
    active_jobs: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_throughput": self.total_throughput,
            "average_job_duration": self.average_job_duration,
            "system_load": self.system_load,
            "queue_length": self.queue_length,
            "active_jobs": self.active_jobs,
        }


@dataclass(frozen=True)
class JobStats:
    """Per-status totals for the statistics cards."""
    total: int = 0
    pending: int = 0
    scheduled: int = 0
    running: int = 0
    paused: int = 0
    completed: int = 0
    failed: int = 0
    total_records_processed: int = 0
    total_errors: int = 0
    running_throughput: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "pending": self.pending,
            "scheduled": self.scheduled,
            "running": self.running,
            "paused": self.paused,
            "completed": self.completed,
            "failed": self.failed,
            "total_records_processed": self.total_records_processed,
            "total_errors": self.total_errors,
            "running_throughput": self.running_throughput,
        }


__all__ = [
    "NotificationType",
    "Notification",
    "MonitoringMetrics",
    "JobStats",
]
