"""
Job event types.

This module defines the JobEvent schema published on every lifecycle
transition, progress report and monitoring state change. UI collaborators
consume these through the event bus; the monitoring aggregator turns the
relevant ones into notifications.
"""

from __future__ import annotations

import json
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class JobEventType(str, Enum):
    """Event type categories for job events."""

    # Job lifecycle events
    JOB_CREATED = "job.created"
    JOB_STARTED = "job.started"
    JOB_PAUSED = "job.paused"
    JOB_RESUMED = "job.resumed"
    JOB_STOPPED = "job.stopped"
    JOB_CANCELLED = "job.cancelled"
    JOB_RETRIED = "job.retried"
    JOB_DELETED = "job.deleted"
    JOB_COMPLETED = "job.completed"

    # Progress events
    JOB_PROGRESS = "job.progress"
    JOB_STALLED = "job.stalled"

    # Queue events
    JOB_PRIORITY_CHANGED = "queue.priority_changed"
    QUEUE_REORDERED = "queue.reordered"

    # Monitoring events
    MONITORING_STARTED = "monitoring.started"
    MONITORING_STOPPED = "monitoring.stopped"


@dataclass
class JobEvent:
    """Unified job event.

    Events are designed to be:
    - Serializable to JSON
    - Streamable via SSE
    - Filterable by type and job
    """
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    type: JobEventType = JobEventType.JOB_PROGRESS
    timestamp: float = field(default_factory=time.time)

    job_id: str | None = None
    job_name: str | None = None
    actor: str | None = None

    # Event payload
    data: dict[str, Any] = field(default_factory=dict)

    schema_version: int = 1

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "event_id": self.event_id,
            "type": self.type.value,
            "timestamp": self.timestamp,
            "job_id": self.job_id,
            "job_name": self.job_name,
            "actor": self.actor,
            "data": self.data,
            "schema_version": self.schema_version,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> JobEvent:
        """Deserialize from dictionary."""
        return cls(
            event_id=data.get("event_id", str(uuid.uuid4())),
            type=JobEventType(data["type"]),
            timestamp=data.get("timestamp", time.time()),
            job_id=data.get("job_id"),
            job_name=data.get("job_name"),
            actor=data.get("actor"),
            data=dict(data.get("data", {})),
            schema_version=data.get("schema_version", 1),
        )

    def to_sse(self) -> str:
        """Format as Server-Sent Event."""
        event_type = self.type.value.replace(".", "_")
        data_json = json.dumps(self.to_dict())
        return f"event: {event_type}\ndata: {data_json}\n\n"


__all__ = [
    "JobEvent",
    "JobEventType",
]
