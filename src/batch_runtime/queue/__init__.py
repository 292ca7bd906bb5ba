"""
Queue scheduling: priority ordering, queue optimization and admission.
"""

from .scheduler import (
    QUEUED_STATUSES,
    QueueScheduler,
    QueueStats,
    optimize_order,
    priority_order,
)

__all__ = [
    "QueueScheduler",
    "QueueStats",
    "priority_order",
    "optimize_order",
    "QUEUED_STATUSES",
]
