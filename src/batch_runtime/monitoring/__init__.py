"""
Monitoring: periodic metrics aggregation and bounded notifications.
"""

from .types import (
    JobStats,
    MonitoringMetrics,
    Notification,
    NotificationType,
)
from .notifications import NotificationBuffer
from .aggregator import (
    MonitoringAggregator,
    compute_job_stats,
    compute_metrics,
    notification_for,
)

__all__ = [
    "NotificationType",
    "Notification",
    "MonitoringMetrics",
    "JobStats",
    "NotificationBuffer",
    "MonitoringAggregator",
    "compute_metrics",
    "compute_job_stats",
    "notification_for",
]
