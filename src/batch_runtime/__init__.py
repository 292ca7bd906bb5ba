"""
Batch Runtime - lifecycle and queue manager for anonymization batch jobs.

This package tracks jobs reported by an external anonymization engine:
- Job lifecycle state machine (pending, scheduled, running, paused, completed, failed)
- Priority ordering, queue optimization and concurrency-capped admission
- Throughput and ETA estimation from executor progress reports
- Periodic monitoring metrics and a bounded notification feed
- Job events for UI collaborators

Example:
    ```python
    from batch_runtime import BatchRuntime, JobSpec

    runtime = BatchRuntime.create()
    job = await runtime.create_job(JobSpec(
        name="Customer anonymization",
        technique="Hashing (SHA-256)",
        source_table="customers_raw",
        target_table="customers_anonymized",
        records_total=1_250_000,
    ))
    await runtime.start_next()
    await runtime.report_progress(job.job_id, 50_000)
    print(runtime.get_notifications())
    ```
"""

from .config import (
    LoggingConfig,
    MonitoringConfig,
    QueueConfig,
    Settings,
    configure,
    get_settings,
    load_env,
)
from .errors import (
    BatchRuntimeError,
    ConcurrencyLimitError,
    ConfigError,
    DuplicateJobError,
    ErrorCode,
    InvalidActionError,
    InvalidConfigError,
    InvalidJobSpecError,
    InvalidPriorityError,
    InvalidProgressError,
    InvalidTransitionError,
    JobNotFoundError,
    NotFoundError,
    ValidationError,
)
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
    JobParameters,
    JobPriority,
    JobSpec,
    JobStatus,
    JobStore,
    LifecycleController,
)
from .monitoring import (
    JobStats,
    MonitoringAggregator,
    MonitoringMetrics,
    Notification,
    NotificationType,
)
from .progress import (
    ProgressEstimator,
    ProgressUpdate,
    estimate_progress,
)
from .queue import (
    QueueScheduler,
    QueueStats,
    optimize_order,
    priority_order,
)
from .runtime import BatchRuntime

__version__ = "0.1.0"

__all__ = [
    # Runtime
    "BatchRuntime",
    # Config
    "Settings",
    "QueueConfig",
    "MonitoringConfig",
    "LoggingConfig",
    "get_settings",
    "configure",
    "load_env",
    # Errors
    "ErrorCode",
    "BatchRuntimeError",
    "JobNotFoundError",
    "NotFoundError",
    "DuplicateJobError",
    "ValidationError",
    "InvalidJobSpecError",
    "InvalidActionError",
    "InvalidPriorityError",
    "InvalidProgressError",
    "InvalidTransitionError",
    "ConcurrencyLimitError",
    "ConfigError",
    "InvalidConfigError",
    # Events
    "JobEvent",
    "JobEventType",
    "EventBus",
    "InMemoryEventBus",
    "EventSubscription",
    "HookManager",
    # Jobs
    "BatchJob",
    "JobSpec",
    "JobStatus",
    "JobPriority",
    "JobAction",
    "JobParameters",
    "JobStore",
    "InMemoryJobStore",
    "JobFilter",
    "LifecycleController",
    # Progress
    "ProgressEstimator",
    "ProgressUpdate",
    "estimate_progress",
    # Queue
    "QueueScheduler",
    "QueueStats",
    "priority_order",
    "optimize_order",
    # Monitoring
    "MonitoringAggregator",
    "MonitoringMetrics",
    "Notification",
    "NotificationType",
    "JobStats",
]
