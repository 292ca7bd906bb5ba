"""
Queue and monitoring configuration.
"""

from __future__ import annotations

from dataclasses import dataclass

from .base import MAX_CONCURRENT_JOBS, MIN_CONCURRENT_JOBS


@dataclass
class QueueConfig:
    """Configuration for admission and the lifecycle state machine."""

    max_concurrent_jobs: int = 3

    # Apply the concurrency cap to direct "start" and "resume" commands, not only StartNext.
    enforce_cap_on_start: bool = True

    # Raise InvalidTransitionError instead of absorbing invalid actions.
    strict_transitions: bool = False

    # Attribution used in action history when the caller names no actor.
    default_actor: str = "system"

    def __post_init__(self):
        """Validate configuration after initialization."""
        if not MIN_CONCURRENT_JOBS <= self.max_concurrent_jobs <= MAX_CONCURRENT_JOBS:
            raise ValueError(
                f"max_concurrent_jobs must be between {MIN_CONCURRENT_JOBS} "
                f"and {MAX_CONCURRENT_JOBS}"
            )
        if not self.default_actor:
            raise ValueError("default_actor cannot be empty")


@dataclass
class MonitoringConfig:
    """Configuration for the monitoring aggregator."""

    tick_interval_seconds: float = 5.0
    notification_capacity: int = 10

    # Running jobs without a progress report for this long are flagged as stalled.
    stall_timeout_minutes: float | None = None

    # Floor for elapsed time in throughput computation.
    min_elapsed_minutes: float = 1.0

    # Percent of records_total to advance each running job by on every tick,
    # for deployments without an executor progress feed. None disables it.
    synthetic_progress_percent: float | None = None

    def __post_init__(self):
        """Validate configuration after initialization."""
        if self.tick_interval_seconds <= 0:
            raise ValueError("tick_interval_seconds must be positive")
        if self.notification_capacity < 1:
            raise ValueError("notification_capacity must be at least 1")
        if self.stall_timeout_minutes is not None and self.stall_timeout_minutes <= 0:
            raise ValueError("stall_timeout_minutes must be positive")
        if self.min_elapsed_minutes <= 0:
            raise ValueError("min_elapsed_minutes must be positive")
        if self.synthetic_progress_percent is not None and not (
            0 < self.synthetic_progress_percent <= 100
        ):
            raise ValueError("synthetic_progress_percent must be in (0, 100]")


__all__ = ["QueueConfig", "MonitoringConfig"]
