"""
Shared test fixtures for batch-runtime tests.

This module provides:
- A controllable clock for deterministic timestamps
- Job factories for seeding stores
- Runtime/controller fixtures wired with a recording hook
"""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from batch_runtime.config import MonitoringConfig, QueueConfig, Settings
from batch_runtime.events import HookManager, RecordingHook
from batch_runtime.jobs import (
    BatchJob,
    InMemoryJobStore,
    JobPriority,
    JobStatus,
    LifecycleController,
)
from batch_runtime.logging import StructuredLogger
from batch_runtime.runtime import BatchRuntime

T0 = 1_700_000_000.0


# =============================================================================
# Clock
# =============================================================================


@dataclass
class FakeClock:
    """Manually advanced clock returning epoch seconds."""

    now: float = T0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float = 0.0, *, minutes: float = 0.0) -> float:
        self.now += seconds + minutes * 60.0
        return self.now


# =============================================================================
# Job Factories
# =============================================================================


def make_job(
    job_id: str,
    *,
    status: JobStatus = JobStatus.PENDING,
    priority: JobPriority = JobPriority.MEDIUM,
    records_total: int = 1000,
    records_processed: int = 0,
    duration: float = 60.0,
    **kwargs,
) -> BatchJob:
    """Create a BatchJob snapshot with sensible defaults."""
    return BatchJob(
        job_id=job_id,
        name=kwargs.pop("name", f"Job {job_id}"),
        status=status,
        priority=priority,
        records_total=records_total,
        records_processed=records_processed,
        estimated_duration_minutes=duration,
        created_at=kwargs.pop("created_at", T0),
        **kwargs,
    )


def make_running_job(job_id: str, *, start_time: float = T0, **kwargs) -> BatchJob:
    """Create a running job started at `start_time`."""
    kwargs.setdefault("throughput", 0.0)
    kwargs.setdefault("last_progress_at", start_time)
    return make_job(job_id, status=JobStatus.RUNNING, start_time=start_time, **kwargs)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def logger() -> StructuredLogger:
    return StructuredLogger("batch_runtime.tests", level="DEBUG")


@pytest.fixture
def recorder() -> RecordingHook:
    return RecordingHook()


@pytest.fixture
def store() -> InMemoryJobStore:
    return InMemoryJobStore()


@pytest.fixture
def queue_config() -> QueueConfig:
    return QueueConfig()


@pytest.fixture
def controller(store, queue_config, recorder, logger, clock) -> LifecycleController:
    return LifecycleController(
        store,
        config=queue_config,
        hooks=HookManager([recorder]),
        logger=logger,
        clock=clock,
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(monitoring=MonitoringConfig(stall_timeout_minutes=10.0))


@pytest.fixture
def runtime(settings, logger, clock) -> BatchRuntime:
    return BatchRuntime.create(settings, logger=logger, clock=clock)
