"""
Job store implementations.

This module provides the JobStore interface and the in-memory
implementation holding the authoritative set of jobs.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass

from ..errors import DuplicateJobError, JobNotFoundError, ValidationError
from .types import BatchJob, JobPriority, JobStatus


@dataclass
class JobFilter:
    """Filter criteria for listing jobs."""
    status: JobStatus | set[JobStatus] | None = None
    priority: JobPriority | set[JobPriority] | None = None
    created_by: str | None = None
    limit: int | None = None

    def matches(self, job: BatchJob) -> bool:
        """Check if a job matches this filter."""
        if self.created_by and job.created_by != self.created_by:
            return False
        if self.status:
            if isinstance(self.status, set):
                if job.status not in self.status:
                    return False
            elif job.status != self.status:
                return False
        if self.priority:
            if isinstance(self.priority, set):
                if job.priority not in self.priority:
                    return False
            elif job.priority != self.priority:
                return False
        return True


class JobStore(ABC):
    """Abstract interface for the authoritative job collection.

    Implementations keep jobs in queue order and must be safe for
    concurrent access: a read never observes a partially applied update.
    """

    @abstractmethod
    async def create(self, job: BatchJob) -> BatchJob:
        """Append a new job to the end of the queue.

        Raises:
            DuplicateJobError: If job_id already exists
        """
        ...

    @abstractmethod
    async def get(self, job_id: str) -> BatchJob | None:
        """Get a job by ID."""
        ...

    @abstractmethod
    async def update(self, job: BatchJob) -> BatchJob:
        """Replace an existing job record by id, keeping its queue position.

        Raises:
            JobNotFoundError: If job doesn't exist
        """
        ...

    @abstractmethod
    async def delete(self, job_id: str) -> bool:
        """Delete a job by ID. Returns True if deleted."""
        ...

    @abstractmethod
    async def list(self, filter: JobFilter | None = None) -> list[BatchJob]:
        """List jobs matching the filter, in queue order."""
        ...

    @abstractmethod
    async def count(self, filter: JobFilter | None = None) -> int:
        """Count jobs matching the filter."""
        ...

    @abstractmethod
    async def reorder(self, job_ids: Sequence[str]) -> list[BatchJob]:
        """Rearrange the listed jobs into the given order.

        The listed jobs take over the queue positions they occupied
        between them; unlisted jobs keep their positions.

        Raises:
            JobNotFoundError: If an id is unknown
            ValidationError: If an id is repeated
        """
        ...

    async def require(self, job_id: str) -> BatchJob:
        """Get a job by ID or raise JobNotFoundError."""
        job = await self.get(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job


class InMemoryJobStore(JobStore):
    """In-memory job store implementation.

    Suitable for single-process deployments and testing.
    Thread-safe via asyncio.Lock.
    """

    def __init__(self, jobs: Sequence[BatchJob] | None = None):
        self._jobs: dict[str, BatchJob] = {}
        self._lock = asyncio.Lock()
        for job in jobs or ():
            if job.job_id in self._jobs:
                raise DuplicateJobError(job.job_id)
            self._jobs[job.job_id] = job

    async def create(self, job: BatchJob) -> BatchJob:
        async with self._lock:
            if job.job_id in self._jobs:
                raise DuplicateJobError(job.job_id)
            self._jobs[job.job_id] = job
            return job

    async def get(self, job_id: str) -> BatchJob | None:
        async with self._lock:
            return self._jobs.get(job_id)

    async def update(self, job: BatchJob) -> BatchJob:
        async with self._lock:
            if job.job_id not in self._jobs:
                raise JobNotFoundError(job.job_id)
            self._jobs[job.job_id] = job
            return job

    async def delete(self, job_id: str) -> bool:
        async with self._lock:
            return self._jobs.pop(job_id, None) is not None

    async def list(self, filter: JobFilter | None = None) -> list[BatchJob]:
        async with self._lock:
            jobs = list(self._jobs.values())

        if filter:
            jobs = [j for j in jobs if filter.matches(j)]
            if filter.limit is not None:
                jobs = jobs[:filter.limit]
        return jobs

    async def count(self, filter: JobFilter | None = None) -> int:
        async with self._lock:
            if filter:
                return sum(1 for j in self._jobs.values() if filter.matches(j))
            return len(self._jobs)

    async def reorder(self, job_ids: Sequence[str]) -> list[BatchJob]:
        async with self._lock:
            if len(set(job_ids)) != len(job_ids):
                raise ValidationError("Reorder list contains duplicate job ids")
            for job_id in job_ids:
                if job_id not in self._jobs:
                    raise JobNotFoundError(job_id)

            listed = set(job_ids)
            replacements = iter(job_ids)
            order = [
                next(replacements) if job_id in listed else job_id
                for job_id in self._jobs
            ]
            self._jobs = {job_id: self._jobs[job_id] for job_id in order}
            return list(self._jobs.values())


__all__ = [
    "JobStore",
    "InMemoryJobStore",
    "JobFilter",
]
