"""
Tests for the in-memory job store.
"""
import pytest

from batch_runtime.errors import DuplicateJobError, JobNotFoundError, ValidationError
from batch_runtime.jobs import InMemoryJobStore, JobFilter, JobPriority, JobStatus

from .conftest import make_job


def _ids(jobs):
    return [j.job_id for j in jobs]


class TestJobFilter:
    """Test filter matching."""

    def test_status_set(self):
        f = JobFilter(status={JobStatus.PENDING, JobStatus.SCHEDULED})

        assert f.matches(make_job("a"))
        assert not f.matches(make_job("b", status=JobStatus.RUNNING))

    def test_priority_and_creator(self):
        f = JobFilter(priority=JobPriority.HIGH, created_by="alice")

        assert f.matches(make_job("a", priority=JobPriority.HIGH, created_by="alice"))
        assert not f.matches(make_job("b", priority=JobPriority.HIGH))


class TestInMemoryJobStore:
    """Test store operations."""

    @pytest.mark.asyncio
    async def test_create_and_get(self):
        store = InMemoryJobStore()
        job = await store.create(make_job("a"))

        assert await store.get("a") is job
        assert await store.get("missing") is None

    @pytest.mark.asyncio
    async def test_duplicate_create(self):
        store = InMemoryJobStore([make_job("a")])

        with pytest.raises(DuplicateJobError):
            await store.create(make_job("a"))

    def test_duplicate_seed(self):
        with pytest.raises(DuplicateJobError):
            InMemoryJobStore([make_job("a"), make_job("a")])

    @pytest.mark.asyncio
    async def test_require_missing(self):
        with pytest.raises(JobNotFoundError):
            await InMemoryJobStore().require("missing")

    @pytest.mark.asyncio
    async def test_update_keeps_position(self):
        store = InMemoryJobStore([make_job("a"), make_job("b"), make_job("c")])

        await store.update((await store.require("b")).evolve(progress=10.0))

        assert _ids(await store.list()) == ["a", "b", "c"]
        assert (await store.require("b")).progress == 10.0

    @pytest.mark.asyncio
    async def test_update_missing(self):
        with pytest.raises(JobNotFoundError):
            await InMemoryJobStore().update(make_job("a"))

    @pytest.mark.asyncio
    async def test_delete(self):
        store = InMemoryJobStore([make_job("a")])

        assert await store.delete("a") is True
        assert await store.delete("a") is False
        assert await store.count() == 0

    @pytest.mark.asyncio
    async def test_list_filter_and_limit(self):
        store = InMemoryJobStore([
            make_job("a"),
            make_job("b", status=JobStatus.RUNNING),
            make_job("c"),
            make_job("d"),
        ])

        pending = await store.list(JobFilter(status=JobStatus.PENDING, limit=2))

        assert _ids(pending) == ["a", "c"]
        assert await store.count(JobFilter(status=JobStatus.PENDING)) == 3


class TestReorder:
    """Test queue reordering."""

    @pytest.mark.asyncio
    async def test_full_reorder(self):
        store = InMemoryJobStore([make_job("a"), make_job("b"), make_job("c")])

        ordered = await store.reorder(["c", "a", "b"])

        assert _ids(ordered) == ["c", "a", "b"]
        assert _ids(await store.list()) == ["c", "a", "b"]

    @pytest.mark.asyncio
    async def test_partial_reorder_keeps_unlisted_positions(self):
        store = InMemoryJobStore([make_job(x) for x in "abcde"])

        await store.reorder(["d", "b"])

        assert _ids(await store.list()) == ["a", "d", "c", "b", "e"]

    @pytest.mark.asyncio
    async def test_unknown_id(self):
        store = InMemoryJobStore([make_job("a")])

        with pytest.raises(JobNotFoundError):
            await store.reorder(["a", "zzz"])
        assert _ids(await store.list()) == ["a"]

    @pytest.mark.asyncio
    async def test_duplicate_ids(self):
        store = InMemoryJobStore([make_job("a"), make_job("b")])

        with pytest.raises(ValidationError):
            await store.reorder(["a", "a"])
