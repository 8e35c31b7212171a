"""Tests for CompletionBarrier."""

import asyncio

import pytest

from duocache.core.caching import CompletionBarrier


async def _ok(delay: float = 0) -> None:
    await asyncio.sleep(delay)


async def _boom(message: str, delay: float = 0) -> None:
    await asyncio.sleep(delay)
    raise OSError(message)


class TestCompletionBarrier:
    """Tests for the counted wait-group."""

    async def test_wait_without_jobs_returns_immediately(self):
        """Test an empty barrier is already complete."""
        barrier = CompletionBarrier()
        await asyncio.wait_for(barrier.wait(), timeout=1)
        assert barrier.finished == []

    async def test_wait_returns_after_all_jobs(self):
        """Test wait resolves only once every job finished."""
        barrier = CompletionBarrier()
        barrier.add("slow", _ok(0.02))
        barrier.add("fast", _ok())

        await barrier.wait()

        assert barrier.finished == ["fast", "slow"]
        assert barrier.error is None

    async def test_first_error_wins(self):
        """Test the first failure is raised and later ones are suppressed."""
        barrier = CompletionBarrier()
        barrier.add("first", _boom("first"))
        barrier.add("second", _boom("second", 0.01))

        with pytest.raises(OSError, match="first"):
            await barrier.wait()
        assert barrier.failed_label == "first"

        await asyncio.sleep(0.03)
        assert [label for label, _ in barrier.suppressed] == ["second"]
        assert str(barrier.error) == "first"

    async def test_failure_releases_waiters_before_other_jobs_finish(self):
        """Test wait does not block on jobs still running after a failure."""
        barrier = CompletionBarrier()
        barrier.add("hang", _ok(10))
        barrier.add("fail", _boom("nope"))

        with pytest.raises(OSError):
            await asyncio.wait_for(barrier.wait(), timeout=1)

        for task in barrier._tasks:
            task.cancel()

    async def test_late_completion_does_not_clear_error(self):
        """Test a completion after the failure is recorded but not delivered."""
        barrier = CompletionBarrier()
        barrier.add("fail", _boom("nope"))
        barrier.add("late", _ok(0.01))

        with pytest.raises(OSError):
            await barrier.wait()
        await asyncio.sleep(0.03)

        assert barrier.finished == ["late"]
        with pytest.raises(OSError, match="nope"):
            await barrier.wait()

    async def test_settle_waits_for_jobs_still_running_after_failure(self):
        """Test settle returns only once the remaining jobs have stopped."""
        barrier = CompletionBarrier()
        barrier.add("fail", _boom("nope"))
        barrier.add("slow", _ok(0.02))
        barrier.add("also_fail", _boom("later", 0.01))

        with pytest.raises(OSError, match="nope"):
            await barrier.wait()
        assert barrier.finished == []

        await asyncio.wait_for(barrier.settle(), timeout=1)

        assert barrier.finished == ["slow"]
        assert [label for label, _ in barrier.suppressed] == ["also_fail"]
        assert str(barrier.error) == "nope"

    async def test_duplicate_label_rejected(self):
        """Test a label can only be tracked once."""
        barrier = CompletionBarrier()
        barrier.add("payload", _ok())

        job = _ok()
        with pytest.raises(ValueError, match="already tracked"):
            barrier.add("payload", job)
        job.close()
        await barrier.wait()

    def test_manual_finish_and_fail(self):
        """Test finish and fail can be signalled directly."""
        barrier = CompletionBarrier()
        barrier._pending.update({"a", "b"})
        barrier._done.clear()

        barrier.finish("a")
        assert not barrier._done.is_set()

        error = OSError("disk")
        barrier.fail("b", error)
        barrier.fail("b", OSError("again"))

        assert barrier._done.is_set()
        assert barrier.error is error
        assert len(barrier.suppressed) == 1
