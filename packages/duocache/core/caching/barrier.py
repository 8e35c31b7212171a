"""Completion barrier for concurrent writes.

A counted wait-group with a single-write error slot: ``wait`` returns once
every job has finished, or raises the first error any job reported. Later
errors and completions are recorded but never delivered.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from typing import Any

logger = logging.getLogger(__name__)


class CompletionBarrier:
    """
    Join point for independently running jobs.

    Jobs keep running after the first failure; the barrier only stops
    reporting on them.

    Example:
        >>> barrier = CompletionBarrier()
        >>> barrier.add("payload", write_payload())
        >>> barrier.add("metadata", write_metadata())
        >>> await barrier.wait()
    """

    def __init__(self) -> None:
        self._pending: set[str] = set()
        self._finished: list[str] = []
        self._tasks: list[asyncio.Task[None]] = []
        self._done = asyncio.Event()
        self._done.set()
        self.error: BaseException | None = None
        self.failed_label: str | None = None
        self.suppressed: list[tuple[str, BaseException]] = []

    @property
    def finished(self) -> list[str]:
        """Labels of jobs that completed, in completion order."""
        return list(self._finished)

    def add(self, label: str, job: Awaitable[Any]) -> None:
        """Start ``job`` as an independent task tracked under ``label``."""
        if label in self._pending or label in self._finished:
            raise ValueError(f"label {label!r} is already tracked")
        self._pending.add(label)
        self._done.clear()
        self._tasks.append(asyncio.ensure_future(self._track(label, job)))

    async def _track(self, label: str, job: Awaitable[Any]) -> None:
        try:
            await job
        except Exception as e:
            self.fail(label, e)
        else:
            self.finish(label)

    def finish(self, label: str) -> None:
        """Mark ``label`` as finished; releases waiters once nothing is pending."""
        self._pending.discard(label)
        self._finished.append(label)
        if not self._pending and self.error is None:
            self._done.set()

    def fail(self, label: str, error: BaseException) -> None:
        """Record a failure. Only the first one is kept for delivery."""
        self._pending.discard(label)
        if self.error is not None:
            logger.debug(f"Suppressed error from {label!r} after first failure: {error!r}")
            self.suppressed.append((label, error))
            return
        self.error = error
        self.failed_label = label
        self._done.set()

    async def wait(self) -> None:
        """
        Wait for all jobs, or for the first failure.

        Raises:
            BaseException: The first error reported by any job
        """
        await self._done.wait()
        if self.error is not None:
            raise self.error

    async def settle(self) -> None:
        """
        Wait until every job has stopped running, failed or not.

        Never raises; outcomes stay in ``finished``, ``error`` and ``suppressed``.
        """
        await asyncio.gather(*self._tasks, return_exceptions=True)
