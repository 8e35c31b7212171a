"""Caller-scoped timing instrumentation.

A Stopwatch owns its own label registry, so separate components (or tests)
never see each other's running timers.
"""

from __future__ import annotations

import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field


@dataclass
class Lap:
    """A running or finished timing label."""

    label: str
    started_ns: int = field(default_factory=time.perf_counter_ns)
    elapsed_ms: float | None = None


class Stopwatch:
    """
    Named timers measured in milliseconds with three decimals.

    Example:
        >>> sw = Stopwatch()
        >>> sw.start("load")
        >>> elapsed = sw.end("load")
        >>> with sw.measure("store") as lap:
        ...     ...
        >>> lap.elapsed_ms
    """

    def __init__(self) -> None:
        self._running: dict[str, Lap] = {}

    @staticmethod
    def _check_label(label: str) -> None:
        if not isinstance(label, str) or not label.strip():
            raise ValueError(f"label must be a non-empty string, got: {label!r}")

    @property
    def running(self) -> list[str]:
        """Labels currently being timed."""
        return list(self._running)

    def start(self, label: str) -> Lap:
        """
        Start timing ``label``.

        Raises:
            ValueError: If the label is empty or already running
        """
        self._check_label(label)
        if label in self._running:
            raise ValueError(f'label "{label}" already exists and is running')
        lap = Lap(label)
        self._running[label] = lap
        return lap

    def end(self, label: str) -> float:
        """
        Stop timing ``label`` and return elapsed milliseconds.

        Raises:
            ValueError: If the label is empty or not running
        """
        self._check_label(label)
        lap = self._running.pop(label, None)
        if lap is None:
            raise ValueError(f'label "{label}" does not exist')
        lap.elapsed_ms = round((time.perf_counter_ns() - lap.started_ns) / 1e6, 3)
        return lap.elapsed_ms

    @contextmanager
    def measure(self, label: str) -> Iterator[Lap]:
        """Time the enclosed block under ``label``."""
        lap = self.start(label)
        try:
            yield lap
        finally:
            self.end(label)
