"""Shared pytest fixtures for duocache tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from duocache.core.caching import EntryStore
from duocache.core.io import (
    AbsolutePath,
    FakeFileSystem,
    FakeFileSystemSync,
    RealFileSystem,
    RealFileSystemSync,
    absolute_path,
)

# ============================================================================
# Clock
# ============================================================================


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, now: int = 1_700_000_000_000) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def clock() -> FakeClock:
    """Provide a fixed clock starting at a known instant."""
    return FakeClock()


# ============================================================================
# Filesystem Fixtures
# ============================================================================


@pytest.fixture
def fake_fs() -> FakeFileSystem:
    """Provide fresh FakeFileSystem instance."""
    return FakeFileSystem()


@pytest.fixture
def fake_root() -> AbsolutePath:
    """Cache directory inside the fake filesystem."""
    return absolute_path("/cache")


@pytest.fixture
async def fake_store(fake_fs: FakeFileSystem, fake_root: AbsolutePath, clock: FakeClock):
    """Provide initialized EntryStore over the fake filesystem."""
    store = EntryStore(fake_fs, fake_root, FakeFileSystemSync(fake_fs), clock=clock)
    await store.initialize()
    return store


@pytest.fixture
def cache_dir(tmp_path: Path) -> AbsolutePath:
    """Empty on-disk cache directory."""
    directory = tmp_path / "files"
    directory.mkdir()
    return absolute_path(directory)


@pytest.fixture
def store(cache_dir: AbsolutePath, clock: FakeClock) -> EntryStore:
    """Provide EntryStore over the real filesystem."""
    return EntryStore(RealFileSystem(), cache_dir, RealFileSystemSync(), clock=clock)
