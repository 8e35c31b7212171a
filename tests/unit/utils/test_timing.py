"""Tests for Stopwatch."""

import pytest

from duocache.core.caching import EntryStore, WriteOptions
from duocache.core.io import AbsolutePath, RealFileSystem
from duocache.core.utils import Stopwatch


class TestStopwatch:
    """Tests for labelled timers."""

    def test_start_end(self):
        sw = Stopwatch()
        sw.start("load")
        assert sw.running == ["load"]

        elapsed = sw.end("load")

        assert elapsed >= 0
        assert round(elapsed, 3) == elapsed
        assert sw.running == []

    def test_duplicate_running_label(self):
        sw = Stopwatch()
        sw.start("load")
        with pytest.raises(ValueError, match="already exists and is running"):
            sw.start("load")

    def test_label_reusable_after_end(self):
        sw = Stopwatch()
        sw.start("load")
        sw.end("load")
        sw.start("load")
        assert sw.running == ["load"]

    def test_end_unknown_label(self):
        with pytest.raises(ValueError, match="does not exist"):
            Stopwatch().end("missing")

    @pytest.mark.parametrize("label", ["", "   ", None])
    def test_invalid_label(self, label):
        with pytest.raises(ValueError, match="non-empty"):
            Stopwatch().start(label)

    def test_measure_records_lap(self):
        sw = Stopwatch()
        with sw.measure("block") as lap:
            assert sw.running == ["block"]

        assert lap.elapsed_ms is not None
        assert sw.running == []

    def test_separate_stopwatches_are_independent(self):
        """Test registries are not shared between instances."""
        first, second = Stopwatch(), Stopwatch()
        first.start("load")
        second.start("load")
        assert first.end("load") >= 0
        assert second.running == ["load"]


class TestStoreInstrumentation:
    async def test_store_operations_timed(self, cache_dir: AbsolutePath, clock):
        """Test each store operation runs under its own label and leaves none running."""
        sw = Stopwatch()
        started: list[str] = []
        original_start = sw.start

        def spy(label):
            started.append(label)
            return original_start(label)

        sw.start = spy  # type: ignore[method-assign]
        store = EntryStore(RealFileSystem(), cache_dir, clock=clock, stopwatch=sw)

        await store.write("x", "hello", WriteOptions(ttl_ms=2000))
        result = await store.read("x")
        await result.stream.aclose()
        await store.clear()

        assert started == ["write:x#1", "read:x#2", "clear:#3"]
        assert sw.running == []
