"""Tests for ttl clamping and expiry evaluation."""

import math

import pytest

from duocache.core.caching.expiry import (
    DAY_MS,
    DEFAULT_TTL_MS,
    HOUR_MS,
    MAX_TTL_MS,
    MIN_TTL_MS,
    MINUTE_MS,
    SECOND_MS,
    clamp_ttl,
    is_valid,
)


class TestConstants:
    def test_time_units(self):
        assert SECOND_MS == 1000
        assert MINUTE_MS == 60_000
        assert HOUR_MS == 3_600_000
        assert DAY_MS == 86_400_000
        assert DEFAULT_TTL_MS == HOUR_MS
        assert MIN_TTL_MS == SECOND_MS
        assert MAX_TTL_MS == 365 * DAY_MS


class TestClampTtl:
    """Tests for clamp_ttl."""

    @pytest.mark.parametrize("value", [MIN_TTL_MS, 2000, MAX_TTL_MS])
    def test_in_range_kept(self, value):
        """Test values inside the bounds pass through."""
        assert clamp_ttl(value) == value

    def test_float_truncated(self):
        """Test fractional milliseconds are dropped."""
        assert clamp_ttl(1500.7) == 1500

    @pytest.mark.parametrize(
        "value",
        [0, 999, -1, MAX_TTL_MS + 1, math.nan, math.inf, None, "2000", True, False, [2000]],
    )
    def test_invalid_falls_back_to_default(self, value):
        """Test out-of-range or non-numeric values become the default."""
        assert clamp_ttl(value) == DEFAULT_TTL_MS


class TestIsValid:
    """Tests for is_valid."""

    def test_future_expiry_valid(self):
        assert is_valid(1000, 5000, 4999)

    def test_expiry_instant_still_valid(self):
        """Test the boundary is inclusive."""
        assert is_valid(1000, 5000, 5000)

    def test_past_expiry_invalid(self):
        assert not is_valid(1000, 5000, 5001)

    def test_missing_expiry_invalid(self):
        assert not is_valid(1000, None, 0)
