"""Expiry evaluation and ttl bounds. All times are milliseconds since epoch."""

import math
from typing import Any

SECOND_MS = 1000
MINUTE_MS = 60 * SECOND_MS
HOUR_MS = 60 * MINUTE_MS
DAY_MS = 24 * HOUR_MS

DEFAULT_TTL_MS = HOUR_MS
MIN_TTL_MS = SECOND_MS
MAX_TTL_MS = 365 * DAY_MS


def clamp_ttl(value: Any) -> int:
    """Return ``value`` as an int ttl, or the default if it is not a number within bounds."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return DEFAULT_TTL_MS
    if math.isnan(value) or not MIN_TTL_MS <= value <= MAX_TTL_MS:
        return DEFAULT_TTL_MS
    return int(value)


def is_valid(last_modified: int | None, expires: int | None, now: int) -> bool:
    """True iff ``expires`` is set and not yet in the past relative to ``now``."""
    return expires is not None and expires - now >= 0
