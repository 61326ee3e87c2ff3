"""Millisecond clock helpers.

Cache entries and rate-limit records store epoch milliseconds. Services
take a ``Clock`` so tests can move time without sleeping.
"""

import time
from collections.abc import Callable

Clock = Callable[[], int]

SECOND_MS = 1000
MINUTE_MS = 60 * SECOND_MS
HOUR_MS = 60 * MINUTE_MS
DAY_MS = 24 * HOUR_MS


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class ManualClock:
    """A clock that only moves when told to."""

    def __init__(self, start_ms: int | None = None) -> None:
        self.current = start_ms if start_ms is not None else now_ms()

    def __call__(self) -> int:
        return self.current

    def advance(self, ms: int) -> int:
        self.current += ms
        return self.current
