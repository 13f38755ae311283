"""
Clock abstraction used for TTL comparisons.

SystemClock is the production clock. ManualClock only moves when told to,
so cache expiry can be simulated without sleeping.
"""

import time
from typing import Protocol


class Clock(Protocol):
    """Source of the current time in seconds."""

    def now(self) -> float: ...


class SystemClock:
    """Wall clock backed by ``time.time()``."""

    def now(self) -> float:
        return time.time()


class ManualClock:
    """Clock pinned to a fixed value until advanced."""

    def __init__(self, start: float = 0.0) -> None:
        self._now = start

    def now(self) -> float:
        return self._now

    def advance(self, seconds: float) -> None:
        """Move the clock forward by ``seconds``."""
        if seconds < 0:
            raise ValueError("Cannot move clock backwards")
        self._now += seconds
