"""
Clock -- injectable time abstraction.

Services stamp distributions, ledger entries and calamities through a Clock
instead of ``datetime.now()``; tests pass a DeterministicClock and move it
forward explicitly when ordering by time matters.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone


class Clock(ABC):
    """Source of timezone-aware timestamps."""

    @abstractmethod
    def now(self) -> datetime:
        ...


class SystemClock(Clock):
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """Fixed time that only moves when ``advance()`` is called."""

    def __init__(self, start: datetime | None = None):
        self._now = start or datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self._now

    def advance(self, seconds: int = 1) -> None:
        self._now += timedelta(seconds=seconds)
