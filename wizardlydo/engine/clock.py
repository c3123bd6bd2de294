"""Time sources for the engine.

All engine times are naive UTC datetimes, matching what the database layer
stores. Tests inject a ``FixedClock`` so "now" and elapsed days are simulated
without real delays.
"""

from datetime import datetime, timedelta
from typing import Protocol


class Clock(Protocol):
    """Supplies the current time."""

    def now(self) -> datetime: ...


class SystemClock:
    """Wall-clock time in naive UTC."""

    def now(self) -> datetime:
        return datetime.utcnow()


class FixedClock:
    """Manually driven clock for deterministic tests."""

    def __init__(self, start: datetime):
        self._now = start

    def now(self) -> datetime:
        return self._now

    def set(self, value: datetime) -> None:
        self._now = value

    def advance(self, delta: timedelta) -> datetime:
        self._now = self._now + delta
        return self._now
