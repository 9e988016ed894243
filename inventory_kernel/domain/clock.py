"""
Clock -- injectable time source for date segments.

Responsibility:
    The ID generator never calls ``datetime.now()`` itself; a ``date``
    segment renders the year of the injected clock.  Services hold one
    clock and pass it through, so tests can pin the year and cross a year
    boundary on demand.

Architecture position:
    Kernel > Domain -- pure functional core.  ``SystemClock`` is the only
    place that reads wall time.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone


class Clock(ABC):
    """Source of the current time; ``now()`` is timezone-aware UTC."""

    @abstractmethod
    def now(self) -> datetime:
        ...

    def year(self) -> int:
        """Year rendered by ``yyyy`` date segments."""
        return self.now().year


class SystemClock(Clock):

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Clock that returns a fixed instant until moved with ``set_time``.

    Naive datetimes are rejected so a test cannot silently mix local time
    into rendered IDs.
    """

    def __init__(self, fixed_time: datetime | None = None):
        self._fixed_time = self._checked(
            fixed_time or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
        )

    def now(self) -> datetime:
        return self._fixed_time

    def set_time(self, time: datetime) -> None:
        self._fixed_time = self._checked(time)

    @staticmethod
    def _checked(time: datetime) -> datetime:
        if time.tzinfo is None:
            raise ValueError("DeterministicClock needs a timezone-aware datetime")
        return time.astimezone(timezone.utc)
