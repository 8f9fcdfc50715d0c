"""
Clock abstraction (port).

Every access-control component reads time through a Clock so that
decisions are deterministic under test.
"""
from abc import ABC, abstractmethod
from datetime import datetime, timedelta

from django.utils import timezone


class Clock(ABC):
    """Supplies the current time."""

    @abstractmethod
    def now(self) -> datetime:
        """
        Return the current time.

        Returns:
            Timezone-aware datetime
        """
        pass


class SystemClock(Clock):
    """Wall clock, in the timezone Django is configured with (UTC)."""

    def now(self) -> datetime:
        return timezone.now()


class FrozenClock(Clock):
    """Clock that only moves when told to."""

    def __init__(self, at: datetime):
        if timezone.is_naive(at):
            raise ValueError("FrozenClock requires a timezone-aware datetime")
        self._at = at

    def now(self) -> datetime:
        return self._at

    def set(self, at: datetime) -> None:
        """Jump to an absolute instant."""
        if timezone.is_naive(at):
            raise ValueError("FrozenClock requires a timezone-aware datetime")
        self._at = at

    def advance(self, seconds: float = 0, **kwargs) -> datetime:
        """
        Move the clock forward.

        Args:
            seconds: Seconds to advance
            **kwargs: Extra timedelta arguments (minutes, days, ...)

        Returns:
            The new current time
        """
        self._at = self._at + timedelta(seconds=seconds, **kwargs)
        return self._at
