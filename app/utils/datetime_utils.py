"""
Datetime utilities.

Provides timezone-aware datetime functions and an injectable clock.
"""

from datetime import UTC, date, datetime
from typing import Protocol


def utc_now() -> datetime:
    """
    Get current UTC datetime with timezone info.

    Returns:
        Current datetime in UTC with timezone awareness
    """
    return datetime.now(UTC)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class Clock(Protocol):
    """Source of the current time for services and jobs."""

    def now(self) -> datetime: ...

    def today(self) -> date: ...


class SystemClock:
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return utc_now()

    def today(self) -> date:
        return self.now().date()


class FixedClock:
    """
    Clock frozen at a given instant.

    Used by tests and by replays of a past distribution day.
    """

    def __init__(self, at: datetime) -> None:
        self._at = ensure_utc(at)

    def now(self) -> datetime:
        return self._at

    def today(self) -> date:
        return self._at.date()

    def set(self, at: datetime) -> None:
        """Move the clock to another instant."""
        self._at = ensure_utc(at)


system_clock = SystemClock()
