from __future__ import annotations

from datetime import UTC, date, datetime
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """Source of "now" for validation, accrual and workflow timestamps."""

    def today(self) -> date:
        """Current calendar date."""
        ...

    def now(self) -> datetime:
        """Current timezone-aware instant."""
        ...


class SystemClock:
    """Wall-clock time."""

    def today(self) -> date:
        return date.today()

    def now(self) -> datetime:
        return datetime.now(UTC)


class FixedClock:
    """Clock pinned to a given instant; tests move it with ``set``."""

    def __init__(self, current: datetime) -> None:
        self._current = current

    def set(self, current: datetime) -> None:
        self._current = current

    def today(self) -> date:
        return self._current.date()

    def now(self) -> datetime:
        return self._current


_clock: Clock = SystemClock()


def get_clock() -> Clock:
    """Return the active clock."""
    return _clock


def set_clock(clock: Clock) -> None:
    """Override the clock (for testing or production wiring)."""
    global _clock
    _clock = clock
