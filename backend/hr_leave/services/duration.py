"""Counting the days a leave request consumes."""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal
from typing import Protocol, runtime_checkable

from hr_leave.config import get_settings


@runtime_checkable
class HolidayProvider(Protocol):
    """Source of public holidays for business-day counting."""

    def holidays_between(self, start_date: date, end_date: date) -> set[date]:
        """Return holiday dates within [start_date, end_date] inclusive."""
        ...


class StaticHolidayProvider:
    """Fixed-date holidays: New Year's Day, Christmas Day and Boxing Day."""

    FIXED_DATES: tuple[tuple[int, int], ...] = ((1, 1), (12, 25), (12, 26))

    def holidays_between(self, start_date: date, end_date: date) -> set[date]:
        holidays: set[date] = set()
        for year in range(start_date.year, end_date.year + 1):
            for month, day in self.FIXED_DATES:
                holiday = date(year, month, day)
                if start_date <= holiday <= end_date:
                    holidays.add(holiday)
        return holidays


@runtime_checkable
class DayCounter(Protocol):
    """Counts the leave days between two dates (inclusive)."""

    def count(self, start_date: date, end_date: date) -> Decimal:
        ...


class CalendarDayCounter:
    """Every calendar day in the range counts."""

    def count(self, start_date: date, end_date: date) -> Decimal:
        if end_date < start_date:
            return Decimal(0)
        return Decimal((end_date - start_date).days + 1)


class BusinessDayCounter:
    """Weekdays only, minus holidays from the provider."""

    def __init__(self, holiday_provider: HolidayProvider | None = None) -> None:
        self.holiday_provider = holiday_provider or StaticHolidayProvider()

    def count(self, start_date: date, end_date: date) -> Decimal:
        if end_date < start_date:
            return Decimal(0)
        holidays = self.holiday_provider.holidays_between(start_date, end_date)
        days = 0
        current = start_date
        one_day = timedelta(days=1)
        while current <= end_date:
            # weekday() 5 and 6 are Saturday and Sunday.
            if current.weekday() < 5 and current not in holidays:
                days += 1
            current += one_day
        return Decimal(days)


_day_counter: DayCounter | None = None


def get_day_counter() -> DayCounter:
    """Return the configured day counter, building it from settings on first use."""
    global _day_counter
    if _day_counter is None:
        _day_counter = BusinessDayCounter() if get_settings().count_business_days else CalendarDayCounter()
    return _day_counter


def set_day_counter(counter: DayCounter | None) -> None:
    """Override the counter; ``None`` falls back to settings on next use."""
    global _day_counter
    _day_counter = counter


def count_leave_days(start_date: date, end_date: date) -> Decimal:
    """Leave days consumed by a request spanning start_date..end_date inclusive."""
    return get_day_counter().count(start_date, end_date)


def ranges_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """Inclusive date ranges overlap when each starts on or before the other ends."""
    return a_start <= b_end and b_start <= a_end
