"""
Calendar policy: which dates are bookable in principle.

Pure domain logic without external dependencies. Holiday data is loaded by an
adapter at startup and handed in as a ``HolidayCalendar``.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable, Iterator, Optional, Sequence, Tuple

from pendulum import Date

from .models import as_date

WEEKEND_DAYS: Tuple[int, ...] = (5, 6)  # Saturday, Sunday


class HolidayCalendar:
    """Immutable set of holiday dates."""

    def __init__(self, days: Iterable[date] = ()):
        self._days = frozenset(as_date(day) for day in days)

    def contains(self, day: date) -> bool:
        return as_date(day) in self._days

    def __contains__(self, day: object) -> bool:
        return isinstance(day, date) and self.contains(day)

    def __len__(self) -> int:
        return len(self._days)

    def __iter__(self) -> Iterator[Date]:
        return iter(sorted(self._days))

    def merge(self, other: "HolidayCalendar") -> "HolidayCalendar":
        """Return a calendar holding the holidays of both."""
        return HolidayCalendar([*self._days, *other._days])

    def __repr__(self) -> str:
        return f"HolidayCalendar({len(self)} days)"


class CalendarPolicy:
    """
    Answers "is this date bookable in principle".

    A date is bookable when it is neither a weekend day nor a holiday.
    Existing reservations are not considered here.
    """

    def __init__(
        self,
        holidays: Optional[HolidayCalendar] = None,
        weekend_days: Sequence[int] = WEEKEND_DAYS,
    ):
        self.holidays = holidays or HolidayCalendar()
        self.weekend_days = frozenset(weekend_days)  # 0=Monday, 6=Sunday

    def is_weekend(self, day: date) -> bool:
        return day.weekday() in self.weekend_days

    def is_holiday(self, day: date) -> bool:
        return self.holidays.contains(day)

    def is_bookable(self, day: date) -> bool:
        return not self.is_weekend(day) and not self.is_holiday(day)

    def rejection_reason(self, day: date) -> Optional[str]:
        """Return "weekend" or "holiday" for non-bookable dates, else None."""
        if self.is_weekend(day):
            return "weekend"
        if self.is_holiday(day):
            return "holiday"
        return None
