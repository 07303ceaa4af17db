"""
Availability search over calendar days.
"""

from __future__ import annotations

from datetime import date
from typing import List, Optional

from pendulum import Date

from ..domain.calendar_policy import CalendarPolicy
from ..domain.exceptions import InvalidCount, NoAvailabilityError
from ..domain.models import as_date
from .store import ReservationStore

DEFAULT_HORIZON_DAYS = 366


class AvailabilityFinder:
    """
    Finds the next bookable, unreserved dates after a start date.

    The walk is deterministic: for a fixed store state and start date the
    result is always the same. It stops after ``horizon_days`` days and
    raises ``NoAvailabilityError`` instead of scanning forever.
    """

    def __init__(
        self,
        store: ReservationStore,
        policy: CalendarPolicy,
        horizon_days: Optional[int] = DEFAULT_HORIZON_DAYS,
    ):
        self._store = store
        self._policy = policy
        self.horizon_days = horizon_days

    async def find_next_available(self, start_date: date, n: int) -> List[Date]:
        """
        Return the next ``n`` available dates strictly after ``start_date``.

        Args:
            start_date: Dates on or before this one are never returned
            n: Number of dates wanted (any positive number)

        Returns:
            Strictly increasing list of exactly ``n`` dates

        Raises:
            InvalidCount: If n is smaller than 1
            NoAvailabilityError: If the horizon ends before n dates are found
        """
        if n < 1:
            raise InvalidCount(f"Number of dates must be positive, got {n}")

        start = as_date(start_date)
        available: List[Date] = []
        current = start

        while len(available) < n:
            current = current.add(days=1)

            if self.horizon_days is not None and (current - start).in_days() > self.horizon_days:
                raise NoAvailabilityError(start, self.horizon_days, len(available), n)

            # Policy first: no store read for weekends and holidays
            if not self._policy.is_bookable(current):
                continue

            if await self._store.find_by_date(current) is None:
                available.append(current)

        return available
