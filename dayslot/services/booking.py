"""
Booking engine: validates a requested date and reserves it atomically.

Checking that a date is free and inserting the reservation are two separate
store operations. Two layers keep concurrent bookings of one date from both
succeeding:

1. ``DateLocks`` serializes check-then-insert per date inside this process.
2. The store rejects a second CONFIRMED row for a date, which catches writers
   in other processes. Such a conflict restarts the attempt, and the re-check
   then reports the date as reserved.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from datetime import date
from typing import AsyncIterator, Callable, Dict

from pendulum import DateTime

from ..domain.calendar_policy import CalendarPolicy
from ..domain.codes import generate_confirmation_code
from ..domain.exceptions import (
    InvalidAttendee,
    InvalidDate,
    ReservationConflict,
    SlotUnavailable,
    StorageFailure,
)
from ..domain.models import (
    DEFAULT_BOOKING_HOUR,
    Reservation,
    ReservationStatus,
    as_date,
    booking_start,
    normalize_attendee,
    utc_now,
)
from .store import ReservationStore

DEFAULT_MAX_ATTEMPTS = 3


class DateLocks:
    """Per-date asyncio locks, dropped again once nobody holds or awaits them."""

    def __init__(self) -> None:
        self._locks: Dict[date, asyncio.Lock] = {}
        self._users: Dict[date, int] = {}

    @asynccontextmanager
    async def hold(self, day: date) -> AsyncIterator[None]:
        lock = self._locks.setdefault(day, asyncio.Lock())
        self._users[day] = self._users.get(day, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[day] -= 1
            if not self._users[day]:
                del self._users[day]
                del self._locks[day]

    def __len__(self) -> int:
        return len(self._locks)


class BookingEngine:
    """Creates CONFIRMED reservations and issues confirmation codes."""

    def __init__(
        self,
        store: ReservationStore,
        policy: CalendarPolicy,
        *,
        booking_hour: int = DEFAULT_BOOKING_HOUR,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        code_factory: Callable[[], str] = generate_confirmation_code,
        clock: Callable[[], DateTime] = utc_now,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._store = store
        self._policy = policy
        self._booking_hour = booking_hour
        self._max_attempts = max_attempts
        self._code_factory = code_factory
        self._clock = clock
        self._locks = DateLocks()

    async def book(self, day: date, attendee: str) -> str:
        """
        Reserve ``day`` for ``attendee`` and return the confirmation code.

        Raises:
            InvalidDate: If day is not a calendar date
            InvalidAttendee: If attendee is empty
            SlotUnavailable: If the date is reserved, a weekend day or a holiday
            StorageFailure: On store errors, or when every attempt conflicted
        """
        if not isinstance(day, date):
            raise InvalidDate(f"Not a calendar date: {day!r}")
        if not isinstance(attendee, str) or not attendee.strip():
            raise InvalidAttendee("Attendee must be a non-empty contact address")

        booking_date = as_date(day)
        contact = normalize_attendee(attendee)

        async with self._locks.hold(booking_date):
            last_conflict: ReservationConflict | None = None
            for _ in range(self._max_attempts):
                try:
                    return await self._attempt(booking_date, contact)
                except ReservationConflict as exc:
                    last_conflict = exc

        raise StorageFailure(
            f"Could not reserve {booking_date.isoformat()} after "
            f"{self._max_attempts} attempts: {last_conflict}"
        )

    async def _attempt(self, booking_date, contact: str) -> str:
        if await self._store.find_by_date(booking_date) is not None:
            raise SlotUnavailable(booking_date, "reserved")

        reason = self._policy.rejection_reason(booking_date)
        if reason is not None:
            raise SlotUnavailable(booking_date, reason)

        reservation = Reservation(
            confirmation_code=self._code_factory(),
            booking_date=booking_date,
            starts_at=booking_start(booking_date, self._booking_hour),
            attendee=contact,
            created_at=self._clock(),
            status=ReservationStatus.CONFIRMED,
        )
        await self._store.insert(reservation)
        return reservation.confirmation_code
