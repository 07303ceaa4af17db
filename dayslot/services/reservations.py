"""
Application service exposing the four core reservation operations.

The service wires the availability finder, booking engine and cancellation
hub to a single store so the boundary layer (the CLI) stays thin.
"""

from __future__ import annotations

from datetime import date
from typing import List, Optional

from pendulum import Date

from ..domain.calendar_policy import CalendarPolicy
from ..domain.exceptions import InvalidAttendee, NotFound
from ..domain.models import DEFAULT_BOOKING_HOUR, Reservation, normalize_attendee
from .availability import DEFAULT_HORIZON_DAYS, AvailabilityFinder
from .booking import DEFAULT_MAX_ATTEMPTS, BookingEngine
from .cancellation import CancellationHub
from .store import ReservationStore


class ReservationService:
    """Facade over availability, booking, cancellation and lookup."""

    def __init__(
        self,
        store: ReservationStore,
        policy: CalendarPolicy,
        hub: Optional[CancellationHub] = None,
        *,
        booking_hour: int = DEFAULT_BOOKING_HOUR,
        horizon_days: Optional[int] = DEFAULT_HORIZON_DAYS,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        self._store = store
        self.policy = policy
        self.hub = hub or CancellationHub(store)
        self.finder = AvailabilityFinder(store, policy, horizon_days=horizon_days)
        self.engine = BookingEngine(
            store,
            policy,
            booking_hour=booking_hour,
            max_attempts=max_attempts,
        )

    async def get_available_dates(self, start_date: date, n: int) -> List[Date]:
        """Next ``n`` bookable, unreserved dates after ``start_date``."""
        return await self.finder.find_next_available(start_date, n)

    async def create_reservation(self, day: date, attendee: str) -> str:
        """Book ``day`` for ``attendee``; returns the confirmation code."""
        return await self.engine.book(day, attendee)

    async def cancel_reservation(self, confirmation_code: str) -> bool:
        """Cancel by code; False when the code is unknown or already cancelled."""
        return await self.hub.cancel(confirmation_code)

    async def lookup_reservations(self, attendee: str) -> List[Reservation]:
        """
        Return every reservation (any status) for an attendee.

        Raises:
            InvalidAttendee: If attendee is empty
            NotFound: If the attendee has no reservations
        """
        if not isinstance(attendee, str) or not attendee.strip():
            raise InvalidAttendee("Attendee must be a non-empty contact address")

        contact = normalize_attendee(attendee)
        reservations = await self._store.find_by_attendee(contact)
        if not reservations:
            raise NotFound(f"No reservations found for {contact}.")
        return reservations

    async def close(self) -> None:
        await self._store.close()
