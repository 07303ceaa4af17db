"""
Store interface consumed by the reservation services.

Any transactional record store can back the engine as long as ``insert``
enforces two uniqueness rules: one row per confirmation code, and at most one
CONFIRMED row per booking date.
"""

from __future__ import annotations

from datetime import date
from typing import List, Optional, Protocol

from ..domain.models import Reservation, ReservationStatus


class ReservationStore(Protocol):
    """Protocol describing the store behaviour needed by the services."""

    async def find_by_date(self, day: date) -> Optional[Reservation]:
        """Return the CONFIRMED reservation for a date, if any."""

    async def find_by_code(self, code: str) -> Optional[Reservation]:
        """Return the reservation with this confirmation code, any status."""

    async def find_by_attendee(self, attendee: str) -> List[Reservation]:
        """Return all reservations for an attendee in insertion order."""

    async def insert(self, reservation: Reservation) -> None:
        """Persist a new reservation; raise ReservationConflict on duplicates."""

    async def update_status(
        self,
        code: str,
        status: ReservationStatus,
        *,
        expected: Optional[ReservationStatus] = None,
    ) -> int:
        """Set the status of a reservation and return the changed-row count."""

    async def close(self) -> None:
        """Release store resources."""
