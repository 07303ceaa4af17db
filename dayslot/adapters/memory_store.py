"""
In-memory reservation store for tests and throwaway runs.
"""

from __future__ import annotations

import asyncio
from dataclasses import replace
from datetime import date
from typing import Dict, List, Optional

from ..domain.exceptions import ReservationConflict
from ..domain.models import Reservation, ReservationStatus, as_date


class InMemoryReservationStore:
    """
    Dict-backed store with the same uniqueness rules as the SQL store.

    Every operation yields to the event loop once before touching state, so
    concurrent callers interleave the way they would against a real database.
    After that yield, check and write run without awaiting, which makes them
    atomic on the event loop.
    """

    def __init__(self) -> None:
        self._rows: Dict[str, Reservation] = {}  # insertion ordered
        self.closed = False

    async def find_by_date(self, day: date) -> Optional[Reservation]:
        await asyncio.sleep(0)
        target = as_date(day)
        for reservation in self._rows.values():
            if reservation.booking_date == target and reservation.is_active():
                return reservation
        return None

    async def find_by_code(self, code: str) -> Optional[Reservation]:
        await asyncio.sleep(0)
        return self._rows.get(code)

    async def find_by_attendee(self, attendee: str) -> List[Reservation]:
        await asyncio.sleep(0)
        return [r for r in self._rows.values() if r.attendee == attendee]

    async def insert(self, reservation: Reservation) -> None:
        await asyncio.sleep(0)
        if reservation.confirmation_code in self._rows:
            raise ReservationConflict("confirmation_code")
        if reservation.is_active() and any(
            r.booking_date == reservation.booking_date and r.is_active()
            for r in self._rows.values()
        ):
            raise ReservationConflict("booking_date")
        self._rows[reservation.confirmation_code] = reservation

    async def update_status(
        self,
        code: str,
        status: ReservationStatus,
        *,
        expected: Optional[ReservationStatus] = None,
    ) -> int:
        await asyncio.sleep(0)
        current = self._rows.get(code)
        if current is None:
            return 0
        if expected is not None and current.status is not expected:
            return 0
        if status is ReservationStatus.CONFIRMED and any(
            r.booking_date == current.booking_date and r.is_active()
            for r in self._rows.values()
            if r is not current
        ):
            raise ReservationConflict("booking_date")
        self._rows[code] = replace(current, status=status)
        return 1

    def __len__(self) -> int:
        return len(self._rows)

    async def close(self) -> None:
        self.closed = True
