"""
Domain models for reservations and cancellation events.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime
from enum import Enum
from typing import Dict

import pendulum
from pendulum import Date, DateTime

DEFAULT_BOOKING_HOUR = 9


class ReservationStatus(str, Enum):
    """Lifecycle state of a reservation. Transitions only CONFIRMED -> CANCELLED."""
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"


def as_date(value: date) -> Date:
    """Coerce any date or datetime to a pendulum Date (time part dropped)."""
    if isinstance(value, datetime):
        value = value.date()
    return pendulum.date(value.year, value.month, value.day)


def booking_start(day: date, hour: int = DEFAULT_BOOKING_HOUR) -> DateTime:
    """Normalized start of the single daily slot, in UTC."""
    return pendulum.datetime(day.year, day.month, day.day, hour, 0, 0, tz="UTC")


def utc_now() -> DateTime:
    """Current UTC time truncated to whole seconds."""
    return pendulum.now("UTC").replace(microsecond=0)


def normalize_attendee(attendee: str) -> str:
    return attendee.strip().lower()


@dataclass(frozen=True)
class Reservation:
    """
    A booked slot, identified by its confirmation code.

    Invariant: at most one CONFIRMED reservation exists per booking date.
    Reservations are never deleted; CANCELLED is the tombstone.
    """
    confirmation_code: str
    booking_date: Date
    starts_at: DateTime
    attendee: str
    created_at: DateTime
    status: ReservationStatus = ReservationStatus.CONFIRMED

    def is_active(self) -> bool:
        return self.status is ReservationStatus.CONFIRMED

    def cancelled(self) -> "Reservation":
        """Return a copy in CANCELLED state."""
        return replace(self, status=ReservationStatus.CANCELLED)

    def __str__(self) -> str:
        return (
            f"{self.confirmation_code} {self.booking_date.isoformat()} "
            f"{self.attendee} [{self.status.value}]"
        )


@dataclass(frozen=True)
class CancellationEvent:
    """Payload delivered to cancellation subscribers."""
    confirmation_code: str

    def to_payload(self) -> Dict[str, str]:
        return {"confirmationCode": self.confirmation_code}
