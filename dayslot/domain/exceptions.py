"""
Domain-specific exception hierarchy for the reservation engine.
"""

from __future__ import annotations

from datetime import date
from typing import Optional


class ReservationError(Exception):
    """Base class for all application-level errors."""


class InvalidInput(ReservationError):
    """Raised for malformed caller input. Never retried."""


class InvalidDate(InvalidInput):
    """Raised when a booking or start date is not a valid calendar date."""


class InvalidAttendee(InvalidInput):
    """Raised when the attendee contact identifier is missing or malformed."""


class InvalidCount(InvalidInput):
    """Raised when the number of requested dates is out of range."""


class SlotUnavailable(ReservationError):
    """Raised when a date is reserved, a weekend day, or a holiday."""

    def __init__(self, day: date, reason: str):
        self.day = day
        self.reason = reason
        super().__init__(
            f"The date {day.isoformat()} is not available for reservation ({reason}). "
            "Please try a different date."
        )


class NoAvailabilityError(ReservationError):
    """Raised when the availability search runs past its horizon."""

    def __init__(self, start: date, horizon_days: int, found: int, wanted: int):
        self.start = start
        self.horizon_days = horizon_days
        self.found = found
        self.wanted = wanted
        super().__init__(
            f"Only {found} of {wanted} available date(s) found within "
            f"{horizon_days} days after {start.isoformat()}"
        )


class NotFound(ReservationError):
    """Raised when a lookup finds nothing."""


class StorageFailure(ReservationError):
    """Raised when the reservation store cannot be read or written."""


class ReservationConflict(StorageFailure):
    """Raised when an insert violates a uniqueness constraint."""

    def __init__(self, field: str, message: Optional[str] = None):
        self.field = field
        super().__init__(message or f"Uniqueness constraint violated on {field}")


class CalendarSourceError(ReservationError):
    """Raised when holiday data cannot be fetched or parsed."""
