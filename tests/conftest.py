"""
Shared fixtures for the reservation tests.
"""

from datetime import date

import pendulum
import pytest

from dayslot.adapters.memory_store import InMemoryReservationStore
from dayslot.domain.calendar_policy import CalendarPolicy, HolidayCalendar
from dayslot.domain.models import Reservation, ReservationStatus, booking_start

# 2025-03-10 is a Monday; 2025-03-17 is configured as a holiday below
HOLIDAY = pendulum.date(2025, 3, 17)


def make_reservation(
    code: str,
    day: date,
    attendee: str = "a@x.com",
    status: ReservationStatus = ReservationStatus.CONFIRMED,
) -> Reservation:
    return Reservation(
        confirmation_code=code,
        booking_date=pendulum.date(day.year, day.month, day.day),
        starts_at=booking_start(day),
        attendee=attendee,
        created_at=pendulum.datetime(2025, 3, 1, 12, 30, 15, tz="UTC"),
        status=status,
    )


@pytest.fixture
def store() -> InMemoryReservationStore:
    return InMemoryReservationStore()


@pytest.fixture
def policy() -> CalendarPolicy:
    return CalendarPolicy(HolidayCalendar([HOLIDAY]))
