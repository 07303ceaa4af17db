"""
Domain layer - Pure business logic without external dependencies.
"""

from .calendar_policy import CalendarPolicy, HolidayCalendar
from .codes import generate_confirmation_code
from .models import CancellationEvent, Reservation, ReservationStatus

__all__ = [
    "CalendarPolicy",
    "HolidayCalendar",
    "generate_confirmation_code",
    "CancellationEvent",
    "Reservation",
    "ReservationStatus",
]
