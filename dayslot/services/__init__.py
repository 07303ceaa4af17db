"""
Service layer helpers that orchestrate the store and domain logic.
"""

from .availability import AvailabilityFinder
from .booking import BookingEngine, DateLocks
from .cancellation import CancellationHub, SubscriberFailure
from .reservations import ReservationService
from .store import ReservationStore

__all__ = [
    "AvailabilityFinder",
    "BookingEngine",
    "DateLocks",
    "CancellationHub",
    "SubscriberFailure",
    "ReservationService",
    "ReservationStore",
]
