"""
Adapters layer - External integrations (database, holiday API, mail).
"""

from .holiday_client import HolidayApiClient
from .memory_store import InMemoryReservationStore
from .notifiers import AuditLogSubscriber, EmailCancellationNotifier, build_subscribers
from .sql_store import SqlReservationStore

__all__ = [
    "HolidayApiClient",
    "InMemoryReservationStore",
    "AuditLogSubscriber",
    "EmailCancellationNotifier",
    "build_subscribers",
    "SqlReservationStore",
]
