"""
Cancellation with fan-out notification.

A cancellation is committed once the store has flipped the status. Only then
is the event dispatched, to every subscriber in registration order. Failing
subscribers are logged and recorded individually; they never undo the
cancellation and never stop later subscribers from running.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable, List, Tuple, Union

from ..domain.models import CancellationEvent, ReservationStatus
from .store import ReservationStore

logger = logging.getLogger(__name__)

Subscriber = Callable[[CancellationEvent], Union[None, Awaitable[Any]]]


@dataclass(frozen=True)
class SubscriberFailure:
    """A subscriber that raised while handling an event."""
    subscriber: Subscriber
    event: CancellationEvent
    error: Exception


def _subscriber_name(subscriber: Subscriber) -> str:
    return getattr(subscriber, "__qualname__", None) or type(subscriber).__name__


class CancellationHub:
    """
    Owns the subscriber registry and performs cancellations.

    Subscribers are registered during startup. After ``seal()`` the registry
    is read-only, so request handling needs no locking around it.
    """

    def __init__(self, store: ReservationStore, subscribers: Iterable[Subscriber] = ()):
        self._store = store
        self._subscribers: Tuple[Subscriber, ...] = ()
        self._sealed = False
        for subscriber in subscribers:
            self.subscribe(subscriber)

    @property
    def subscribers(self) -> Tuple[Subscriber, ...]:
        return self._subscribers

    @property
    def sealed(self) -> bool:
        return self._sealed

    def subscribe(self, handler: Subscriber) -> None:
        """Append a handler (sync or async callable) to the registry."""
        if self._sealed:
            raise RuntimeError("Subscribers must be registered before the hub is sealed")
        if not callable(handler):
            raise TypeError(f"Subscriber must be callable, got {handler!r}")
        self._subscribers = self._subscribers + (handler,)

    def seal(self) -> None:
        """Freeze the registry for the rest of the process lifetime."""
        self._sealed = True

    async def cancel(self, code: str) -> bool:
        """
        Cancel the reservation with this confirmation code.

        Returns:
            True if a CONFIRMED reservation was cancelled (and subscribers were
            notified), False if the code is unknown or already cancelled
        """
        changed = await self._store.update_status(
            code,
            ReservationStatus.CANCELLED,
            expected=ReservationStatus.CONFIRMED,
        )
        if changed == 0:
            return False

        failures = await self.dispatch(CancellationEvent(confirmation_code=code))
        if failures:
            logger.warning(
                "Reservation %s cancelled; %d of %d subscribers failed",
                code,
                len(failures),
                len(self._subscribers),
            )
        return True

    async def dispatch(self, event: CancellationEvent) -> List[SubscriberFailure]:
        """Deliver an event to every subscriber, isolating failures."""
        failures: List[SubscriberFailure] = []

        for subscriber in self._subscribers:
            try:
                result = subscriber(event)
                if inspect.isawaitable(result):
                    await result
            except Exception as exc:
                logger.exception(
                    "Cancellation subscriber %s failed for %s",
                    _subscriber_name(subscriber),
                    event.confirmation_code,
                )
                failures.append(SubscriberFailure(subscriber, event, exc))

        return failures
