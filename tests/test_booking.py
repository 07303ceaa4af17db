"""
Tests for the booking engine, including concurrent bookings of one date.
"""

import asyncio
from datetime import date
from itertools import chain, repeat

import pendulum
import pytest

from dayslot.domain.exceptions import (
    InvalidAttendee,
    InvalidDate,
    SlotUnavailable,
    StorageFailure,
)
from dayslot.domain.models import ReservationStatus
from dayslot.services.booking import BookingEngine, DateLocks

from .conftest import make_reservation

MONDAY = pendulum.date(2025, 3, 10)
FIXED_NOW = pendulum.datetime(2025, 3, 1, 8, 15, 0, tz="UTC")


def _engine(store, policy, **kwargs):
    kwargs.setdefault("clock", lambda: FIXED_NOW)
    return BookingEngine(store, policy, **kwargs)


class TestBookingEngine:
    """Tests for BookingEngine.book."""

    def test_book_returns_confirmation_code(self, store, policy):
        code = asyncio.run(_engine(store, policy).book(MONDAY, "a@x.com"))

        assert len(code) == 8
        assert int(code, 16) >= 0
        assert code == code.lower()

    def test_book_persists_normalized_reservation(self, store, policy):
        """Start is fixed at 09:00 UTC, attendee is lower-cased, timestamp from clock."""
        code = asyncio.run(_engine(store, policy).book(MONDAY, "  A@X.com "))

        reservation = asyncio.run(store.find_by_code(code))

        assert reservation.booking_date == MONDAY
        assert reservation.starts_at == pendulum.datetime(2025, 3, 10, 9, 0, 0, tz="UTC")
        assert reservation.attendee == "a@x.com"
        assert reservation.created_at == FIXED_NOW
        assert reservation.status is ReservationStatus.CONFIRMED

    def test_custom_booking_hour(self, store, policy):
        code = asyncio.run(_engine(store, policy, booking_hour=14).book(MONDAY, "a@x.com"))

        reservation = asyncio.run(store.find_by_code(code))

        assert reservation.starts_at.hour == 14

    def test_accepts_datetime_input(self, store, policy):
        """A datetime is reduced to its calendar date."""
        code = asyncio.run(
            _engine(store, policy).book(pendulum.datetime(2025, 3, 10, 22, 30), "a@x.com")
        )

        reservation = asyncio.run(store.find_by_code(code))

        assert reservation.booking_date == MONDAY

    def test_second_booking_same_date_rejected(self, store, policy):
        engine = _engine(store, policy)
        asyncio.run(engine.book(MONDAY, "a@x.com"))

        with pytest.raises(SlotUnavailable) as excinfo:
            asyncio.run(engine.book(MONDAY, "b@x.com"))

        assert excinfo.value.reason == "reserved"
        assert excinfo.value.day == MONDAY

    def test_weekend_rejected(self, store, policy):
        with pytest.raises(SlotUnavailable) as excinfo:
            asyncio.run(_engine(store, policy).book(date(2025, 3, 8), "a@x.com"))

        assert excinfo.value.reason == "weekend"

    def test_holiday_rejected(self, store, policy):
        with pytest.raises(SlotUnavailable) as excinfo:
            asyncio.run(_engine(store, policy).book(date(2025, 3, 17), "a@x.com"))

        assert excinfo.value.reason == "holiday"
        assert len(store) == 0

    def test_reservation_checked_before_calendar(self, store, policy):
        """An existing booking is reported even on a non-bookable date."""
        asyncio.run(store.insert(make_reservation("aaaaaaaa", date(2025, 3, 8))))

        with pytest.raises(SlotUnavailable) as excinfo:
            asyncio.run(_engine(store, policy).book(date(2025, 3, 8), "a@x.com"))

        assert excinfo.value.reason == "reserved"

    def test_cancelled_date_can_be_rebooked(self, store, policy):
        asyncio.run(store.insert(
            make_reservation("aaaaaaaa", MONDAY, status=ReservationStatus.CANCELLED)
        ))

        code = asyncio.run(_engine(store, policy).book(MONDAY, "b@x.com"))

        assert asyncio.run(store.find_by_date(MONDAY)).confirmation_code == code

    def test_invalid_date_rejected(self, store, policy):
        with pytest.raises(InvalidDate):
            asyncio.run(_engine(store, policy).book("2025-03-10", "a@x.com"))

    @pytest.mark.parametrize("attendee", ["", "   ", None])
    def test_invalid_attendee_rejected(self, store, policy, attendee):
        with pytest.raises(InvalidAttendee):
            asyncio.run(_engine(store, policy).book(MONDAY, attendee))

    def test_max_attempts_must_be_positive(self, store, policy):
        with pytest.raises(ValueError):
            BookingEngine(store, policy, max_attempts=0)


class TestConfirmationCodeCollisions:
    """A colliding code is retried with a fresh one, never overwritten."""

    def test_collision_retried_with_fresh_code(self, store, policy):
        codes = iter(["aaaaaaaa", "aaaaaaaa", "bbbbbbbb"])
        engine = _engine(store, policy, code_factory=lambda: next(codes))

        first = asyncio.run(engine.book(MONDAY, "a@x.com"))
        second = asyncio.run(engine.book(date(2025, 3, 11), "b@x.com"))

        assert first == "aaaaaaaa"
        assert second == "bbbbbbbb"
        assert asyncio.run(store.find_by_code("aaaaaaaa")).attendee == "a@x.com"

    def test_repeated_collisions_surface_storage_failure(self, store, policy):
        codes = chain(["aaaaaaaa"], repeat("aaaaaaaa"))
        engine = _engine(store, policy, code_factory=lambda: next(codes), max_attempts=3)
        asyncio.run(engine.book(MONDAY, "a@x.com"))

        with pytest.raises(StorageFailure, match="after 3 attempts"):
            asyncio.run(engine.book(date(2025, 3, 11), "b@x.com"))

        assert len(store) == 1


class TestConcurrentBooking:
    """Many simultaneous bookings of one date yield exactly one reservation."""

    @staticmethod
    async def _book_many(engines, attendees):
        tasks = [
            engine.book(MONDAY, attendee)
            for engine, attendee in zip(engines, attendees)
        ]
        return await asyncio.gather(*tasks, return_exceptions=True)

    def test_single_engine(self, store, policy):
        engine = _engine(store, policy)
        attendees = [f"user{i}@x.com" for i in range(10)]

        results = asyncio.run(self._book_many([engine] * 10, attendees))

        successes = [r for r in results if isinstance(r, str)]
        failures = [r for r in results if isinstance(r, Exception)]
        assert len(successes) == 1
        assert len(failures) == 9
        assert all(isinstance(f, SlotUnavailable) for f in failures)

        booked = asyncio.run(store.find_by_date(MONDAY))
        assert booked.confirmation_code == successes[0]

    def test_independent_engines_share_store(self, store, policy):
        """Engines with separate locks (like separate processes) rely on the store."""
        engines = [_engine(store, policy) for _ in range(6)]
        attendees = [f"user{i}@x.com" for i in range(6)]

        results = asyncio.run(self._book_many(engines, attendees))

        successes = [r for r in results if isinstance(r, str)]
        failures = [r for r in results if isinstance(r, Exception)]
        assert len(successes) == 1
        assert all(isinstance(f, (SlotUnavailable, StorageFailure)) for f in failures)

        confirmed = [
            r for r in asyncio.run(self._all_for(store, attendees))
            if r.status is ReservationStatus.CONFIRMED
        ]
        assert len(confirmed) == 1

    @staticmethod
    async def _all_for(store, attendees):
        found = []
        for attendee in attendees:
            found.extend(await store.find_by_attendee(attendee))
        return found

    def test_different_dates_do_not_block_each_other(self, store, policy):
        engine = _engine(store, policy)
        days = [date(2025, 3, 10), date(2025, 3, 11), date(2025, 3, 12)]

        async def book_all():
            return await asyncio.gather(*(engine.book(day, "a@x.com") for day in days))

        codes = asyncio.run(book_all())

        assert len(set(codes)) == 3


class TestDateLocks:
    """Tests for the per-date lock registry."""

    def test_locks_are_released(self):
        locks = DateLocks()

        async def scenario():
            async with locks.hold(MONDAY):
                assert len(locks) == 1
            return len(locks)

        assert asyncio.run(scenario()) == 0

    def test_same_date_is_serialized(self):
        locks = DateLocks()
        events = []

        async def worker(name):
            async with locks.hold(MONDAY):
                events.append(f"{name}-in")
                await asyncio.sleep(0)
                await asyncio.sleep(0)
                events.append(f"{name}-out")

        async def scenario():
            await asyncio.gather(worker("a"), worker("b"))

        asyncio.run(scenario())

        assert events == ["a-in", "a-out", "b-in", "b-out"]
        assert len(locks) == 0
