"""
SQL reservation store on SQLAlchemy's async ORM.

The single-booking-per-date rule lives in the schema: a partial unique index
on ``booking_date`` covering only CONFIRMED rows. Cancelled rows stay in the
table and do not block rebooking the date.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import date
from typing import AsyncGenerator, List, Optional

from sqlalchemy import Index, Integer, String, select, text, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from ..domain.exceptions import ReservationConflict, StorageFailure
from ..domain.models import Reservation, ReservationStatus, as_date
from .icalendar import from_icalendar, from_mailto, to_icalendar, to_mailto

logger = logging.getLogger(__name__)

_CONFIRMED_ONLY = text("status = 'CONFIRMED'")


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""


class ReservationRecord(Base):
    """Persisted reservation row."""

    __tablename__ = "reservations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    confirmation_code: Mapped[str] = mapped_column(String(8), unique=True, nullable=False)
    booking_date: Mapped[str] = mapped_column(String(10), nullable=False)  # YYYY-MM-DD
    dtstart: Mapped[str] = mapped_column(String(16), nullable=False)
    dtstamp: Mapped[str] = mapped_column(String(16), nullable=False)
    attendee: Mapped[str] = mapped_column(String(327), nullable=False, index=True)
    method: Mapped[str] = mapped_column(String(16), nullable=False, default="REQUEST")
    status: Mapped[str] = mapped_column(String(16), nullable=False)

    __table_args__ = (
        Index(
            "uq_reservations_confirmed_date",
            "booking_date",
            unique=True,
            sqlite_where=_CONFIRMED_ONLY,
            postgresql_where=_CONFIRMED_ONLY,
        ),
    )

    @classmethod
    def from_reservation(cls, reservation: Reservation) -> "ReservationRecord":
        return cls(
            confirmation_code=reservation.confirmation_code,
            booking_date=reservation.booking_date.isoformat(),
            dtstart=to_icalendar(reservation.starts_at),
            dtstamp=to_icalendar(reservation.created_at),
            attendee=to_mailto(reservation.attendee),
            method="REQUEST",
            status=reservation.status.value,
        )

    def to_reservation(self) -> Reservation:
        """
        Decode the stored text columns.

        Raises:
            StorageFailure: If a column holds text that does not decode
        """
        try:
            return Reservation(
                confirmation_code=self.confirmation_code,
                booking_date=as_date(date.fromisoformat(self.booking_date)),
                starts_at=from_icalendar(self.dtstart),
                attendee=from_mailto(self.attendee),
                created_at=from_icalendar(self.dtstamp),
                status=ReservationStatus(self.status),
            )
        except (TypeError, ValueError) as exc:
            raise StorageFailure(
                f"Corrupt reservation record {self.confirmation_code!r}: {exc}"
            ) from exc


def to_async_url(database_url: str) -> str:
    """Convert a sync driver URL to its async counterpart."""
    if database_url.startswith("sqlite://"):
        return database_url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    if database_url.startswith("postgresql://"):
        return database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return database_url


def _conflict_field(error: IntegrityError) -> str:
    message = str(error.orig)
    if "confirmation_code" in message:
        return "confirmation_code"
    return "booking_date"


class SqlReservationStore:
    """
    Reservation store backed by any SQLAlchemy async database.

    Each operation runs in its own short transaction.
    """

    def __init__(self, database_url: str, echo: bool = False):
        self._database_url = to_async_url(database_url)
        self._echo = echo
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker] = None

    @property
    def engine(self) -> AsyncEngine:
        """Get or create the database engine."""
        if self._engine is None:
            self._engine = create_async_engine(self._database_url, echo=self._echo)
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker:
        """Get or create the session factory."""
        if self._session_factory is None:
            self._session_factory = async_sessionmaker(
                bind=self.engine,
                class_=AsyncSession,
                expire_on_commit=False,
            )
        return self._session_factory

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Get a database session that commits on success.

        SQLAlchemy errors are translated into the domain taxonomy here so
        callers only ever see ``StorageFailure`` and its subclasses.
        """
        session = self.session_factory()
        try:
            yield session
            await session.commit()
        except IntegrityError as exc:
            await session.rollback()
            raise ReservationConflict(_conflict_field(exc), str(exc.orig)) from exc
        except SQLAlchemyError as exc:
            await session.rollback()
            logger.debug("Store operation failed", exc_info=True)
            raise StorageFailure(f"Reservation store error: {exc}") from exc
        finally:
            await session.close()

    async def create_all(self) -> None:
        """Create all tables and indexes."""
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except SQLAlchemyError as exc:
            raise StorageFailure(f"Could not create schema: {exc}") from exc

    async def find_by_date(self, day: date) -> Optional[Reservation]:
        async with self.session() as session:
            result = await session.execute(
                select(ReservationRecord)
                .where(ReservationRecord.booking_date == as_date(day).isoformat())
                .where(ReservationRecord.status == ReservationStatus.CONFIRMED.value)
            )
            record = result.scalars().first()
        return record.to_reservation() if record else None

    async def find_by_code(self, code: str) -> Optional[Reservation]:
        async with self.session() as session:
            result = await session.execute(
                select(ReservationRecord).where(ReservationRecord.confirmation_code == code)
            )
            record = result.scalar_one_or_none()
        return record.to_reservation() if record else None

    async def find_by_attendee(self, attendee: str) -> List[Reservation]:
        async with self.session() as session:
            result = await session.execute(
                select(ReservationRecord)
                .where(ReservationRecord.attendee == to_mailto(attendee))
                .order_by(ReservationRecord.id)
            )
            records = list(result.scalars().all())
        return [record.to_reservation() for record in records]

    async def insert(self, reservation: Reservation) -> None:
        async with self.session() as session:
            session.add(ReservationRecord.from_reservation(reservation))
            await session.flush()

    async def update_status(
        self,
        code: str,
        status: ReservationStatus,
        *,
        expected: Optional[ReservationStatus] = None,
    ) -> int:
        statement = (
            update(ReservationRecord)
            .where(ReservationRecord.confirmation_code == code)
            .values(status=status.value)
            .execution_options(synchronize_session=False)
        )
        if expected is not None:
            statement = statement.where(ReservationRecord.status == expected.value)

        async with self.session() as session:
            result = await session.execute(statement)
            changed = result.rowcount
        return changed

    async def close(self) -> None:
        """Close the database connection."""
        if self._engine:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
