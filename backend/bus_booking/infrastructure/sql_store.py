"""
SQLAlchemy storage backend.

CONCURRENCY STRATEGY: Conditional UPDATE
========================================

Problem:
  Two passengers try to book the last seat simultaneously.
  Both read seats_reserved = capacity - 1, both increment, both succeed.
  Result: Oversell.

Solution:
  The check and the increment are one statement:

    UPDATE seat_ledger SET seats_reserved = seats_reserved + :n
    WHERE trip_id = :trip_id AND seats_reserved + :n <= capacity

  The row lock taken by the UPDATE serialises writers on the same trip and
  the WHERE clause is re-evaluated against the committed row, so at most one
  of two racing requests can match. rowcount == 0 means "no room" (or no
  such trip), reported immediately. There is no retry loop, so every call
  finishes in bounded time. The CHECK constraints on seat_ledger are the
  final safety net.

Every operation runs in its own short transaction. Driver and connection
errors are reported as PersistenceFailure.
"""

from contextlib import asynccontextmanager
from datetime import date
from typing import AsyncIterator, Iterable, Optional
import uuid

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from bus_booking.core.logging import get_logger
from bus_booking.domain.entities import Booking, BookingStatus, LedgerEntry, Trip, TripDraft, normalize_city
from bus_booking.domain.exceptions import InsufficientSeats, PersistenceFailure, TripNotFound, ValidationError
from bus_booking.models import BookingRecord, SeatLedgerRecord, TripRecord
from bus_booking.services.interfaces import BookingStore, SeatLedgerBackend, TripStore

logger = get_logger(__name__)


class _SqlStore:

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._sessions = session_factory

    @asynccontextmanager
    async def _transaction(self, operation: str) -> AsyncIterator[AsyncSession]:
        try:
            async with self._sessions() as session:
                async with session.begin():
                    yield session
        except SQLAlchemyError as e:
            logger.error("storage_error", operation=operation, error=str(e))
            raise PersistenceFailure() from e


def _to_trip(record: TripRecord) -> Trip:
    return Trip(
        id=record.id,
        origin=record.origin,
        destination=record.destination,
        service_date=record.service_date,
        operator=record.operator,
        departure_time=record.departure_time,
        arrival_time=record.arrival_time,
        price=record.price,
        capacity=record.capacity,
        amenities=tuple(record.amenities or ()),
        sequence=record.seq,
    )


def _to_entry(record: SeatLedgerRecord) -> LedgerEntry:
    return LedgerEntry(record.trip_id, record.capacity, record.seats_reserved)


class SqlTripStore(_SqlStore, TripStore):

    async def insert(self, draft: TripDraft, reserved: int = 0) -> Trip:
        async with self._transaction("trip_insert") as session:
            record = TripRecord(
                id=uuid.uuid4().hex,
                origin=draft.origin,
                destination=draft.destination,
                origin_key=normalize_city(draft.origin),
                destination_key=normalize_city(draft.destination),
                service_date=draft.service_date,
                operator=draft.operator,
                departure_time=draft.departure_time,
                arrival_time=draft.arrival_time,
                price=draft.price,
                capacity=draft.capacity,
                amenities=list(draft.amenities),
            )
            session.add(record)
            await session.flush()
            # Same transaction: a trip row never exists without its ledger row
            session.add(SeatLedgerRecord(trip_id=record.id, capacity=draft.capacity, seats_reserved=reserved))
            await session.flush()
            return _to_trip(record)

    async def get(self, trip_id: str) -> Optional[Trip]:
        async with self._transaction("trip_get") as session:
            result = await session.execute(select(TripRecord).where(TripRecord.id == trip_id))
            record = result.scalar_one_or_none()
            return _to_trip(record) if record else None

    async def find_by_route(self, origin_key: str, destination_key: str, service_date: date) -> list[Trip]:
        async with self._transaction("trip_find") as session:
            result = await session.execute(
                select(TripRecord).where(
                    TripRecord.origin_key == origin_key,
                    TripRecord.destination_key == destination_key,
                    TripRecord.service_date == service_date,
                )
            )
            return [_to_trip(r) for r in result.scalars().all()]


class SqlSeatLedger(_SqlStore, SeatLedgerBackend):

    async def _load(self, session: AsyncSession, trip_id: str) -> SeatLedgerRecord:
        result = await session.execute(select(SeatLedgerRecord).where(SeatLedgerRecord.trip_id == trip_id))
        record = result.scalar_one_or_none()
        if record is None:
            raise TripNotFound(trip_id)
        return record

    async def snapshot(self, trip_id: str) -> LedgerEntry:
        async with self._transaction("ledger_snapshot") as session:
            return _to_entry(await self._load(session, trip_id))

    async def snapshot_many(self, trip_ids: Iterable[str]) -> dict[str, LedgerEntry]:
        ids = list(trip_ids)
        if not ids:
            return {}
        async with self._transaction("ledger_snapshot_many") as session:
            result = await session.execute(select(SeatLedgerRecord).where(SeatLedgerRecord.trip_id.in_(ids)))
            return {r.trip_id: _to_entry(r) for r in result.scalars().all()}

    async def reserve(self, trip_id: str, count: int) -> LedgerEntry:
        async with self._transaction("ledger_reserve") as session:
            result = await session.execute(
                update(SeatLedgerRecord)
                .where(
                    SeatLedgerRecord.trip_id == trip_id,
                    SeatLedgerRecord.seats_reserved + count <= SeatLedgerRecord.capacity,
                )
                .values(seats_reserved=SeatLedgerRecord.seats_reserved + count)
                .execution_options(synchronize_session=False)
            )
            record = await self._load(session, trip_id)
            if result.rowcount == 0:
                raise InsufficientSeats(trip_id, count, record.capacity - record.seats_reserved)
            return _to_entry(record)

    async def release(self, trip_id: str, count: int) -> LedgerEntry:
        async with self._transaction("ledger_release") as session:
            result = await session.execute(
                update(SeatLedgerRecord)
                .where(SeatLedgerRecord.trip_id == trip_id, SeatLedgerRecord.seats_reserved >= count)
                .values(seats_reserved=SeatLedgerRecord.seats_reserved - count)
                .execution_options(synchronize_session=False)
            )
            record = await self._load(session, trip_id)
            if result.rowcount == 0:
                raise ValidationError(f"Cannot release {count} seats, only {record.seats_reserved} reserved")
            return _to_entry(record)


class SqlBookingStore(_SqlStore, BookingStore):

    async def add(self, booking: Booking) -> Booking:
        async with self._transaction("booking_add") as session:
            session.add(BookingRecord(
                id=booking.id,
                trip_id=booking.trip_id,
                passenger_name=booking.passenger_name,
                passenger_email=booking.passenger_email,
                seat_count=booking.seat_count,
                status=booking.status.value,
                created_at=booking.created_at,
            ))
        return booking

    async def list_bookings(self, email: Optional[str] = None, trip_id: Optional[str] = None) -> list[Booking]:
        query = select(BookingRecord).order_by(BookingRecord.created_at.desc())
        if email is not None:
            query = query.where(func.lower(BookingRecord.passenger_email) == email.lower())
        if trip_id is not None:
            query = query.where(BookingRecord.trip_id == trip_id)
        async with self._transaction("booking_list") as session:
            result = await session.execute(query)
            return [
                Booking(
                    id=r.id,
                    trip_id=r.trip_id,
                    passenger_name=r.passenger_name,
                    passenger_email=r.passenger_email,
                    seat_count=r.seat_count,
                    status=BookingStatus(r.status),
                    created_at=r.created_at,
                )
                for r in result.scalars().all()
            ]
