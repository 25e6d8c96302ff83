"""
Tests for the SQLAlchemy backend on SQLite.

Most tests use an in-memory database and exercise the conditional UPDATE
path of the ledger and the SQLAlchemyError -> PersistenceFailure
translation. The concurrency tests use a database file so every session
gets its own connection, as with a real server.
"""

import asyncio
from datetime import time
from decimal import Decimal
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

import bus_booking.models  # noqa: F401 - register tables
from bus_booking.db.base import Base
from bus_booking.domain.entities import BookingStatus, LedgerEntry
from bus_booking.domain.exceptions import InsufficientSeats, PersistenceFailure, TripNotFound, ValidationError
from bus_booking.services.booking_service import BookingService
from bus_booking.services.catalog_service import TripCatalog
from bus_booking.services.ledger_service import AvailabilityLedger
from bus_booking.services.search_service import SearchService
from bus_booking.services.storage_factory import Storage, sql_storage
from conftest import TRAVEL_DATE, make_draft


@pytest_asyncio.fixture
async def sql() -> AsyncGenerator[Storage, None]:
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    storage = sql_storage(engine)
    yield storage
    await storage.close()


@pytest_asyncio.fixture
async def file_sql(tmp_path) -> AsyncGenerator[Storage, None]:
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'bookings.db'}",
        connect_args={"timeout": 30},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    storage = sql_storage(engine)
    yield storage
    await storage.close()


@pytest.fixture
def sql_catalog(sql: Storage) -> TripCatalog:
    return TripCatalog(sql.trips)


@pytest.fixture
def sql_ledger(sql: Storage) -> AvailabilityLedger:
    return AvailabilityLedger(sql.ledger, max_seats_per_booking=6)


@pytest.mark.asyncio
async def test_trip_round_trip(sql_catalog):
    trip_id = await sql_catalog.add(make_draft(amenities=("AC", "AC", "Toilet")))

    trip = await sql_catalog.get(trip_id)
    assert trip.origin == "Jakarta"
    assert trip.service_date == TRAVEL_DATE
    assert trip.departure_time == time(7, 30)
    assert trip.price == Decimal("85000")
    assert trip.amenities == ("AC", "AC", "Toilet")
    assert trip.sequence > 0


@pytest.mark.asyncio
async def test_get_unknown_trip(sql_catalog):
    with pytest.raises(TripNotFound):
        await sql_catalog.get("missing")


@pytest.mark.asyncio
async def test_search_order_and_availability(sql_catalog, sql_ledger):
    late = await sql_catalog.add(make_draft(departure_time=time(18, 30), price=Decimal("110000")))
    early = await sql_catalog.add(make_draft(departure_time=time(7, 30)), reserved=15)

    views = await SearchService(sql_catalog, sql_ledger).search("JAKARTA", "bandung", TRAVEL_DATE)

    assert [v.trip.id for v in views] == [early, late]
    assert [v.seats_available for v in views] == [25, 40]


@pytest.mark.asyncio
async def test_reserve_and_release(sql_catalog, sql_ledger):
    trip_id = await sql_catalog.add(make_draft(capacity=5))

    entry = await sql_ledger.try_reserve(trip_id, 4)
    assert entry.seats_reserved == 4

    with pytest.raises(InsufficientSeats) as info:
        await sql_ledger.try_reserve(trip_id, 2)
    assert info.value.remaining == 1

    entry = await sql_ledger.release(trip_id, 4)
    assert entry.seats_reserved == 0
    assert await sql_ledger.available_seats(trip_id) == 5


@pytest.mark.asyncio
async def test_reserve_unknown_trip(sql_ledger):
    with pytest.raises(TripNotFound):
        await sql_ledger.try_reserve("missing", 1)


@pytest.mark.asyncio
async def test_booking_is_stored(sql, sql_catalog, sql_ledger):
    trip_id = await sql_catalog.add(make_draft(capacity=3))
    service = BookingService(sql_catalog, sql_ledger, sql.bookings)

    outcome = await service.book(trip_id, "Sari", "Sari@Example.com", 3)
    rejected = await service.book(trip_id, "Dewi", "dewi@example.com", 1)

    assert outcome.confirmed
    assert isinstance(rejected.error, InsufficientSeats)
    stored = await service.list_bookings(email="sari@example.com")
    assert [(b.id, b.seat_count, b.status) for b in stored] == [
        (outcome.booking.id, 3, BookingStatus.CONFIRMED)
    ]


@pytest.mark.asyncio
async def test_storage_errors_become_persistence_failure(sql, sql_catalog, sql_ledger):
    trip_id = await sql_catalog.add(make_draft())
    # A fresh in-memory connection has no tables
    await sql.engine.dispose()

    with pytest.raises(PersistenceFailure):
        await sql_ledger.try_reserve(trip_id, 1)


@pytest.mark.asyncio
async def test_release_more_than_reserved_is_rejected(sql_catalog, sql_ledger):
    trip_id = await sql_catalog.add(make_draft(capacity=5))
    await sql_ledger.try_reserve(trip_id, 2)

    with pytest.raises(ValidationError):
        await sql_ledger.release(trip_id, 3)
    assert await sql_ledger.available_seats(trip_id) == 3


@pytest.mark.asyncio
async def test_failed_ledger_write_leaves_no_trip(sql, sql_catalog):
    # seats_reserved above capacity violates the ledger CHECK constraint
    with pytest.raises(PersistenceFailure):
        await sql.trips.insert(make_draft(capacity=5), reserved=6)

    assert await sql_catalog.find_by_route("Jakarta", "Bandung", TRAVEL_DATE) == []


@pytest.mark.asyncio
async def test_seed_offset_written_with_trip(sql, sql_catalog):
    trip_id = await sql_catalog.add(make_draft(capacity=40), reserved=15)

    entry = await sql.ledger.snapshot(trip_id)
    assert (entry.capacity, entry.seats_reserved) == (40, 15)


@pytest.mark.asyncio
async def test_concurrent_reservations_never_oversell(file_sql):
    catalog = TripCatalog(file_sql.trips)
    ledger = AvailabilityLedger(file_sql.ledger, max_seats_per_booking=6)
    trip_id = await catalog.add(make_draft(capacity=5))

    results = await asyncio.gather(
        *(ledger.try_reserve(trip_id, 1) for _ in range(30)),
        return_exceptions=True,
    )

    assert sum(isinstance(r, LedgerEntry) for r in results) == 5
    assert sum(isinstance(r, InsufficientSeats) for r in results) == 25
    assert (await file_sql.ledger.snapshot(trip_id)).seats_reserved == 5


@pytest.mark.asyncio
async def test_concurrent_bookings_match_ledger(file_sql):
    catalog = TripCatalog(file_sql.trips)
    ledger = AvailabilityLedger(file_sql.ledger, max_seats_per_booking=6)
    service = BookingService(catalog, ledger, file_sql.bookings)
    trip_id = await catalog.add(make_draft(capacity=7))

    outcomes = await asyncio.gather(*(
        service.book(trip_id, f"Passenger {i}", f"p{i}@example.com", 2) for i in range(12)
    ))

    confirmed = [o for o in outcomes if o.confirmed]
    assert len(confirmed) == 3
    assert all(isinstance(o.error, InsufficientSeats) for o in outcomes if not o.confirmed)

    stored = await service.list_bookings(trip_id=trip_id)
    entry = await file_sql.ledger.snapshot(trip_id)
    assert entry.seats_reserved == sum(b.seat_count for b in stored) == 6
