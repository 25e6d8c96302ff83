"""
Pytest fixtures for storage, services and the HTTP client.

Every test gets a fresh in-memory storage, so tests never share seats.
The Redis route cache is switched off.
"""

import os

os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("ENVIRONMENT", "test")

from datetime import date, time
from decimal import Decimal
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from bus_booking.main import app
from bus_booking.domain.entities import TripDraft
from bus_booking.services.booking_service import BookingService
from bus_booking.services.catalog_service import TripCatalog
from bus_booking.services.ledger_service import AvailabilityLedger
from bus_booking.services.search_service import SearchService
from bus_booking.services.storage_factory import Storage, memory_storage

TRAVEL_DATE = date(2024, 6, 1)


def make_draft(**overrides) -> TripDraft:
    fields = dict(
        origin="Jakarta",
        destination="Bandung",
        service_date=TRAVEL_DATE,
        operator="BlueLine Express",
        departure_time=time(7, 30),
        arrival_time=time(10, 30),
        price=Decimal("85000"),
        capacity=40,
        amenities=("AC", "Reclining Seat", "USB Charger"),
    )
    fields.update(overrides)
    return TripDraft(**fields)


@pytest.fixture
def storage() -> Storage:
    return memory_storage()


@pytest.fixture
def catalog(storage: Storage) -> TripCatalog:
    return TripCatalog(storage.trips)


@pytest.fixture
def ledger(storage: Storage) -> AvailabilityLedger:
    return AvailabilityLedger(storage.ledger, max_seats_per_booking=6)


@pytest.fixture
def search_service(catalog: TripCatalog, ledger: AvailabilityLedger) -> SearchService:
    return SearchService(catalog, ledger)


@pytest.fixture
def booking_service(storage: Storage, catalog: TripCatalog, ledger: AvailabilityLedger) -> BookingService:
    return BookingService(catalog, ledger, storage.bookings)


@pytest_asyncio.fixture
async def small_trip(catalog: TripCatalog) -> str:
    """A Jakarta -> Bandung trip with 10 seats, none reserved."""
    return await catalog.add(make_draft(capacity=10))


@pytest_asyncio.fixture
async def last_seat_trip(catalog: TripCatalog) -> str:
    """A trip with exactly one seat left."""
    return await catalog.add(make_draft(capacity=36, operator="Nusantara Bus"), reserved=35)


@pytest_asyncio.fixture
async def sold_out_trip(catalog: TripCatalog) -> str:
    return await catalog.add(make_draft(capacity=45, operator="Maju Lancar"), reserved=45)


@pytest_asyncio.fixture
async def client(storage: Storage) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app, backed by the test's in-memory storage."""
    app.state.storage = storage

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.state.storage = None
