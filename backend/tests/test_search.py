"""
Tests for trip search: ordering, live availability and failure reporting.
"""

from datetime import date, time
from decimal import Decimal

import pytest

from bus_booking.domain.exceptions import PersistenceFailure, ValidationError
from bus_booking.infrastructure.memory_store import MemorySeatLedger, MemoryTripStore
from bus_booking.services.catalog_service import TripCatalog
from bus_booking.services.search_service import SearchService
from conftest import TRAVEL_DATE, make_draft


async def _seed_sample_day(catalog):
    """The three sample departures, inserted out of order on purpose."""
    evening = await catalog.add(make_draft(
        operator="Maju Lancar", departure_time=time(18, 30), arrival_time=time(22, 0),
        price=Decimal("110000"), capacity=45, amenities=("AC", "Leg Rest", "Entertainment"),
    ), reserved=15)
    morning = await catalog.add(make_draft(
        operator="BlueLine Express", departure_time=time(7, 30), arrival_time=time(10, 30),
        price=Decimal("85000"), capacity=40,
    ), reserved=15)
    noon = await catalog.add(make_draft(
        operator="Nusantara Bus", departure_time=time(12, 0), arrival_time=time(15, 30),
        price=Decimal("95000"), capacity=36, amenities=("AC", "Toilet", "Snack"),
    ), reserved=24)
    return morning, noon, evening


@pytest.mark.asyncio
async def test_search_orders_by_departure(catalog, search_service):
    morning, noon, evening = await _seed_sample_day(catalog)

    views = await search_service.search("Jakarta", "Bandung", "2024-06-01")

    assert [v.trip.id for v in views] == [morning, noon, evening]
    assert [v.trip.price for v in views] == [Decimal("85000"), Decimal("95000"), Decimal("110000")]
    assert [v.seats_available for v in views] == [25, 12, 30]


@pytest.mark.asyncio
async def test_search_ties_broken_by_price_then_insertion(catalog, search_service):
    pricey = await catalog.add(make_draft(price=Decimal("99000")))
    cheap_first = await catalog.add(make_draft(price=Decimal("80000")))
    cheap_second = await catalog.add(make_draft(price=Decimal("80000")))

    views = await search_service.search("Jakarta", "Bandung", TRAVEL_DATE)

    assert [v.trip.id for v in views] == [cheap_first, cheap_second, pricey]


@pytest.mark.asyncio
async def test_search_is_deterministic(catalog, search_service):
    await _seed_sample_day(catalog)

    first = await search_service.search("Jakarta", "Bandung", TRAVEL_DATE)
    second = await search_service.search("jakarta", "bandung", TRAVEL_DATE)

    assert [v.trip.id for v in first] == [v.trip.id for v in second]


@pytest.mark.asyncio
async def test_search_empty_result_is_not_an_error(catalog, search_service):
    await _seed_sample_day(catalog)

    assert await search_service.search("Surabaya", "Malang", TRAVEL_DATE) == []
    assert await search_service.search("Jakarta", "Bandung", date(2024, 6, 2)) == []


@pytest.mark.asyncio
async def test_search_includes_sold_out_trips(search_service, sold_out_trip):
    views = await search_service.search("Jakarta", "Bandung", TRAVEL_DATE)

    assert [v.trip.id for v in views] == [sold_out_trip]
    assert views[0].seats_available == 0


@pytest.mark.asyncio
async def test_search_shows_live_availability(search_service, ledger, small_trip):
    await ledger.try_reserve(small_trip, 4)

    views = await search_service.search("Jakarta", "Bandung", TRAVEL_DATE)
    assert views[0].seats_available == 6


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "origin, destination, when",
    [
        ("", "Bandung", "2024-06-01"),
        ("Jakarta", "   ", "2024-06-01"),
        ("Jakarta", "Bandung", "01/06/2024"),
        ("Jakarta", "Bandung", "2024-13-01"),
    ],
)
async def test_search_rejects_bad_query(search_service, origin, destination, when):
    with pytest.raises(ValidationError):
        await search_service.search(origin, destination, when)


class UnavailableTripStore(MemoryTripStore):
    async def find_by_route(self, origin_key, destination_key, service_date):
        raise PersistenceFailure()


@pytest.mark.asyncio
async def test_search_storage_failure_is_surfaced(storage, ledger):
    catalog = TripCatalog(UnavailableTripStore(storage.ledger))
    service = SearchService(catalog, ledger)

    with pytest.raises(PersistenceFailure):
        await service.search("Jakarta", "Bandung", TRAVEL_DATE)


@pytest.mark.asyncio
async def test_trip_view(search_service, last_seat_trip):
    view = await search_service.trip_view(last_seat_trip)
    assert view.trip.id == last_seat_trip
    assert view.seats_available == 1


@pytest.mark.asyncio
async def test_trip_without_ledger_entry_is_a_storage_fault(ledger):
    # Trips stored against a different ledger than the one searched
    catalog = TripCatalog(MemoryTripStore(MemorySeatLedger()))
    await catalog.add(make_draft())
    service = SearchService(catalog, ledger)

    with pytest.raises(PersistenceFailure):
        await service.search("Jakarta", "Bandung", TRAVEL_DATE)
