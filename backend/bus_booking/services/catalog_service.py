"""
Trip catalog: insertion and route lookup.
"""

from datetime import date
from decimal import Decimal

from bus_booking.core.logging import get_logger
from bus_booking.core.metrics import trips_created
from bus_booking.domain.entities import Trip, TripDraft, normalize_city
from bus_booking.domain.exceptions import TripNotFound, ValidationError
from bus_booking.services.cache_service import (
    current_route_key,
    get_cached_route,
    invalidate_route,
    make_route_key,
    set_cached_route,
)
from bus_booking.services.interfaces import TripStore

logger = get_logger(__name__)


def validate_draft(draft: TripDraft, reserved: int = 0) -> None:
    if not draft.origin.strip() or not draft.destination.strip():
        raise ValidationError("Origin and destination are required")
    if normalize_city(draft.origin) == normalize_city(draft.destination):
        raise ValidationError("Origin and destination must be different cities")
    if not draft.operator.strip():
        raise ValidationError("Bus operator is required")
    if isinstance(draft.capacity, bool) or not isinstance(draft.capacity, int) or draft.capacity <= 0:
        raise ValidationError("Seat capacity must be a positive whole number")
    if Decimal(draft.price) < 0:
        raise ValidationError("Price cannot be negative")
    if reserved < 0 or reserved > draft.capacity:
        raise ValidationError(
            f"Pre-reserved seats must be between 0 and {draft.capacity}, got {reserved}"
        )


class TripCatalog:

    def __init__(self, trips: TripStore):
        self.trips = trips

    async def add(self, draft: TripDraft, reserved: int = 0) -> str:
        """
        Insert a trip together with its ledger entry.

        ``reserved`` seats are counted as already taken, for trips imported
        with existing sales. Returns the generated trip id.
        """
        validate_draft(draft, reserved)
        draft = TripDraft(
            origin=" ".join(draft.origin.split()),
            destination=" ".join(draft.destination.split()),
            service_date=draft.service_date,
            operator=draft.operator.strip(),
            departure_time=draft.departure_time,
            arrival_time=draft.arrival_time,
            price=Decimal(draft.price),
            capacity=draft.capacity,
            amenities=tuple(draft.amenities),
        )

        trip = await self.trips.insert(draft, reserved)
        await invalidate_route(make_route_key(*trip.route_key))

        trips_created.inc()
        logger.info(
            "trip_created",
            trip_id=trip.id,
            origin=trip.origin,
            destination=trip.destination,
            date=trip.service_date.isoformat(),
            departure=trip.departure_time.isoformat(timespec="minutes"),
            capacity=trip.capacity,
            reserved=reserved,
        )
        return trip.id

    async def get(self, trip_id: str) -> Trip:
        trip = await self.trips.get(trip_id)
        if trip is None:
            raise TripNotFound(trip_id)
        return trip

    async def find_by_route(self, origin: str, destination: str, service_date: date) -> list[Trip]:
        """Exact case-insensitive city match and exact date match. Unordered."""
        origin_key, destination_key = normalize_city(origin), normalize_city(destination)
        cache_key = await current_route_key(make_route_key(origin_key, destination_key, service_date))
        if cache_key is not None:
            cached = await get_cached_route(cache_key)
            if cached is not None:
                return cached

        trips = await self.trips.find_by_route(origin_key, destination_key, service_date)
        if cache_key is not None:
            await set_cached_route(cache_key, trips)
        return trips
