"""
Trip search: route + date to an ordered list of trips with live seats.

Ordering is departure time, then price, then insertion order, so equal
queries always return equal sequences. Sold-out trips stay in the result;
whether to hide them is up to the caller.

Seat counts are read from the ledger at query time and may be stale by the
time a booking arrives. That is fine: the ledger re-checks at commit.
"""

import time
from datetime import date

from bus_booking.core.logging import get_logger
from bus_booking.core.metrics import record_search, search_latency
from bus_booking.domain.entities import TripView
from bus_booking.domain.exceptions import BookingError, ValidationError
from bus_booking.services.catalog_service import TripCatalog
from bus_booking.services.ledger_service import AvailabilityLedger

logger = get_logger(__name__)


def parse_service_date(value) -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        raise ValidationError(f"Date must be YYYY-MM-DD, got {value!r}")


class SearchService:

    def __init__(self, catalog: TripCatalog, ledger: AvailabilityLedger):
        self.catalog = catalog
        self.ledger = ledger

    async def search(self, origin: str, destination: str, service_date) -> list[TripView]:
        """
        Find trips for a route and date.

        An empty list means no trips match. Storage failures raise
        PersistenceFailure instead of looking like an empty result.
        """
        if not origin or not origin.strip() or not destination or not destination.strip():
            raise ValidationError("Origin and destination are required")
        service_date = parse_service_date(service_date)

        started = time.perf_counter()
        try:
            trips = await self.catalog.find_by_route(origin, destination, service_date)
            entries = await self.ledger.snapshot_many(t.id for t in trips)
        except BookingError:
            record_search("error")
            raise

        views = [TripView(trip, entries[trip.id].seats_available) for trip in trips]
        views.sort(key=TripView.sort_key)

        search_latency.observe(time.perf_counter() - started)
        record_search("hit" if views else "empty")
        logger.info(
            "search_completed",
            origin=origin,
            destination=destination,
            date=service_date.isoformat(),
            results=len(views),
        )
        return views

    async def trip_view(self, trip_id: str) -> TripView:
        trip = await self.catalog.get(trip_id)
        return TripView(trip, await self.ledger.available_seats(trip.id))
