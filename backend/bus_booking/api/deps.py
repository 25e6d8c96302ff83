"""
FastAPI dependencies wiring the services to the configured storage.

Services are stateless wrappers; the storage on app.state holds all state.
"""

from fastapi import Depends, Request

from bus_booking.services.booking_service import BookingService
from bus_booking.services.catalog_service import TripCatalog
from bus_booking.services.ledger_service import AvailabilityLedger
from bus_booking.services.search_service import SearchService
from bus_booking.services.storage_factory import Storage


def get_storage(request: Request) -> Storage:
    return request.app.state.storage


def get_catalog(storage: Storage = Depends(get_storage)) -> TripCatalog:
    return TripCatalog(storage.trips)


def get_ledger(storage: Storage = Depends(get_storage)) -> AvailabilityLedger:
    return AvailabilityLedger(storage.ledger)


def get_search_service(
    catalog: TripCatalog = Depends(get_catalog),
    ledger: AvailabilityLedger = Depends(get_ledger),
) -> SearchService:
    return SearchService(catalog, ledger)


def get_booking_service(
    storage: Storage = Depends(get_storage),
    catalog: TripCatalog = Depends(get_catalog),
    ledger: AvailabilityLedger = Depends(get_ledger),
) -> BookingService:
    return BookingService(catalog, ledger, storage.bookings)
