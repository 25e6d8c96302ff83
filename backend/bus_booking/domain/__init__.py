from bus_booking.domain.entities import (
    Booking,
    BookingOutcome,
    BookingStatus,
    LedgerEntry,
    Trip,
    TripDraft,
    TripView,
    normalize_city,
)
from bus_booking.domain.exceptions import (
    BookingError,
    InsufficientSeats,
    NotFound,
    PersistenceFailure,
    TripNotFound,
    ValidationError,
)

__all__ = [
    "Booking", "BookingOutcome", "BookingStatus", "LedgerEntry",
    "Trip", "TripDraft", "TripView", "normalize_city",
    "BookingError", "InsufficientSeats", "NotFound", "PersistenceFailure",
    "TripNotFound", "ValidationError",
]
