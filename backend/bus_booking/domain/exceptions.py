"""
Domain errors for trip search and booking.

Each error carries the HTTP status the API layer answers with, so routes
never have to translate error kinds by hand.
"""

from fastapi import status


class BookingError(Exception):
    """Base class for every expected failure in the booking core."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    kind: str = "error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(BookingError):
    """Malformed input. The caller fixes the input; never retried."""

    status_code = status.HTTP_400_BAD_REQUEST
    kind = "validation"


class NotFound(BookingError):
    status_code = status.HTTP_404_NOT_FOUND
    kind = "not_found"


class TripNotFound(NotFound):
    def __init__(self, trip_id: str):
        self.trip_id = trip_id
        super().__init__(f"Trip {trip_id} not found")


class InsufficientSeats(BookingError):
    """Capacity exhausted at commit time. Expected, user facing."""

    status_code = status.HTTP_409_CONFLICT
    kind = "insufficient_seats"

    def __init__(self, trip_id: str, requested: int, remaining: int):
        self.trip_id = trip_id
        self.requested = requested
        self.remaining = remaining
        if remaining <= 0:
            message = "No seats available on this trip"
        else:
            message = f"Only {remaining} seats available, requested {requested}"
        super().__init__(message)


class PersistenceFailure(BookingError):
    """Storage collaborator unavailable. The only kind worth retrying."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    kind = "persistence"

    def __init__(self, message: str = "Storage is temporarily unavailable, please retry"):
        super().__init__(message)
