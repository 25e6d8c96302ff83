from bus_booking.schemas.trip import SearchRequest, TripResponse, TripSeedRequest, TripSeedResponse
from bus_booking.schemas.booking import BookingCreate, BookingConfirmation, BookingResponse

__all__ = [
    "SearchRequest", "TripResponse", "TripSeedRequest", "TripSeedResponse",
    "BookingCreate", "BookingConfirmation", "BookingResponse",
]
