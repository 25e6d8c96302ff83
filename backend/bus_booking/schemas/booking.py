"""
Pydantic schemas for booking requests and responses.
"""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from bus_booking.domain.entities import Booking


class BookingCreate(BaseModel):
    trip_id: str = Field(..., min_length=1)
    passenger_name: str
    passenger_email: EmailStr
    # Range is enforced by the ledger so every caller gets the same rule
    seats: int = 1


class BookingConfirmation(BaseModel):
    message: str
    booking_id: str
    status: str


class BookingResponse(BaseModel):
    id: str
    trip_id: str
    passenger_name: str
    passenger_email: str
    seat_count: int
    status: str
    created_at: datetime

    @classmethod
    def from_booking(cls, booking: Booking) -> "BookingResponse":
        return cls(
            id=booking.id,
            trip_id=booking.trip_id,
            passenger_name=booking.passenger_name,
            passenger_email=booking.passenger_email,
            seat_count=booking.seat_count,
            status=booking.status.value,
            created_at=booking.created_at,
        )
