"""
Booking endpoints with concurrency-safe seat reservation.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from bus_booking.api.deps import get_booking_service
from bus_booking.schemas.booking import BookingConfirmation, BookingCreate, BookingResponse
from bus_booking.services.booking_service import BookingService

router = APIRouter(tags=["Bookings"])


@router.post("/book", response_model=BookingConfirmation, status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking_data: BookingCreate,
    service: BookingService = Depends(get_booking_service),
):
    """
    Reserve seats on a trip.

    The seat check and increment are atomic, so concurrent requests for the
    last seats can never oversell. Failures answer with {"detail": ...}:
    400 invalid input, 404 unknown trip, 409 not enough seats,
    503 storage unavailable (safe to retry).
    """
    outcome = await service.book(
        booking_data.trip_id,
        booking_data.passenger_name,
        booking_data.passenger_email,
        booking_data.seats,
    )
    if not outcome.confirmed:
        raise HTTPException(status_code=outcome.error.status_code, detail=outcome.message)
    return BookingConfirmation(
        message=outcome.message,
        booking_id=outcome.booking.id,
        status=outcome.booking.status.value,
    )


@router.get("/bookings", response_model=list[BookingResponse])
async def list_bookings(
    email: Optional[str] = Query(None),
    trip_id: Optional[str] = Query(None),
    service: BookingService = Depends(get_booking_service),
):
    """List stored bookings, newest first."""
    bookings = await service.list_bookings(email=email, trip_id=trip_id)
    return [BookingResponse.from_booking(b) for b in bookings]
