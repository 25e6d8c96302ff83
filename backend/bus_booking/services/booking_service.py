"""
Booking service with concurrency-safe seat reservation.

STATE MACHINE
=============

Every attempt goes Requested -> Confirmed or Requested -> Rejected, and
both are terminal. There are no internal retries; retry policy belongs to
the caller.

  1. Validate passenger name, email and seat count  -> Rejected(validation)
  2. Look up the trip                               -> Rejected(not_found)
  3. Reserve seats in the ledger (atomic)           -> Rejected(insufficient_seats)
  4. Store the booking inside the scoped reservation. If storing fails, or
     the caller goes away, the reservation releases the seats before the
     failure is reported                            -> Rejected(persistence)
  5. Confirmed, with a human-readable message

A confirmed booking therefore always matches exactly one applied ledger
increment, and a rejected one matches none. Rejected attempts are logged
and counted but not stored.
"""

import time
import uuid
from datetime import datetime, timezone
from typing import Callable, Optional

from bus_booking.core.logging import get_logger
from bus_booking.core.metrics import booking_latency, record_booking_attempt, seats_reserved
from bus_booking.domain.entities import Booking, BookingOutcome, BookingStatus, Trip
from bus_booking.domain.exceptions import BookingError, ValidationError
from bus_booking.services.catalog_service import TripCatalog
from bus_booking.services.interfaces import BookingStore
from bus_booking.services.ledger_service import AvailabilityLedger

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def confirmation_message(booking: Booking, trip: Trip) -> str:
    return (
        f"Booking confirmed for {booking.passenger_name}: {booking.seat_count} seat(s) on "
        f"{trip.operator}, {trip.origin} to {trip.destination} on {trip.service_date.isoformat()} "
        f"departing {trip.departure_time.strftime('%H:%M')}. Booking ID: {booking.id}"
    )


class BookingService:

    def __init__(
        self,
        catalog: TripCatalog,
        ledger: AvailabilityLedger,
        bookings: BookingStore,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.catalog = catalog
        self.ledger = ledger
        self.bookings = bookings
        self.clock = clock or _utcnow

    def _validate(self, passenger_name, passenger_email, seat_count) -> tuple[str, str]:
        name = (passenger_name or "").strip()
        email = (passenger_email or "").strip()
        if not name:
            raise ValidationError("Passenger name is required")
        if not email:
            raise ValidationError("Passenger email is required")
        if "@" not in email:
            raise ValidationError("Passenger email must be a valid email address")
        self.ledger.validate_count(seat_count)
        return name, email

    async def book(
        self,
        trip_id: str,
        passenger_name: str,
        passenger_email: str,
        seat_count: int,
    ) -> BookingOutcome:
        """Run one booking attempt to a terminal state. Never raises BookingError."""
        started = time.perf_counter()
        trip = None
        try:
            name, email = self._validate(passenger_name, passenger_email, seat_count)
            trip = await self.catalog.get(trip_id)

            async with self.ledger.reservation(trip.id, seat_count) as hold:
                booking = Booking(
                    id=uuid.uuid4().hex,
                    trip_id=trip.id,
                    passenger_name=name,
                    passenger_email=email,
                    seat_count=seat_count,
                    status=BookingStatus.CONFIRMED,
                    created_at=self.clock(),
                )
                await self.bookings.add(booking)
                hold.commit()

        except BookingError as e:
            return self._reject(trip_id, passenger_name, passenger_email, seat_count, e, trip, started)

        booking_latency.observe(time.perf_counter() - started)
        record_booking_attempt("confirmed")
        seats_reserved.inc(seat_count)
        logger.info(
            "booking_confirmed",
            booking_id=booking.id,
            trip_id=trip.id,
            seats=seat_count,
            seats_left=hold.entry.seats_available,
        )
        return BookingOutcome(booking=booking, message=confirmation_message(booking, trip), trip=trip)

    def _reject(self, trip_id, passenger_name, passenger_email, seat_count, error, trip, started) -> BookingOutcome:
        booking = Booking(
            id=uuid.uuid4().hex,
            trip_id=trip_id,
            passenger_name=passenger_name or "",
            passenger_email=passenger_email or "",
            seat_count=seat_count,
            status=BookingStatus.REJECTED,
            created_at=self.clock(),
        )
        booking_latency.observe(time.perf_counter() - started)
        record_booking_attempt(error.kind)
        log = logger.error if error.kind == "persistence" else logger.warning
        log(
            "booking_rejected",
            trip_id=trip_id,
            seats=seat_count,
            reason=error.kind,
            detail=error.message,
        )
        return BookingOutcome(booking=booking, message=error.message, trip=trip, error=error)

    async def list_bookings(self, email: Optional[str] = None, trip_id: Optional[str] = None) -> list[Booking]:
        return await self.bookings.list_bookings(email=email, trip_id=trip_id)
