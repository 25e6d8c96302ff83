"""
Append-only booking storage interface.
"""

from abc import ABC, abstractmethod
from typing import Optional

from bus_booking.domain.entities import Booking


class BookingStore(ABC):

    @abstractmethod
    async def add(self, booking: Booking) -> Booking:
        """
        Durably store a booking record.

        Raises:
            PersistenceFailure: the record could not be stored
        """

    @abstractmethod
    async def list_bookings(self, email: Optional[str] = None, trip_id: Optional[str] = None) -> list[Booking]:
        """Stored bookings, newest first, optionally filtered."""
