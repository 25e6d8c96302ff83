"""
Storage interfaces the booking core depends on.
Backends live in bus_booking.infrastructure.
"""

from .booking_store import BookingStore
from .seat_ledger import SeatLedgerBackend
from .trip_store import TripStore

__all__ = ['BookingStore', 'SeatLedgerBackend', 'TripStore']
