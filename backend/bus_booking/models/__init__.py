from bus_booking.models.trip import TripRecord, SeatLedgerRecord
from bus_booking.models.booking import BookingRecord

__all__ = ["TripRecord", "SeatLedgerRecord", "BookingRecord"]
