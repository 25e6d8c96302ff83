"""
Availability ledger: seat counts per trip and the no-oversell rule.

Seat counts are never stored on the trip. ``seats_available`` is always
derived as ``capacity - seats_reserved`` from the ledger entry, and the
only way to move ``seats_reserved`` is through ``try_reserve`` and
``release``, which the backend applies atomically per trip.

Scoped reservation:
  ``reservation()`` reserves on entry and releases on every exit path unless
  the holder calls ``commit()``. The release is shielded from cancellation,
  so a caller that abandons the request between the reservation and the
  booking record still gives the seats back.
"""

import asyncio
from typing import Iterable, Optional

from bus_booking.core.config import get_settings
from bus_booking.core.logging import get_logger
from bus_booking.core.metrics import record_compensation
from bus_booking.domain.entities import LedgerEntry
from bus_booking.domain.exceptions import PersistenceFailure, ValidationError
from bus_booking.services.interfaces import SeatLedgerBackend

logger = get_logger(__name__)


class AvailabilityLedger:

    def __init__(self, backend: SeatLedgerBackend, max_seats_per_booking: Optional[int] = None):
        self.backend = backend
        self.max_seats_per_booking = max_seats_per_booking or get_settings().MAX_SEATS_PER_BOOKING

    def validate_count(self, count) -> int:
        """Seat count must be an int in [1, max_seats_per_booking]."""
        if isinstance(count, bool) or not isinstance(count, int):
            raise ValidationError("Seat count must be a whole number")
        if count < 1 or count > self.max_seats_per_booking:
            raise ValidationError(
                f"Seat count must be between 1 and {self.max_seats_per_booking}, got {count}"
            )
        return count

    async def available_seats(self, trip_id: str) -> int:
        entry = await self.backend.snapshot(trip_id)
        return entry.seats_available

    async def snapshot_many(self, trip_ids: Iterable[str]) -> dict[str, LedgerEntry]:
        """
        Entries for every id in ``trip_ids``.

        Every stored trip has an entry. A missing one is a storage fault and
        raises PersistenceFailure.
        """
        ids = list(trip_ids)
        entries = await self.backend.snapshot_many(ids)
        missing = [tid for tid in ids if tid not in entries]
        if missing:
            logger.error("ledger_entry_missing", trip_ids=missing)
            raise PersistenceFailure()
        return entries

    async def try_reserve(self, trip_id: str, count: int) -> LedgerEntry:
        """
        Atomically reserve ``count`` seats or fail right away.

        Raises:
            ValidationError: count out of range (ledger untouched)
            TripNotFound: unknown trip
            InsufficientSeats: not enough seats left, with the remaining count
        """
        self.validate_count(count)
        entry = await self.backend.reserve(trip_id, count)
        logger.debug("seats_reserved", trip_id=trip_id, seats=count, reserved=entry.seats_reserved)
        return entry

    async def release(self, trip_id: str, count: int) -> LedgerEntry:
        self.validate_count(count)
        entry = await self.backend.release(trip_id, count)
        logger.info("seats_released", trip_id=trip_id, seats=count, reserved=entry.seats_reserved)
        return entry

    def reservation(self, trip_id: str, count: int) -> "SeatReservation":
        return SeatReservation(self, trip_id, count)


class SeatReservation:
    """
    Async context manager holding seats until committed.

        async with ledger.reservation(trip_id, 2) as hold:
            await bookings.add(booking)
            hold.commit()
    """

    def __init__(self, ledger: AvailabilityLedger, trip_id: str, count: int):
        self._ledger = ledger
        self.trip_id = trip_id
        self.count = count
        self.entry: Optional[LedgerEntry] = None
        self._committed = False

    @property
    def committed(self) -> bool:
        return self._committed

    def commit(self) -> None:
        if self.entry is None:
            raise RuntimeError("Cannot commit a reservation that was never acquired")
        self._committed = True

    async def __aenter__(self) -> "SeatReservation":
        self.entry = await self._ledger.try_reserve(self.trip_id, self.count)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        if self._committed or self.entry is None:
            return False

        reason = "cancelled" if exc_type is not None and issubclass(exc_type, asyncio.CancelledError) else "error"
        logger.warning(
            "booking_compensated",
            trip_id=self.trip_id,
            seats=self.count,
            reason=reason,
            error=str(exc) if exc else None,
        )
        await asyncio.shield(self._ledger.release(self.trip_id, self.count))
        record_compensation(reason)
        return False
