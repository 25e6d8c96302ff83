"""
Seat ledger storage interface.

The ledger is the only shared mutable state in the system. Every backend
must make ``reserve`` a single atomic check-and-increment per trip: two
concurrent calls for the same trip may never both see room for their seats
when only enough remains for one.
"""

from abc import ABC, abstractmethod
from typing import Iterable

from bus_booking.domain.entities import LedgerEntry


class SeatLedgerBackend(ABC):
    """
    Interface for seat inventory storage.

    Implementations:
    - MemorySeatLedger: one asyncio.Lock per trip id
    - SqlSeatLedger: conditional UPDATE guarded by a CHECK constraint

    Entries are created by the trip store, in the same write as their trip.
    """

    @abstractmethod
    async def snapshot(self, trip_id: str) -> LedgerEntry:
        """
        Read the entry as of now.

        Raises:
            TripNotFound: no entry exists for ``trip_id``
        """

    @abstractmethod
    async def snapshot_many(self, trip_ids: Iterable[str]) -> dict[str, LedgerEntry]:
        """Read several entries at once. Unknown ids are left out."""

    @abstractmethod
    async def reserve(self, trip_id: str, count: int) -> LedgerEntry:
        """
        Atomically add ``count`` to seats_reserved if it still fits.

        Raises:
            TripNotFound: no entry exists for ``trip_id``
            InsufficientSeats: fewer than ``count`` seats remain
        """

    @abstractmethod
    async def release(self, trip_id: str, count: int) -> LedgerEntry:
        """
        Atomically take ``count`` back off seats_reserved.

        Raises:
            TripNotFound: no entry exists for ``trip_id``
            ValidationError: fewer than ``count`` seats are reserved
        """
