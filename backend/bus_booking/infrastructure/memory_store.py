"""
In-process storage backend.

Used for local development, tests and single-worker deployments. Each trip
gets its own asyncio.Lock, so reservations on different trips never wait on
each other while reservations on the same trip are strictly serialised.
"""

import asyncio
import itertools
import uuid
from collections import defaultdict
from datetime import date
from typing import Iterable, Optional

from bus_booking.domain.entities import Booking, LedgerEntry, Trip, TripDraft
from bus_booking.domain.exceptions import InsufficientSeats, TripNotFound, ValidationError
from bus_booking.services.interfaces import BookingStore, SeatLedgerBackend, TripStore


class MemoryTripStore(TripStore):

    def __init__(self, ledger: "MemorySeatLedger") -> None:
        self._ledger = ledger
        self._trips: dict[str, Trip] = {}
        self._by_route: dict[tuple, list[str]] = defaultdict(list)
        self._sequence = itertools.count(1)

    async def insert(self, draft: TripDraft, reserved: int = 0) -> Trip:
        trip = Trip.from_draft(uuid.uuid4().hex, draft, next(self._sequence))
        # Ledger entry first: a trip is never findable without one
        await self._ledger.open(trip.id, trip.capacity, reserved)
        self._trips[trip.id] = trip
        self._by_route[trip.route_key].append(trip.id)
        return trip

    async def get(self, trip_id: str) -> Optional[Trip]:
        return self._trips.get(trip_id)

    async def find_by_route(self, origin_key: str, destination_key: str, service_date: date) -> list[Trip]:
        ids = self._by_route.get((origin_key, destination_key, service_date), [])
        return [self._trips[trip_id] for trip_id in ids]


class MemorySeatLedger(SeatLedgerBackend):

    def __init__(self) -> None:
        self._capacity: dict[str, int] = {}
        self._reserved: dict[str, int] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def _lock(self, trip_id: str) -> asyncio.Lock:
        if trip_id not in self._capacity:
            raise TripNotFound(trip_id)
        return self._locks.setdefault(trip_id, asyncio.Lock())

    def _entry(self, trip_id: str) -> LedgerEntry:
        return LedgerEntry(trip_id, self._capacity[trip_id], self._reserved[trip_id])

    async def open(self, trip_id: str, capacity: int, reserved: int = 0) -> LedgerEntry:
        """Create the entry for a new trip. Called by MemoryTripStore.insert."""
        self._capacity[trip_id] = capacity
        self._reserved[trip_id] = reserved
        return self._entry(trip_id)

    async def snapshot(self, trip_id: str) -> LedgerEntry:
        if trip_id not in self._capacity:
            raise TripNotFound(trip_id)
        return self._entry(trip_id)

    async def snapshot_many(self, trip_ids: Iterable[str]) -> dict[str, LedgerEntry]:
        return {tid: self._entry(tid) for tid in trip_ids if tid in self._capacity}

    async def reserve(self, trip_id: str, count: int) -> LedgerEntry:
        async with self._lock(trip_id):
            reserved = self._reserved[trip_id]
            remaining = self._capacity[trip_id] - reserved
            if count > remaining:
                raise InsufficientSeats(trip_id, count, remaining)
            self._reserved[trip_id] = reserved + count
            return self._entry(trip_id)

    async def release(self, trip_id: str, count: int) -> LedgerEntry:
        async with self._lock(trip_id):
            reserved = self._reserved[trip_id]
            if count > reserved:
                raise ValidationError(f"Cannot release {count} seats, only {reserved} reserved")
            self._reserved[trip_id] = reserved - count
            return self._entry(trip_id)


class MemoryBookingStore(BookingStore):

    def __init__(self) -> None:
        self._bookings: list[Booking] = []

    async def add(self, booking: Booking) -> Booking:
        self._bookings.append(booking)
        return booking

    async def list_bookings(self, email: Optional[str] = None, trip_id: Optional[str] = None) -> list[Booking]:
        found = [
            b for b in self._bookings
            if (email is None or b.passenger_email.lower() == email.lower())
            and (trip_id is None or b.trip_id == trip_id)
        ]
        return sorted(found, key=lambda b: b.created_at, reverse=True)
