"""
Plain domain records shared by the services and every storage backend.

Trips and bookings are immutable once created, so they are frozen
dataclasses. Seat availability is never stored on a Trip; it is joined in
from the ledger as a TripView.
"""

import enum
from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional


def normalize_city(name: str) -> str:
    """Key used for route matching: trimmed, whitespace collapsed, casefolded."""
    return " ".join(name.split()).casefold()


@dataclass(frozen=True)
class TripDraft:
    origin: str
    destination: str
    service_date: date
    operator: str
    departure_time: time
    arrival_time: time
    price: Decimal
    capacity: int
    amenities: tuple[str, ...] = ()


@dataclass(frozen=True)
class Trip:
    id: str
    origin: str
    destination: str
    service_date: date
    operator: str
    departure_time: time
    arrival_time: time
    price: Decimal
    capacity: int
    amenities: tuple[str, ...] = ()
    sequence: int = 0

    @property
    def route_key(self) -> tuple[str, str, date]:
        return normalize_city(self.origin), normalize_city(self.destination), self.service_date

    @classmethod
    def from_draft(cls, trip_id: str, draft: TripDraft, sequence: int) -> "Trip":
        return cls(
            id=trip_id,
            origin=draft.origin,
            destination=draft.destination,
            service_date=draft.service_date,
            operator=draft.operator,
            departure_time=draft.departure_time,
            arrival_time=draft.arrival_time,
            price=draft.price,
            capacity=draft.capacity,
            amenities=tuple(draft.amenities),
            sequence=sequence,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "origin": self.origin,
            "destination": self.destination,
            "service_date": self.service_date.isoformat(),
            "operator": self.operator,
            "departure_time": self.departure_time.isoformat(),
            "arrival_time": self.arrival_time.isoformat(),
            "price": str(self.price),
            "capacity": self.capacity,
            "amenities": list(self.amenities),
            "sequence": self.sequence,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Trip":
        return cls(
            id=data["id"],
            origin=data["origin"],
            destination=data["destination"],
            service_date=date.fromisoformat(data["service_date"]),
            operator=data["operator"],
            departure_time=time.fromisoformat(data["departure_time"]),
            arrival_time=time.fromisoformat(data["arrival_time"]),
            price=Decimal(data["price"]),
            capacity=int(data["capacity"]),
            amenities=tuple(data["amenities"]),
            sequence=int(data["sequence"]),
        )


@dataclass(frozen=True)
class LedgerEntry:
    trip_id: str
    capacity: int
    seats_reserved: int

    @property
    def seats_available(self) -> int:
        return self.capacity - self.seats_reserved


@dataclass(frozen=True)
class TripView:
    trip: Trip
    seats_available: int

    def sort_key(self) -> tuple:
        return self.trip.departure_time, self.trip.price, self.trip.sequence


class BookingStatus(str, enum.Enum):
    CONFIRMED = "confirmed"
    REJECTED = "rejected"


@dataclass(frozen=True)
class Booking:
    id: str
    trip_id: str
    passenger_name: str
    passenger_email: str
    seat_count: int
    status: BookingStatus
    created_at: datetime


@dataclass(frozen=True)
class BookingOutcome:
    """Result of one booking attempt. Exactly one of ``error`` / confirmed."""

    booking: Booking
    message: str
    trip: Optional[Trip] = None
    error: Optional[Exception] = field(default=None, compare=False)

    @property
    def confirmed(self) -> bool:
        return self.booking.status is BookingStatus.CONFIRMED
