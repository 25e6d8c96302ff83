"""
Pydantic schemas for trip search and admin seeding.

Field names follow the wire format the booking front end already speaks
(from_city, to_city, bus_operator, seats_total, ...).
"""

import datetime as dt
from decimal import Decimal

from pydantic import AliasChoices, BaseModel, Field, field_serializer, model_validator

from bus_booking.domain.entities import TripDraft, TripView


class SearchRequest(BaseModel):
    origin: str = Field(..., min_length=1, max_length=120, validation_alias=AliasChoices("origin", "from_city"))
    destination: str = Field(..., min_length=1, max_length=120, validation_alias=AliasChoices("destination", "to_city"))
    date: dt.date


class TripResponse(BaseModel):
    id: str
    from_city: str
    to_city: str
    date: dt.date
    bus_operator: str
    departure_time: dt.time
    arrival_time: dt.time
    price: float
    seats_total: int
    seats_available: int
    amenities: list[str]

    @field_serializer("departure_time", "arrival_time")
    def _hh_mm(self, value: dt.time) -> str:
        return value.strftime("%H:%M")

    @classmethod
    def from_view(cls, view: TripView) -> "TripResponse":
        trip = view.trip
        return cls(
            id=trip.id,
            from_city=trip.origin,
            to_city=trip.destination,
            date=trip.service_date,
            bus_operator=trip.operator,
            departure_time=trip.departure_time,
            arrival_time=trip.arrival_time,
            price=float(trip.price),
            seats_total=trip.capacity,
            seats_available=view.seats_available,
            amenities=list(trip.amenities),
        )


class TripSeedRequest(BaseModel):
    from_city: str = Field(..., min_length=1, max_length=120)
    to_city: str = Field(..., min_length=1, max_length=120)
    date: dt.date
    bus_operator: str = Field(..., min_length=1, max_length=255)
    departure_time: dt.time
    arrival_time: dt.time
    price: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    seats_total: int = Field(..., gt=0, le=1000)
    seats_available: int | None = Field(None, ge=0)
    amenities: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _available_within_total(self) -> "TripSeedRequest":
        if self.seats_available is not None and self.seats_available > self.seats_total:
            raise ValueError("seats_available cannot exceed seats_total")
        return self

    @property
    def reserved_offset(self) -> int:
        if self.seats_available is None:
            return 0
        return self.seats_total - self.seats_available

    def to_draft(self) -> TripDraft:
        return TripDraft(
            origin=self.from_city,
            destination=self.to_city,
            service_date=self.date,
            operator=self.bus_operator,
            departure_time=self.departure_time,
            arrival_time=self.arrival_time,
            price=self.price,
            capacity=self.seats_total,
            amenities=tuple(self.amenities),
        )


class TripSeedResponse(BaseModel):
    id: str
    message: str
