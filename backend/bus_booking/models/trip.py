"""
Trip and seat ledger models.

Key design decisions:
- `origin_key` / `destination_key` hold the normalized city names so route
  lookups are plain equality on an index
- `seq` is the insertion order, used as the final search tie-break
- Seat counts live in `seat_ledger`, never on the trip row; the ledger row
  carries its own copy of capacity so the reservation UPDATE is one statement
"""

from sqlalchemy import Column, Integer, String, Date, Time, Numeric, JSON, ForeignKey, Index, CheckConstraint

from bus_booking.db.base import Base, TimestampMixin


class TripRecord(Base, TimestampMixin):
    __tablename__ = "trips"

    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(32), unique=True, nullable=False, index=True)
    origin = Column(String(120), nullable=False)
    destination = Column(String(120), nullable=False)
    origin_key = Column(String(120), nullable=False)
    destination_key = Column(String(120), nullable=False)
    service_date = Column(Date, nullable=False)
    operator = Column(String(255), nullable=False)
    departure_time = Column(Time, nullable=False)
    arrival_time = Column(Time, nullable=False)
    price = Column(Numeric(12, 2), nullable=False)
    capacity = Column(Integer, nullable=False)
    amenities = Column(JSON, nullable=False, default=list)

    __table_args__ = (
        CheckConstraint("capacity > 0", name="check_trip_capacity_positive"),
        CheckConstraint("price >= 0", name="check_trip_price_non_negative"),
        Index("ix_trips_route_date", "origin_key", "destination_key", "service_date"),
    )

    def __repr__(self) -> str:
        return f"<TripRecord(id={self.id}, {self.origin}->{self.destination} {self.service_date} {self.departure_time})>"


class SeatLedgerRecord(Base, TimestampMixin):
    __tablename__ = "seat_ledger"

    trip_id = Column(String(32), ForeignKey("trips.id"), primary_key=True)
    capacity = Column(Integer, nullable=False)
    seats_reserved = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        # Final safety net for the no-oversell invariant
        CheckConstraint("seats_reserved >= 0", name="check_seats_reserved_non_negative"),
        CheckConstraint("seats_reserved <= capacity", name="check_seats_reserved_lte_capacity"),
    )

    def __repr__(self) -> str:
        return f"<SeatLedgerRecord(trip={self.trip_id}, reserved={self.seats_reserved}/{self.capacity})>"
