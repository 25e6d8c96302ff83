"""
Booking model: one confirmed passenger reservation on a trip.

Rows are append-only. Rejected attempts are logged, not stored.
"""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, CheckConstraint

from bus_booking.db.base import Base


class BookingRecord(Base):
    __tablename__ = "bookings"

    id = Column(String(32), primary_key=True)
    trip_id = Column(String(32), ForeignKey("trips.id"), nullable=False, index=True)
    passenger_name = Column(String(255), nullable=False)
    passenger_email = Column(String(255), nullable=False, index=True)
    seat_count = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False, default="confirmed")
    created_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        CheckConstraint("seat_count > 0", name="check_booking_seat_count_positive"),
        CheckConstraint("status IN ('confirmed', 'rejected')", name="check_booking_status"),
    )

    def __repr__(self) -> str:
        return f"<BookingRecord(id={self.id}, trip={self.trip_id}, seats={self.seat_count}, status={self.status})>"
