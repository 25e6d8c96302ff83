"""Initial schema: trips, seat ledger, bookings with indexes and constraints.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Trips table (append-only)
    op.create_table(
        "trips",
        sa.Column("seq", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("id", sa.String(32), nullable=False),
        sa.Column("origin", sa.String(120), nullable=False),
        sa.Column("destination", sa.String(120), nullable=False),
        sa.Column("origin_key", sa.String(120), nullable=False),
        sa.Column("destination_key", sa.String(120), nullable=False),
        sa.Column("service_date", sa.Date(), nullable=False),
        sa.Column("operator", sa.String(255), nullable=False),
        sa.Column("departure_time", sa.Time(), nullable=False),
        sa.Column("arrival_time", sa.Time(), nullable=False),
        sa.Column("price", sa.Numeric(12, 2), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False),
        sa.Column("amenities", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("capacity > 0", name="check_trip_capacity_positive"),
        sa.CheckConstraint("price >= 0", name="check_trip_price_non_negative"),
    )
    op.create_index("ix_trips_id", "trips", ["id"], unique=True)
    # Every search is an equality lookup on normalized cities plus date.
    op.create_index("ix_trips_route_date", "trips", ["origin_key", "destination_key", "service_date"])

    # Seat ledger: one row per trip, the only row bookings ever update
    op.create_table(
        "seat_ledger",
        sa.Column("trip_id", sa.String(32), sa.ForeignKey("trips.id"), primary_key=True),
        sa.Column("capacity", sa.Integer(), nullable=False),
        sa.Column("seats_reserved", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("seats_reserved >= 0", name="check_seats_reserved_non_negative"),
        sa.CheckConstraint("seats_reserved <= capacity", name="check_seats_reserved_lte_capacity"),
    )

    # Bookings table (append-only)
    op.create_table(
        "bookings",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("trip_id", sa.String(32), sa.ForeignKey("trips.id"), nullable=False),
        sa.Column("passenger_name", sa.String(255), nullable=False),
        sa.Column("passenger_email", sa.String(255), nullable=False),
        sa.Column("seat_count", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'confirmed'")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("seat_count > 0", name="check_booking_seat_count_positive"),
        sa.CheckConstraint("status IN ('confirmed', 'rejected')", name="check_booking_status"),
    )
    op.create_index("ix_bookings_trip_id", "bookings", ["trip_id"])
    op.create_index("ix_bookings_passenger_email", "bookings", ["passenger_email"])


def downgrade() -> None:
    op.drop_table("bookings")
    op.drop_table("seat_ledger")
    op.drop_table("trips")
