"""
Storage backend factory.
Configures which storage the booking core runs against.
"""

from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine

from bus_booking.core.config import get_settings
from bus_booking.db.session import create_engine, create_session_factory
from bus_booking.infrastructure import (
    MemoryBookingStore,
    MemorySeatLedger,
    MemoryTripStore,
    SqlBookingStore,
    SqlSeatLedger,
    SqlTripStore,
)
from bus_booking.services.interfaces import BookingStore, SeatLedgerBackend, TripStore


@dataclass
class Storage:
    trips: TripStore
    ledger: SeatLedgerBackend
    bookings: BookingStore
    engine: Optional[AsyncEngine] = None

    async def close(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()


def memory_storage() -> Storage:
    ledger = MemorySeatLedger()
    return Storage(MemoryTripStore(ledger), ledger, MemoryBookingStore())


def sql_storage(engine: AsyncEngine) -> Storage:
    sessions = create_session_factory(engine)
    return Storage(SqlTripStore(sessions), SqlSeatLedger(sessions), SqlBookingStore(sessions), engine=engine)


def create_storage(backend: Optional[str] = None) -> Storage:
    """
    Build the configured storage.

    - memory: single process, state lost on restart
    - database: SQLAlchemy async engine on DATABASE_URL

    Selected via the STORAGE_BACKEND env var.
    """
    backend = backend or get_settings().STORAGE_BACKEND
    if backend == "memory":
        return memory_storage()
    if backend == "database":
        return sql_storage(create_engine())
    raise ValueError(f"Unknown STORAGE_BACKEND: {backend!r}")
