"""
Infrastructure layer - storage backends and external clients.
Keeps business logic clean from implementation details.
"""

from .memory_store import MemoryBookingStore, MemorySeatLedger, MemoryTripStore
from .redis_client import close_redis, get_redis
from .sql_store import SqlBookingStore, SqlSeatLedger, SqlTripStore

__all__ = [
    'MemoryBookingStore', 'MemorySeatLedger', 'MemoryTripStore',
    'SqlBookingStore', 'SqlSeatLedger', 'SqlTripStore',
    'close_redis', 'get_redis',
]
