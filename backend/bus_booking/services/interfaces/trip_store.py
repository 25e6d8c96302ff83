"""
Append-only trip storage interface.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional

from bus_booking.domain.entities import Trip, TripDraft


class TripStore(ABC):

    @abstractmethod
    async def insert(self, draft: TripDraft, reserved: int = 0) -> Trip:
        """
        Store a new trip together with its ledger entry.

        The store assigns id and insertion sequence. The trip becomes
        visible only once its entry exists with ``reserved`` seats taken;
        if either write fails, neither is kept.
        """

    @abstractmethod
    async def get(self, trip_id: str) -> Optional[Trip]:
        pass

    @abstractmethod
    async def find_by_route(self, origin_key: str, destination_key: str, service_date: date) -> list[Trip]:
        """Trips whose normalized cities and date match exactly. Unordered."""
