"""
Trip search endpoints. Seat counts are always live, never cached.
"""

import datetime as dt

from fastapi import APIRouter, Depends, Query

from bus_booking.api.deps import get_search_service
from bus_booking.schemas.trip import SearchRequest, TripResponse
from bus_booking.services.search_service import SearchService

router = APIRouter(tags=["Trips"])


@router.post("/search", response_model=list[TripResponse])
async def search_trips(
    query: SearchRequest,
    service: SearchService = Depends(get_search_service),
):
    """
    Find trips for a route and date, ordered by departure time, then price.

    Sold-out trips are included with seats_available = 0. An empty list
    means no trips run on that route and date.
    """
    views = await service.search(query.origin, query.destination, query.date)
    return [TripResponse.from_view(v) for v in views]


@router.get("/trips/search", response_model=list[TripResponse])
async def search_trips_get(
    origin: str = Query(..., min_length=1),
    destination: str = Query(..., min_length=1),
    date: dt.date = Query(...),
    service: SearchService = Depends(get_search_service),
):
    """Same as POST /search, with the query in the URL."""
    views = await service.search(origin, destination, date)
    return [TripResponse.from_view(v) for v in views]


@router.get("/trips/{trip_id}", response_model=TripResponse)
async def get_trip(
    trip_id: str,
    service: SearchService = Depends(get_search_service),
):
    """Get a single trip with its current seat availability."""
    return TripResponse.from_view(await service.trip_view(trip_id))
