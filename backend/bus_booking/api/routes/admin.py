"""
Admin endpoint for inserting trips, one per call.
"""

from fastapi import APIRouter, Depends, status

from bus_booking.api.deps import get_catalog
from bus_booking.schemas.trip import TripSeedRequest, TripSeedResponse
from bus_booking.services.catalog_service import TripCatalog

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.post("/seed", response_model=TripSeedResponse, status_code=status.HTTP_201_CREATED)
async def seed_trip(
    trip_data: TripSeedRequest,
    catalog: TripCatalog = Depends(get_catalog),
):
    """
    Insert one trip. ``seats_total - seats_available`` seats start out
    reserved; omit seats_available for an empty bus.
    """
    trip_id = await catalog.add(trip_data.to_draft(), reserved=trip_data.reserved_offset)
    return TripSeedResponse(id=trip_id, message="Trip created")
