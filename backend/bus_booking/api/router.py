"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from bus_booking.api.routes import admin, bookings, trips

api_router = APIRouter(prefix="/api")
api_router.include_router(trips.router)
api_router.include_router(bookings.router)
api_router.include_router(admin.router)
