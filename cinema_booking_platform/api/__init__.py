"""API endpoints for the Cinema Booking Platform."""

from fastapi import APIRouter

from .bookings import router as bookings_router, users_router
from .catalog import router as catalog_router
from .payments import router as payments_router
from .seats import router as seats_router
from .tickets import router as tickets_router

# Create main API router
api_router = APIRouter(prefix="/api/v1")

# Include all routers
api_router.include_router(catalog_router)
api_router.include_router(seats_router)
api_router.include_router(bookings_router)
api_router.include_router(users_router)
api_router.include_router(payments_router)
api_router.include_router(tickets_router)

__all__ = ["api_router"]
