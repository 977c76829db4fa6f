"""Main API router that includes all endpoint routers."""

from fastapi import APIRouter

from washpoint.api.v1 import (
    admin,
    auth,
    bookings,
    facilities,
    operations,
    provider,
    reviews,
    rooms,
)

api_router = APIRouter()

# Authentication
api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])

# Facilities
api_router.include_router(facilities.router, prefix="/facilities", tags=["Facilities"])

# Rooms
api_router.include_router(rooms.router, prefix="/rooms", tags=["Rooms"])

# Bookings
api_router.include_router(bookings.router, prefix="/bookings", tags=["Bookings"])

# Provider dashboard
api_router.include_router(provider.router, prefix="/provider", tags=["Provider"])

# Reviews
api_router.include_router(reviews.router, prefix="/reviews", tags=["Reviews"])

# Operations
api_router.include_router(operations.router, prefix="/operations", tags=["Operations"])

# Admin
api_router.include_router(admin.router, prefix="/admin", tags=["Admin"])
