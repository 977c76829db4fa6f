"""Pydantic schemas for API validation."""

from washpoint.schemas.booking import (
    BookingCancelRequest,
    BookingCreate,
    BookingListResponse,
    BookingResponse,
    CheckInRequest,
    CheckOutRequest,
    WalkInRequest,
)
from washpoint.schemas.facility import (
    FacilityCreate,
    FacilityResponse,
    FacilitySearchResult,
    FacilityUpdate,
    RoomCreate,
    RoomResponse,
    RoomUpdate,
)
from washpoint.schemas.review import ReviewCreate, ReviewResponse
from washpoint.schemas.user import (
    TokenResponse,
    UserCreate,
    UserLogin,
    UserResponse,
    UserUpdate,
)

__all__ = [
    # User
    "UserCreate",
    "UserLogin",
    "UserUpdate",
    "UserResponse",
    "TokenResponse",
    # Facility
    "FacilityCreate",
    "FacilityUpdate",
    "FacilityResponse",
    "FacilitySearchResult",
    "RoomCreate",
    "RoomUpdate",
    "RoomResponse",
    # Booking
    "BookingCreate",
    "BookingResponse",
    "BookingListResponse",
    "BookingCancelRequest",
    "CheckInRequest",
    "CheckOutRequest",
    "WalkInRequest",
    # Review
    "ReviewCreate",
    "ReviewResponse",
]
