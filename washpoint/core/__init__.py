"""Core utilities and security modules."""

from washpoint.core.exceptions import (
    AppException,
    AuthenticationError,
    AuthorizationError,
    CheckInCodeMismatch,
    FacilityNotAvailable,
    InvalidBookingStatus,
    InvalidCheckInCode,
    NotFoundError,
    RoomNotAvailable,
    RoomSelectionRequired,
    ValidationError,
)
from washpoint.core.security import (
    create_access_token,
    create_refresh_token,
    get_password_hash,
    verify_password,
    verify_token,
)

__all__ = [
    "AppException",
    "AuthenticationError",
    "AuthorizationError",
    "CheckInCodeMismatch",
    "FacilityNotAvailable",
    "InvalidBookingStatus",
    "InvalidCheckInCode",
    "NotFoundError",
    "RoomNotAvailable",
    "RoomSelectionRequired",
    "ValidationError",
    "create_access_token",
    "create_refresh_token",
    "get_password_hash",
    "verify_password",
    "verify_token",
]
