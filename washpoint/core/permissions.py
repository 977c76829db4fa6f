"""Role-based access control and the per-request session context."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

from washpoint.core.exceptions import AuthorizationError

if TYPE_CHECKING:
    from washpoint.models.booking import Booking
    from washpoint.models.facility import Facility
    from washpoint.models.user import User


class UserRole(str, Enum):
    """User roles in the system."""

    USER = "user"
    PROVIDER = "provider"
    ADMIN = "admin"


class Permission(str, Enum):
    """System permissions."""

    # Customer
    VIEW_FACILITY = "view_facility"
    CREATE_BOOKING = "create_booking"
    CANCEL_BOOKING = "cancel_booking"
    WRITE_REVIEW = "write_review"
    REPORT_INCIDENT = "report_incident"

    # Provider
    MANAGE_FACILITY = "manage_facility"
    MANAGE_ROOMS = "manage_rooms"
    MANAGE_BOOKINGS = "manage_bookings"
    VIEW_FINANCE = "view_finance"
    MANAGE_OPERATIONS = "manage_operations"

    # Admin
    MODERATE_FACILITIES = "moderate_facilities"
    VIEW_AUDIT_LOGS = "view_audit_logs"


_CUSTOMER_PERMISSIONS = {
    Permission.VIEW_FACILITY,
    Permission.CREATE_BOOKING,
    Permission.CANCEL_BOOKING,
    Permission.WRITE_REVIEW,
    Permission.REPORT_INCIDENT,
}

ROLE_PERMISSIONS: dict[UserRole, set[Permission]] = {
    UserRole.USER: set(_CUSTOMER_PERMISSIONS),
    UserRole.PROVIDER: _CUSTOMER_PERMISSIONS
    | {
        Permission.MANAGE_FACILITY,
        Permission.MANAGE_ROOMS,
        Permission.MANAGE_BOOKINGS,
        Permission.VIEW_FINANCE,
        Permission.MANAGE_OPERATIONS,
    },
    UserRole.ADMIN: {perm for perm in Permission},
}


def has_permission(role: UserRole, permission: Permission) -> bool:
    """Check if a role has a specific permission."""
    return permission in ROLE_PERMISSIONS.get(role, set())


@dataclass(frozen=True)
class SessionContext:
    """Authenticated caller with its role resolved once per request."""

    user: User
    role: UserRole

    @classmethod
    def for_user(cls, user: User) -> SessionContext:
        try:
            role = UserRole(user.role)
        except ValueError:
            raise AuthorizationError(f"Unknown role '{user.role}'")
        return cls(user=user, role=role)

    @property
    def user_id(self) -> UUID:
        return self.user.id

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_provider(self) -> bool:
        return self.role == UserRole.PROVIDER

    def has(self, permission: Permission) -> bool:
        return has_permission(self.role, permission)

    def require(self, permission: Permission) -> None:
        if not self.has(permission):
            raise AuthorizationError(f"Permission '{permission.value}' is required for this action")

    def owns_facility(self, facility: Facility) -> bool:
        """Admins manage every facility, providers only their own."""
        if self.is_admin:
            return True
        return self.is_provider and facility.owner_id == self.user.id

    def require_facility_owner(self, facility: Facility) -> None:
        if not self.owns_facility(facility):
            raise AuthorizationError("Only the facility owner can perform this action")

    def can_access_booking(self, booking: Booking) -> bool:
        if self.is_admin or booking.user_id == self.user.id:
            return True
        return self.is_provider and booking.provider_id == self.user.id

    def require_booking_access(self, booking: Booking) -> None:
        if not self.can_access_booking(booking):
            raise AuthorizationError("You don't have permission to access this booking")

    def actor_label(self, booking: Booking) -> str:
        """Who is acting on a booking: user, provider or admin."""
        if booking.user_id == self.user.id:
            return "user"
        return "admin" if self.is_admin else "provider"
