"""API dependencies for authentication and common operations."""

from typing import Annotated
from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from washpoint.core.exceptions import AuthenticationError, AuthorizationError
from washpoint.core.permissions import Permission, SessionContext, UserRole
from washpoint.core.security import verify_token
from washpoint.database import get_db
from washpoint.models.facility import Facility
from washpoint.models.user import User
from washpoint.services.catalog_service import catalog_service

# Security scheme
security = HTTPBearer(auto_error=False)

DbSession = Annotated[AsyncSession, Depends(get_db)]


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: DbSession,
) -> User:
    """Get the current authenticated user from JWT token."""
    if credentials is None:
        raise AuthenticationError("Not authenticated")

    payload = verify_token(credentials.credentials, token_type="access")
    try:
        user_id = UUID(payload.get("sub") or "")
    except ValueError:
        raise AuthenticationError("Invalid token payload")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if not user:
        raise AuthenticationError("User not found")
    return user


async def get_current_active_user(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    """Get current user and verify they are active."""
    if not current_user.is_active:
        raise AuthorizationError("User account is deactivated")
    return current_user


async def get_session_context(
    current_user: Annotated[User, Depends(get_current_active_user)],
) -> SessionContext:
    """Resolve the caller's role once for the request."""
    return SessionContext.for_user(current_user)


Session = Annotated[SessionContext, Depends(get_session_context)]


async def get_current_provider(ctx: Session) -> SessionContext:
    """Caller must be a provider or an admin."""
    if ctx.role not in (UserRole.PROVIDER, UserRole.ADMIN):
        raise AuthorizationError("Provider access required")
    return ctx


async def get_current_admin(ctx: Session) -> SessionContext:
    """Caller must be an admin."""
    if not ctx.is_admin:
        raise AuthorizationError("Admin access required")
    return ctx


ProviderSession = Annotated[SessionContext, Depends(get_current_provider)]
AdminSession = Annotated[SessionContext, Depends(get_current_admin)]


class PermissionChecker:
    """Require a permission from the caller's role."""

    def __init__(self, permission: Permission):
        self.permission = permission

    async def __call__(self, ctx: Session) -> SessionContext:
        ctx.require(self.permission)
        return ctx


class FacilityOwnerChecker:
    """Load a facility from the path and check the caller may manage it."""

    async def __call__(
        self,
        facility_id: UUID,
        ctx: Session,
        db: DbSession,
    ) -> Facility:
        facility = await catalog_service.get_facility(db, facility_id)
        ctx.require_facility_owner(facility)
        return facility


# Convenience instances
require_booking_permission = PermissionChecker(Permission.CREATE_BOOKING)
require_review_permission = PermissionChecker(Permission.WRITE_REVIEW)
require_manage_bookings = PermissionChecker(Permission.MANAGE_BOOKINGS)
require_finance_permission = PermissionChecker(Permission.VIEW_FINANCE)
require_facility_owner = FacilityOwnerChecker()

OwnedFacility = Annotated[Facility, Depends(require_facility_owner)]
