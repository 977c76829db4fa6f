"""Admin panel endpoints."""

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query
from sqlalchemy import select

from washpoint.api.deps import AdminSession, DbSession
from washpoint.core.exceptions import ValidationError
from washpoint.models.admin import AuditLog
from washpoint.models.facility import Facility
from washpoint.schemas.admin import AuditLogResponse, ModerationRequest, RejectionRequest
from washpoint.schemas.booking import ExpirySweepResponse
from washpoint.schemas.facility import FacilityResponse
from washpoint.services.audit_service import audit_service
from washpoint.services.booking_service import booking_service
from washpoint.services.catalog_service import catalog_service
from washpoint.utils.clock import utcnow

logger = logging.getLogger(__name__)

router = APIRouter()


async def _pending_facility(db, facility_id: UUID) -> Facility:
    facility = await catalog_service.get_facility(db, facility_id)
    if facility.status != "pending":
        raise ValidationError("Facility is not pending approval")
    return facility


# ============ FACILITY MODERATION ============


@router.get("/facilities/pending", response_model=list[FacilityResponse])
async def get_pending_facilities(admin: AdminSession, db: DbSession) -> list[Facility]:
    """Facilities waiting for review, oldest first."""
    result = await db.execute(
        select(Facility)
        .where(Facility.status == "pending")
        .order_by(Facility.created_at.asc())
    )
    return list(result.scalars().all())


@router.post("/facilities/{facility_id}/approve", response_model=FacilityResponse)
async def approve_facility(
    facility_id: UUID,
    data: ModerationRequest,
    admin: AdminSession,
    db: DbSession,
) -> Facility:
    """Approve a facility so it shows in search and accepts bookings."""
    facility = await _pending_facility(db, facility_id)

    facility.status = "approved"
    facility.reviewed_by = admin.user_id
    facility.reviewed_at = utcnow()
    facility.moderation_notes = data.notes

    await audit_service.log_action(
        db,
        user_id=admin.user_id,
        action="approve_facility",
        resource_type="facility",
        resource_id=facility.id,
        old_values={"status": "pending"},
        new_values={"status": "approved", "notes": data.notes},
    )
    await db.flush()
    await db.refresh(facility)
    logger.info(f"Facility {facility.id} approved by {admin.user_id}")
    return facility


@router.post("/facilities/{facility_id}/reject", response_model=FacilityResponse)
async def reject_facility(
    facility_id: UUID,
    data: RejectionRequest,
    admin: AdminSession,
    db: DbSession,
) -> Facility:
    facility = await _pending_facility(db, facility_id)

    facility.status = "rejected"
    facility.reviewed_by = admin.user_id
    facility.reviewed_at = utcnow()
    facility.moderation_notes = data.reason

    await audit_service.log_action(
        db,
        user_id=admin.user_id,
        action="reject_facility",
        resource_type="facility",
        resource_id=facility.id,
        old_values={"status": "pending"},
        new_values={"status": "rejected", "reason": data.reason},
    )
    await db.flush()
    await db.refresh(facility)
    logger.info(f"Facility {facility.id} rejected by {admin.user_id}")
    return facility


# ============ AUDIT ============


@router.get("/audit-logs", response_model=list[AuditLogResponse])
async def get_audit_logs(
    admin: AdminSession,
    db: DbSession,
    resource_type: str | None = None,
    resource_id: UUID | None = None,
    limit: Annotated[int, Query(ge=1, le=200)] = 50,
) -> list[AuditLog]:
    if resource_type and resource_id:
        return await audit_service.list_for_resource(db, resource_type, resource_id)

    query = select(AuditLog)
    if resource_type:
        query = query.where(AuditLog.resource_type == resource_type)
    result = await db.execute(query.order_by(AuditLog.created_at.desc()).limit(limit))
    return list(result.scalars().all())


# ============ MAINTENANCE ============


@router.post("/bookings/expire", response_model=ExpirySweepResponse)
async def run_expiry_sweep(admin: AdminSession, db: DbSession) -> ExpirySweepResponse:
    """Expire overdue holds now instead of waiting for the scheduler."""
    now = utcnow()
    expired = await booking_service.expire_overdue(db, now)
    logger.info(f"Manual expiry sweep by {admin.user_id}: {expired} expired")
    return ExpirySweepResponse(expired=expired, swept_at=now)
