"""Booking endpoints for customers."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from washpoint.api.deps import DbSession, Session, require_booking_permission
from washpoint.core.middleware import booking_limiter, checkin_limiter
from washpoint.models.booking import Booking
from washpoint.schemas.booking import (
    BookingCancelRequest,
    BookingCreate,
    BookingListResponse,
    BookingResponse,
    CheckInRequest,
    CheckOutRequest,
    WalkInRequest,
)
from washpoint.services.booking_service import booking_service

router = APIRouter()


@router.post(
    "",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(booking_limiter), Depends(require_booking_permission)],
)
async def create_booking(
    data: BookingCreate,
    ctx: Session,
    db: DbSession,
) -> Booking:
    """Hold a facility (and optionally a room) for the next 15 minutes."""
    return await booking_service.create_booking(
        db,
        ctx.user,
        facility_id=data.facility_id,
        room_id=data.room_id,
        estimated_minutes=data.estimated_minutes,
        contact_name=data.contact_name,
        contact_phone=data.contact_phone,
        notes=data.notes,
    )


@router.post(
    "/walk-in",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(checkin_limiter), Depends(require_booking_permission)],
)
async def walk_in(
    data: WalkInRequest,
    ctx: Session,
    db: DbSession,
) -> Booking:
    """Check in at the counter without a prior booking."""
    return await booking_service.walk_in(
        db,
        ctx.user,
        facility_id=data.facility_id,
        scanned_code=data.code,
        room_id=data.room_id,
        contact_name=data.contact_name,
        contact_phone=data.contact_phone,
        notes=data.notes,
    )


@router.get("/me", response_model=BookingListResponse)
async def list_my_bookings(
    ctx: Session,
    db: DbSession,
    booking_status: Annotated[str | None, Query(alias="status")] = None,
) -> BookingListResponse:
    """The caller's bookings, newest first."""
    bookings = await booking_service.list_user_bookings(db, ctx.user_id, booking_status)
    return BookingListResponse(
        bookings=[BookingResponse.model_validate(b) for b in bookings],
        total=len(bookings),
    )


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(booking_id: UUID, ctx: Session, db: DbSession) -> Booking:
    return await booking_service.get_accessible_booking(db, booking_id, ctx)


@router.post(
    "/{booking_id}/check-in",
    response_model=BookingResponse,
    dependencies=[Depends(checkin_limiter)],
)
async def check_in(
    booking_id: UUID,
    data: CheckInRequest,
    ctx: Session,
    db: DbSession,
) -> Booking:
    """Check in by scanning the QR code at the facility."""
    return await booking_service.check_in(db, booking_id, data.code, ctx)


@router.post("/{booking_id}/check-out", response_model=BookingResponse)
async def check_out(
    booking_id: UUID,
    data: CheckOutRequest,
    ctx: Session,
    db: DbSession,
) -> Booking:
    return await booking_service.check_out(
        db,
        booking_id,
        ctx,
        payment_method=data.payment_method,
        provider_notes=data.provider_notes,
    )


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking(
    booking_id: UUID,
    data: BookingCancelRequest,
    ctx: Session,
    db: DbSession,
) -> Booking:
    """Cancel a booking that has not been checked in."""
    return await booking_service.cancel(db, booking_id, ctx, reason=data.reason)
