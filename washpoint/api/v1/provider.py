"""Provider dashboard endpoints: bookings across owned facilities and revenue."""

from typing import Annotated, Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from washpoint.api.deps import (
    DbSession,
    ProviderSession,
    require_finance_permission,
    require_manage_bookings,
)
from washpoint.core.permissions import SessionContext
from washpoint.models.facility import Facility
from washpoint.schemas.booking import (
    BookingCancelRequest,
    BookingListResponse,
    BookingResponse,
    CheckInHistoryResponse,
    CheckInRequest,
    CheckOutRequest,
)
from washpoint.schemas.finance import RevenueSummary
from washpoint.services.booking_service import booking_service
from washpoint.services.catalog_service import catalog_service
from washpoint.services.finance_service import finance_service

router = APIRouter(dependencies=[Depends(require_manage_bookings)])


async def _scoped_facilities(
    db, ctx: SessionContext, facility_id: UUID | None
) -> list[Facility]:
    """Owned facilities, or the single one asked for after an ownership check."""
    if facility_id is not None:
        facility = await catalog_service.get_facility(db, facility_id)
        ctx.require_facility_owner(facility)
        return [facility]
    return await catalog_service.list_owned_facilities(db, ctx.user_id)


# ============ BOOKINGS ============


@router.get("/bookings", response_model=BookingListResponse)
async def list_bookings(
    ctx: ProviderSession,
    db: DbSession,
    scope: Annotated[Literal["active", "history"] | None, Query()] = None,
    facility_id: UUID | None = None,
) -> BookingListResponse:
    """Bookings across the provider's facilities, newest first."""
    facilities = await _scoped_facilities(db, ctx, facility_id)
    bookings = await booking_service.list_facility_bookings(
        db, [f.id for f in facilities], scope
    )
    return BookingListResponse(
        bookings=[BookingResponse.model_validate(b) for b in bookings],
        total=len(bookings),
    )


@router.post("/bookings/{booking_id}/check-in", response_model=BookingResponse)
async def confirm_arrival(
    booking_id: UUID,
    data: CheckInRequest,
    ctx: ProviderSession,
    db: DbSession,
):
    """Check a customer in at the counter with the facility's code."""
    return await booking_service.check_in(db, booking_id, data.code, ctx)


@router.post("/bookings/{booking_id}/check-out", response_model=BookingResponse)
async def complete_booking(
    booking_id: UUID,
    data: CheckOutRequest,
    ctx: ProviderSession,
    db: DbSession,
):
    """Take payment and free the room."""
    return await booking_service.check_out(
        db,
        booking_id,
        ctx,
        payment_method=data.payment_method,
        provider_notes=data.provider_notes,
    )


@router.post("/bookings/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking(
    booking_id: UUID,
    data: BookingCancelRequest,
    ctx: ProviderSession,
    db: DbSession,
):
    return await booking_service.cancel(db, booking_id, ctx, reason=data.reason)


@router.get("/history", response_model=list[CheckInHistoryResponse])
async def visit_history(
    ctx: ProviderSession,
    db: DbSession,
    facility_id: UUID | None = None,
):
    """Completed visits with duration, price and rating."""
    facilities = await _scoped_facilities(db, ctx, facility_id)
    return await finance_service.list_visits(db, [f.id for f in facilities])


# ============ FINANCE ============


@router.get(
    "/finance/summary",
    response_model=RevenueSummary,
    dependencies=[Depends(require_finance_permission)],
)
async def revenue_summary(
    ctx: ProviderSession,
    db: DbSession,
    facility_id: UUID | None = None,
) -> dict:
    """Revenue totals for today, this month and all time."""
    facilities = await _scoped_facilities(db, ctx, facility_id)
    return await finance_service.revenue_summary(db, facilities)
