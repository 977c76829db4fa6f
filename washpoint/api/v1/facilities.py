"""Facility catalog endpoints: discovery for customers, management for providers."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query, status

from washpoint.api.deps import DbSession, OwnedFacility, ProviderSession
from washpoint.core.exceptions import NotFoundError
from washpoint.models.facility import Facility, Room
from washpoint.schemas.facility import (
    CheckInCodesResponse,
    FacilityCreate,
    FacilityDetailResponse,
    FacilityResponse,
    FacilitySearchParams,
    FacilitySearchResult,
    FacilityUpdate,
    RoomCreate,
    RoomResponse,
)
from washpoint.schemas.finance import PriceUpdate
from washpoint.services.audit_service import audit_service
from washpoint.services.catalog_service import SearchHit, catalog_service
from washpoint.services.room_service import room_service

router = APIRouter()


def _detail(facility: Facility, rooms: list[Room]) -> FacilityDetailResponse:
    return FacilityDetailResponse(
        **FacilityResponse.model_validate(facility).model_dump(),
        rooms=[RoomResponse.model_validate(r) for r in rooms],
    )


def _search_result(hit: SearchHit) -> FacilitySearchResult:
    return FacilitySearchResult(
        **FacilityResponse.model_validate(hit.facility).model_dump(),
        distance_meters=hit.distance_meters,
        distance_text=hit.distance_text,
        available_rooms=hit.available_rooms,
    )


# ============ DISCOVERY ============


@router.get("/search", response_model=list[FacilitySearchResult])
async def search_facilities(
    params: Annotated[FacilitySearchParams, Query()],
    db: DbSession,
) -> list[FacilitySearchResult]:
    """Find approved facilities near a point, filtered and sorted."""
    hits = await catalog_service.search_facilities(db, params)
    return [_search_result(hit) for hit in hits]


@router.get("", response_model=list[FacilityResponse])
async def list_facilities(db: DbSession) -> list[Facility]:
    """All approved facilities by name."""
    return await catalog_service.list_approved_facilities(db)


@router.get("/mine", response_model=list[FacilityResponse])
async def list_my_facilities(ctx: ProviderSession, db: DbSession) -> list[Facility]:
    """Facilities owned by the calling provider, any moderation status."""
    return await catalog_service.list_owned_facilities(db, ctx.user_id)


@router.get("/{facility_id}", response_model=FacilityDetailResponse)
async def get_facility(facility_id: UUID, db: DbSession) -> FacilityDetailResponse:
    """Public facility page with its rooms."""
    facility = await catalog_service.get_facility(db, facility_id)
    if not facility.is_visible:
        raise NotFoundError("Facility", str(facility_id))
    rooms = await catalog_service.list_rooms(db, facility.id)
    return _detail(facility, rooms)


@router.get("/{facility_id}/rooms/available", response_model=list[RoomResponse])
async def list_available_rooms(facility_id: UUID, db: DbSession) -> list[Room]:
    """Rooms a customer can pick right now."""
    facility = await catalog_service.get_bookable_facility(db, facility_id)
    return await catalog_service.list_available_rooms(db, facility.id)


# ============ PROVIDER MANAGEMENT ============


@router.post("", response_model=FacilityDetailResponse, status_code=status.HTTP_201_CREATED)
async def create_facility(
    data: FacilityCreate,
    ctx: ProviderSession,
    db: DbSession,
) -> FacilityDetailResponse:
    """Submit a facility for moderation."""
    facility = await catalog_service.create_facility(db, ctx.user, data)
    rooms = await catalog_service.list_rooms(db, facility.id)
    return _detail(facility, rooms)


@router.patch("/{facility_id}", response_model=FacilityResponse)
async def update_facility(
    data: FacilityUpdate,
    facility: OwnedFacility,
    db: DbSession,
) -> Facility:
    facility = await catalog_service.update_facility(db, facility, data)
    await db.refresh(facility)
    return facility


@router.put("/{facility_id}/price", response_model=FacilityResponse)
async def update_price(
    data: PriceUpdate,
    facility: OwnedFacility,
    ctx: ProviderSession,
    db: DbSession,
) -> Facility:
    """Change the base price charged for general (no room) bookings."""
    old_price = facility.price
    facility = await catalog_service.update_facility(db, facility, FacilityUpdate(price=data.price))
    await audit_service.log_action(
        db,
        user_id=ctx.user_id,
        action="update_price",
        resource_type="facility",
        resource_id=facility.id,
        old_values={"price": old_price},
        new_values={"price": facility.price},
    )
    await db.refresh(facility)
    return facility


@router.delete("/{facility_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_facility(
    facility: OwnedFacility,
    ctx: ProviderSession,
    db: DbSession,
) -> None:
    await catalog_service.delete_facility(db, facility)
    await audit_service.log_action(
        db,
        user_id=ctx.user_id,
        action="delete_facility",
        resource_type="facility",
        resource_id=facility.id,
    )


@router.get("/{facility_id}/checkin-codes", response_model=CheckInCodesResponse)
async def get_checkin_codes(facility: OwnedFacility) -> dict:
    """QR payloads to print at the counter."""
    return catalog_service.checkin_codes(facility)


@router.post("/{facility_id}/checkin-codes/rotate", response_model=CheckInCodesResponse)
async def rotate_checkin_codes(
    facility: OwnedFacility,
    ctx: ProviderSession,
    db: DbSession,
) -> dict:
    """Issue a new signed code; previously printed signed codes stop working."""
    old_version = facility.qr_secret_version
    facility = await catalog_service.rotate_checkin_code(db, facility)
    await audit_service.log_action(
        db,
        user_id=ctx.user_id,
        action="rotate_checkin_code",
        resource_type="facility",
        resource_id=facility.id,
        old_values={"version": old_version},
        new_values={"version": facility.qr_secret_version},
    )
    return catalog_service.checkin_codes(facility)


# ============ ROOMS ============


@router.get("/{facility_id}/rooms", response_model=list[RoomResponse])
async def list_rooms(
    facility: OwnedFacility,
    db: DbSession,
    room_status: Annotated[str | None, Query(alias="status")] = None,
) -> list[Room]:
    """All rooms of an owned facility, optionally by status."""
    return await catalog_service.list_rooms(db, facility.id, room_status)


@router.post(
    "/{facility_id}/rooms",
    response_model=RoomResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_room(
    data: RoomCreate,
    facility: OwnedFacility,
    db: DbSession,
) -> Room:
    room = await room_service.create_room(db, facility, data)
    await db.refresh(room)
    return room
