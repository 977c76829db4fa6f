"""Room endpoints for facility owners."""

from uuid import UUID

from fastapi import APIRouter, status

from washpoint.api.deps import DbSession, ProviderSession
from washpoint.models.facility import Room
from washpoint.schemas.facility import RoomResponse, RoomStatusUpdate, RoomUpdate
from washpoint.services.catalog_service import catalog_service
from washpoint.services.room_service import room_service

router = APIRouter()


async def _owned_room(db, room_id: UUID, ctx) -> Room:
    room = await room_service.get_room(db, room_id)
    facility = await catalog_service.get_facility(db, room.facility_id)
    ctx.require_facility_owner(facility)
    return room


@router.get("/{room_id}", response_model=RoomResponse)
async def get_room(room_id: UUID, ctx: ProviderSession, db: DbSession) -> Room:
    return await _owned_room(db, room_id, ctx)


@router.patch("/{room_id}", response_model=RoomResponse)
async def update_room(
    room_id: UUID,
    data: RoomUpdate,
    ctx: ProviderSession,
    db: DbSession,
) -> Room:
    """Edit label, type, price or amenities."""
    room = await _owned_room(db, room_id, ctx)
    room = await room_service.update_room(db, room, data)
    await db.refresh(room)
    return room


@router.put("/{room_id}/status", response_model=RoomResponse)
async def set_room_status(
    room_id: UUID,
    data: RoomStatusUpdate,
    ctx: ProviderSession,
    db: DbSession,
) -> Room:
    """Take a free room out of service or put it back.

    Booked and occupied rooms only change through their booking.
    """
    room = await _owned_room(db, room_id, ctx)
    room = await room_service.set_status(db, room, data.status)
    await db.refresh(room)
    return room


@router.delete("/{room_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_room(room_id: UUID, ctx: ProviderSession, db: DbSession) -> None:
    room = await _owned_room(db, room_id, ctx)
    await room_service.delete_room(db, room)
