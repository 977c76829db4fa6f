"""Room management for providers."""

import logging
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from washpoint.core.exceptions import NotFoundError, RoomNotAvailable, ValidationError
from washpoint.domain.room_state import (
    HELD_STATUSES,
    assert_manual_room_transition,
    can_delete_room,
)
from washpoint.models.facility import Facility, Room
from washpoint.schemas.facility import RoomCreate, RoomUpdate
from washpoint.utils.clock import utcnow

logger = logging.getLogger(__name__)


class RoomService:
    """Create, edit, toggle and remove rooms of a facility."""

    async def get_room(self, db: AsyncSession, room_id: UUID) -> Room:
        result = await db.execute(select(Room).where(Room.id == room_id))
        room = result.scalar_one_or_none()
        if not room:
            raise NotFoundError("Room", str(room_id))
        return room

    async def _number_taken(
        self, db: AsyncSession, facility_id: UUID, room_number: str, exclude: UUID | None = None
    ) -> bool:
        query = select(Room.id).where(
            Room.facility_id == facility_id, Room.room_number == room_number
        )
        if exclude is not None:
            query = query.where(Room.id != exclude)
        result = await db.execute(query)
        return result.first() is not None

    async def create_room(self, db: AsyncSession, facility: Facility, data: RoomCreate) -> Room:
        if await self._number_taken(db, facility.id, data.room_number):
            raise ValidationError(f"Room {data.room_number} already exists")

        room = Room(
            facility_id=facility.id,
            room_number=data.room_number,
            room_type=data.room_type,
            price=data.price,
            amenities=data.amenities,
            status="available",
        )
        db.add(room)
        await db.flush()
        logger.info(f"Room {room.room_number} added to facility {facility.id}")
        return room

    async def update_room(self, db: AsyncSession, room: Room, data: RoomUpdate) -> Room:
        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        number = changes.get("room_number")
        if number:
            number = number.strip()
            if number != room.room_number and await self._number_taken(
                db, room.facility_id, number, exclude=room.id
            ):
                raise ValidationError(f"Room {number} already exists")
            changes["room_number"] = number

        for field, value in changes.items():
            setattr(room, field, value)
        room.last_updated = utcnow()
        await db.flush()
        return room

    async def set_status(self, db: AsyncSession, room: Room, target: str) -> Room:
        """Provider toggles a free room between available and maintenance."""
        assert_manual_room_transition(room.status, target)
        if room.status == target:
            return room

        changed = await db.execute(
            update(Room)
            .where(
                Room.id == room.id,
                Room.status == room.status,
                Room.current_booking_id.is_(None),
            )
            .values(status=target, last_updated=utcnow())
            .execution_options(synchronize_session="evaluate")
        )
        if changed.rowcount != 1:
            raise RoomNotAvailable("Room changed state, please refresh and try again")

        logger.info(f"Room {room.id} set to {target}")
        return room

    async def delete_room(self, db: AsyncSession, room: Room) -> None:
        ok, error = can_delete_room(room.status)
        if not ok:
            raise ValidationError(error)

        removed = await db.execute(
            delete(Room)
            .where(Room.id == room.id, *(Room.status != held for held in HELD_STATUSES))
            .execution_options(synchronize_session="evaluate")
        )
        if removed.rowcount != 1:
            raise ValidationError("Room is in use and cannot be deleted")
        logger.info(f"Room {room.id} deleted from facility {room.facility_id}")


room_service = RoomService()
