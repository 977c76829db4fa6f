"""Tests for provider room management."""
import pytest
from conftest import T0, room_by_number

from washpoint.core.exceptions import NotFoundError, RoomNotAvailable, ValidationError
from washpoint.schemas.facility import RoomCreate, RoomUpdate
from washpoint.services.booking_service import booking_service
from washpoint.services.room_service import room_service


class TestCreateAndUpdate:
    async def test_create_room(self, db_session, facility):
        room = await room_service.create_room(
            db_session, facility, RoomCreate(room_number="201", room_type="family", price=80000)
        )
        assert room.status == "available"
        assert room.current_booking_id is None

    async def test_duplicate_number(self, db_session, facility):
        with pytest.raises(ValidationError, match="already exists"):
            await room_service.create_room(
                db_session, facility, RoomCreate(room_number="101", price=30000)
            )

    async def test_rename_to_taken_number(self, db_session, room_101):
        with pytest.raises(ValidationError):
            await room_service.update_room(db_session, room_101, RoomUpdate(room_number="102"))

    async def test_update_price(self, db_session, room_101):
        room = await room_service.update_room(db_session, room_101, RoomUpdate(price=35000))
        assert room.price == 35000
        assert room.room_number == "101"


class TestStatus:
    async def test_maintenance_round_trip(self, db_session, facility, room_101):
        await room_service.set_status(db_session, room_101, "maintenance")
        await db_session.commit()
        assert (await room_by_number(db_session, facility, "101")).status == "maintenance"

        room = await room_service.set_status(db_session, room_101, "available")
        assert room.status == "available"

    async def test_booked_room_cannot_go_to_maintenance(self, db_session, customer, facility, room_101):
        await booking_service.create_booking(db_session, customer, facility.id, room_101.id, now=T0)
        with pytest.raises(ValidationError):
            await room_service.set_status(db_session, room_101, "maintenance")

    async def test_stale_status_rejected(self, db_session, facility, room_101):
        room_101.current_booking_id = room_101.id
        await db_session.commit()
        with pytest.raises(RoomNotAvailable):
            await room_service.set_status(db_session, room_101, "maintenance")


class TestDelete:
    async def test_delete_free_room(self, db_session, room_102):
        await room_service.delete_room(db_session, room_102)
        with pytest.raises(NotFoundError):
            await room_service.get_room(db_session, room_102.id)

    async def test_cannot_delete_booked_room(self, db_session, customer, facility, room_101):
        await booking_service.create_booking(db_session, customer, facility.id, room_101.id, now=T0)
        with pytest.raises(ValidationError, match="booked"):
            await room_service.delete_room(db_session, room_101)
