"""Tests for the booking lifecycle manager."""
from datetime import timedelta

import pytest
from conftest import T0, make_facility, room_by_number
from sqlalchemy import select, update

from washpoint.core.exceptions import (
    AuthorizationError,
    CheckInCodeMismatch,
    FacilityNotAvailable,
    InvalidBookingStatus,
    InvalidCheckInCode,
    RoomNotAvailable,
    RoomSelectionRequired,
    ValidationError,
)
from washpoint.domain import checkin_code
from washpoint.models.booking import Booking, CheckInHistory
from washpoint.services import booking_service as booking_module
from washpoint.services.booking_service import booking_service
from washpoint.utils.chunking import fetch_in_chunks


async def reload(db_session, booking):
    result = await db_session.execute(
        select(Booking).where(Booking.id == booking.id).execution_options(populate_existing=True)
    )
    return result.scalar_one()


class TestCreateBooking:
    async def test_room_booking_holds_room(self, db_session, customer, facility, room_101):
        booking = await booking_service.create_booking(
            db_session, customer, facility.id, room_id=room_101.id, estimated_minutes=10, now=T0
        )
        await db_session.commit()

        assert booking.status == "pending"
        assert booking.booking_number.startswith("WP-")
        assert booking.expiry_time == T0 + timedelta(minutes=15)
        assert booking.estimated_arrival == T0 + timedelta(minutes=10)
        assert booking.total_price == 30000
        assert booking.room_number == "101"
        assert booking.facility_code == checkin_code.legacy_code(facility.id)
        assert booking.user_phone == "0901234567"

        room = await room_by_number(db_session, facility, "101")
        assert room.status == "booked"
        assert room.current_booking_id == booking.id

    async def test_room_required_while_rooms_free(self, db_session, customer, facility):
        with pytest.raises(RoomSelectionRequired):
            await booking_service.create_booking(db_session, customer, facility.id, now=T0)

    async def test_general_booking_without_rooms(self, db_session, customer, roomless_facility):
        booking = await booking_service.create_booking(
            db_session, customer, roomless_facility.id, now=T0
        )
        assert booking.room_id is None
        assert booking.room_ref == "general"
        assert booking.total_price == 20000

    async def test_general_booking_when_all_rooms_taken(
        self, db_session, customer, other_customer, facility, room_101, room_102
    ):
        await booking_service.create_booking(db_session, other_customer, facility.id, room_101.id, now=T0)
        await booking_service.create_booking(db_session, other_customer, facility.id, room_102.id, now=T0)

        booking = await booking_service.create_booking(db_session, customer, facility.id, now=T0)
        assert booking.room_ref == "general"
        assert booking.total_price == facility.price

    async def test_room_already_taken(self, db_session, customer, other_customer, facility, room_101):
        await booking_service.create_booking(db_session, customer, facility.id, room_101.id, now=T0)
        await db_session.commit()

        with pytest.raises(RoomNotAvailable):
            await booking_service.create_booking(
                db_session, other_customer, facility.id, room_101.id, now=T0
            )

        room = await room_by_number(db_session, facility, "101")
        assert room.status == "booked"

    async def test_room_in_maintenance(self, db_session, customer, facility, room_101):
        room_101.status = "maintenance"
        await db_session.commit()
        with pytest.raises(RoomNotAvailable):
            await booking_service.create_booking(db_session, customer, facility.id, room_101.id, now=T0)

    async def test_unapproved_facility(self, db_session, customer, provider):
        pending = await make_facility(db_session, provider, status="pending")
        with pytest.raises(FacilityNotAvailable):
            await booking_service.create_booking(db_session, customer, pending.id, now=T0)

    async def test_contact_details_required(self, db_session, admin, roomless_facility):
        with pytest.raises(ValidationError, match="name and phone"):
            await booking_service.create_booking(db_session, admin, roomless_facility.id, now=T0)

    async def test_contact_override(self, db_session, admin, roomless_facility):
        booking = await booking_service.create_booking(
            db_session,
            admin,
            roomless_facility.id,
            contact_name="  Khách Lẻ ",
            contact_phone="+84 912 345 678",
            now=T0,
        )
        assert booking.user_name == "Khách Lẻ"
        assert booking.user_phone == "0912345678"

    async def test_invalid_phone(self, db_session, customer, roomless_facility):
        with pytest.raises(ValidationError, match="phone"):
            await booking_service.create_booking(
                db_session, customer, roomless_facility.id, contact_phone="12345", now=T0
            )


class TestCheckIn:
    @pytest.fixture
    async def booking(self, db_session, customer, facility, room_101):
        booking = await booking_service.create_booking(
            db_session, customer, facility.id, room_101.id, now=T0
        )
        await db_session.commit()
        return booking

    async def test_legacy_code(self, db_session, customer_ctx, facility, booking):
        checked_in = await booking_service.check_in(
            db_session, booking.id, checkin_code.legacy_code(facility.id), customer_ctx,
            now=T0 + timedelta(minutes=5),
        )
        assert checked_in.status == "checked_in"
        assert checked_in.check_in_time is not None

        room = await room_by_number(db_session, facility, "101")
        assert room.status == "occupied"
        assert room.current_booking_id == booking.id

    async def test_signed_code(self, db_session, customer_ctx, facility, booking):
        code = checkin_code.signed_code(facility.id, facility.qr_secret_version)
        checked_in = await booking_service.check_in(
            db_session, booking.id, code, customer_ctx, now=T0 + timedelta(minutes=1)
        )
        assert checked_in.status == "checked_in"

    async def test_other_facility_code(self, db_session, customer_ctx, provider, facility, booking):
        other = await make_facility(db_session, provider, name="Nhà Tắm Thảo Điền")
        with pytest.raises(CheckInCodeMismatch) as exc_info:
            await booking_service.check_in(
                db_session, booking.id, checkin_code.legacy_code(other.id), customer_ctx,
                now=T0 + timedelta(minutes=1),
            )
        assert facility.name in exc_info.value.detail

        assert (await reload(db_session, booking)).status == "pending"
        assert (await room_by_number(db_session, facility, "101")).status == "booked"

    async def test_rotated_code(self, db_session, customer_ctx, facility, booking):
        old = checkin_code.signed_code(facility.id, facility.qr_secret_version)
        facility.qr_secret_version += 1
        await db_session.commit()
        with pytest.raises(InvalidCheckInCode):
            await booking_service.check_in(
                db_session, booking.id, old, customer_ctx, now=T0 + timedelta(minutes=1)
            )

    async def test_garbage_code(self, db_session, customer_ctx, booking):
        with pytest.raises(InvalidCheckInCode):
            await booking_service.check_in(db_session, booking.id, "hello", customer_ctx, now=T0)

    async def test_hold_lapsed(self, db_session, customer_ctx, facility, booking):
        with pytest.raises(InvalidBookingStatus, match="expired"):
            await booking_service.check_in(
                db_session, booking.id, checkin_code.legacy_code(facility.id), customer_ctx,
                now=T0 + timedelta(minutes=16),
            )

        expired = await reload(db_session, booking)
        assert expired.status == "expired"
        assert expired.cancelled_by == "system"
        room = await room_by_number(db_session, facility, "101")
        assert room.status == "available"
        assert room.current_booking_id is None

    async def test_second_check_in_rejected(self, db_session, customer_ctx, facility, booking):
        code = checkin_code.legacy_code(facility.id)
        await booking_service.check_in(db_session, booking.id, code, customer_ctx, now=T0)
        with pytest.raises(InvalidBookingStatus):
            await booking_service.check_in(db_session, booking.id, code, customer_ctx, now=T0)

    async def test_stale_booking_loses_guarded_update(
        self, db_session, customer_ctx, facility, booking
    ):
        # Another request checks the booking in behind this session's back
        await db_session.execute(
            update(Booking)
            .where(Booking.id == booking.id)
            .values(status="checked_in")
            .execution_options(synchronize_session=False)
        )
        assert booking.status == "pending"

        with pytest.raises(InvalidBookingStatus, match="already been checked in"):
            await booking_service.check_in(
                db_session, booking.id, checkin_code.legacy_code(facility.id), customer_ctx,
                now=T0 + timedelta(minutes=1),
            )

        room = await room_by_number(db_session, facility, "101")
        assert room.status == "booked"
        assert room.current_booking_id == booking.id

    async def test_stranger_cannot_check_in(self, db_session, other_customer, facility, booking):
        from washpoint.core.permissions import SessionContext

        with pytest.raises(AuthorizationError):
            await booking_service.check_in(
                db_session, booking.id, checkin_code.legacy_code(facility.id),
                SessionContext.for_user(other_customer), now=T0,
            )


class TestCheckOut:
    async def test_completes_and_records_visit(
        self, db_session, customer, customer_ctx, provider_ctx, facility, room_101
    ):
        booking = await booking_service.create_booking(
            db_session, customer, facility.id, room_101.id, now=T0
        )
        await booking_service.check_in(
            db_session, booking.id, checkin_code.legacy_code(facility.id), customer_ctx,
            now=T0 + timedelta(minutes=5),
        )

        done = await booking_service.check_out(
            db_session, booking.id, provider_ctx, payment_method="cash",
            provider_notes="Khách quen", now=T0 + timedelta(minutes=35),
        )
        await db_session.commit()

        assert done.status == "completed"
        assert done.payment_status == "paid"
        assert done.payment_method == "cash"
        assert done.provider_notes == "Khách quen"

        room = await room_by_number(db_session, facility, "101")
        assert room.status == "available"
        assert room.current_booking_id is None

        result = await db_session.execute(
            select(CheckInHistory).where(CheckInHistory.booking_id == booking.id)
        )
        visit = result.scalar_one()
        assert visit.duration_minutes == 30
        assert visit.price == 30000

    async def test_general_booking_never_touches_rooms(
        self, db_session, customer, other_customer, customer_ctx, provider_ctx,
        facility, room_101, room_102,
    ):
        await booking_service.create_booking(db_session, other_customer, facility.id, room_101.id, now=T0)
        await booking_service.create_booking(db_session, other_customer, facility.id, room_102.id, now=T0)
        await db_session.commit()

        async def room_states():
            states = {}
            for number in ("101", "102"):
                room = await room_by_number(db_session, facility, number)
                states[number] = (room.status, room.current_booking_id, room.last_updated)
            return states

        before = await room_states()

        booking = await booking_service.create_booking(db_session, customer, facility.id, now=T0)
        assert booking.room_ref == "general"
        assert await room_states() == before

        await booking_service.check_in(
            db_session, booking.id, checkin_code.legacy_code(facility.id), customer_ctx,
            now=T0 + timedelta(minutes=3),
        )
        assert await room_states() == before

        done = await booking_service.check_out(
            db_session, booking.id, provider_ctx, now=T0 + timedelta(minutes=20)
        )
        await db_session.commit()

        assert done.status == "completed"
        assert await room_states() == before

    async def test_stale_booking_not_checked_out_twice(
        self, db_session, customer, customer_ctx, provider_ctx, facility, room_101
    ):
        booking = await booking_service.create_booking(
            db_session, customer, facility.id, room_101.id, now=T0
        )
        await booking_service.check_in(
            db_session, booking.id, checkin_code.legacy_code(facility.id), customer_ctx, now=T0
        )
        await db_session.commit()

        # Completed by another request; this session still sees checked_in
        await db_session.execute(
            update(Booking)
            .where(Booking.id == booking.id)
            .values(status="completed")
            .execution_options(synchronize_session=False)
        )
        assert booking.status == "checked_in"

        with pytest.raises(InvalidBookingStatus, match="no longer checked in"):
            await booking_service.check_out(db_session, booking.id, provider_ctx, now=T0)

        room = await room_by_number(db_session, facility, "101")
        assert room.status == "occupied"
        assert room.current_booking_id == booking.id
        result = await db_session.execute(
            select(CheckInHistory).where(CheckInHistory.booking_id == booking.id)
        )
        assert result.scalar_one_or_none() is None

    async def test_pending_cannot_check_out(self, db_session, customer, provider_ctx, roomless_facility):
        booking = await booking_service.create_booking(db_session, customer, roomless_facility.id, now=T0)
        with pytest.raises(InvalidBookingStatus):
            await booking_service.check_out(db_session, booking.id, provider_ctx, now=T0)


class TestCancel:
    async def test_customer_cancels(self, db_session, customer, customer_ctx, facility, room_101):
        before = (room_101.room_number, room_101.room_type, room_101.price, list(room_101.amenities))
        booking = await booking_service.create_booking(
            db_session, customer, facility.id, room_101.id, now=T0
        )
        cancelled = await booking_service.cancel(
            db_session, booking.id, customer_ctx, reason=" Đổi ý ", now=T0 + timedelta(minutes=2)
        )
        await db_session.commit()

        assert cancelled.status == "cancelled"
        assert cancelled.cancelled_by == "user"
        assert cancelled.cancellation_reason == "Đổi ý"
        assert cancelled.cancelled_at is not None

        room = await room_by_number(db_session, facility, "101")
        assert room.status == "available"
        assert room.current_booking_id is None
        assert (room.room_number, room.room_type, room.price, list(room.amenities)) == before

    async def test_stale_booking_not_released_twice(
        self, db_session, customer, customer_ctx, facility, room_101
    ):
        booking = await booking_service.create_booking(
            db_session, customer, facility.id, room_101.id, now=T0
        )
        await db_session.commit()

        # Expired by the sweep in another session
        await db_session.execute(
            update(Booking)
            .where(Booking.id == booking.id)
            .values(status="expired")
            .execution_options(synchronize_session=False)
        )
        assert booking.status == "pending"

        with pytest.raises(InvalidBookingStatus, match="no longer pending"):
            await booking_service.cancel(db_session, booking.id, customer_ctx, now=T0)

        assert not await booking_service.release_booking(
            db_session, booking, "expired", "system", None, T0
        )
        room = await room_by_number(db_session, facility, "101")
        assert room.status == "booked"
        assert room.current_booking_id == booking.id

    async def test_provider_cancels(self, db_session, customer, provider_ctx, facility, room_102):
        booking = await booking_service.create_booking(
            db_session, customer, facility.id, room_102.id, now=T0
        )
        cancelled = await booking_service.cancel(db_session, booking.id, provider_ctx, now=T0)
        assert cancelled.cancelled_by == "provider"

    async def test_other_provider_cannot_cancel(
        self, db_session, customer, other_provider, roomless_facility
    ):
        from washpoint.core.permissions import SessionContext

        booking = await booking_service.create_booking(db_session, customer, roomless_facility.id, now=T0)
        with pytest.raises(AuthorizationError):
            await booking_service.cancel(
                db_session, booking.id, SessionContext.for_user(other_provider), now=T0
            )

    async def test_checked_in_cannot_cancel(self, db_session, customer, customer_ctx, facility, room_101):
        booking = await booking_service.create_booking(
            db_session, customer, facility.id, room_101.id, now=T0
        )
        await booking_service.check_in(
            db_session, booking.id, checkin_code.legacy_code(facility.id), customer_ctx, now=T0
        )
        with pytest.raises(InvalidBookingStatus):
            await booking_service.cancel(db_session, booking.id, customer_ctx, now=T0)
        assert (await room_by_number(db_session, facility, "101")).status == "occupied"

    async def test_cancel_twice(self, db_session, customer, customer_ctx, roomless_facility):
        booking = await booking_service.create_booking(db_session, customer, roomless_facility.id, now=T0)
        await booking_service.cancel(db_session, booking.id, customer_ctx, now=T0)
        with pytest.raises(InvalidBookingStatus):
            await booking_service.cancel(db_session, booking.id, customer_ctx, now=T0)


class TestExpirySweep:
    async def test_expires_only_overdue(
        self, db_session, customer, other_customer, facility, room_101, room_102
    ):
        first = await booking_service.create_booking(
            db_session, customer, facility.id, room_101.id, now=T0
        )
        second = await booking_service.create_booking(
            db_session, other_customer, facility.id, room_102.id, now=T0 + timedelta(minutes=10)
        )
        await db_session.commit()

        assert await booking_service.expire_overdue(db_session, now=T0 + timedelta(minutes=20)) == 1
        assert (await reload(db_session, first)).status == "expired"
        assert (await reload(db_session, second)).status == "pending"
        assert (await room_by_number(db_session, facility, "101")).status == "available"
        assert (await room_by_number(db_session, facility, "102")).status == "booked"

        assert await booking_service.expire_overdue(db_session, now=T0 + timedelta(minutes=30)) == 1
        assert await booking_service.expire_overdue(db_session, now=T0 + timedelta(minutes=40)) == 0

    async def test_checked_in_is_not_expired(self, db_session, customer, customer_ctx, facility, room_101):
        booking = await booking_service.create_booking(
            db_session, customer, facility.id, room_101.id, now=T0
        )
        await booking_service.check_in(
            db_session, booking.id, checkin_code.legacy_code(facility.id), customer_ctx, now=T0
        )
        await db_session.commit()

        assert await booking_service.expire_overdue(db_session, now=T0 + timedelta(hours=2)) == 0
        assert (await reload(db_session, booking)).status == "checked_in"

    async def test_expired_booking_sets_timestamps(self, db_session, customer, roomless_facility):
        booking = await booking_service.create_booking(db_session, customer, roomless_facility.id, now=T0)
        await db_session.commit()
        await booking_service.expire_overdue(db_session, now=T0 + timedelta(minutes=15))

        expired = await reload(db_session, booking)
        assert expired.status == "expired"
        assert expired.expired_at is not None
        assert expired.cancelled_at is None


class TestWalkIn:
    async def test_walk_in_occupies_room(self, db_session, customer, facility, room_102):
        booking = await booking_service.walk_in(
            db_session, customer, facility.id, checkin_code.legacy_code(facility.id),
            room_id=room_102.id, now=T0,
        )
        assert booking.booking_type == "walk_in"
        assert booking.status == "checked_in"
        assert booking.check_in_time == T0
        assert booking.total_price == 50000

        room = await room_by_number(db_session, facility, "102")
        assert room.status == "occupied"

    async def test_walk_in_wrong_code(self, db_session, customer, provider, facility, room_102):
        other = await make_facility(db_session, provider, name="Nhà Tắm Phú Nhuận")
        with pytest.raises(CheckInCodeMismatch):
            await booking_service.walk_in(
                db_session, customer, facility.id, checkin_code.legacy_code(other.id),
                room_id=room_102.id, now=T0,
            )
        assert (await room_by_number(db_session, facility, "102")).status == "available"


class TestListings:
    async def test_user_bookings_newest_first(self, db_session, customer, customer_ctx, roomless_facility):
        older = await booking_service.create_booking(db_session, customer, roomless_facility.id, now=T0)
        newer = await booking_service.create_booking(
            db_session, customer, roomless_facility.id, now=T0 + timedelta(hours=1)
        )
        await booking_service.cancel(db_session, older.id, customer_ctx, now=T0)

        bookings = await booking_service.list_user_bookings(db_session, customer.id)
        assert [b.id for b in bookings] == [newer.id, older.id]

        cancelled = await booking_service.list_user_bookings(db_session, customer.id, "cancelled")
        assert [b.id for b in cancelled] == [older.id]

    async def test_facility_bookings_are_chunked(self, db_session, monkeypatch, customer, provider):
        facilities = [
            await make_facility(db_session, provider, name=f"Nhà Tắm {i:02d}") for i in range(11)
        ]
        for i, f in enumerate(facilities):
            await booking_service.create_booking(
                db_session, customer, f.id, now=T0 + timedelta(minutes=i)
            )
        await db_session.commit()

        chunk_sizes = []

        async def recording(values, fetch, size=None):
            async def counted(chunk):
                chunk_sizes.append(len(chunk))
                return await fetch(chunk)

            return await fetch_in_chunks(values, counted, size)

        monkeypatch.setattr(booking_module, "fetch_in_chunks", recording)

        active = await booking_service.list_facility_bookings(
            db_session, [f.id for f in facilities], scope="active"
        )
        assert chunk_sizes == [10, 1]
        assert len(active) == 11
        assert active[0].facility_id == facilities[-1].id

        history = await booking_service.list_facility_bookings(
            db_session, [f.id for f in facilities], scope="history"
        )
        assert history == []

    async def test_unknown_scope(self, db_session):
        with pytest.raises(ValidationError):
            await booking_service.list_facility_bookings(db_session, [], scope="everything")
