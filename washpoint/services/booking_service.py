"""Booking lifecycle manager.

Every state change of a booking, together with the matching change to its
room, is issued as conditional UPDATEs inside the caller's transaction. A
write whose condition no longer holds (room already taken, booking already
checked in) affects zero rows and fails the whole operation, so a room and
its booking never disagree.
"""

import logging
from datetime import datetime, timedelta
from uuid import UUID, uuid4

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from washpoint.core.exceptions import (
    CheckInCodeMismatch,
    InvalidBookingStatus,
    NotFoundError,
    RoomNotAvailable,
    RoomSelectionRequired,
    ValidationError,
)
from washpoint.core.permissions import SessionContext
from washpoint.domain import checkin_code
from washpoint.domain.booking_state import (
    ACTIVE_STATUSES,
    TERMINAL_STATUSES,
    as_utc,
    assert_booking_transition,
    hold_expiry,
    is_hold_expired,
)
from washpoint.domain.room_state import LIFECYCLE_EFFECTS
from washpoint.models.booking import Booking, CheckInHistory
from washpoint.models.facility import Facility, Room
from washpoint.models.user import User
from washpoint.services.catalog_service import catalog_service
from washpoint.utils.booking_number import generate_booking_number
from washpoint.utils.chunking import fetch_in_chunks
from washpoint.utils.clock import utcnow
from washpoint.utils.validators import clean_text, normalize_phone, validate_vietnamese_phone

logger = logging.getLogger(__name__)

BOOKING_SCOPES = {
    "active": ACTIVE_STATUSES,
    "history": TERMINAL_STATUSES,
}


async def _conditional_update(db: AsyncSession, stmt) -> int:
    """Execute a compare-and-swap UPDATE and return the affected row count."""
    result = await db.execute(stmt.execution_options(synchronize_session="evaluate"))
    return result.rowcount


class BookingService:
    """Owns booking state and its effect on room availability."""

    # ============ LOOKUPS ============

    async def get_booking(self, db: AsyncSession, booking_id: UUID) -> Booking:
        result = await db.execute(select(Booking).where(Booking.id == booking_id))
        booking = result.scalar_one_or_none()
        if not booking:
            raise NotFoundError("Booking", str(booking_id))
        return booking

    async def get_accessible_booking(
        self, db: AsyncSession, booking_id: UUID, ctx: SessionContext
    ) -> Booking:
        booking = await self.get_booking(db, booking_id)
        ctx.require_booking_access(booking)
        return booking

    async def list_user_bookings(
        self, db: AsyncSession, user_id: UUID, status: str | None = None
    ) -> list[Booking]:
        query = select(Booking).where(Booking.user_id == user_id)
        if status:
            query = query.where(Booking.status == status)
        result = await db.execute(query.order_by(Booking.booking_time.desc()))
        return list(result.scalars().all())

    async def list_facility_bookings(
        self,
        db: AsyncSession,
        facility_ids: list[UUID],
        scope: str | None = None,
    ) -> list[Booking]:
        """Bookings across many facilities, newest first.

        Args:
            facility_ids: Facilities to look in, queried in chunks
            scope: ``active`` (pending, checked_in), ``history`` (terminal) or None for all
        """
        if scope is not None and scope not in BOOKING_SCOPES:
            raise ValidationError(f"Unknown booking scope: {scope}")
        statuses = BOOKING_SCOPES.get(scope)

        async def fetch(chunk: list[UUID]) -> list[Booking]:
            query = select(Booking).where(Booking.facility_id.in_(chunk))
            if statuses:
                query = query.where(Booking.status.in_(statuses))
            result = await db.execute(query)
            return list(result.scalars().all())

        bookings = await fetch_in_chunks(facility_ids, fetch)
        bookings.sort(key=lambda b: as_utc(b.booking_time), reverse=True)
        return bookings

    # ============ CREATE ============

    async def create_booking(
        self,
        db: AsyncSession,
        user: User,
        facility_id: UUID,
        room_id: UUID | None = None,
        estimated_minutes: int = 15,
        contact_name: str | None = None,
        contact_phone: str | None = None,
        notes: str | None = None,
        now: datetime | None = None,
    ) -> Booking:
        """Place a pending hold on a facility, and on a room if one is chosen.

        Raises:
            ValidationError: Missing contact details
            RoomSelectionRequired: Facility has free rooms but none was chosen
            RoomNotAvailable: Chosen room is no longer available
        """
        now = now or utcnow()
        name, phone = self._contact(user, contact_name, contact_phone)

        facility = await catalog_service.get_bookable_facility(db, facility_id)
        room = await self._resolve_room(db, facility, room_id)

        booking_id = uuid4()
        if room is not None:
            await self._reserve_room(db, room, booking_id, "reserve", now)

        booking = Booking(
            id=booking_id,
            booking_number=await generate_booking_number(db),
            booking_type="reservation",
            status="pending",
            payment_status="pending",
            booking_time=now,
            estimated_minutes=estimated_minutes,
            estimated_arrival=now + timedelta(minutes=estimated_minutes),
            expiry_time=hold_expiry(now),
            total_price=room.price if room is not None else facility.price,
            notes=clean_text(notes) or None,
            **self._snapshot(user, name, phone, facility, room),
        )
        db.add(booking)
        await db.flush()

        logger.info(
            f"Booking {booking.booking_number} created at facility {facility.id} "
            f"(room={booking.room_ref}, expires={booking.expiry_time.isoformat()})"
        )
        return booking

    async def walk_in(
        self,
        db: AsyncSession,
        user: User,
        facility_id: UUID,
        scanned_code: str,
        room_id: UUID | None = None,
        contact_name: str | None = None,
        contact_phone: str | None = None,
        notes: str | None = None,
        now: datetime | None = None,
    ) -> Booking:
        """Check a customer in on the spot from the facility's QR code.

        The booking is created directly as ``checked_in``; a chosen room goes
        straight from available to occupied.
        """
        now = now or utcnow()
        name, phone = self._contact(user, contact_name, contact_phone)

        facility = await catalog_service.get_bookable_facility(db, facility_id)
        self._verify_code(scanned_code, facility)
        room = await self._resolve_room(db, facility, room_id)

        booking_id = uuid4()
        if room is not None:
            await self._reserve_room(db, room, booking_id, "walk_in", now)

        booking = Booking(
            id=booking_id,
            booking_number=await generate_booking_number(db),
            booking_type="walk_in",
            status="checked_in",
            payment_status="pending",
            booking_time=now,
            estimated_minutes=0,
            estimated_arrival=now,
            expiry_time=hold_expiry(now),
            check_in_time=now,
            total_price=room.price if room is not None else facility.price,
            notes=clean_text(notes) or None,
            **self._snapshot(user, name, phone, facility, room),
        )
        db.add(booking)
        await db.flush()

        logger.info(f"Walk-in {booking.booking_number} checked in at facility {facility.id}")
        return booking

    # ============ TRANSITIONS ============

    async def check_in(
        self,
        db: AsyncSession,
        booking_id: UUID,
        scanned_code: str,
        ctx: SessionContext,
        now: datetime | None = None,
    ) -> Booking:
        """Advance a pending booking to checked_in after a matching QR scan.

        Raises:
            InvalidCheckInCode: Code is malformed, forged or rotated out
            CheckInCodeMismatch: Code belongs to another facility
            InvalidBookingStatus: Booking is not pending or its hold has lapsed
        """
        now = now or utcnow()
        booking = await self.get_accessible_booking(db, booking_id, ctx)

        scanned = checkin_code.decode(scanned_code)
        if not scanned.matches(booking.facility_id):
            logger.info(
                f"Check-in for {booking.booking_number} rejected: code for "
                f"{scanned.facility_id}, expected {booking.facility_id}"
            )
            raise CheckInCodeMismatch(booking.facility_name)
        facility = await catalog_service.get_facility(db, booking.facility_id)
        checkin_code.verify(scanned, facility.qr_secret_version)

        assert_booking_transition(booking.status, "checked_in")

        if is_hold_expired(booking.expiry_time, now):
            # Persist the expiry before reporting it; the request transaction
            # is rolled back when the error propagates.
            if await self.release_booking(
                db, booking, "expired", "system", "Hold window elapsed before check-in", now
            ):
                await db.commit()
            raise InvalidBookingStatus("This booking has expired")

        updated = await _conditional_update(
            db,
            update(Booking)
            .where(Booking.id == booking.id, Booking.status == "pending")
            .values(status="checked_in", check_in_time=now, updated_at=now),
        )
        if updated != 1:
            raise InvalidBookingStatus("Booking has already been checked in or released")

        if booking.room_id is not None:
            allowed, target = LIFECYCLE_EFFECTS["check_in"]
            (current,) = allowed
            moved = await _conditional_update(
                db,
                update(Room)
                .where(
                    Room.id == booking.room_id,
                    Room.current_booking_id == booking.id,
                    Room.status == current,
                )
                .values(status=target, last_updated=now),
            )
            if moved != 1:
                raise InvalidBookingStatus("Room is no longer held for this booking")

        await db.refresh(booking)
        logger.info(f"Booking {booking.booking_number} checked in")
        return booking

    async def check_out(
        self,
        db: AsyncSession,
        booking_id: UUID,
        ctx: SessionContext,
        payment_method: str | None = None,
        provider_notes: str | None = None,
        now: datetime | None = None,
    ) -> Booking:
        """Complete a checked-in booking, mark it paid and free its room."""
        now = now or utcnow()
        booking = await self.get_accessible_booking(db, booking_id, ctx)
        assert_booking_transition(booking.status, "completed")

        values = {
            "status": "completed",
            "payment_status": "paid",
            "check_out_time": now,
            "updated_at": now,
        }
        if payment_method:
            values["payment_method"] = payment_method
        if provider_notes:
            values["provider_notes"] = provider_notes

        updated = await _conditional_update(
            db,
            update(Booking)
            .where(Booking.id == booking.id, Booking.status == "checked_in")
            .values(**values),
        )
        if updated != 1:
            raise InvalidBookingStatus("Booking is no longer checked in")

        await self._release_room(db, booking, now)

        check_in_time = as_utc(booking.check_in_time or booking.booking_time)
        duration = max(0, int((as_utc(now) - check_in_time).total_seconds() // 60))
        db.add(
            CheckInHistory(
                booking_id=booking.id,
                facility_id=booking.facility_id,
                room_id=booking.room_id,
                user_id=booking.user_id,
                check_in_time=check_in_time,
                check_out_time=now,
                duration_minutes=duration,
                price=booking.total_price,
            )
        )
        await db.flush()

        await db.refresh(booking)
        logger.info(f"Booking {booking.booking_number} completed after {duration} min")
        return booking

    async def cancel(
        self,
        db: AsyncSession,
        booking_id: UUID,
        ctx: SessionContext,
        reason: str | None = None,
        now: datetime | None = None,
    ) -> Booking:
        """Cancel a pending booking on behalf of its customer, provider or an admin."""
        now = now or utcnow()
        booking = await self.get_accessible_booking(db, booking_id, ctx)
        assert_booking_transition(booking.status, "cancelled")

        released = await self.release_booking(
            db, booking, "cancelled", ctx.actor_label(booking), clean_text(reason) or None, now
        )
        if not released:
            raise InvalidBookingStatus("Booking is no longer pending")

        await db.refresh(booking)
        return booking

    async def release_booking(
        self,
        db: AsyncSession,
        booking: Booking,
        target: str,
        released_by: str,
        reason: str | None,
        now: datetime | None = None,
    ) -> bool:
        """Move a pending booking to cancelled or expired and free its room.

        Shared by explicit cancellation and the expiry sweep.

        Returns:
            False if the booking left ``pending`` before this write landed
        """
        if target not in ("cancelled", "expired"):
            raise ValueError(f"release target must be cancelled or expired, not {target}")
        now = now or utcnow()

        values = {
            "status": target,
            "cancelled_by": released_by,
            "cancellation_reason": reason,
            "updated_at": now,
        }
        if target == "cancelled":
            values["cancelled_at"] = now
        else:
            values["expired_at"] = now
        if booking.payment_status == "paid":
            values["payment_status"] = "refunded"

        updated = await _conditional_update(
            db,
            update(Booking)
            .where(Booking.id == booking.id, Booking.status == "pending")
            .values(**values),
        )
        if updated != 1:
            logger.info(f"Release of {booking.booking_number} skipped: no longer pending")
            return False

        await self._release_room(db, booking, now)
        logger.info(f"Booking {booking.booking_number} {target} by {released_by}")
        return True

    async def expire_overdue(self, db: AsyncSession, now: datetime | None = None) -> int:
        """Expire every pending booking whose hold window has passed.

        Each booking is committed on its own so one failure does not undo
        the rest of the sweep.

        Returns:
            Number of bookings expired
        """
        now = now or utcnow()
        result = await db.execute(
            select(Booking)
            .where(Booking.status == "pending", Booking.expiry_time <= now)
            .order_by(Booking.expiry_time.asc())
        )
        overdue = list(result.scalars().all())

        expired = 0
        for booking in overdue:
            if await self.release_booking(
                db, booking, "expired", "system", "Hold window elapsed", now
            ):
                await db.commit()
                expired += 1

        if overdue:
            logger.info(f"Expiry sweep: {expired}/{len(overdue)} overdue bookings expired")
        return expired

    # ============ HELPERS ============

    def _contact(
        self, user: User, contact_name: str | None, contact_phone: str | None
    ) -> tuple[str, str]:
        name = clean_text(contact_name) or clean_text(user.full_name)
        phone = clean_text(contact_phone) or clean_text(user.phone)
        if not name or not phone:
            raise ValidationError("Please enter your name and phone number")
        if not validate_vietnamese_phone(phone):
            raise ValidationError("Invalid phone number")
        return name, normalize_phone(phone)

    def _verify_code(self, scanned_code: str, facility: Facility) -> None:
        scanned = checkin_code.decode(scanned_code)
        if not scanned.matches(facility.id):
            raise CheckInCodeMismatch(facility.name)
        checkin_code.verify(scanned, facility.qr_secret_version)

    async def _resolve_room(
        self, db: AsyncSession, facility: Facility, room_id: UUID | None
    ) -> Room | None:
        if room_id is None:
            if await catalog_service.list_available_rooms(db, facility.id):
                raise RoomSelectionRequired()
            return None

        result = await db.execute(
            select(Room).where(Room.id == room_id, Room.facility_id == facility.id)
        )
        room = result.scalar_one_or_none()
        if not room:
            raise NotFoundError("Room", str(room_id))
        return room

    async def _reserve_room(
        self, db: AsyncSession, room: Room, booking_id: UUID, effect: str, now: datetime
    ) -> None:
        allowed, target = LIFECYCLE_EFFECTS[effect]
        (current,) = allowed
        taken = await _conditional_update(
            db,
            update(Room)
            .where(Room.id == room.id, Room.status == current)
            .values(status=target, current_booking_id=booking_id, last_updated=now),
        )
        if taken != 1:
            logger.info(f"Room {room.id} could not be {target}: no longer {current}")
            raise RoomNotAvailable(f"Room {room.room_number} is no longer available")

    async def _release_room(self, db: AsyncSession, booking: Booking, now: datetime) -> None:
        if booking.room_id is None:
            return
        _, target = LIFECYCLE_EFFECTS["release"]
        released = await _conditional_update(
            db,
            update(Room)
            .where(Room.id == booking.room_id, Room.current_booking_id == booking.id)
            .values(status=target, current_booking_id=None, last_updated=now),
        )
        if released != 1:
            logger.warning(
                f"Room {booking.room_id} was not held by booking {booking.booking_number}"
            )

    def _snapshot(
        self, user: User, name: str, phone: str, facility: Facility, room: Room | None
    ) -> dict:
        return {
            "user_id": user.id,
            "user_email": user.email,
            "user_name": name,
            "user_phone": phone,
            "facility_id": facility.id,
            "provider_id": facility.owner_id,
            "facility_name": facility.name,
            "facility_address": facility.address,
            "facility_code": checkin_code.legacy_code(facility.id),
            "room_id": room.id if room is not None else None,
            "room_number": room.room_number if room is not None else None,
            "room_type": room.room_type if room is not None else None,
        }


booking_service = BookingService()
