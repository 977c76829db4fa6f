"""Booking and visit history database models."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from washpoint.database import Base
from washpoint.domain.booking_state import GENERAL_ROOM
from washpoint.utils.clock import utcnow


class Booking(Base):
    """A time-boxed hold binding a customer to a facility and optionally a room."""

    __tablename__ = "bookings"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    booking_number: Mapped[str] = mapped_column(
        String(20), unique=True, nullable=False, index=True
    )  # WP-XXXXXX
    booking_type: Mapped[str] = mapped_column(String(20), default="reservation")  # reservation, walk_in

    # Customer snapshot
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False, index=True
    )
    user_email: Mapped[str] = mapped_column(String(255), nullable=False)
    user_name: Mapped[str] = mapped_column(String(150), nullable=False)
    user_phone: Mapped[str] = mapped_column(String(20), nullable=False)

    # Facility snapshot
    facility_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("facilities.id"), nullable=False, index=True
    )
    provider_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False, index=True
    )
    facility_name: Mapped[str] = mapped_column(String(150), nullable=False)
    facility_address: Mapped[str] = mapped_column(String(255), nullable=False)
    facility_code: Mapped[str] = mapped_column(String(80), nullable=False)

    # Room (NULL when the booking is for the facility in general)
    room_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("rooms.id", ondelete="SET NULL"), index=True
    )
    room_number: Mapped[str | None] = mapped_column(String(20))
    room_type: Mapped[str | None] = mapped_column(String(20))

    # Status
    status: Mapped[str] = mapped_column(
        String(20), default="pending", index=True
    )  # pending, checked_in, completed, cancelled, expired
    payment_status: Mapped[str] = mapped_column(
        String(20), default="pending"
    )  # pending, paid, refunded
    payment_method: Mapped[str | None] = mapped_column(String(30))  # cash, card, e_wallet

    # Timeline
    booking_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    estimated_minutes: Mapped[int] = mapped_column(Integer, default=0)
    estimated_arrival: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    expiry_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )
    check_in_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    check_out_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Pricing (VND)
    total_price: Mapped[int] = mapped_column(Integer, nullable=False)

    # Notes
    notes: Mapped[str | None] = mapped_column(Text)
    provider_notes: Mapped[str | None] = mapped_column(Text)

    # Release
    cancelled_by: Mapped[str | None] = mapped_column(String(10))  # user, provider, admin, system
    cancellation_reason: Mapped[str | None] = mapped_column(Text)
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    expired_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow
    )

    @property
    def holds_room(self) -> bool:
        return self.room_id is not None

    @property
    def room_ref(self) -> str:
        """Room id as shown to clients, ``general`` when no room is attached."""
        return str(self.room_id) if self.room_id else GENERAL_ROOM


class CheckInHistory(Base):
    """One completed visit, written at check-out."""

    __tablename__ = "checkin_history"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    booking_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("bookings.id"), unique=True, nullable=False
    )
    facility_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("facilities.id"), nullable=False, index=True
    )
    room_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("rooms.id", ondelete="SET NULL")
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False, index=True
    )

    check_in_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    check_out_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )
    duration_minutes: Mapped[int] = mapped_column(Integer, default=0)
    price: Mapped[int] = mapped_column(Integer, nullable=False)
    rating: Mapped[int | None] = mapped_column(Integer)  # 1-5, set when the visit is reviewed

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
