"""Facility and room database models."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    JSON,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from washpoint.database import Base
from washpoint.utils.clock import utcnow

if TYPE_CHECKING:
    from washpoint.models.user import User


class Facility(Base):
    """A bathhouse location that customers can find and book."""

    __tablename__ = "facilities"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False, index=True
    )

    # Basic Info
    name: Mapped[str] = mapped_column(String(150), nullable=False)
    address: Mapped[str] = mapped_column(String(255), nullable=False)
    facility_type: Mapped[str] = mapped_column(String(30), default="bathhouse")
    description: Mapped[str | None] = mapped_column(Text)
    image_url: Mapped[str | None] = mapped_column(Text)

    # Location
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)

    # Pricing (VND, flat price when no room is chosen)
    price: Mapped[int] = mapped_column(Integer, nullable=False)
    amenities: Mapped[list[str]] = mapped_column(JSON, default=list)

    # Rating aggregate
    rating_average: Mapped[float] = mapped_column(Float, default=5.0)
    rating_count: Mapped[int] = mapped_column(Integer, default=0)
    rating_total: Mapped[int] = mapped_column(Integer, default=0)

    # Moderation
    status: Mapped[str] = mapped_column(
        String(20), default="pending", index=True
    )  # pending, approved, rejected, deleted
    moderation_notes: Mapped[str | None] = mapped_column(Text)
    reviewed_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id"))
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Bumped to invalidate every signed QR code printed so far
    qr_secret_version: Mapped[int] = mapped_column(Integer, default=1)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow
    )

    # Relationships
    owner: Mapped["User"] = relationship(
        "User", back_populates="facilities", foreign_keys=[owner_id]
    )
    rooms: Mapped[list["Room"]] = relationship(
        "Room", back_populates="facility", passive_deletes=True
    )

    @property
    def is_visible(self) -> bool:
        return self.status == "approved"


class Room(Base):
    """An individually bookable stall inside a facility."""

    __tablename__ = "rooms"
    __table_args__ = (UniqueConstraint("facility_id", "room_number", name="uq_room_number"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    facility_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("facilities.id", ondelete="CASCADE"), nullable=False, index=True
    )
    room_number: Mapped[str] = mapped_column(String(20), nullable=False)
    room_type: Mapped[str] = mapped_column(String(20), default="single")  # single, couple, family
    status: Mapped[str] = mapped_column(
        String(20), default="available", index=True
    )  # available, booked, occupied, maintenance
    price: Mapped[int] = mapped_column(Integer, nullable=False)
    amenities: Mapped[list[str]] = mapped_column(JSON, default=list)

    # Booking currently holding this room, cleared on release
    current_booking_id: Mapped[uuid.UUID | None] = mapped_column(Uuid)

    last_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow
    )

    # Relationships
    facility: Mapped["Facility"] = relationship("Facility", back_populates="rooms")
