"""Booking-related Pydantic schemas."""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from washpoint.config import settings
from washpoint.domain.booking_state import GENERAL_ROOM


class BookingCreate(BaseModel):
    """Schema for placing a hold on a facility.

    ``room_id`` may be omitted (or sent as ``"general"``) only when the
    facility has no available rooms.
    """

    facility_id: UUID
    room_id: UUID | None = None
    estimated_minutes: int = Field(default=15, ge=0, le=settings.max_estimated_minutes)
    contact_name: str | None = Field(None, max_length=150)
    contact_phone: str | None = Field(None, max_length=20)
    notes: str | None = Field(None, max_length=500)

    @field_validator("room_id", mode="before")
    @classmethod
    def general_means_no_room(cls, v):
        if v == GENERAL_ROOM or v == "":
            return None
        return v


class WalkInRequest(BaseModel):
    """Customer scanned a facility's code without a prior booking."""

    facility_id: UUID
    code: str = Field(min_length=1, max_length=200)
    room_id: UUID | None = None
    contact_name: str | None = Field(None, max_length=150)
    contact_phone: str | None = Field(None, max_length=20)
    notes: str | None = Field(None, max_length=500)

    @field_validator("room_id", mode="before")
    @classmethod
    def general_means_no_room(cls, v):
        if v == GENERAL_ROOM or v == "":
            return None
        return v


class CheckInRequest(BaseModel):
    """Scanned QR payload."""

    code: str = Field(min_length=1, max_length=200)


class CheckOutRequest(BaseModel):
    payment_method: Literal["cash", "card", "e_wallet"] | None = None
    provider_notes: str | None = Field(None, max_length=500)


class BookingCancelRequest(BaseModel):
    reason: str | None = Field(None, max_length=500)


class BookingResponse(BaseModel):
    """Schema for booking response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    booking_number: str
    booking_type: str

    # Customer
    user_id: UUID
    user_email: str
    user_name: str
    user_phone: str

    # Facility
    facility_id: UUID
    provider_id: UUID
    facility_name: str
    facility_address: str
    facility_code: str

    # Room
    room_id: str
    room_number: str | None
    room_type: str | None

    # Status
    status: str
    payment_status: str
    payment_method: str | None

    # Timeline
    booking_time: datetime
    estimated_minutes: int
    estimated_arrival: datetime
    expiry_time: datetime
    check_in_time: datetime | None
    check_out_time: datetime | None

    total_price: int
    notes: str | None
    provider_notes: str | None

    # Release
    cancelled_by: str | None
    cancellation_reason: str | None
    cancelled_at: datetime | None
    expired_at: datetime | None

    created_at: datetime
    updated_at: datetime

    @field_validator("room_id", mode="before")
    @classmethod
    def render_room(cls, v) -> str:
        return str(v) if v else GENERAL_ROOM


class BookingListResponse(BaseModel):
    bookings: list[BookingResponse]
    total: int


class ExpirySweepResponse(BaseModel):
    expired: int
    swept_at: datetime


class CheckInHistoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    booking_id: UUID
    facility_id: UUID
    room_id: UUID | None
    user_id: UUID
    check_in_time: datetime
    check_out_time: datetime
    duration_minutes: int
    price: int
    rating: int | None
