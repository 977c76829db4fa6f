"""Facility and room schemas."""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

RoomType = Literal["single", "couple", "family"]


def _clean_tags(tags: list[str]) -> list[str]:
    return list(dict.fromkeys(t.strip().lower() for t in tags if t and t.strip()))


class RoomCreate(BaseModel):
    """Schema for adding a room to a facility."""

    room_number: str = Field(min_length=1, max_length=20)
    room_type: RoomType = "single"
    price: int = Field(gt=0)
    amenities: list[str] = Field(default_factory=list)

    @field_validator("room_number")
    @classmethod
    def strip_number(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("room_number must not be blank")
        return v

    @field_validator("amenities")
    @classmethod
    def clean_amenities(cls, v: list[str]) -> list[str]:
        return _clean_tags(v)


class RoomUpdate(BaseModel):
    """Schema for editing a room. Status is changed separately."""

    room_number: str | None = Field(None, min_length=1, max_length=20)
    room_type: RoomType | None = None
    price: int | None = Field(None, gt=0)
    amenities: list[str] | None = None

    @field_validator("amenities")
    @classmethod
    def clean_amenities(cls, v: list[str] | None) -> list[str] | None:
        return _clean_tags(v) if v is not None else None


class RoomStatusUpdate(BaseModel):
    status: Literal["available", "maintenance"]


class RoomResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    facility_id: UUID
    room_number: str
    room_type: str
    status: str
    price: int
    amenities: list[str]
    current_booking_id: UUID | None
    last_updated: datetime


class FacilityCreate(BaseModel):
    """Schema for a provider submitting a new facility."""

    name: str = Field(min_length=2, max_length=150)
    address: str = Field(min_length=5, max_length=255)
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    price: int = Field(gt=0)
    amenities: list[str] = Field(default_factory=list)
    facility_type: str = Field(default="bathhouse", max_length=30)
    description: str | None = Field(None, max_length=2000)
    image_url: str | None = None
    rooms: list[RoomCreate] = Field(default_factory=list)

    @field_validator("amenities")
    @classmethod
    def clean_amenities(cls, v: list[str]) -> list[str]:
        return _clean_tags(v)

    @field_validator("rooms")
    @classmethod
    def unique_room_numbers(cls, v: list[RoomCreate]) -> list[RoomCreate]:
        numbers = [r.room_number for r in v]
        if len(numbers) != len(set(numbers)):
            raise ValueError("Room numbers must be unique")
        return v


class FacilityUpdate(BaseModel):
    """Fields a provider may edit after submission."""

    name: str | None = Field(None, min_length=2, max_length=150)
    address: str | None = Field(None, min_length=5, max_length=255)
    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)
    price: int | None = Field(None, gt=0)
    amenities: list[str] | None = None
    description: str | None = Field(None, max_length=2000)
    image_url: str | None = None

    @field_validator("amenities")
    @classmethod
    def clean_amenities(cls, v: list[str] | None) -> list[str] | None:
        return _clean_tags(v) if v is not None else None


class FacilityResponse(BaseModel):
    """Schema for facility response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    owner_id: UUID
    name: str
    address: str
    facility_type: str
    description: str | None
    image_url: str | None
    latitude: float
    longitude: float
    price: int
    amenities: list[str]
    rating_average: float
    rating_count: int
    status: str
    moderation_notes: str | None
    reviewed_at: datetime | None
    created_at: datetime


class FacilitySearchResult(FacilityResponse):
    """Facility with its distance from the searcher."""

    distance_meters: float | None = None
    distance_text: str | None = None
    available_rooms: int = 0


class FacilitySearchParams(BaseModel):
    """Discovery filters."""

    lat: float | None = Field(None, ge=-90, le=90)
    lng: float | None = Field(None, ge=-180, le=180)
    sort: Literal["distance", "price", "rating"] = "distance"
    amenities: list[str] = Field(default_factory=list)
    max_price: int | None = Field(None, gt=0)
    min_rating: float | None = Field(None, ge=0, le=5)
    radius_km: float | None = Field(None, gt=0)
    q: str | None = Field(None, max_length=100)


class FacilityDetailResponse(FacilityResponse):
    rooms: list[RoomResponse] = Field(default_factory=list)


class CheckInCodesResponse(BaseModel):
    """Payloads to print on the facility's QR sign."""

    facility_id: UUID
    legacy_code: str
    signed_code: str
    version: int
