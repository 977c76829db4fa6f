"""Review schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ReviewCreate(BaseModel):
    """Schema for rating a facility, optionally tied to a finished visit."""

    facility_id: UUID
    booking_id: UUID | None = None
    rating: int = Field(ge=1, le=5)
    comment: str | None = Field(None, max_length=2000)
    tags: list[str] = Field(default_factory=list, max_length=10)


class ReviewReply(BaseModel):
    response: str = Field(min_length=1, max_length=2000)


class ReviewResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    facility_id: UUID
    user_id: UUID
    booking_id: UUID | None
    rating: int
    comment: str | None
    tags: list[str]
    provider_response: str | None
    responded_at: datetime | None
    created_at: datetime


class FacilityReviewsResponse(BaseModel):
    """Reviews of a facility with its aggregate."""

    reviews: list[ReviewResponse]
    total: int
    average_rating: float
    rating_count: int
    rating_breakdown: dict[int, int]
