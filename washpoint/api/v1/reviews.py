"""Review endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from washpoint.api.deps import DbSession, Session, require_review_permission
from washpoint.models.review import Review
from washpoint.schemas.review import (
    FacilityReviewsResponse,
    ReviewCreate,
    ReviewReply,
    ReviewResponse,
)
from washpoint.services.catalog_service import catalog_service
from washpoint.services.review_service import review_service

router = APIRouter()


@router.post(
    "",
    response_model=ReviewResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_review_permission)],
)
async def create_review(data: ReviewCreate, ctx: Session, db: DbSession) -> Review:
    """Rate a facility. Tying the review to a completed booking is optional."""
    return await review_service.create_review(
        db,
        ctx.user,
        facility_id=data.facility_id,
        rating=data.rating,
        comment=data.comment,
        tags=data.tags,
        booking_id=data.booking_id,
    )


@router.get("/facility/{facility_id}", response_model=FacilityReviewsResponse)
async def list_facility_reviews(
    facility_id: UUID,
    db: DbSession,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> FacilityReviewsResponse:
    facility = await catalog_service.get_facility(db, facility_id)
    reviews, total, breakdown = await review_service.list_facility_reviews(
        db, facility.id, limit=limit, offset=offset
    )
    return FacilityReviewsResponse(
        reviews=[ReviewResponse.model_validate(r) for r in reviews],
        total=total,
        average_rating=facility.rating_average,
        rating_count=facility.rating_count,
        rating_breakdown=breakdown,
    )


@router.post("/{review_id}/response", response_model=ReviewResponse)
async def respond_to_review(
    review_id: UUID,
    data: ReviewReply,
    ctx: Session,
    db: DbSession,
) -> Review:
    """Facility owner replies publicly."""
    review = await review_service.respond(db, review_id, data.response, ctx)
    await db.refresh(review)
    return review


@router.delete("/{review_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_review(review_id: UUID, ctx: Session, db: DbSession) -> None:
    await review_service.delete_review(db, review_id, ctx)
