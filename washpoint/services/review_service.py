"""Facility review service."""

import logging
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from washpoint.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from washpoint.core.permissions import SessionContext
from washpoint.domain.rating import add_rating, remove_rating, validate_rating
from washpoint.models.booking import Booking, CheckInHistory
from washpoint.models.facility import Facility
from washpoint.models.review import Review
from washpoint.models.user import User
from washpoint.services.catalog_service import catalog_service
from washpoint.utils.clock import utcnow

logger = logging.getLogger(__name__)


class ReviewService:
    """Reviews and the running-mean rating kept on each facility."""

    async def _lock_facility(self, db: AsyncSession, facility_id: UUID) -> Facility:
        result = await db.execute(
            select(Facility)
            .where(Facility.id == facility_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        facility = result.scalar_one_or_none()
        if not facility:
            raise NotFoundError("Facility", str(facility_id))
        return facility

    async def get_review(self, db: AsyncSession, review_id: UUID) -> Review:
        result = await db.execute(select(Review).where(Review.id == review_id))
        review = result.scalar_one_or_none()
        if not review:
            raise NotFoundError("Review", str(review_id))
        return review

    async def create_review(
        self,
        db: AsyncSession,
        user: User,
        facility_id: UUID,
        rating: int,
        comment: str | None = None,
        tags: list[str] | None = None,
        booking_id: UUID | None = None,
    ) -> Review:
        """Rate a facility and fold the rating into its aggregate.

        A review tied to a booking must come from that booking's customer
        after the visit is completed, once per booking.
        """
        validate_rating(rating)
        await catalog_service.get_facility(db, facility_id)

        if booking_id is not None:
            result = await db.execute(select(Booking).where(Booking.id == booking_id))
            booking = result.scalar_one_or_none()
            if not booking or booking.user_id != user.id:
                raise NotFoundError("Booking", str(booking_id))
            if booking.facility_id != facility_id:
                raise ValidationError("Booking is for a different facility")
            if booking.status != "completed":
                raise ValidationError("You can review a visit after checking out")

            existing = await db.execute(select(Review.id).where(Review.booking_id == booking_id))
            if existing.first() is not None:
                raise ValidationError("This visit has already been reviewed")

        review = Review(
            facility_id=facility_id,
            user_id=user.id,
            booking_id=booking_id,
            rating=rating,
            comment=(comment or "").strip() or None,
            tags=[t.strip().lower() for t in (tags or []) if t.strip()],
        )
        db.add(review)

        facility = await self._lock_facility(db, facility_id)
        facility.rating_average, facility.rating_count = add_rating(
            facility.rating_average if facility.rating_count else 0.0,
            facility.rating_count,
            rating,
        )
        facility.rating_total += rating

        if booking_id is not None:
            await db.execute(
                update(CheckInHistory)
                .where(CheckInHistory.booking_id == booking_id)
                .values(rating=rating)
                .execution_options(synchronize_session="evaluate")
            )

        await db.flush()
        logger.info(f"Facility {facility_id} rated {rating} by {user.id}")
        return review

    async def delete_review(self, db: AsyncSession, review_id: UUID, ctx: SessionContext) -> None:
        review = await self.get_review(db, review_id)
        if review.user_id != ctx.user_id and not ctx.is_admin:
            raise AuthorizationError("Only the author can delete this review")

        facility = await self._lock_facility(db, review.facility_id)
        facility.rating_average, facility.rating_count = remove_rating(
            facility.rating_average, facility.rating_count, review.rating
        )
        facility.rating_total = max(0, facility.rating_total - review.rating)
        if facility.rating_count == 0:
            facility.rating_average = 5.0

        await db.delete(review)
        await db.flush()

    async def respond(
        self, db: AsyncSession, review_id: UUID, response: str, ctx: SessionContext
    ) -> Review:
        """Facility owner replies to a review."""
        review = await self.get_review(db, review_id)
        facility = await catalog_service.get_facility(db, review.facility_id)
        ctx.require_facility_owner(facility)

        review.provider_response = response.strip()
        review.responded_at = utcnow()
        await db.flush()
        return review

    async def list_facility_reviews(
        self, db: AsyncSession, facility_id: UUID, limit: int = 50, offset: int = 0
    ) -> tuple[list[Review], int, dict[int, int]]:
        """Reviews newest first, with the total count and a 1-5 breakdown."""
        result = await db.execute(
            select(Review)
            .where(Review.facility_id == facility_id)
            .order_by(Review.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        reviews = list(result.scalars().all())

        counts = await db.execute(
            select(Review.rating, func.count(Review.id))
            .where(Review.facility_id == facility_id)
            .group_by(Review.rating)
        )
        breakdown = {star: 0 for star in range(1, 6)}
        for star, count in counts.all():
            breakdown[star] = count
        return reviews, sum(breakdown.values()), breakdown


review_service = ReviewService()
