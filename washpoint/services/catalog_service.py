"""Facility catalog and discovery service."""

import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from washpoint.config import settings
from washpoint.core.exceptions import FacilityNotAvailable, NotFoundError, ValidationError
from washpoint.domain import checkin_code
from washpoint.domain.booking_state import ACTIVE_STATUSES
from washpoint.domain.geo import format_distance, haversine_meters
from washpoint.domain.room_state import HELD_STATUSES
from washpoint.models.booking import Booking
from washpoint.models.facility import Facility, Room
from washpoint.models.user import User
from washpoint.schemas.facility import FacilityCreate, FacilitySearchParams, FacilityUpdate
from washpoint.utils.chunking import fetch_in_chunks

logger = logging.getLogger(__name__)


@dataclass
class SearchHit:
    """A facility matched by discovery, with its distance when known."""

    facility: Facility
    distance_meters: float | None = None
    available_rooms: int = 0

    @property
    def distance_text(self) -> str | None:
        if self.distance_meters is None:
            return None
        return format_distance(self.distance_meters)


class CatalogService:
    """Facilities, their rooms, and how customers find them."""

    async def get_facility(self, db: AsyncSession, facility_id: UUID) -> Facility:
        result = await db.execute(select(Facility).where(Facility.id == facility_id))
        facility = result.scalar_one_or_none()
        if not facility or facility.status == "deleted":
            raise NotFoundError("Facility", str(facility_id))
        return facility

    async def get_bookable_facility(self, db: AsyncSession, facility_id: UUID) -> Facility:
        """Facility that accepts bookings and check-ins."""
        facility = await self.get_facility(db, facility_id)
        if not facility.is_visible:
            raise FacilityNotAvailable()
        return facility

    async def list_available_rooms(self, db: AsyncSession, facility_id: UUID) -> list[Room]:
        result = await db.execute(
            select(Room)
            .where(Room.facility_id == facility_id, Room.status == "available")
            .order_by(Room.room_number)
        )
        return list(result.scalars().all())

    async def list_rooms(
        self, db: AsyncSession, facility_id: UUID, status: str | None = None
    ) -> list[Room]:
        query = select(Room).where(Room.facility_id == facility_id)
        if status:
            query = query.where(Room.status == status)
        result = await db.execute(query.order_by(Room.room_number))
        return list(result.scalars().all())

    async def list_approved_facilities(self, db: AsyncSession) -> list[Facility]:
        result = await db.execute(
            select(Facility).where(Facility.status == "approved").order_by(Facility.name)
        )
        return list(result.scalars().all())

    async def list_owned_facilities(self, db: AsyncSession, owner_id: UUID) -> list[Facility]:
        result = await db.execute(
            select(Facility)
            .where(Facility.owner_id == owner_id, Facility.status != "deleted")
            .order_by(Facility.created_at.desc())
        )
        return list(result.scalars().all())

    async def search_facilities(
        self, db: AsyncSession, params: FacilitySearchParams
    ) -> list[SearchHit]:
        """Approved facilities filtered by price, rating, amenities and text.

        With coordinates, results are limited to `radius_km` (default from
        settings). Sort by distance needs coordinates and falls back to
        rating without them.
        """
        query = select(Facility).where(Facility.status == "approved")
        if params.max_price is not None:
            query = query.where(Facility.price <= params.max_price)
        if params.min_rating is not None:
            query = query.where(Facility.rating_average >= params.min_rating)
        if params.q:
            pattern = f"%{params.q.strip()}%"
            query = query.where(or_(Facility.name.ilike(pattern), Facility.address.ilike(pattern)))

        result = await db.execute(query)
        facilities = list(result.scalars().all())

        wanted = {a.strip().lower() for a in params.amenities if a.strip()}
        if wanted:
            facilities = [f for f in facilities if wanted.issubset(set(f.amenities or []))]

        has_origin = params.lat is not None and params.lng is not None
        radius_km = params.radius_km or settings.default_search_radius_km
        hits = []
        for facility in facilities:
            distance = None
            if has_origin:
                distance = haversine_meters(
                    params.lat, params.lng, facility.latitude, facility.longitude
                )
                if distance > radius_km * 1000:
                    continue
            hits.append(SearchHit(facility=facility, distance_meters=distance))

        room_counts = await self._available_room_counts(db, [h.facility.id for h in hits])
        for hit in hits:
            hit.available_rooms = room_counts.get(hit.facility.id, 0)

        sort = params.sort
        if sort == "distance" and not has_origin:
            sort = "rating"
        if sort == "distance":
            hits.sort(key=lambda h: h.distance_meters)
        elif sort == "price":
            hits.sort(key=lambda h: (h.facility.price, -h.facility.rating_average))
        else:
            hits.sort(key=lambda h: (-h.facility.rating_average, -h.facility.rating_count))
        return hits

    async def _available_room_counts(
        self, db: AsyncSession, facility_ids: list[UUID]
    ) -> dict[UUID, int]:
        async def fetch(chunk: list[UUID]):
            result = await db.execute(
                select(Room.facility_id, func.count(Room.id))
                .where(Room.facility_id.in_(chunk), Room.status == "available")
                .group_by(Room.facility_id)
            )
            return result.all()

        rows = await fetch_in_chunks(facility_ids, fetch)
        return {facility_id: count for facility_id, count in rows}

    # ============ PROVIDER MANAGEMENT ============

    async def create_facility(
        self, db: AsyncSession, owner: User, data: FacilityCreate
    ) -> Facility:
        """Submit a facility (and its initial rooms) for moderation."""
        facility = Facility(
            owner_id=owner.id,
            name=data.name.strip(),
            address=data.address.strip(),
            facility_type=data.facility_type,
            description=data.description,
            image_url=data.image_url,
            latitude=data.latitude,
            longitude=data.longitude,
            price=data.price,
            amenities=data.amenities,
            status="pending",
            rating_average=5.0,
            rating_count=0,
            rating_total=0,
            qr_secret_version=1,
        )
        db.add(facility)
        await db.flush()

        for room_data in data.rooms:
            db.add(
                Room(
                    facility_id=facility.id,
                    room_number=room_data.room_number,
                    room_type=room_data.room_type,
                    price=room_data.price,
                    amenities=room_data.amenities,
                    status="available",
                )
            )
        await db.flush()

        logger.info(f"Facility {facility.id} submitted by {owner.id} with {len(data.rooms)} rooms")
        return facility

    async def update_facility(
        self, db: AsyncSession, facility: Facility, data: FacilityUpdate
    ) -> Facility:
        changes = data.model_dump(exclude_unset=True)
        for field, value in changes.items():
            if value is None and field in ("name", "address", "latitude", "longitude", "price"):
                continue
            setattr(facility, field, value.strip() if isinstance(value, str) else value)
        await db.flush()
        return facility

    async def delete_facility(self, db: AsyncSession, facility: Facility) -> None:
        """Withdraw a facility and remove its rooms.

        The facility row is kept (status ``deleted``) so past bookings keep
        their reference.
        """
        held = await db.execute(
            select(func.count(Room.id)).where(
                Room.facility_id == facility.id, Room.status.in_(HELD_STATUSES)
            )
        )
        if held.scalar_one():
            raise ValidationError("Facility has rooms in use and cannot be deleted")

        active = await db.execute(
            select(func.count(Booking.id)).where(
                Booking.facility_id == facility.id, Booking.status.in_(ACTIVE_STATUSES)
            )
        )
        if active.scalar_one():
            raise ValidationError("Facility has active bookings and cannot be deleted")

        await db.execute(delete(Room).where(Room.facility_id == facility.id))
        facility.status = "deleted"
        await db.flush()
        logger.info(f"Facility {facility.id} deleted")

    def checkin_codes(self, facility: Facility) -> dict:
        return {
            "facility_id": facility.id,
            "legacy_code": checkin_code.legacy_code(facility.id),
            "signed_code": checkin_code.signed_code(facility.id, facility.qr_secret_version),
            "version": facility.qr_secret_version,
        }

    async def rotate_checkin_code(self, db: AsyncSession, facility: Facility) -> Facility:
        """Invalidate every signed code issued so far for the facility."""
        facility.qr_secret_version += 1
        await db.flush()
        logger.info(f"Facility {facility.id} QR secret rotated to v{facility.qr_secret_version}")
        return facility


catalog_service = CatalogService()
