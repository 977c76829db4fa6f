"""Tests for facility discovery and provider facility management."""
import pytest
from conftest import T0, make_facility

from washpoint.core.exceptions import FacilityNotAvailable, NotFoundError, ValidationError
from washpoint.domain import checkin_code
from washpoint.schemas.facility import FacilityCreate, FacilitySearchParams, FacilityUpdate, RoomCreate
from washpoint.services import catalog_service as catalog_module
from washpoint.services.booking_service import booking_service
from washpoint.services.catalog_service import catalog_service
from washpoint.utils.chunking import fetch_in_chunks

BEN_THANH = (10.7725, 106.6980)


@pytest.fixture
async def district_facilities(db_session, provider):
    """Three approved facilities at increasing distance from Bến Thành, plus one pending."""
    near = await make_facility(
        db_session, provider, name="Gần Chợ", latitude=10.7730, longitude=106.6985,
        price=30000, amenities=("hot_water", "towel"), rooms=[("1", "single", 30000)],
    )
    mid = await make_facility(
        db_session, provider, name="Thảo Điền", latitude=10.8030, longitude=106.7390,
        price=20000, amenities=("hot_water",),
    )
    far = await make_facility(
        db_session, provider, name="Vũng Tàu", latitude=10.3460, longitude=107.0843,
        price=15000, amenities=("towel",),
    )
    await make_facility(db_session, provider, name="Chưa Duyệt", status="pending")

    mid.rating_average, mid.rating_count = 4.8, 10
    near.rating_average, near.rating_count = 4.2, 3
    far.rating_average, far.rating_count = 4.9, 1
    await db_session.commit()
    return near, mid, far


class TestSearch:
    async def test_sorted_by_distance_within_default_radius(self, db_session, district_facilities):
        near, mid, far = district_facilities
        hits = await catalog_service.search_facilities(
            db_session, FacilitySearchParams(lat=BEN_THANH[0], lng=BEN_THANH[1])
        )
        assert [h.facility.id for h in hits] == [near.id, mid.id]
        assert hits[0].distance_meters < 1000
        assert hits[0].distance_text.endswith(" m")
        assert hits[1].distance_text.endswith(" km")
        assert hits[0].available_rooms == 1

    async def test_wider_radius(self, db_session, district_facilities):
        near, mid, far = district_facilities
        hits = await catalog_service.search_facilities(
            db_session, FacilitySearchParams(lat=BEN_THANH[0], lng=BEN_THANH[1], radius_km=200)
        )
        assert [h.facility.id for h in hits] == [near.id, mid.id, far.id]

    async def test_distance_sort_without_origin_falls_back_to_rating(self, db_session, district_facilities):
        near, mid, far = district_facilities
        hits = await catalog_service.search_facilities(db_session, FacilitySearchParams())
        assert [h.facility.id for h in hits] == [far.id, mid.id, near.id]
        assert all(h.distance_meters is None for h in hits)

    async def test_price_sort(self, db_session, district_facilities):
        near, mid, far = district_facilities
        hits = await catalog_service.search_facilities(db_session, FacilitySearchParams(sort="price"))
        assert [h.facility.id for h in hits] == [far.id, mid.id, near.id]

    async def test_filters(self, db_session, district_facilities):
        near, mid, far = district_facilities

        hits = await catalog_service.search_facilities(
            db_session, FacilitySearchParams(amenities=["hot_water", "towel"])
        )
        assert [h.facility.id for h in hits] == [near.id]

        hits = await catalog_service.search_facilities(
            db_session, FacilitySearchParams(max_price=20000, sort="price")
        )
        assert [h.facility.id for h in hits] == [far.id, mid.id]

        hits = await catalog_service.search_facilities(db_session, FacilitySearchParams(min_rating=4.5))
        assert {h.facility.id for h in hits} == {mid.id, far.id}

        hits = await catalog_service.search_facilities(db_session, FacilitySearchParams(q="thảo"))
        assert [h.facility.id for h in hits] == [mid.id]

    async def test_pending_facilities_hidden(self, db_session, district_facilities):
        hits = await catalog_service.search_facilities(db_session, FacilitySearchParams())
        assert "Chưa Duyệt" not in {h.facility.name for h in hits}

    async def test_room_counts_are_chunked(self, db_session, monkeypatch, provider):
        for i in range(11):
            await make_facility(
                db_session, provider, name=f"Nhà Tắm {i:02d}", rooms=[("1", "single", 30000)]
            )

        chunk_sizes = []

        async def recording(values, fetch, size=None):
            async def counted(chunk):
                chunk_sizes.append(len(chunk))
                return await fetch(chunk)

            return await fetch_in_chunks(values, counted, size)

        monkeypatch.setattr(catalog_module, "fetch_in_chunks", recording)

        hits = await catalog_service.search_facilities(db_session, FacilitySearchParams())
        assert chunk_sizes == [10, 1]
        assert len(hits) == 11
        assert all(h.available_rooms == 1 for h in hits)


class TestLookups:
    async def test_pending_facility_not_bookable(self, db_session, provider):
        pending = await make_facility(db_session, provider, status="pending")
        assert (await catalog_service.get_facility(db_session, pending.id)).id == pending.id
        with pytest.raises(FacilityNotAvailable):
            await catalog_service.get_bookable_facility(db_session, pending.id)

    async def test_available_rooms(self, db_session, customer, facility, room_101):
        await booking_service.create_booking(db_session, customer, facility.id, room_101.id, now=T0)
        rooms = await catalog_service.list_available_rooms(db_session, facility.id)
        assert [r.room_number for r in rooms] == ["102"]

        booked = await catalog_service.list_rooms(db_session, facility.id, status="booked")
        assert [r.room_number for r in booked] == ["101"]


class TestManagement:
    async def test_create_goes_to_moderation(self, db_session, provider):
        data = FacilityCreate(
            name="Nhà Tắm Quận 7",
            address="30 Nguyễn Thị Thập, Quận 7",
            latitude=10.738,
            longitude=106.72,
            price=25000,
            amenities=["Towel", "towel", " hot_water "],
            rooms=[RoomCreate(room_number="A1", price=30000), RoomCreate(room_number="A2", price=30000)],
        )
        facility = await catalog_service.create_facility(db_session, provider, data)
        assert facility.status == "pending"
        assert facility.amenities == ["towel", "hot_water"]
        assert facility.rating_average == 5.0
        assert len(await catalog_service.list_rooms(db_session, facility.id)) == 2

    async def test_duplicate_room_numbers_rejected(self):
        with pytest.raises(ValueError):
            FacilityCreate(
                name="Nhà Tắm",
                address="1 Lê Lợi, Quận 1",
                latitude=10.7,
                longitude=106.7,
                price=20000,
                rooms=[RoomCreate(room_number="1", price=1), RoomCreate(room_number="1", price=1)],
            )

    async def test_partial_update(self, db_session, facility):
        updated = await catalog_service.update_facility(
            db_session, facility, FacilityUpdate(price=28000, description=" Mới sửa ")
        )
        assert updated.price == 28000
        assert updated.description == "Mới sửa"
        assert updated.name == "Nhà Tắm Bến Thành"

    async def test_soft_delete(self, db_session, provider, facility):
        await catalog_service.delete_facility(db_session, facility)
        await db_session.commit()

        assert facility.status == "deleted"
        assert await catalog_service.list_rooms(db_session, facility.id) == []
        assert await catalog_service.list_owned_facilities(db_session, provider.id) == []
        with pytest.raises(NotFoundError):
            await catalog_service.get_facility(db_session, facility.id)

    async def test_delete_blocked_by_held_room(self, db_session, customer, facility, room_101):
        await booking_service.create_booking(db_session, customer, facility.id, room_101.id, now=T0)
        with pytest.raises(ValidationError, match="rooms in use"):
            await catalog_service.delete_facility(db_session, facility)

    async def test_delete_blocked_by_general_booking(self, db_session, customer, roomless_facility):
        await booking_service.create_booking(db_session, customer, roomless_facility.id, now=T0)
        with pytest.raises(ValidationError, match="active bookings"):
            await catalog_service.delete_facility(db_session, roomless_facility)

    async def test_rotate_invalidates_signed_codes(self, db_session, facility):
        codes = catalog_service.checkin_codes(facility)
        assert codes["legacy_code"] == checkin_code.legacy_code(facility.id)
        assert codes["version"] == 1

        await catalog_service.rotate_checkin_code(db_session, facility)
        fresh = catalog_service.checkin_codes(facility)
        assert fresh["version"] == 2
        assert checkin_code.decode(fresh["signed_code"]).version == 2
