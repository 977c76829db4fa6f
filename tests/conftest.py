"""
Shared pytest fixtures: in-memory database, API client, users and facilities.
"""
import os

os.environ.setdefault("DATABASE_URL_OVERRIDE", "sqlite+aiosqlite://")
os.environ.setdefault("ENVIRONMENT", "development")

from datetime import UTC, datetime

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import washpoint.models  # noqa: F401
from washpoint.core.permissions import SessionContext
from washpoint.core.security import create_tokens, get_password_hash
from washpoint.database import Base, get_db
from washpoint.main import app
from washpoint.models.facility import Facility, Room
from washpoint.models.user import User

T0 = datetime(2026, 3, 1, 9, 0, tzinfo=UTC)


@pytest.fixture
async def db_engine():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    """API client whose requests run against the test database."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# ============== Users ==============


async def _make_user(db_session, email, role, full_name, phone=None):
    user = User(
        email=email,
        password_hash=get_password_hash("Secret@123"),
        role=role,
        full_name=full_name,
        phone=phone,
        is_active=True,
    )
    db_session.add(user)
    await db_session.commit()
    return user


@pytest.fixture
async def customer(db_session):
    return await _make_user(db_session, "lan@example.com", "user", "Nguyễn Thị Lan", "0901234567")


@pytest.fixture
async def other_customer(db_session):
    return await _make_user(db_session, "minh@example.com", "user", "Trần Văn Minh", "0912345678")


@pytest.fixture
async def provider(db_session):
    return await _make_user(db_session, "owner@example.com", "provider", "Chủ Nhà Tắm", "0987654321")


@pytest.fixture
async def other_provider(db_session):
    return await _make_user(db_session, "rival@example.com", "provider", "Đối Thủ", "0977777777")


@pytest.fixture
async def admin(db_session):
    return await _make_user(db_session, "admin@example.com", "admin", "Quản Trị")


def auth_headers(user: User) -> dict:
    tokens = create_tokens(str(user.id), user.email, user.role)
    return {"Authorization": f"Bearer {tokens['access_token']}"}


@pytest.fixture
def customer_ctx(customer):
    return SessionContext.for_user(customer)


@pytest.fixture
def provider_ctx(provider):
    return SessionContext.for_user(provider)


@pytest.fixture
def admin_ctx(admin):
    return SessionContext.for_user(admin)


# ============== Facilities ==============


async def make_facility(db_session, owner, *, name="Nhà Tắm Bến Thành", status="approved",
                        rooms=(), latitude=10.7725, longitude=106.6980, price=25000,
                        amenities=("hot_water", "towel")):
    facility = Facility(
        owner_id=owner.id,
        name=name,
        address="45 Lê Lợi, Quận 1",
        latitude=latitude,
        longitude=longitude,
        price=price,
        amenities=list(amenities),
        status=status,
        rating_average=5.0,
        rating_count=0,
        rating_total=0,
        qr_secret_version=1,
    )
    db_session.add(facility)
    await db_session.flush()
    for number, room_type, room_price in rooms:
        db_session.add(
            Room(
                facility_id=facility.id,
                room_number=number,
                room_type=room_type,
                price=room_price,
                amenities=[],
                status="available",
            )
        )
    await db_session.commit()
    return facility


async def room_by_number(db_session, facility, number) -> Room:
    from sqlalchemy import select

    result = await db_session.execute(
        select(Room)
        .where(Room.facility_id == facility.id, Room.room_number == number)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


@pytest.fixture
async def facility(db_session, provider):
    """Approved facility with two free rooms."""
    return await make_facility(
        db_session,
        provider,
        rooms=[("101", "single", 30000), ("102", "couple", 50000)],
    )


@pytest.fixture
async def roomless_facility(db_session, provider):
    """Approved facility that only takes general bookings."""
    return await make_facility(db_session, provider, name="Nhà Tắm Chợ Lớn", price=20000)


@pytest.fixture
async def room_101(db_session, facility):
    return await room_by_number(db_session, facility, "101")


@pytest.fixture
async def room_102(db_session, facility):
    return await room_by_number(db_session, facility, "102")
