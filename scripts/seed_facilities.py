#!/usr/bin/env python3
"""
Seed a demo provider with approved facilities around Ho Chi Minh City.

Each facility gets 10 rooms numbered from 101:
5 single, 3 couple and 2 family.

Usage:
    python scripts/seed_facilities.py
    python scripts/seed_facilities.py --provider-email provider@washpoint.vn
"""

import argparse
import asyncio

from sqlalchemy import select

from washpoint.core.security import get_password_hash
from washpoint.database import get_db_context
from washpoint.models.facility import Facility, Room
from washpoint.models.user import User
from washpoint.utils.clock import utcnow

DISTRICTS = [
    ("Washpoint Bến Thành", "45 Lê Lợi, Quận 1", 10.7725, 106.6980),
    ("Washpoint Thảo Điền", "12 Xuân Thủy, Thủ Đức", 10.8030, 106.7390),
    ("Washpoint Phú Nhuận", "88 Phan Xích Long, Phú Nhuận", 10.7990, 106.6860),
    ("Washpoint Bình Thạnh", "201 Điện Biên Phủ, Bình Thạnh", 10.8010, 106.7100),
    ("Washpoint Quận 7", "30 Nguyễn Thị Thập, Quận 7", 10.7380, 106.7200),
]

ROOM_MIX = [("single", 5, 30000), ("couple", 3, 50000), ("family", 2, 80000)]

AMENITIES = ["hot_water", "towel", "shampoo", "locker"]


def build_rooms(facility_id) -> list[Room]:
    rooms = []
    number = 101
    for room_type, count, price in ROOM_MIX:
        for _ in range(count):
            rooms.append(
                Room(
                    facility_id=facility_id,
                    room_number=str(number),
                    room_type=room_type,
                    price=price,
                    amenities=list(AMENITIES),
                    status="available",
                )
            )
            number += 1
    return rooms


async def seed(provider_email: str, password: str) -> None:
    async with get_db_context() as session:
        result = await session.execute(select(User).where(User.email == provider_email))
        provider = result.scalar_one_or_none()
        if provider is None:
            provider = User(
                email=provider_email,
                password_hash=get_password_hash(password),
                role="provider",
                full_name="Demo Provider",
                phone="0901234567",
            )
            session.add(provider)
            await session.flush()
            print(f"Created provider {provider_email}")

        for name, address, lat, lng in DISTRICTS:
            result = await session.execute(
                select(Facility).where(Facility.owner_id == provider.id, Facility.name == name)
            )
            if result.scalar_one_or_none():
                print(f"Skipping {name}: already seeded")
                continue

            facility = Facility(
                owner_id=provider.id,
                name=name,
                address=address,
                latitude=lat,
                longitude=lng,
                price=30000,
                amenities=list(AMENITIES),
                status="approved",
                reviewed_at=utcnow(),
                moderation_notes="Seeded",
            )
            session.add(facility)
            await session.flush()
            session.add_all(build_rooms(facility.id))
            print(f"Seeded {name} with 10 rooms")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed demo facilities")
    parser.add_argument("--provider-email", default="provider@washpoint.vn")
    parser.add_argument("--password", default="Test@1234")
    args = parser.parse_args()

    asyncio.run(seed(args.provider_email, args.password))
