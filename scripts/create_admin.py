#!/usr/bin/env python3
"""Create (or reset) an admin user with an Argon2 password hash."""

import argparse
import asyncio

from sqlalchemy import select

from washpoint.core.security import get_password_hash
from washpoint.database import get_db_context
from washpoint.models.user import User


async def create_admin(
    email: str = "admin@washpoint.vn",
    password: str = "Admin@123",
    full_name: str = "Washpoint Admin",
) -> None:
    """Create an admin user if it doesn't exist, otherwise reset it."""
    async with get_db_context() as session:
        result = await session.execute(select(User).where(User.email == email))
        existing = result.scalar_one_or_none()

        if existing:
            existing.password_hash = get_password_hash(password)
            existing.role = "admin"
            existing.is_active = True
            existing.full_name = full_name
            print(f"Updated existing admin user: {email}")
        else:
            session.add(
                User(
                    email=email,
                    password_hash=get_password_hash(password),
                    role="admin",
                    full_name=full_name,
                    is_active=True,
                )
            )
            print(f"Created admin user: {email}")

    print(f"Email: {email}")
    print("Role: admin")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create an admin user")
    parser.add_argument("--email", default="admin@washpoint.vn", help="Admin email")
    parser.add_argument("--password", default="Admin@123", help="Admin password")
    parser.add_argument("--full-name", default="Washpoint Admin", help="Display name")
    args = parser.parse_args()

    asyncio.run(create_admin(email=args.email, password=args.password, full_name=args.full_name))
