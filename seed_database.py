"""Script to create the tables and the first administrator account"""
import asyncio
import os
import sys

from db import AsyncSessionLocal, init_db, dispose_db
from db_models.user import UserRole
from api.auth import db_manager

ADMIN_EMAIL = os.environ.get("ADMIN_EMAIL", "admin@example.com")
ADMIN_PASSWORD = os.environ.get("ADMIN_PASSWORD")
ADMIN_FIRST_NAME = os.environ.get("ADMIN_FIRST_NAME", "System")
ADMIN_LAST_NAME = os.environ.get("ADMIN_LAST_NAME", "Admin")


async def seed_admin() -> None:
    """Create the admin user unless an account with that email exists"""
    print("Creating database tables...")
    await init_db()
    print("[OK] Tables created successfully")

    async with AsyncSessionLocal() as session:
        existing = await db_manager.get_user_by_email(session, ADMIN_EMAIL)
        if existing is not None:
            print(f"User {ADMIN_EMAIL} already exists (role: {existing.role}), skipping")
            return

        admin = await db_manager.create_user(
            session,
            first_name=ADMIN_FIRST_NAME,
            last_name=ADMIN_LAST_NAME,
            email=ADMIN_EMAIL,
            password=ADMIN_PASSWORD,
            role=UserRole.ADMIN.value,
        )
        print(f"[OK] Created admin {admin.email} (id {admin.id})")


async def main() -> None:
    try:
        await seed_admin()
    finally:
        await dispose_db()


if __name__ == "__main__":
    print("=" * 60)
    print("DATABASE SEEDING SCRIPT")
    print("=" * 60)

    if not ADMIN_PASSWORD:
        print("[ERROR] Set ADMIN_PASSWORD (and optionally ADMIN_EMAIL) first")
        sys.exit(1)

    asyncio.run(main())
    print("\n" + "=" * 60)
    print("[OK] Database setup complete!")
    print("=" * 60)
