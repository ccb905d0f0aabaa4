# api/users/db_manager.py
"""
Business logic for a user editing their own profile.
"""
from sqlalchemy.ext.asyncio import AsyncSession

from db_models.user import User


async def update_profile(db: AsyncSession, user: User, changes: dict) -> User:
    """Apply a partial profile update. `address` is stored as a JSON object."""
    for field, value in changes.items():
        setattr(user, field, value)

    await db.commit()
    await db.refresh(user)
    return user
