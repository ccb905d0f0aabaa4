# api/admin/db_manager.py
"""
Business logic for admin statistics and user management.
"""
import math

from sqlalchemy.ext.asyncio import AsyncSession

from db_models.complaint import Complaint
from db_models.user import User
from core.logger import logger
from api.auth import db_manager as auth_manager
from . import queries

SECONDS_PER_DAY = 24 * 60 * 60


class SelfSuspensionError(Exception):
    """Raised when an admin tries to suspend their own account."""
    pass


async def _group_counts(db: AsyncSession, column) -> list[dict]:
    result = await db.execute(queries.count_complaints_by(column))
    return [{"_id": value, "count": count} for value, count in result.all()]


async def get_complaint_stats(db: AsyncSession) -> dict:
    """
    Counts grouped by status, category, priority and department, plus
    resolution time (days) over resolved complaints.
    """
    result = await db.execute(queries.select_resolution_times())
    durations = [
        (resolved_at - created_at).total_seconds() / SECONDS_PER_DAY
        for created_at, resolved_at in result.all()
    ]

    if durations:
        resolution = {
            "avg_resolution_time": sum(durations) / len(durations),
            "min_resolution_time": min(durations),
            "max_resolution_time": max(durations),
        }
    else:
        resolution = {
            "avg_resolution_time": 0,
            "min_resolution_time": 0,
            "max_resolution_time": 0,
        }

    return {
        "status_stats": await _group_counts(db, Complaint.status),
        "category_stats": await _group_counts(db, Complaint.category),
        "priority_stats": await _group_counts(db, Complaint.priority),
        "department_stats": await _group_counts(db, Complaint.assigned_department),
        "resolution_time_stats": resolution,
    }


async def list_users(
    db: AsyncSession,
    *,
    role: str | None = None,
    status: str | None = None,
    search: str | None = None,
    page: int = 1,
    limit: int = 10,
) -> tuple[list[User], int, int]:
    """Returns (users, total, pages)."""
    filters = {"role": role, "status": status, "search": search}
    total = (await db.execute(queries.count_users(**filters))).scalar_one()
    result = await db.execute(
        queries.select_users_page(**filters, offset=(page - 1) * limit, limit=limit)
    )
    return list(result.scalars().all()), total, math.ceil(total / limit)


async def update_user(db: AsyncSession, user_id: int, changes: dict) -> User:
    """
    Apply a partial update.

    Raises:
        UserNotFoundError
        DuplicateEmailError: new email belongs to another account
    """
    user = await auth_manager.get_user_by_id(db, user_id)

    email = changes.pop("email", None)
    if email is not None and email.lower() != user.email:
        if await auth_manager.get_user_by_email(db, email) is not None:
            raise auth_manager.DuplicateEmailError("Email is already in use")
        user.email = email.lower()

    for field, value in changes.items():
        setattr(user, field, value)

    await db.commit()
    await db.refresh(user)
    return user


async def suspend_user(
    db: AsyncSession,
    user_id: int,
    admin: User,
    reason: str | None = None,
) -> User:
    """
    Deactivate an account and revoke its refresh token. Takes effect on the
    user's next request.

    Raises:
        UserNotFoundError
        SelfSuspensionError
    """
    if user_id == admin.id:
        raise SelfSuspensionError("You cannot suspend your own account")

    user = await auth_manager.get_user_by_id(db, user_id)
    user.active = False
    user.suspended = True
    user.suspension_reason = reason
    user.refresh_token = None

    await db.commit()
    await db.refresh(user)
    logger.info(f"User {user.id} suspended by admin {admin.id}")
    return user


async def unsuspend_user(db: AsyncSession, user_id: int, admin: User) -> User:
    user = await auth_manager.get_user_by_id(db, user_id)
    user.active = True
    user.suspended = False
    user.suspension_reason = None

    await db.commit()
    await db.refresh(user)
    logger.info(f"User {user.id} reinstated by admin {admin.id}")
    return user
