# api/admin/queries.py
"""
SQLAlchemy query builders for admin statistics and the user directory.
"""
from sqlalchemy import select, func, or_

from db_models.complaint import Complaint, ComplaintStatus
from db_models.user import User


def count_complaints_by(column):
    """[(value, count)] for one complaint column, most frequent first."""
    return (
        select(column, func.count(Complaint.id).label("count"))
        .group_by(column)
        .order_by(func.count(Complaint.id).desc(), column)
    )


def select_resolution_times():
    """(created_at, resolved_at) for every resolved complaint that has a timestamp."""
    return select(Complaint.created_at, Complaint.resolved_at).where(
        Complaint.status == ComplaintStatus.RESOLVED.value,
        Complaint.resolved_at.is_not(None),
    )


def _user_filters(stmt, *, role=None, status=None, search=None):
    if role:
        stmt = stmt.where(User.role == role)
    if status == "active":
        stmt = stmt.where(User.suspended.is_(False))
    elif status == "suspended":
        stmt = stmt.where(User.suspended.is_(True))
    if search:
        pattern = f"%{search}%"
        stmt = stmt.where(
            or_(
                User.first_name.ilike(pattern),
                User.last_name.ilike(pattern),
                User.email.ilike(pattern),
            )
        )
    return stmt


def select_users_page(
    *,
    role: str | None = None,
    status: str | None = None,
    search: str | None = None,
    offset: int = 0,
    limit: int = 10,
):
    """Newest accounts first."""
    stmt = _user_filters(select(User), role=role, status=status, search=search)
    return stmt.order_by(User.created_at.desc(), User.id.desc()).offset(offset).limit(limit)


def count_users(*, role: str | None = None, status: str | None = None, search: str | None = None):
    return _user_filters(select(func.count(User.id)), role=role, status=status, search=search)
