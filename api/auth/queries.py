# api/auth/queries.py
"""
SQLAlchemy query builders for user/credential lookups.
"""
from sqlalchemy import select

from db_models.user import User


def select_user_by_id(user_id: int):
    """Select a user by primary key."""
    return select(User).where(User.id == user_id)


def select_user_by_email(email: str):
    """Select a user by (case-insensitive) email."""
    return select(User).where(User.email == email.lower())


def select_user_by_refresh_token(user_id: int, refresh_token: str):
    """A user whose stored refresh token is exactly the presented one."""
    return select(User).where(
        User.id == user_id,
        User.refresh_token == refresh_token,
    )
