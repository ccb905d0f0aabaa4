# core/deps.py
"""
FastAPI dependencies for authentication and authorization.
"""
from typing import Annotated

from fastapi import Cookie, Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from db import get_session
from db_models.user import User
from core.errors import AuthenticationError, AuthorizationError
from core.security import (
    TokenExpiredError,
    TokenInvalidError,
    decode_token,
    subject_id,
)

# OAuth2 scheme for token extraction from Authorization header
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def resolve_access_token(
    cookie_token: str | None,
    header_token: str | None,
) -> str | None:
    """The HTTP-only cookie wins over the Authorization header."""
    return cookie_token or header_token


async def get_current_user(
    header_token: Annotated[str | None, Depends(oauth2_scheme)],
    token: Annotated[str | None, Cookie()] = None,
    db: AsyncSession = Depends(get_session),
) -> User:
    """
    Dependency to get the current authenticated user from a JWT.

    The user is re-read on every request so that role changes and
    suspensions take effect immediately.

    Raises:
        AuthenticationError: If token is missing, invalid, expired, or the
            user no longer exists / is inactive
    """
    raw = resolve_access_token(token, header_token)
    if raw is None:
        raise AuthenticationError("Access denied. No token provided.")

    try:
        payload = decode_token(raw, "access")
        user_id = subject_id(payload)
    except TokenExpiredError:
        raise AuthenticationError("Token expired.")
    except TokenInvalidError:
        raise AuthenticationError("Invalid token.")

    stmt = select(User).where(User.id == user_id)
    result = await db.execute(stmt)
    user = result.scalar_one_or_none()

    if user is None:
        raise AuthenticationError("Invalid token. User not found.")

    if not user.active:
        raise AuthenticationError("User account is inactive.")

    return user


async def get_current_user_optional(
    header_token: Annotated[str | None, Depends(oauth2_scheme)],
    token: Annotated[str | None, Cookie()] = None,
    db: AsyncSession = Depends(get_session),
) -> User | None:
    """
    Like get_current_user but returns None instead of failing.
    Used by logout, which must succeed even with a stale session.
    """
    raw = resolve_access_token(token, header_token)
    if raw is None:
        return None

    try:
        user_id = subject_id(decode_token(raw, "access"))
    except (TokenExpiredError, TokenInvalidError):
        return None

    stmt = select(User).where(User.id == user_id, User.active == True)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


# Role-based access dependencies

async def require_admin(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    """Dependency that requires ADMIN role."""
    if not current_user.is_admin():
        raise AuthorizationError("Access denied. Admin role required.")
    return current_user


# Type aliases for cleaner endpoint signatures
CurrentUser = Annotated[User, Depends(get_current_user)]
CurrentUserOptional = Annotated[User | None, Depends(get_current_user_optional)]
AdminUser = Annotated[User, Depends(require_admin)]
