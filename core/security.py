# core/security.py
"""
Security utilities for password hashing and JWT token management.
"""
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt

from config import settings

# JWT configuration
ALGORITHM = "HS256"

# bcrypt only reads 72 bytes and rejects anything longer
MAX_PASSWORD_BYTES = 72


class TokenError(Exception):
    """Base class for token decoding failures."""


class TokenExpiredError(TokenError):
    """Signature is fine but `exp` has passed."""


class TokenInvalidError(TokenError):
    """Malformed, badly signed, or of the wrong type."""


def get_secret_key() -> str:
    """Get access-token secret key from settings or use one for development."""
    secret = getattr(settings, 'SECRET_KEY', None)
    if secret:
        return secret
    # Development fallback - NOT for production!
    return "dev-secret-key-change-in-production-abc123xyz"


def get_refresh_secret_key() -> str:
    """Get refresh-token secret key; separate from the access-token key."""
    secret = getattr(settings, 'REFRESH_SECRET_KEY', None)
    if secret:
        return secret
    return "dev-refresh-secret-change-in-production-789xyz"


def _key_for(token_type: str) -> str:
    return get_refresh_secret_key() if token_type == "refresh" else get_secret_key()


def password_too_long(password: str) -> bool:
    return len(password.encode('utf-8')) > MAX_PASSWORD_BYTES


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash. Over-long input never matches."""
    if password_too_long(plain_password):
        return False
    return bcrypt.checkpw(
        plain_password.encode('utf-8'),
        hashed_password.encode('utf-8')
    )


def get_password_hash(password: str) -> str:
    """
    Hash a password for storage.

    Raises:
        ValueError: password is longer than MAX_PASSWORD_BYTES once encoded
    """
    if password_too_long(password):
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    salt = bcrypt.gensalt()
    return bcrypt.hashpw(password.encode('utf-8'), salt).decode('utf-8')


def _encode(data: dict[str, Any], token_type: str, expires_delta: timedelta) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + expires_delta
    # jti keeps two tokens minted in the same second distinct
    to_encode.update({"exp": expire, "type": token_type, "jti": secrets.token_hex(8)})
    return jwt.encode(to_encode, _key_for(token_type), algorithm=ALGORITHM)


def create_access_token(
    data: dict[str, Any],
    expires_delta: timedelta | None = None
) -> str:
    """
    Create a JWT access token.

    Args:
        data: Payload data to encode in the token (only ``sub`` is expected)
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    return _encode(data, "access", expires_delta)


def create_refresh_token(
    data: dict[str, Any],
    expires_delta: timedelta | None = None
) -> str:
    """
    Create a JWT refresh token with longer expiration.

    Args:
        data: Payload data to encode in the token

    Returns:
        Encoded JWT refresh token string
    """
    if expires_delta is None:
        expires_delta = timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    return _encode(data, "refresh", expires_delta)


def create_token_pair(user_id: int) -> tuple[str, str]:
    """Access and refresh token for a user; both carry only the user id."""
    data = {"sub": str(user_id)}
    return create_access_token(data), create_refresh_token(data)


def decode_token(token: str, expected_type: str = "access") -> dict[str, Any]:
    """
    Decode and validate a JWT token.

    Args:
        token: The JWT token string
        expected_type: 'access' or 'refresh'; selects the key and is checked
            against the ``type`` claim

    Returns:
        Decoded payload dict

    Raises:
        TokenExpiredError: signature valid but token expired
        TokenInvalidError: anything else wrong with the token
    """
    try:
        payload = jwt.decode(token, _key_for(expected_type), algorithms=[ALGORITHM])
    except ExpiredSignatureError as exc:
        raise TokenExpiredError("Token expired") from exc
    except JWTError as exc:
        raise TokenInvalidError("Invalid token") from exc

    if payload.get("type") != expected_type:
        raise TokenInvalidError("Invalid token type")
    if payload.get("sub") is None:
        raise TokenInvalidError("Invalid token payload")
    return payload


def subject_id(payload: dict[str, Any]) -> int:
    """User id from the ``sub`` claim."""
    try:
        return int(payload["sub"])
    except (KeyError, ValueError, TypeError) as exc:
        raise TokenInvalidError("Invalid user ID in token") from exc
