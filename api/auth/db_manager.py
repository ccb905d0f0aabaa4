# api/auth/db_manager.py
"""
Business logic for registration, login, token rotation and MFA.
"""
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from db_models.user import User, UserRole
from core import mfa
from core.logger import logger
from core.security import (
    TokenError,
    create_token_pair,
    decode_token,
    get_password_hash,
    subject_id,
    verify_password,
)
from . import queries


class DuplicateEmailError(Exception):
    """Raised when the email is already registered."""
    pass


class InvalidCredentialsError(Exception):
    """Unknown email or wrong password; deliberately indistinguishable."""
    pass


class AccountDisabledError(Exception):
    """Credentials are right but the account is inactive or suspended."""
    pass


class InvalidMfaTokenError(Exception):
    pass


class MfaNotInitializedError(Exception):
    """MFA verify was called before setup."""
    pass


class InvalidRefreshTokenError(Exception):
    pass


class UserNotFoundError(Exception):
    pass


@dataclass
class LoginResult:
    """Either tokens were issued, or a second factor is still needed."""
    user: User
    access_token: str | None = None
    refresh_token: str | None = None

    @property
    def mfa_required(self) -> bool:
        return self.access_token is None


async def get_user_by_id(db: AsyncSession, user_id: int) -> User:
    result = await db.execute(queries.select_user_by_id(user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise UserNotFoundError(f"User {user_id} not found")
    return user


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(queries.select_user_by_email(email))
    return result.scalar_one_or_none()


async def create_user(
    db: AsyncSession,
    *,
    first_name: str,
    last_name: str,
    email: str,
    password: str,
    phone: str | None = None,
    role: str = UserRole.USER.value,
) -> User:
    """
    Persist a new user with a hashed password.

    Raises:
        DuplicateEmailError: If the email is already registered
    """
    if await get_user_by_email(db, email) is not None:
        raise DuplicateEmailError("User already exists with this email")

    user = User(
        first_name=first_name,
        last_name=last_name,
        email=email.lower(),
        hashed_password=get_password_hash(password),
        phone=phone,
        role=role,
        active=True,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def issue_tokens(db: AsyncSession, user: User) -> tuple[str, str]:
    """Mint a new access/refresh pair and make the refresh token the only valid one."""
    access_token, refresh_token = create_token_pair(user.id)
    user.refresh_token = refresh_token
    await db.commit()
    return access_token, refresh_token


async def register(
    db: AsyncSession,
    *,
    first_name: str,
    last_name: str,
    email: str,
    password: str,
    phone: str | None = None,
) -> tuple[User, str, str]:
    """Create an account and log it in. Returns (user, access, refresh)."""
    user = await create_user(
        db,
        first_name=first_name,
        last_name=last_name,
        email=email,
        password=password,
        phone=phone,
    )
    access_token, refresh_token = await issue_tokens(db, user)
    logger.info(f"Registered user {user.id} ({user.email})")
    return user, access_token, refresh_token


async def login(
    db: AsyncSession,
    email: str,
    password: str,
    mfa_token: str | None = None,
) -> LoginResult:
    """
    Check credentials and, when enabled, the TOTP code.

    Raises:
        InvalidCredentialsError: unknown email or wrong password
        AccountDisabledError: account inactive/suspended
        InvalidMfaTokenError: MFA enabled and the supplied code is wrong
    """
    user = await get_user_by_email(db, email)
    if user is None or not verify_password(password, user.hashed_password):
        raise InvalidCredentialsError("Invalid credentials")

    if not user.active:
        raise AccountDisabledError("User account is disabled")

    if user.mfa_enabled:
        if not mfa_token:
            return LoginResult(user=user)
        if not mfa.verify_totp(user.mfa_secret, mfa_token):
            logger.warning(f"Invalid MFA token on login for user {user.id}")
            raise InvalidMfaTokenError("Invalid MFA token")

    user.last_login_at = datetime.now(timezone.utc)
    access_token, refresh_token = await issue_tokens(db, user)
    return LoginResult(user=user, access_token=access_token, refresh_token=refresh_token)


async def refresh(db: AsyncSession, refresh_token: str | None) -> tuple[User, str, str]:
    """
    Exchange a refresh token for a new pair.

    The token must verify AND be the exact value stored for its subject;
    a value that has already been rotated out is rejected.

    Raises:
        InvalidRefreshTokenError
    """
    if not refresh_token:
        raise InvalidRefreshTokenError("Refresh token not found.")

    try:
        user_id = subject_id(decode_token(refresh_token, "refresh"))
    except TokenError as exc:
        raise InvalidRefreshTokenError("Invalid or expired refresh token.") from exc

    result = await db.execute(queries.select_user_by_refresh_token(user_id, refresh_token))
    user = result.scalar_one_or_none()
    if user is None:
        logger.warning(f"Stale or unknown refresh token presented for user {user_id}")
        raise InvalidRefreshTokenError("Invalid refresh token.")

    if not user.active:
        raise InvalidRefreshTokenError("User account is inactive.")

    access_token, new_refresh_token = await issue_tokens(db, user)
    return user, access_token, new_refresh_token


async def logout(db: AsyncSession, user: User | None) -> None:
    """Forget the stored refresh token. Safe to call repeatedly."""
    if user is None or user.refresh_token is None:
        return
    user.refresh_token = None
    await db.commit()


async def setup_mfa(db: AsyncSession, user: User) -> tuple[str, str]:
    """
    Start MFA enrolment: store a fresh secret (MFA stays disabled until
    verified) and return (secret, QR code data URL).
    """
    secret = mfa.generate_mfa_secret()
    user.mfa_secret = secret
    await db.commit()

    qr_code = mfa.qr_code_data_url(mfa.provisioning_uri(secret, user.email))
    return secret, qr_code


async def verify_and_enable_mfa(db: AsyncSession, user: User, token: str) -> User:
    if not user.mfa_secret:
        raise MfaNotInitializedError("MFA setup has not been started")
    if not mfa.verify_totp(user.mfa_secret, token):
        raise InvalidMfaTokenError("Invalid MFA token")

    user.mfa_enabled = True
    await db.commit()
    logger.info(f"MFA enabled for user {user.id}")
    return user


async def disable_mfa(db: AsyncSession, user: User, token: str, password: str) -> User:
    """
    Turn MFA off. Needs both the password and a valid code.

    Raises:
        InvalidCredentialsError: wrong password
        InvalidMfaTokenError: wrong code
    """
    if not verify_password(password, user.hashed_password):
        raise InvalidCredentialsError("Invalid password")
    if not mfa.verify_totp(user.mfa_secret, token):
        raise InvalidMfaTokenError("Invalid MFA token")

    user.mfa_enabled = False
    user.mfa_secret = None
    await db.commit()
    logger.info(f"MFA disabled for user {user.id}")
    return user
