# api/auth/views.py
"""
Authentication and MFA endpoints.
"""
from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Body, Cookie, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from db import get_session
from core.deps import CurrentUser, CurrentUserOptional
from core.errors import AuthenticationError, ConflictError, ValidationError
from core.notifications import Notifier, get_notifier, welcome_email
from core.schemas import MessageResponse
from .models import (
    AuthData,
    AuthResponse,
    CurrentUserData,
    CurrentUserResponse,
    LoginRequest,
    MfaChallengeData,
    MfaChallengeResponse,
    MfaDisableRequest,
    MfaSetupData,
    MfaSetupResponse,
    MfaTokenRequest,
    RefreshRequest,
    RegisterRequest,
    TokenData,
    TokenResponse,
    UserResponse,
)
from . import db_manager


router = APIRouter(prefix="/auth", tags=["authentication"])

ACCESS_COOKIE = "token"
REFRESH_COOKIE = "refreshToken"


def set_auth_cookies(response: Response, access_token: str, refresh_token: str) -> None:
    """HTTP-only session cookies; `secure` only in production."""
    common = {
        "httponly": True,
        "secure": settings.is_production,
        "samesite": "strict",
    }
    response.set_cookie(ACCESS_COOKIE, access_token, max_age=settings.ACCESS_COOKIE_MAX_AGE, **common)
    response.set_cookie(
        REFRESH_COOKIE,
        refresh_token,
        max_age=settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
        **common,
    )


def clear_auth_cookies(response: Response) -> None:
    response.delete_cookie(ACCESS_COOKIE)
    response.delete_cookie(REFRESH_COOKIE)


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an account and log in",
)
async def register(
    payload: RegisterRequest,
    response: Response,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_session),
    notifier: Notifier = Depends(get_notifier),
) -> AuthResponse:
    """
    Register a citizen account. The new user is logged in straight away and
    a welcome email is queued.
    """
    try:
        user, access_token, refresh_token = await db_manager.register(
            db,
            first_name=payload.first_name,
            last_name=payload.last_name,
            email=payload.email,
            password=payload.password,
            phone=payload.phone,
        )
    except db_manager.DuplicateEmailError as exc:
        raise ConflictError(str(exc)) from exc

    set_auth_cookies(response, access_token, refresh_token)
    notifier.dispatch(background_tasks, user.email, welcome_email(user.first_name))

    return AuthResponse(
        message="User registered successfully",
        data=AuthData(user=UserResponse.model_validate(user), token=access_token),
    )


@router.post(
    "/login",
    response_model=AuthResponse | MfaChallengeResponse,
    summary="Login, with TOTP when MFA is enabled",
)
async def login(
    credentials: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_session),
) -> AuthResponse | MfaChallengeResponse:
    """
    Check email/password. Accounts with MFA enabled get an `mfaRequired`
    answer (and no tokens) until the request includes `mfaToken`.
    """
    try:
        result = await db_manager.login(
            db,
            credentials.email,
            credentials.password,
            credentials.mfa_token,
        )
    except db_manager.InvalidCredentialsError as exc:
        raise AuthenticationError("Invalid credentials") from exc
    except db_manager.AccountDisabledError as exc:
        raise AuthenticationError(str(exc)) from exc
    except db_manager.InvalidMfaTokenError as exc:
        raise AuthenticationError("Invalid MFA token") from exc

    if result.mfa_required:
        return MfaChallengeResponse(data=MfaChallengeData(user_id=result.user.id))

    set_auth_cookies(response, result.access_token, result.refresh_token)
    return AuthResponse(
        message="Login successful",
        data=AuthData(user=UserResponse.model_validate(result.user), token=result.access_token),
    )


@router.post("/refresh-token", response_model=TokenResponse, summary="Rotate tokens")
async def refresh_token(
    response: Response,
    body: Annotated[RefreshRequest | None, Body()] = None,
    refresh_cookie: Annotated[str | None, Cookie(alias=REFRESH_COOKIE)] = None,
    db: AsyncSession = Depends(get_session),
) -> TokenResponse:
    """
    Exchange the refresh token (cookie first, then body) for a new access
    token. Both tokens are rotated; the presented one stops working.
    """
    presented = refresh_cookie or (body.refresh_token if body else None)
    try:
        user, access_token, new_refresh_token = await db_manager.refresh(db, presented)
    except db_manager.InvalidRefreshTokenError as exc:
        raise AuthenticationError(str(exc)) from exc

    set_auth_cookies(response, access_token, new_refresh_token)
    return TokenResponse(data=TokenData(token=access_token))


@router.get("/me", response_model=CurrentUserResponse, summary="Get current user")
async def get_me(current_user: CurrentUser) -> CurrentUserResponse:
    """Get the current authenticated user's profile."""
    return CurrentUserResponse(data=CurrentUserData(user=UserResponse.model_validate(current_user)))


@router.post("/logout", response_model=MessageResponse, summary="Logout")
async def logout(
    response: Response,
    current_user: CurrentUserOptional,
    db: AsyncSession = Depends(get_session),
) -> MessageResponse:
    """Clear the stored refresh token and the session cookies. Idempotent."""
    await db_manager.logout(db, current_user)
    clear_auth_cookies(response)
    return MessageResponse(message="Logout successful")


# --- MFA ---

@router.post("/mfa/setup", response_model=MfaSetupResponse, summary="Start MFA enrolment")
async def setup_mfa(
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_session),
) -> MfaSetupResponse:
    """Generate a TOTP secret and a QR code for authenticator apps."""
    secret, qr_code = await db_manager.setup_mfa(db, current_user)
    return MfaSetupResponse(data=MfaSetupData(secret=secret, qr_code=qr_code))


@router.post("/mfa/verify", response_model=MessageResponse, summary="Verify code and enable MFA")
async def verify_mfa(
    payload: MfaTokenRequest,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_session),
) -> MessageResponse:
    try:
        await db_manager.verify_and_enable_mfa(db, current_user, payload.token)
    except db_manager.MfaNotInitializedError as exc:
        raise ValidationError(str(exc)) from exc
    except db_manager.InvalidMfaTokenError as exc:
        raise AuthenticationError("Invalid MFA token") from exc

    return MessageResponse(message="MFA enabled successfully")


@router.post("/mfa/disable", response_model=MessageResponse, summary="Disable MFA")
async def disable_mfa(
    payload: MfaDisableRequest,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_session),
) -> MessageResponse:
    """Requires both the current password and a valid TOTP code."""
    try:
        await db_manager.disable_mfa(db, current_user, payload.token, payload.password)
    except db_manager.InvalidCredentialsError as exc:
        raise AuthenticationError("Invalid password") from exc
    except db_manager.InvalidMfaTokenError as exc:
        raise AuthenticationError("Invalid MFA token") from exc

    return MessageResponse(message="MFA disabled successfully")
