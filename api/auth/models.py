# api/auth/models.py
"""
Pydantic models for authentication endpoints.
"""
from pydantic import EmailStr, Field, field_validator

from core.schemas import ApiModel
from core.security import MAX_PASSWORD_BYTES, password_too_long


class Address(ApiModel):
    street: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    country: str | None = None


def check_password_length(value: str) -> str:
    """Field length counts characters; bcrypt's limit is in UTF-8 bytes."""
    if password_too_long(value):
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    return value


class RegisterRequest(ApiModel):
    """Self-service sign-up."""
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=72)
    phone: str | None = Field(None, max_length=30)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        return check_password_length(v)


class LoginRequest(ApiModel):
    """Login credentials, optionally with the current TOTP code."""
    email: EmailStr
    password: str = Field(..., min_length=1)
    mfa_token: str | None = None


class RefreshRequest(ApiModel):
    """Refresh token in the body, for clients that cannot use cookies."""
    refresh_token: str | None = None


class MfaTokenRequest(ApiModel):
    token: str = Field(..., min_length=1)


class MfaDisableRequest(ApiModel):
    token: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class UserResponse(ApiModel):
    """User data response. Never includes password, MFA secret or refresh token."""
    id: int
    first_name: str
    last_name: str
    email: str
    role: str
    phone: str | None = None
    address: Address | None = None
    profile_picture: str | None = None
    mfa_enabled: bool = False


class AuthData(ApiModel):
    user: UserResponse
    token: str


class AuthResponse(ApiModel):
    success: bool = True
    message: str
    data: AuthData


class MfaChallengeData(ApiModel):
    user_id: int


class MfaChallengeResponse(ApiModel):
    success: bool = True
    mfa_required: bool = True
    message: str = "MFA verification required"
    data: MfaChallengeData


class TokenData(ApiModel):
    token: str


class TokenResponse(ApiModel):
    success: bool = True
    message: str = "Token refreshed successfully"
    data: TokenData


class CurrentUserData(ApiModel):
    user: UserResponse


class CurrentUserResponse(ApiModel):
    success: bool = True
    data: CurrentUserData


class MfaSetupData(ApiModel):
    secret: str
    qr_code: str


class MfaSetupResponse(ApiModel):
    success: bool = True
    message: str = "MFA setup initialized"
    data: MfaSetupData
