# api/users/models.py
"""
Pydantic models for the self-service profile endpoints.
"""
from pydantic import Field

from core.schemas import ApiModel
from api.auth.models import Address, UserResponse


class ProfileUpdate(ApiModel):
    """Only provided fields change; email and role are not editable here."""
    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, min_length=1, max_length=100)
    phone: str | None = Field(None, max_length=30)
    address: Address | None = None


class ProfileData(ApiModel):
    user: UserResponse


class ProfileResponse(ApiModel):
    success: bool = True
    message: str | None = None
    data: ProfileData
