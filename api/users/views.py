# api/users/views.py
"""
Profile endpoints for the signed-in user.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from db import get_session
from core.deps import CurrentUser
from api.auth.models import UserResponse
from .models import ProfileData, ProfileResponse, ProfileUpdate
from . import db_manager


router = APIRouter(prefix="/users", tags=["users"])


@router.get("/profile", response_model=ProfileResponse, summary="Get own profile")
async def get_profile(current_user: CurrentUser) -> ProfileResponse:
    return ProfileResponse(data=ProfileData(user=UserResponse.model_validate(current_user)))


@router.patch("/profile", response_model=ProfileResponse, summary="Update own profile")
async def update_profile(
    payload: ProfileUpdate,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_session),
) -> ProfileResponse:
    """Names, phone and postal address."""
    changes = {}
    for field in ("first_name", "last_name"):
        value = getattr(payload, field)
        if value is not None:
            changes[field] = value
    if "phone" in payload.model_fields_set:
        changes["phone"] = payload.phone
    if "address" in payload.model_fields_set:
        changes["address"] = (
            payload.address.model_dump(by_alias=True, exclude_none=True)
            if payload.address
            else None
        )

    user = await db_manager.update_profile(db, current_user, changes)
    return ProfileResponse(
        message="Profile updated successfully",
        data=ProfileData(user=UserResponse.model_validate(user)),
    )
