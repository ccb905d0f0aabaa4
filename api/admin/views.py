# api/admin/views.py
"""
Admin-only endpoints: complaint statistics and the user directory.
"""
from typing import Annotated, Literal

from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from db import get_session
from db_models.user import UserRole
from core.deps import AdminUser
from core.errors import ConflictError, NotFoundError, ValidationError
from core.schemas import MAX_PAGE_SIZE, Pagination
from api.auth import db_manager as auth_manager
from .models import (
    AdminUserCreate,
    AdminUserData,
    AdminUserEnvelope,
    AdminUserListData,
    AdminUserListResponse,
    AdminUserResponse,
    AdminUserUpdate,
    ComplaintStats,
    ComplaintStatsResponse,
    SuspendRequest,
)
from . import db_manager


router = APIRouter(prefix="/admin", tags=["admin"])


def _user_envelope(user, message: str | None = None) -> AdminUserEnvelope:
    return AdminUserEnvelope(
        message=message,
        data=AdminUserData(user=AdminUserResponse.model_validate(user)),
    )


@router.get(
    "/complaints/stats",
    response_model=ComplaintStatsResponse,
    summary="Complaint statistics",
)
async def complaint_stats(
    admin: AdminUser,
    db: AsyncSession = Depends(get_session),
) -> ComplaintStatsResponse:
    """
    Counts by status, category, priority and department, and resolution
    time in days (average/min/max) over resolved complaints.
    """
    stats = await db_manager.get_complaint_stats(db)
    return ComplaintStatsResponse(data=ComplaintStats.model_validate(stats))


# --- User directory ---

@router.get("/users", response_model=AdminUserListResponse, summary="List users")
async def list_users(
    admin: AdminUser,
    role: UserRole | None = None,
    status_filter: Annotated[Literal["active", "suspended"] | None, Query(alias="status")] = None,
    search: Annotated[str | None, Query(max_length=100)] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1)] = 10,
    db: AsyncSession = Depends(get_session),
) -> AdminUserListResponse:
    limit = min(limit, MAX_PAGE_SIZE)
    users, total, pages = await db_manager.list_users(
        db,
        role=role.value if role else None,
        status=status_filter,
        search=search,
        page=page,
        limit=limit,
    )
    return AdminUserListResponse(
        count=len(users),
        pagination=Pagination(total=total, page=page, pages=pages, limit=limit),
        data=AdminUserListData(users=[AdminUserResponse.model_validate(u) for u in users]),
    )


@router.post(
    "/users",
    response_model=AdminUserEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Create user",
)
async def create_user(
    payload: AdminUserCreate,
    admin: AdminUser,
    db: AsyncSession = Depends(get_session),
) -> AdminUserEnvelope:
    """Create an account directly; unlike self-registration the role can be chosen."""
    try:
        user = await auth_manager.create_user(
            db,
            first_name=payload.first_name,
            last_name=payload.last_name,
            email=payload.email,
            password=payload.password,
            phone=payload.phone,
            role=payload.role.value,
        )
    except auth_manager.DuplicateEmailError as exc:
        raise ConflictError(str(exc)) from exc
    return _user_envelope(user, "User created successfully")


@router.get("/users/{user_id}", response_model=AdminUserEnvelope, summary="Get user")
async def get_user(
    user_id: int,
    admin: AdminUser,
    db: AsyncSession = Depends(get_session),
) -> AdminUserEnvelope:
    try:
        user = await auth_manager.get_user_by_id(db, user_id)
    except auth_manager.UserNotFoundError as exc:
        raise NotFoundError("User not found") from exc
    return _user_envelope(user)


@router.put("/users/{user_id}", response_model=AdminUserEnvelope, summary="Update user")
async def update_user(
    user_id: int,
    payload: AdminUserUpdate,
    admin: AdminUser,
    db: AsyncSession = Depends(get_session),
) -> AdminUserEnvelope:
    """Partial update of names, email, phone and role."""
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("role") is not None:
        changes["role"] = changes["role"].value
    # NOT NULL columns cannot be cleared
    changes = {k: v for k, v in changes.items() if v is not None or k == "phone"}

    try:
        user = await db_manager.update_user(db, user_id, changes)
    except auth_manager.UserNotFoundError as exc:
        raise NotFoundError("User not found") from exc
    except auth_manager.DuplicateEmailError as exc:
        raise ConflictError(str(exc)) from exc
    return _user_envelope(user, "User updated successfully")


@router.post(
    "/users/{user_id}/suspend",
    response_model=AdminUserEnvelope,
    summary="Suspend user",
)
async def suspend_user(
    user_id: int,
    admin: AdminUser,
    payload: Annotated[SuspendRequest | None, Body()] = None,
    db: AsyncSession = Depends(get_session),
) -> AdminUserEnvelope:
    """The account is locked out from its next request and its refresh token is revoked."""
    try:
        user = await db_manager.suspend_user(
            db,
            user_id,
            admin,
            payload.reason if payload else None,
        )
    except db_manager.SelfSuspensionError as exc:
        raise ValidationError(str(exc)) from exc
    except auth_manager.UserNotFoundError as exc:
        raise NotFoundError("User not found") from exc
    return _user_envelope(user, "User suspended successfully")


@router.post(
    "/users/{user_id}/unsuspend",
    response_model=AdminUserEnvelope,
    summary="Reinstate user",
)
async def unsuspend_user(
    user_id: int,
    admin: AdminUser,
    db: AsyncSession = Depends(get_session),
) -> AdminUserEnvelope:
    try:
        user = await db_manager.unsuspend_user(db, user_id, admin)
    except auth_manager.UserNotFoundError as exc:
        raise NotFoundError("User not found") from exc
    return _user_envelope(user, "User unsuspended successfully")
