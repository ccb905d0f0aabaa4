# api/admin/models.py
"""
Pydantic models for the admin dashboard and user directory.
"""
from datetime import datetime

from pydantic import EmailStr, Field, field_validator

from core.schemas import ApiModel, Pagination
from db_models.user import UserRole
from api.auth.models import UserResponse, check_password_length


# ---------- Statistics ----------

class GroupCount(ApiModel):
    """One bucket of a group-by; `_id` is the grouped value."""
    id: str | None = Field(None, alias="_id")
    count: int


class ResolutionTimeStats(ApiModel):
    """Days between creation and resolution."""
    avg_resolution_time: float = 0
    min_resolution_time: float = 0
    max_resolution_time: float = 0


class ComplaintStats(ApiModel):
    status_stats: list[GroupCount]
    category_stats: list[GroupCount]
    priority_stats: list[GroupCount]
    department_stats: list[GroupCount]
    resolution_time_stats: ResolutionTimeStats


class ComplaintStatsResponse(ApiModel):
    success: bool = True
    data: ComplaintStats


# ---------- User directory ----------

class AdminUserResponse(UserResponse):
    """Directory view of a user, including account state."""
    active: bool
    suspended: bool
    suspension_reason: str | None = None
    created_at: datetime
    last_login_at: datetime | None = None


class AdminUserData(ApiModel):
    user: AdminUserResponse


class AdminUserEnvelope(ApiModel):
    success: bool = True
    message: str | None = None
    data: AdminUserData


class AdminUserListData(ApiModel):
    users: list[AdminUserResponse]


class AdminUserListResponse(ApiModel):
    success: bool = True
    count: int
    pagination: Pagination
    data: AdminUserListData


class AdminUserCreate(ApiModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=72)
    phone: str | None = Field(None, max_length=30)
    role: UserRole = UserRole.USER

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        return check_password_length(v)


class AdminUserUpdate(ApiModel):
    """Partial update; only provided fields change."""
    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, min_length=1, max_length=100)
    email: EmailStr | None = None
    phone: str | None = Field(None, max_length=30)
    role: UserRole | None = None


class SuspendRequest(ApiModel):
    reason: str | None = Field(None, max_length=500)
