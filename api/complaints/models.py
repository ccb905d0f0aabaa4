# api/complaints/models.py
"""
Pydantic models for complaint endpoints.
"""
from datetime import datetime
from typing import Literal

from pydantic import Field

from core.schemas import ApiModel, Pagination, UserRef
from db_models.complaint import ComplaintStatus, Department


class Location(ApiModel):
    """GeoJSON point, coordinates are [longitude, latitude]."""
    type: Literal["Point"] = "Point"
    coordinates: list[float]
    address: str | None = None


class CommentResponse(ApiModel):
    id: int
    text: str
    created_by: UserRef
    created_at: datetime


class ResolutionDetails(ApiModel):
    text: str | None = None
    resolved_by: UserRef | None = None
    resolved_at: datetime | None = None


class ComplaintResponse(ApiModel):
    id: int
    complaint_id: str
    title: str
    description: str
    category: str
    status: str
    priority: str
    location: Location
    images: list[str] = []
    user: UserRef
    assigned_department: str | None = None
    assigned_to: UserRef | None = None
    comments: list[CommentResponse] = []
    resolution_details: ResolutionDetails | None = None
    created_at: datetime
    updated_at: datetime


class ComplaintData(ApiModel):
    complaint: ComplaintResponse


class ComplaintEnvelope(ApiModel):
    success: bool = True
    message: str | None = None
    data: ComplaintData


class ComplaintListData(ApiModel):
    complaints: list[ComplaintResponse]


class ComplaintListResponse(ApiModel):
    success: bool = True
    count: int
    pagination: Pagination
    data: ComplaintListData


class NearbyResponse(ApiModel):
    success: bool = True
    count: int
    data: ComplaintListData


class CommentCreate(ApiModel):
    comment: str = Field(..., min_length=1, max_length=1000)


class CommentData(ApiModel):
    comment: CommentResponse


class CommentEnvelope(ApiModel):
    success: bool = True
    message: str = "Comment added successfully"
    data: CommentData


class StatusUpdate(ApiModel):
    status: ComplaintStatus
    comment: str | None = Field(None, max_length=1000)


class AssignRequest(ApiModel):
    department: Department
    assigned_to: int | None = None
    note: str | None = Field(None, max_length=1000)
