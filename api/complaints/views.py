# api/complaints/views.py
"""
Complaint endpoints: submission, listing, geo search, comments and the
admin-only status/assignment transitions.
"""
from typing import Annotated, Literal

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from db import get_session
from db_models.complaint import ComplaintCategory, ComplaintPriority, ComplaintStatus
from core.deps import AdminUser, CurrentUser
from core.errors import AuthorizationError, NotFoundError, ValidationError
from core.notifications import (
    Notifier,
    assignment_email,
    complaint_submitted_email,
    get_notifier,
    new_comment_email,
    status_update_email,
)
from core.schemas import MAX_PAGE_SIZE, Pagination
from core.uploads import save_images
from .models import (
    AssignRequest,
    CommentCreate,
    CommentData,
    CommentEnvelope,
    CommentResponse,
    ComplaintData,
    ComplaintEnvelope,
    ComplaintListData,
    ComplaintListResponse,
    ComplaintResponse,
    NearbyResponse,
    StatusUpdate,
)
from . import db_manager


router = APIRouter(prefix="/complaints", tags=["complaints"])


def _envelope(complaint, message: str | None = None) -> ComplaintEnvelope:
    return ComplaintEnvelope(
        message=message,
        data=ComplaintData(complaint=ComplaintResponse.model_validate(complaint)),
    )


@router.post(
    "",
    response_model=ComplaintEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Submit a complaint",
)
async def create_complaint(
    current_user: CurrentUser,
    background_tasks: BackgroundTasks,
    title: Annotated[str, Form(min_length=1, max_length=100)],
    description: Annotated[str, Form(min_length=1, max_length=1000)],
    longitude: Annotated[float, Form(ge=-180, le=180)],
    latitude: Annotated[float, Form(ge=-90, le=90)],
    category: Annotated[ComplaintCategory, Form()] = ComplaintCategory.OTHER,
    priority: Annotated[ComplaintPriority, Form()] = ComplaintPriority.MEDIUM,
    address: Annotated[str | None, Form(max_length=255)] = None,
    images: Annotated[list[UploadFile] | None, File()] = None,
    db: AsyncSession = Depends(get_session),
    notifier: Notifier = Depends(get_notifier),
) -> ComplaintEnvelope:
    """
    Multipart form submission. Up to five `.jpg/.jpeg/.png/.gif` images,
    each at most 5MB. New complaints always start as `pending`.
    """
    files = [f for f in (images or []) if f.filename]
    paths = await save_images(files, current_user.id)

    complaint = await db_manager.create_complaint(
        db,
        user=current_user,
        title=title,
        description=description,
        category=category.value,
        priority=priority.value,
        longitude=longitude,
        latitude=latitude,
        address=address,
        images=paths,
    )

    notifier.dispatch(
        background_tasks,
        current_user.email,
        complaint_submitted_email(current_user.first_name, complaint),
    )
    return _envelope(complaint, "Complaint submitted successfully")


@router.get("", response_model=ComplaintListResponse, summary="List complaints")
async def list_complaints(
    current_user: CurrentUser,
    category: ComplaintCategory | None = None,
    status_filter: Annotated[ComplaintStatus | None, Query(alias="status")] = None,
    priority: ComplaintPriority | None = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1)] = 10,
    sort_by: Annotated[str, Query(alias="sortBy")] = "createdAt",
    sort_order: Annotated[Literal["asc", "desc"], Query(alias="sortOrder")] = "desc",
    db: AsyncSession = Depends(get_session),
) -> ComplaintListResponse:
    """
    Citizens get their own complaints; admins get everything. Filter by
    category/status/priority, sort by any complaint field (camelCase name).
    """
    limit = min(limit, MAX_PAGE_SIZE)
    try:
        complaints, total, pages = await db_manager.list_complaints(
            db,
            current_user,
            category=category.value if category else None,
            status=status_filter.value if status_filter else None,
            priority=priority.value if priority else None,
            page=page,
            limit=limit,
            sort_by=sort_by,
            sort_order=sort_order,
        )
    except db_manager.InvalidSortFieldError as exc:
        raise ValidationError(str(exc)) from exc

    return ComplaintListResponse(
        count=len(complaints),
        pagination=Pagination(total=total, page=page, pages=pages, limit=limit),
        data=ComplaintListData(
            complaints=[ComplaintResponse.model_validate(c) for c in complaints]
        ),
    )


# Declared before /{complaint_id} so "nearby" is not parsed as an id
@router.get("/nearby", response_model=NearbyResponse, summary="Complaints near a point")
async def nearby_complaints(
    current_user: CurrentUser,
    longitude: Annotated[float | None, Query(ge=-180, le=180)] = None,
    latitude: Annotated[float | None, Query(ge=-90, le=90)] = None,
    radius: Annotated[float, Query(gt=0, description="Kilometres")] = 5.0,
    db: AsyncSession = Depends(get_session),
) -> NearbyResponse:
    """Newest-first complaints within `radius` km, capped at 50."""
    if longitude is None or latitude is None:
        raise ValidationError("Longitude and latitude are required")

    complaints = await db_manager.nearby_complaints(db, longitude, latitude, radius)
    return NearbyResponse(
        count=len(complaints),
        data=ComplaintListData(
            complaints=[ComplaintResponse.model_validate(c) for c in complaints]
        ),
    )


@router.get("/{complaint_id}", response_model=ComplaintEnvelope, summary="Get complaint")
async def get_complaint(
    complaint_id: int,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_session),
) -> ComplaintEnvelope:
    try:
        complaint = await db_manager.get_visible_complaint(db, complaint_id, current_user)
    except db_manager.ComplaintNotFoundError as exc:
        raise NotFoundError("Complaint not found") from exc
    except db_manager.ComplaintAccessError as exc:
        raise AuthorizationError(str(exc)) from exc
    return _envelope(complaint)


@router.post(
    "/{complaint_id}/comments",
    response_model=CommentEnvelope,
    summary="Comment on a complaint",
)
async def add_comment(
    complaint_id: int,
    payload: CommentCreate,
    current_user: CurrentUser,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_session),
    notifier: Notifier = Depends(get_notifier),
) -> CommentEnvelope:
    """
    Owner or admin may comment. When an admin comments on someone else's
    complaint the owner gets an email.
    """
    text = payload.comment.strip()
    if not text:
        raise ValidationError("Comment text is required")

    try:
        complaint, comment = await db_manager.add_comment(db, complaint_id, current_user, text)
    except db_manager.ComplaintNotFoundError as exc:
        raise NotFoundError("Complaint not found") from exc
    except db_manager.ComplaintAccessError as exc:
        raise AuthorizationError(str(exc)) from exc

    if current_user.is_admin() and complaint.user_id != current_user.id:
        notifier.dispatch(
            background_tasks,
            complaint.user.email,
            new_comment_email(complaint.user.first_name, complaint, text),
        )

    return CommentEnvelope(data=CommentData(comment=CommentResponse.model_validate(comment)))


@router.patch(
    "/{complaint_id}/status",
    response_model=ComplaintEnvelope,
    summary="Change complaint status (admin)",
)
async def update_status(
    complaint_id: int,
    payload: StatusUpdate,
    admin: AdminUser,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_session),
    notifier: Notifier = Depends(get_notifier),
) -> ComplaintEnvelope:
    """
    Any status may be set. `resolved` records who resolved it and when, with
    the comment (or "Issue resolved") as the resolution text.
    """
    try:
        complaint = await db_manager.update_status(
            db,
            complaint_id,
            admin,
            payload.status.value,
            payload.comment,
        )
    except db_manager.ComplaintNotFoundError as exc:
        raise NotFoundError("Complaint not found") from exc

    notifier.dispatch(
        background_tasks,
        complaint.user.email,
        status_update_email(complaint.user.first_name, complaint, payload.comment),
    )
    return _envelope(complaint, "Complaint status updated successfully")


@router.patch(
    "/{complaint_id}/assign",
    response_model=ComplaintEnvelope,
    summary="Assign complaint to a department (admin)",
)
async def assign_complaint(
    complaint_id: int,
    payload: AssignRequest,
    admin: AdminUser,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_session),
    notifier: Notifier = Depends(get_notifier),
) -> ComplaintEnvelope:
    """Pending complaints move to in-progress; other statuses are left alone."""
    try:
        complaint = await db_manager.assign(
            db,
            complaint_id,
            admin,
            payload.department.value,
            payload.assigned_to,
            payload.note,
        )
    except db_manager.ComplaintNotFoundError as exc:
        raise NotFoundError("Complaint not found") from exc
    except db_manager.AssigneeNotFoundError as exc:
        raise NotFoundError(str(exc)) from exc

    notifier.dispatch(
        background_tasks,
        complaint.user.email,
        assignment_email(complaint.user.first_name, complaint, payload.note),
    )
    return _envelope(complaint, "Complaint assigned successfully")
