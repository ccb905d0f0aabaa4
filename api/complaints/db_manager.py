# api/complaints/db_manager.py
"""
Business logic for the complaint lifecycle.

Status is a small state machine: creation always lands in `pending`,
assignment advances `pending` to `in-progress`, and admins may set any
status directly. Moving to `resolved` stamps resolution metadata, which is
left in place if the complaint is later reopened.
"""
import math
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from db_models.complaint import (
    Complaint,
    ComplaintComment,
    ComplaintStatus,
    ComplaintCategory,
    ComplaintPriority,
)
from db_models.user import User
from core.geo import bounding_box, haversine_km
from core.logger import logger
from api.auth import queries as user_queries
from . import queries

DEFAULT_RESOLUTION_TEXT = "Issue resolved"
NEARBY_LIMIT = 50
NEARBY_SCAN_BATCH = 200


class ComplaintNotFoundError(Exception):
    """Raised when complaint is not found."""
    pass


class ComplaintAccessError(Exception):
    """Raised when the caller may not see or touch the complaint."""
    pass


class AssigneeNotFoundError(Exception):
    pass


class InvalidSortFieldError(Exception):
    pass


async def get_complaint(db: AsyncSession, complaint_id: int) -> Complaint:
    """
    Load a complaint with its embedded references.

    Raises:
        ComplaintNotFoundError: If complaint doesn't exist
    """
    result = await db.execute(queries.select_complaint_by_id(complaint_id))
    complaint = result.scalar_one_or_none()
    if complaint is None:
        raise ComplaintNotFoundError(f"Complaint {complaint_id} not found")
    return complaint


async def get_visible_complaint(
    db: AsyncSession,
    complaint_id: int,
    user: User,
    action: str = "view",
) -> Complaint:
    """
    Load a complaint the caller is allowed to see (owner or admin).

    Raises:
        ComplaintNotFoundError
        ComplaintAccessError
    """
    complaint = await get_complaint(db, complaint_id)
    if not user.can_view_complaint(complaint):
        raise ComplaintAccessError(f"Not authorized to {action} this complaint")
    return complaint


async def create_complaint(
    db: AsyncSession,
    *,
    user: User,
    title: str,
    description: str,
    longitude: float,
    latitude: float,
    category: str = ComplaintCategory.OTHER.value,
    priority: str = ComplaintPriority.MEDIUM.value,
    address: str | None = None,
    images: list[str] | None = None,
) -> Complaint:
    """Create a complaint; status is always `pending`."""
    complaint = Complaint(
        title=title,
        description=description,
        category=category,
        priority=priority,
        status=ComplaintStatus.PENDING.value,
        longitude=longitude,
        latitude=latitude,
        address=address,
        images=images or [],
        user_id=user.id,
    )
    db.add(complaint)
    await db.commit()

    logger.info(f"Complaint {complaint.complaint_id} created by user {user.id}")
    return await get_complaint(db, complaint.id)


async def list_complaints(
    db: AsyncSession,
    user: User,
    *,
    category: str | None = None,
    status: str | None = None,
    priority: str | None = None,
    page: int = 1,
    limit: int = 10,
    sort_by: str = "createdAt",
    sort_order: str = "desc",
) -> tuple[list[Complaint], int, int]:
    """
    One page of complaints. Non-admins only ever see their own.

    Returns (complaints, total, pages) with pages = ceil(total / limit).

    Raises:
        InvalidSortFieldError: sort_by is not a known complaint field
    """
    if sort_by not in queries.SORTABLE_FIELDS:
        raise InvalidSortFieldError(f"Cannot sort by '{sort_by}'")

    filters = {
        "user_id": None if user.is_admin() else user.id,
        "category": category,
        "status": status,
        "priority": priority,
    }

    total = (await db.execute(queries.count_complaints(**filters))).scalar_one()
    result = await db.execute(
        queries.select_complaints_page(
            **filters,
            sort_by=sort_by,
            descending=sort_order != "asc",
            offset=(page - 1) * limit,
            limit=limit,
        )
    )
    complaints = list(result.scalars().all())
    return complaints, total, math.ceil(total / limit)


async def nearby_complaints(
    db: AsyncSession,
    longitude: float,
    latitude: float,
    radius_km: float = 5.0,
) -> list[Complaint]:
    """
    Complaints within `radius_km` great-circle kilometres of the point,
    newest first, at most NEARBY_LIMIT.
    """
    min_lat, max_lat, min_lon, max_lon = bounding_box(longitude, latitude, radius_km)

    # Scan coordinates only, a batch at a time, until enough points fall inside the circle
    matched_ids: list[int] = []
    offset = 0
    while len(matched_ids) < NEARBY_LIMIT:
        result = await db.execute(
            queries.select_points_in_box(
                min_lat, max_lat, min_lon, max_lon,
                offset=offset, limit=NEARBY_SCAN_BATCH,
            )
        )
        rows = result.all()
        for complaint_id, lon, lat in rows:
            if haversine_km(longitude, latitude, lon, lat) <= radius_km:
                matched_ids.append(complaint_id)
                if len(matched_ids) == NEARBY_LIMIT:
                    break
        if len(rows) < NEARBY_SCAN_BATCH:
            break
        offset += NEARBY_SCAN_BATCH

    if not matched_ids:
        return []

    result = await db.execute(queries.select_complaints_by_ids(matched_ids))
    by_id = {complaint.id: complaint for complaint in result.scalars()}
    return [by_id[complaint_id] for complaint_id in matched_ids if complaint_id in by_id]


async def add_comment(
    db: AsyncSession,
    complaint_id: int,
    user: User,
    text: str,
) -> tuple[Complaint, ComplaintComment]:
    """
    Append a comment as `user`. Returns the complaint and the new comment
    with its author loaded.

    Raises:
        ComplaintNotFoundError
        ComplaintAccessError
    """
    complaint = await get_visible_complaint(db, complaint_id, user, action="comment on")

    comment = ComplaintComment(complaint_id=complaint.id, text=text, created_by_id=user.id)
    db.add(comment)
    await db.commit()

    result = await db.execute(queries.select_comment_by_id(comment.id))
    return complaint, result.scalar_one()


async def update_status(
    db: AsyncSession,
    complaint_id: int,
    admin: User,
    status: str,
    comment: str | None = None,
) -> Complaint:
    """
    Set the status to any value. `resolved` stamps resolution metadata.

    Raises:
        ComplaintNotFoundError
    """
    complaint = await get_complaint(db, complaint_id)
    previous = complaint.status
    complaint.status = status

    if status == ComplaintStatus.RESOLVED.value:
        complaint.resolution_text = comment or DEFAULT_RESOLUTION_TEXT
        complaint.resolved_by_id = admin.id
        complaint.resolved_at = datetime.now(timezone.utc)

    if comment:
        db.add(ComplaintComment(complaint_id=complaint.id, text=comment, created_by_id=admin.id))

    await db.commit()
    logger.info(
        f"Complaint {complaint.complaint_id} status {previous} -> {status} by admin {admin.id}"
    )
    return await get_complaint(db, complaint.id)


async def assign(
    db: AsyncSession,
    complaint_id: int,
    admin: User,
    department: str,
    assigned_to: int | None = None,
    note: str | None = None,
) -> Complaint:
    """
    Route a complaint to a department (and optionally a staff member).

    Raises:
        ComplaintNotFoundError
        AssigneeNotFoundError
    """
    complaint = await get_complaint(db, complaint_id)

    if assigned_to is not None:
        result = await db.execute(user_queries.select_user_by_id(assigned_to))
        if result.scalar_one_or_none() is None:
            raise AssigneeNotFoundError("Assigned user not found")

    complaint.assigned_department = department
    complaint.assigned_to_id = assigned_to

    if complaint.status == ComplaintStatus.PENDING.value:
        complaint.status = ComplaintStatus.IN_PROGRESS.value

    if note:
        db.add(
            ComplaintComment(
                complaint_id=complaint.id,
                text=f"Assigned to {department} department. {note}",
                created_by_id=admin.id,
            )
        )

    await db.commit()
    logger.info(f"Complaint {complaint.complaint_id} assigned to {department} by admin {admin.id}")
    return await get_complaint(db, complaint.id)
