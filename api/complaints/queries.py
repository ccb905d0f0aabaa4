# api/complaints/queries.py
"""
SQLAlchemy query builders for complaint operations.
"""
from sqlalchemy import select, func
from sqlalchemy.orm import selectinload

from db_models.complaint import Complaint, ComplaintComment

# Wire name -> column for ?sortBy=
SORTABLE_FIELDS = {
    "createdAt": Complaint.created_at,
    "updatedAt": Complaint.updated_at,
    "title": Complaint.title,
    "category": Complaint.category,
    "status": Complaint.status,
    "priority": Complaint.priority,
    "complaintId": Complaint.complaint_id,
    "assignedDepartment": Complaint.assigned_department,
    "id": Complaint.id,
}


def _with_relations(stmt):
    """Eager-load everything the response embeds (async sessions cannot lazy-load)."""
    return stmt.options(
        selectinload(Complaint.user),
        selectinload(Complaint.assigned_to),
        selectinload(Complaint.resolved_by),
        selectinload(Complaint.comments).selectinload(ComplaintComment.created_by),
    )


def select_complaint_by_id(complaint_id: int):
    """Select a complaint by primary key with all embedded references loaded fresh."""
    return (
        _with_relations(select(Complaint).where(Complaint.id == complaint_id))
        .execution_options(populate_existing=True)
    )


def _filtered(stmt, *, user_id=None, category=None, status=None, priority=None):
    if user_id is not None:
        stmt = stmt.where(Complaint.user_id == user_id)
    if category:
        stmt = stmt.where(Complaint.category == category)
    if status:
        stmt = stmt.where(Complaint.status == status)
    if priority:
        stmt = stmt.where(Complaint.priority == priority)
    return stmt


def select_complaints_page(
    *,
    user_id: int | None = None,
    category: str | None = None,
    status: str | None = None,
    priority: str | None = None,
    sort_by: str = "createdAt",
    descending: bool = True,
    offset: int = 0,
    limit: int = 10,
):
    """One page of complaints, optionally scoped to a submitter."""
    column = SORTABLE_FIELDS[sort_by]
    order = column.desc() if descending else column.asc()
    stmt = _filtered(
        select(Complaint),
        user_id=user_id,
        category=category,
        status=status,
        priority=priority,
    )
    # id as tiebreaker keeps pages stable when the sort key repeats
    tiebreak = Complaint.id.desc() if descending else Complaint.id.asc()
    return _with_relations(stmt.order_by(order, tiebreak).offset(offset).limit(limit))


def count_complaints(
    *,
    user_id: int | None = None,
    category: str | None = None,
    status: str | None = None,
    priority: str | None = None,
):
    """Count matching the same filters as select_complaints_page."""
    return _filtered(
        select(func.count(Complaint.id)),
        user_id=user_id,
        category=category,
        status=status,
        priority=priority,
    )


def select_points_in_box(
    min_lat: float,
    max_lat: float,
    min_lon: float | None,
    max_lon: float | None,
    *,
    offset: int = 0,
    limit: int = 200,
):
    """(id, longitude, latitude) of radius-search candidates, newest first."""
    stmt = select(Complaint.id, Complaint.longitude, Complaint.latitude).where(
        Complaint.latitude >= min_lat,
        Complaint.latitude <= max_lat,
    )
    if min_lon is not None and max_lon is not None:
        stmt = stmt.where(
            Complaint.longitude >= min_lon,
            Complaint.longitude <= max_lon,
        )
    return (
        stmt.order_by(Complaint.created_at.desc(), Complaint.id.desc())
        .offset(offset)
        .limit(limit)
    )


def select_complaints_by_ids(complaint_ids: list[int]):
    return (
        _with_relations(select(Complaint).where(Complaint.id.in_(complaint_ids)))
        .execution_options(populate_existing=True)
    )


def select_comment_by_id(comment_id: int):
    return (
        select(ComplaintComment)
        .where(ComplaintComment.id == comment_id)
        .options(selectinload(ComplaintComment.created_by))
    )
