import secrets
import string
from datetime import datetime
from enum import Enum

from sqlalchemy import (
    String,
    Float,
    Text,
    JSON,
    ForeignKey,
    Index,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db_base import Base, UTCDateTime, utcnow
from db_models.user import User


class ComplaintCategory(str, Enum):
    ROAD = "road"
    WATER = "water"
    ELECTRICITY = "electricity"
    GARBAGE = "garbage"
    STREETLIGHT = "streetlight"
    SEWAGE = "sewage"
    OTHER = "other"


class ComplaintStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    RESOLVED = "resolved"
    REJECTED = "rejected"


class ComplaintPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class Department(str, Enum):
    ROADS = "roads"
    WATER = "water"
    ELECTRICITY = "electricity"
    SANITATION = "sanitation"
    PUBLIC_WORKS = "public works"
    OTHER = "other"


STATUS_TEXT = {
    ComplaintStatus.PENDING.value: "Pending Review",
    ComplaintStatus.IN_PROGRESS.value: "In Progress",
    ComplaintStatus.RESOLVED.value: "Resolved",
    ComplaintStatus.REJECTED.value: "Rejected",
}

_CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_complaint_code(length: int = 10) -> str:
    """Short public reference shown to citizens, e.g. 'K3ZP0QW8MA'."""
    return "".join(secrets.choice(_CODE_ALPHABET) for _ in range(length))


class Complaint(Base):
    __tablename__ = "complaints"
    __table_args__ = (
        Index("ix_complaints_lat_lng", "latitude", "longitude"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    complaint_id: Mapped[str] = mapped_column(
        String(10),
        unique=True,
        index=True,
        nullable=False,
        default=generate_complaint_code,
    )

    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(String(1000), nullable=False)

    category: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ComplaintCategory.OTHER.value,
    )
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        index=True,
        default=ComplaintStatus.PENDING.value,
    )
    priority: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ComplaintPriority.MEDIUM.value,
    )

    # Point location, WGS84 degrees
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    address: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Public paths under /uploads
    images: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    # Submitting citizen
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Triage
    assigned_department: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        default=Department.OTHER.value,
    )
    assigned_to_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    # Resolution metadata, stamped the first (and every) time status becomes resolved
    resolution_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    resolved_by_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    resolved_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    # Relationships
    user: Mapped[User] = relationship("User", foreign_keys=[user_id])
    assigned_to: Mapped[User | None] = relationship("User", foreign_keys=[assigned_to_id])
    resolved_by: Mapped[User | None] = relationship("User", foreign_keys=[resolved_by_id])
    comments: Mapped[list["ComplaintComment"]] = relationship(
        "ComplaintComment",
        back_populates="complaint",
        cascade="all, delete-orphan",
        order_by="ComplaintComment.id",
    )

    @property
    def status_text(self) -> str:
        return STATUS_TEXT.get(self.status, "Unknown")

    @property
    def location(self) -> dict:
        """GeoJSON point plus the free-text address."""
        return {
            "type": "Point",
            "coordinates": [self.longitude, self.latitude],
            "address": self.address,
        }

    @property
    def resolution_details(self) -> dict | None:
        if self.resolved_at is None:
            return None
        return {
            "text": self.resolution_text,
            "resolved_by": self.resolved_by,
            "resolved_at": self.resolved_at,
        }


class ComplaintComment(Base):
    __tablename__ = "complaint_comments"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    complaint_id: Mapped[int] = mapped_column(
        ForeignKey("complaints.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    text: Mapped[str] = mapped_column(Text, nullable=False)
    created_by_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )

    complaint: Mapped[Complaint] = relationship("Complaint", back_populates="comments")
    created_by: Mapped[User] = relationship("User")
