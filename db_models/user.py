# db_models/user.py
"""
User model with role-based access control for complaint reporting.

Roles:
- USER: Citizen who submits and follows their own complaints
- ADMIN: Full system access, triages every complaint and manages users
"""
from datetime import datetime
from enum import Enum

from sqlalchemy import String, Boolean, Text, JSON, func
from sqlalchemy.orm import Mapped, mapped_column

from db_base import Base, UTCDateTime, utcnow


class UserRole(str, Enum):
    """User roles for authorization."""
    USER = "user"
    ADMIN = "admin"


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    # Login credentials
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )
    hashed_password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    # Profile
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    # street / city / state / zipCode / country
    address: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    profile_picture: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Role-based access control
    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=UserRole.USER.value,
    )

    # TOTP second factor. The secret is stored as soon as setup starts,
    # mfa_enabled only flips after the first code is verified.
    mfa_secret: Mapped[str | None] = mapped_column(String(64), nullable=True)
    mfa_enabled: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )

    # Single active refresh token; overwritten on every login/refresh
    refresh_token: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Account status
    active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
    )
    suspended: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )
    suspension_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime(),
        nullable=True,
        onupdate=utcnow,
    )
    last_login_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime(),
        nullable=True,
    )

    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    def can_view_complaint(self, complaint) -> bool:
        """Admins see everything; citizens only what they submitted."""
        return self.is_admin() or complaint.user_id == self.id
