"""
User Models

Account rows for applicants and administrators. Credentials live with the
identity service; this table holds the applicant's profile and the overall
application status owned by the application workflow.
"""

from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Index, String, func
from sqlalchemy.dialects.postgresql import ENUM
from sqlalchemy.orm import Mapped, mapped_column

from admissions.modules.shared import BaseModel


class UserRole(str, Enum):
    """User roles in the system."""

    APPLICANT = "applicant"
    ADMIN = "admin"


class ApplicationStatus(str, Enum):
    """Overall status of an applicant's file."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    # Administrative marker for non-applicant accounts
    ACTIVE = "ACTIVE"


class User(BaseModel):
    """
    User account.

    application_status is created as PENDING for applicants and is only ever
    changed by the application workflow. Rows are never deleted.
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(20), nullable=True)

    role: Mapped[UserRole] = mapped_column(
        ENUM(UserRole, name="user_role", create_type=True),
        nullable=False,
        default=UserRole.APPLICANT,
    )

    application_status: Mapped[ApplicationStatus] = mapped_column(
        ENUM(ApplicationStatus, name="application_status", create_type=True),
        nullable=False,
        default=ApplicationStatus.PENDING,
    )
    # Latest status change only; statistics over recent decisions read this column
    status_updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (
        Index("ix_users_role_application_status", "role", "application_status"),
        Index("ix_users_status_updated_at", "status_updated_at"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role.value})>"

    @property
    def full_name(self) -> str:
        """Return user's full name."""
        return f"{self.first_name} {self.last_name}"
