"""
Academic History Models

One row per period of study. Periods of the same owner never overlap; the
service enforces that while holding a lock on the owner's account row.
"""

import uuid
from datetime import date

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from admissions.modules.shared import BaseModel


class AcademicRecord(BaseModel):
    """A period of study at an institution. end_date is NULL while ongoing."""

    __tablename__ = "academic_records"

    owner_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id"),
        nullable=False,
    )
    institution_name: Mapped[str] = mapped_column(String(255), nullable=False)
    specialization: Mapped[str] = mapped_column(String(255), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "end_date IS NULL OR end_date >= start_date",
            name="ck_academic_records_date_order",
        ),
        Index("ix_academic_records_owner_start", "owner_id", "start_date"),
    )

    def __repr__(self) -> str:
        return f"<AcademicRecord(id={self.id}, owner={self.owner_id}, {self.start_date}..{self.end_date})>"
