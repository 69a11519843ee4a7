"""
Academic History Schemas
"""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class AcademicRecordRequest(BaseModel):
    """Body for creating or replacing an academic record."""

    institution_name: str = Field(..., min_length=1, max_length=255)
    specialization: str = Field(..., min_length=1, max_length=255)
    start_date: date
    end_date: date | None = None


class AcademicRecordResponse(BaseModel):
    id: UUID
    institution_name: str
    specialization: str
    start_date: date
    end_date: date | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
