"""
Applications Schemas
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr

from admissions.modules.academic_history.schemas import AcademicRecordResponse
from admissions.modules.documents.schemas import DocumentResponse
from admissions.modules.profile.schemas import ContactInfoResponse, PersonalInfoResponse
from admissions.modules.users.models import ApplicationStatus, UserRole


class ApplicationStatusResponse(BaseModel):
    id: UUID
    application_status: ApplicationStatus
    status_updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ApplicationStatusUpdateRequest(BaseModel):
    new_status: ApplicationStatus


class ApplicantSummary(BaseModel):
    id: UUID
    email: EmailStr
    first_name: str
    last_name: str
    phone: str | None = None
    role: UserRole
    application_status: ApplicationStatus
    status_updated_at: datetime
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ApplicationDetailResponse(BaseModel):
    """Everything an admin reviews for one applicant."""

    applicant: ApplicantSummary
    personal_info: PersonalInfoResponse | None = None
    contact_info: ContactInfoResponse | None = None
    academic_records: list[AcademicRecordResponse]
    documents: list[DocumentResponse]


class DashboardStats(BaseModel):
    total_applicants: int
    pending: int
    approved: int
    rejected: int
    documents_awaiting_review: int
    # Percentage of APPROVED among statuses changed in the last 30 days
    approval_rate_last_30_days: float
