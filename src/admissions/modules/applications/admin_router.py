"""
Applications Admin Router

Endpoints:
- GET /admin/applications/stats - Dashboard counts
- GET /admin/applicants/{owner_id}/application - Applicant, profile, academic history and documents
- PUT /admin/applicants/{owner_id}/status - Set application status

All endpoints require a valid JWT token with the admin role.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from admissions.core.auth import CurrentUser, get_current_admin_user
from admissions.core.database import get_db
from admissions.core.exceptions import ServiceError
from admissions.core.rate_limit import enforce_rate_limit
from admissions.modules.academic_history.schemas import AcademicRecordResponse
from admissions.modules.applications import service
from admissions.modules.applications.schemas import (
    ApplicantSummary,
    ApplicationDetailResponse,
    ApplicationStatusResponse,
    ApplicationStatusUpdateRequest,
    DashboardStats,
)
from admissions.modules.documents.schemas import DocumentResponse
from admissions.modules.profile.schemas import ContactInfoResponse, PersonalInfoResponse

logger = logging.getLogger(__name__)

# Mounted at /admin; paths below carry their own resource prefix
router = APIRouter()

RATE_LIMIT_STATUS = (30, 60)  # 30 application decisions per minute


def _handle_service_error(e: ServiceError) -> None:
    """Convert service errors to HTTPExceptions."""
    raise HTTPException(
        status_code=e.status_code,
        detail={
            "error": e.error_code,
            "message": e.message,
        },
    ) from e


@router.get(
    "/applications/stats",
    response_model=DashboardStats,
    summary="Dashboard Statistics",
    description="Applicant counts by status, documents awaiting review and the 30-day approval rate.",
)
async def get_dashboard_stats(
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> DashboardStats:
    stats = await service.get_dashboard_stats(db)
    return DashboardStats(**stats)


@router.get(
    "/applicants/{owner_id}/application",
    response_model=ApplicationDetailResponse,
    summary="Application Detail",
)
async def get_application_detail(
    owner_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> ApplicationDetailResponse:
    try:
        detail = await service.get_application_detail(db, owner_id)
    except ServiceError as e:
        _handle_service_error(e)

    return ApplicationDetailResponse(
        applicant=ApplicantSummary.model_validate(detail["user"]),
        personal_info=(
            PersonalInfoResponse.model_validate(detail["personal_info"])
            if detail["personal_info"] is not None
            else None
        ),
        contact_info=(
            ContactInfoResponse.from_model(detail["contact_info"])
            if detail["contact_info"] is not None
            else None
        ),
        academic_records=[AcademicRecordResponse.model_validate(r) for r in detail["academic_records"]],
        documents=[DocumentResponse.model_validate(d) for d in detail["documents"]],
    )


@router.put(
    "/applicants/{owner_id}/status",
    response_model=ApplicationStatusResponse,
    summary="Set Application Status",
    description="""
Set an applicant's application status. Any status may follow any other;
setting the current status again changes nothing. The applicant is notified
by email when the status changes.
""",
)
async def set_application_status(
    owner_id: UUID,
    data: ApplicationStatusUpdateRequest,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> ApplicationStatusResponse:
    await enforce_rate_limit(admin.id, "admin:application_status", *RATE_LIMIT_STATUS)

    try:
        user = await service.set_status(db, owner_id, data.new_status, admin.id)
    except ServiceError as e:
        logger.warning(f"Application status update rejected for {owner_id}: {e.message}")
        _handle_service_error(e)

    return ApplicationStatusResponse.model_validate(user)
