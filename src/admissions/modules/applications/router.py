"""
Applications Router (applicant)

Endpoints:
- GET /applicant/application-status - Current application status
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from admissions.core.auth import CurrentUser, get_current_applicant
from admissions.core.database import get_db
from admissions.core.exceptions import ServiceError
from admissions.modules.applications import service
from admissions.modules.applications.schemas import ApplicationStatusResponse

router = APIRouter()


@router.get(
    "",
    response_model=ApplicationStatusResponse,
    summary="My Application Status",
)
async def get_my_status(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_applicant),
) -> ApplicationStatusResponse:
    try:
        user = await service.get_status(db, current_user.id)
    except ServiceError as e:
        raise HTTPException(
            status_code=e.status_code,
            detail={"error": e.error_code, "message": e.message},
        ) from e

    return ApplicationStatusResponse.model_validate(user)
