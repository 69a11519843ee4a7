"""
Academic History Router (applicant)

Endpoints:
- GET /applicant/academic-history - List own records
- POST /applicant/academic-history - Add a record
- PUT /applicant/academic-history/{id} - Replace a record
- DELETE /applicant/academic-history/{id} - Delete a record

Overlapping periods are answered with 409 and the id of the conflicting record.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from admissions.core.auth import CurrentUser, get_current_applicant
from admissions.core.database import get_db
from admissions.core.exceptions import OverlapError, ServiceError
from admissions.modules.academic_history import service
from admissions.modules.academic_history.schemas import AcademicRecordRequest, AcademicRecordResponse
from admissions.modules.academic_history.service import AcademicRecordInput

logger = logging.getLogger(__name__)

router = APIRouter()


def _handle_service_error(e: ServiceError) -> None:
    """Convert service errors to HTTPExceptions."""
    detail = {"error": e.error_code, "message": e.message}
    if isinstance(e, OverlapError):
        detail["conflicting_record_id"] = str(e.conflicting_record_id)
    raise HTTPException(status_code=e.status_code, detail=detail) from e


def _to_input(data: AcademicRecordRequest) -> AcademicRecordInput:
    return AcademicRecordInput(
        institution_name=data.institution_name,
        specialization=data.specialization,
        start_date=data.start_date,
        end_date=data.end_date,
    )


@router.get("", response_model=list[AcademicRecordResponse], summary="List Academic History")
async def list_records(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_applicant),
) -> list[AcademicRecordResponse]:
    records = await service.list_records(db, current_user.id)
    return [AcademicRecordResponse.model_validate(r) for r in records]


@router.post(
    "",
    response_model=AcademicRecordResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add Academic Record",
    responses={
        400: {"description": "Invalid dates or names"},
        409: {"description": "Period overlaps an existing record"},
    },
)
async def add_record(
    data: AcademicRecordRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_applicant),
) -> AcademicRecordResponse:
    try:
        record = await service.add_record(db, current_user.id, _to_input(data))
    except ServiceError as e:
        _handle_service_error(e)

    return AcademicRecordResponse.model_validate(record)


@router.put(
    "/{record_id}",
    response_model=AcademicRecordResponse,
    summary="Update Academic Record",
)
async def update_record(
    record_id: UUID,
    data: AcademicRecordRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_applicant),
) -> AcademicRecordResponse:
    try:
        record = await service.update_record(db, current_user.id, record_id, _to_input(data))
    except ServiceError as e:
        _handle_service_error(e)

    return AcademicRecordResponse.model_validate(record)


@router.delete(
    "/{record_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Academic Record",
)
async def delete_record(
    record_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_applicant),
) -> Response:
    try:
        await service.delete_record(db, current_user.id, record_id)
    except ServiceError as e:
        _handle_service_error(e)

    return Response(status_code=status.HTTP_204_NO_CONTENT)
