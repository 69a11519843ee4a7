"""
Documents Admin Router

Endpoints:
- PUT /admin/documents/{id}/status - Review a document
- GET /admin/documents/{id} - Get document metadata
- GET /admin/documents/{id}/download - Download a document for review

All endpoints require a valid JWT token with the admin role.
Status changes are rate limited per admin.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.ext.asyncio import AsyncSession

from admissions.core.auth import CurrentUser, get_current_admin_user
from admissions.core.database import get_db
from admissions.core.exceptions import ServiceError
from admissions.core.rate_limit import enforce_rate_limit
from admissions.modules.documents import service
from admissions.modules.documents.router import content_disposition
from admissions.modules.documents.schemas import AdminDocumentResponse, DocumentStatusUpdateRequest
from admissions.modules.storage.file_store import FileStore, get_file_store

logger = logging.getLogger(__name__)

router = APIRouter()

RATE_LIMIT_REVIEW = (60, 60)  # 60 document reviews per minute


@router.put(
    "/{document_id}/status",
    response_model=AdminDocumentResponse,
    summary="Update Document Status",
    description="""
Set the review status of a document.

**Rules:**
- Setting the current status again changes nothing
- `VALIDATED` and `REJECTED` require the document to be `UPLOADED`,
  `VALIDATION_PENDING` or `VALIDATION_FAILED`
- `validation_notes` is required for `REJECTED` and `VALIDATION_FAILED`
- Notes are cleared for other statuses unless new notes are given

The applicant is notified by email when the status changes.
""",
    responses={
        404: {"description": "Document not found"},
        409: {"description": "Transition not allowed"},
        400: {"description": "Validation notes required"},
    },
)
async def update_document_status(
    document_id: UUID,
    data: DocumentStatusUpdateRequest,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> AdminDocumentResponse:
    await enforce_rate_limit(admin.id, "admin:document_status", *RATE_LIMIT_REVIEW)

    try:
        document = await service.update_document_status(
            db, document_id, data.new_status, data.validation_notes, admin.id
        )
    except ServiceError as e:
        logger.warning(f"Document status update rejected for {document_id}: {e.message}")
        raise HTTPException(
            status_code=e.status_code,
            detail={"error": e.error_code, "message": e.message},
        ) from e

    return AdminDocumentResponse.model_validate(document)


@router.get(
    "/{document_id}",
    response_model=AdminDocumentResponse,
    summary="Get Document",
)
async def get_document(
    document_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> AdminDocumentResponse:
    try:
        document = await service.get_document_for_admin(db, document_id)
    except ServiceError as e:
        raise HTTPException(
            status_code=e.status_code,
            detail={"error": e.error_code, "message": e.message},
        ) from e

    return AdminDocumentResponse.model_validate(document)


@router.get(
    "/{document_id}/download",
    summary="Download Document",
    response_class=Response,
)
async def download_document(
    document_id: UUID,
    db: AsyncSession = Depends(get_db),
    store: FileStore = Depends(get_file_store),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> Response:
    try:
        document, content = await service.load_document_for_admin(db, store, document_id)
    except ServiceError as e:
        raise HTTPException(
            status_code=e.status_code,
            detail={"error": e.error_code, "message": e.message},
        ) from e

    logger.info(f"Admin {admin.id} downloaded document {document_id}")
    return Response(
        content=content,
        media_type=document.content_type,
        headers={"Content-Disposition": content_disposition(document.original_filename)},
    )
