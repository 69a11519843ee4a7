"""
Documents Router (applicant)

Endpoints:
- GET /applicant/documents/types - Document type catalog
- POST /applicant/documents/{document_type} - Upload a document
- GET /applicant/documents - List own documents, newest first
- GET /applicant/documents/{id} - Get own document metadata
- GET /applicant/documents/{id}/download - Download own document
- DELETE /applicant/documents/{id} - Delete own document

All endpoints require a valid JWT token with the applicant role. Documents of
other applicants are reported as not found.
"""

import logging
from urllib.parse import quote
from uuid import UUID

from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from admissions.core.auth import CurrentUser, get_current_applicant
from admissions.core.database import get_db
from admissions.core.exceptions import ServiceError
from admissions.core.rate_limit import enforce_rate_limit
from admissions.modules.documents import service
from admissions.modules.documents.catalog import DocumentType, get_spec
from admissions.modules.documents.schemas import (
    DocumentListResponse,
    DocumentResponse,
    DocumentTypeInfo,
)
from admissions.modules.storage.file_store import FileStore, get_file_store

logger = logging.getLogger(__name__)

router = APIRouter()

RATE_LIMIT_UPLOAD = (20, 60)  # 20 uploads per minute
RATE_LIMIT_DELETE = (30, 60)


def _handle_service_error(e: ServiceError) -> None:
    """Convert service errors to HTTPExceptions."""
    raise HTTPException(
        status_code=e.status_code,
        detail={
            "error": e.error_code,
            "message": e.message,
        },
    ) from e


def content_disposition(filename: str) -> str:
    """Attachment header that survives non-ASCII display names."""
    ascii_name = filename.encode("ascii", "ignore").decode().replace('"', "") or "document"
    return f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(filename)}"


@router.get(
    "/types",
    response_model=list[DocumentTypeInfo],
    summary="Document Types",
    description="Accepted content types, size limit and repeatability of each document type.",
)
async def list_document_types() -> list[DocumentTypeInfo]:
    return [
        DocumentTypeInfo(
            document_type=document_type,
            description=spec.description,
            allowed_content_types=sorted(spec.allowed_content_types),
            max_size_bytes=spec.max_size_bytes,
            repeatable=spec.repeatable,
            requires_validation=spec.requires_validation,
        )
        for document_type, spec in service.get_catalog()
    ]


@router.post(
    "/{document_type}",
    response_model=DocumentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload Document",
    description="""
Upload a supporting document of the given type.

**Errors:**
- 400: Content type not accepted, file empty or too large, unsafe file name
- 409: A document of this non-repeatable type already exists
- 503: File storage unavailable (safe to retry)
""",
)
async def upload_document(
    document_type: DocumentType,
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    store: FileStore = Depends(get_file_store),
    current_user: CurrentUser = Depends(get_current_applicant),
) -> DocumentResponse:
    await enforce_rate_limit(current_user.id, "documents:upload", *RATE_LIMIT_UPLOAD)

    # One byte past the limit is enough to know the file is too large
    content = await file.read(get_spec(document_type).max_size_bytes + 1)

    try:
        document = await service.upload_document(
            db,
            store,
            owner_id=current_user.id,
            document_type=document_type,
            original_filename=file.filename or "",
            content_type=file.content_type,
            content=content,
        )
    except ServiceError as e:
        logger.warning(f"Upload rejected for {current_user.id}: {e.error_code}")
        _handle_service_error(e)

    return DocumentResponse.model_validate(document)


@router.get(
    "",
    response_model=DocumentListResponse,
    summary="List My Documents",
)
async def list_documents(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_applicant),
) -> DocumentListResponse:
    documents = await service.list_documents(db, current_user.id)
    items = [DocumentResponse.model_validate(d) for d in documents]
    return DocumentListResponse(items=items, total=len(items))


@router.get(
    "/{document_id}",
    response_model=DocumentResponse,
    summary="Get My Document",
)
async def get_document(
    document_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_applicant),
) -> DocumentResponse:
    try:
        document = await service.get_owned_document(db, document_id, current_user.id)
    except ServiceError as e:
        _handle_service_error(e)

    return DocumentResponse.model_validate(document)


@router.get(
    "/{document_id}/download",
    summary="Download My Document",
    response_class=Response,
)
async def download_document(
    document_id: UUID,
    db: AsyncSession = Depends(get_db),
    store: FileStore = Depends(get_file_store),
    current_user: CurrentUser = Depends(get_current_applicant),
) -> Response:
    try:
        document, content = await service.load_owned_document(db, store, document_id, current_user.id)
    except ServiceError as e:
        _handle_service_error(e)

    return Response(
        content=content,
        media_type=document.content_type,
        headers={"Content-Disposition": content_disposition(document.original_filename)},
    )


@router.delete(
    "/{document_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete My Document",
    description="""
Delete a document and its stored file.

**Errors:**
- 404: Document not found (or already deleted)
- 503: Stored file could not be removed; the document is kept, retry later
""",
)
async def delete_document(
    document_id: UUID,
    db: AsyncSession = Depends(get_db),
    store: FileStore = Depends(get_file_store),
    current_user: CurrentUser = Depends(get_current_applicant),
) -> Response:
    await enforce_rate_limit(current_user.id, "documents:delete", *RATE_LIMIT_DELETE)

    try:
        await service.delete_document(db, store, document_id, current_user.id)
    except ServiceError as e:
        _handle_service_error(e)

    return Response(status_code=status.HTTP_204_NO_CONTENT)
