"""
Documents Service Layer

Business logic for applicant documents. Orchestrates the file store, the
documents repository and review notifications.

This module implements:
1. Upload:
   - Content type and size checked against the document type catalog
   - Non-repeatable types rejected up front when a live document exists
   - Bytes stored first, then metadata inserted in UPLOADED status
   - A lost race on the uniqueness constraint removes the stored bytes and
     surfaces as a type conflict

2. Review:
   - Admin status changes follow the repository state machine under a row lock
   - The applicant is notified after a real change; notification failures
     never undo the change

3. Delete:
   - Bytes removed first, then metadata
   - Bytes already gone: metadata is removed anyway
   - Any other storage failure keeps the metadata and is raised

Not-found and not-owned are reported identically.
"""

import logging
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from admissions.core.email import send_document_status_update
from admissions.core.exceptions import (
    NotFoundError,
    StorageFailureError,
    TypeConflictError,
    ValidationFailedError,
)
from admissions.modules.documents import repository
from admissions.modules.documents.catalog import (
    CATALOG,
    DocumentType,
    DocumentTypeSpec,
    get_spec,
    normalize_content_type,
)
from admissions.modules.documents.models import Document, DocumentStatus
from admissions.modules.storage.file_store import FileStore, StoredFileNotFoundError
from admissions.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)

MAX_DISPLAY_NAME_LENGTH = 255


# ============================================
# Errors
# ============================================


class DocumentNotFoundError(NotFoundError):
    def __init__(self, document_id: UUID):
        self.document_id = document_id
        super().__init__(message="Document not found.", error_code="DOCUMENT_NOT_FOUND")


class UnsupportedContentTypeError(ValidationFailedError):
    def __init__(self, document_type: DocumentType, content_type: str | None):
        allowed = sorted(CATALOG[document_type].allowed_content_types)
        super().__init__(
            f"Content type '{content_type or 'unknown'}' is not accepted for "
            f"{document_type.value}. Allowed: {', '.join(allowed)}.",
            error_code="UNSUPPORTED_CONTENT_TYPE",
        )


class FileTooLargeError(ValidationFailedError):
    def __init__(self, document_type: DocumentType, size: int):
        limit = CATALOG[document_type].max_size_bytes
        super().__init__(
            f"File of {size} bytes exceeds the {limit} byte limit for {document_type.value}.",
            error_code="FILE_TOO_LARGE",
        )


class EmptyFileError(ValidationFailedError):
    def __init__(self):
        super().__init__("Uploaded file is empty.", error_code="EMPTY_FILE")


class DocumentTypeConflictError(TypeConflictError):
    def __init__(self, document_type: DocumentType):
        self.document_type = document_type
        super().__init__(
            f"A {document_type.value} document already exists. Delete it before uploading a new one, "
            "including when it failed validation or was rejected."
        )


# ============================================
# Helpers
# ============================================


def validate_upload(
    document_type: DocumentType,
    content_type: str | None,
    size: int,
) -> DocumentTypeSpec:
    """
    Check a file against the catalog constraints of its type.

    Raises:
        UnsupportedContentTypeError: If the content type is not allowed
        EmptyFileError: If the file is empty
        FileTooLargeError: If the file exceeds the type's maximum size
    """
    spec = get_spec(document_type)

    if not spec.accepts_content_type(content_type):
        raise UnsupportedContentTypeError(document_type, content_type)
    if size <= 0:
        raise EmptyFileError()
    if size > spec.max_size_bytes:
        raise FileTooLargeError(document_type, size)

    return spec


async def _discard_stored_file(store: FileStore, key: str) -> None:
    """Best-effort removal of bytes whose metadata was never committed."""
    try:
        await store.delete(key)
    except StoredFileNotFoundError:
        pass
    except StorageFailureError as e:
        # Left for the orphan sweep
        logger.error(f"Could not remove unreferenced file {key}: {e.message}")


async def _notify_status_change(db: AsyncSession, document: Document) -> None:
    try:
        owner = await UserRepository.get_by_id(db, document.owner_id)
        if owner is None:
            logger.warning(f"No account for document owner {document.owner_id}, skipping email")
            return

        await send_document_status_update(
            to_email=owner.email,
            applicant_name=owner.full_name,
            document_label=CATALOG[document.document_type].description,
            new_status=document.status.value,
            notes=document.validation_notes,
        )
    except Exception as e:
        # Don't fail the request - email is non-critical
        logger.error(f"Failed to send document status email for {document.id}: {e}", exc_info=True)


# ============================================
# Applicant operations
# ============================================


async def upload_document(
    db: AsyncSession,
    store: FileStore,
    owner_id: UUID,
    document_type: DocumentType,
    original_filename: str,
    content_type: str | None,
    content: bytes,
) -> Document:
    """
    Upload a document for an applicant.

    Args:
        db: Database session
        store: File store receiving the bytes
        owner_id: Applicant who owns the document
        document_type: Catalog type of the document
        original_filename: Client file name, kept for display only
        content_type: Client-declared MIME type
        content: File bytes

    Returns:
        The new Document in UPLOADED status

    Raises:
        ValidationFailedError: Bad content type, size or file name
        DocumentTypeConflictError: Non-repeatable type already present
        NotFoundError: Applicant account does not exist
        StorageFailureError: Bytes could not be stored
    """
    spec = validate_upload(document_type, content_type, len(content))

    if not spec.repeatable and await repository.exists_for_type(db, owner_id, document_type):
        logger.warning(f"Owner {owner_id} already has a {document_type.value} document")
        raise DocumentTypeConflictError(document_type)

    owner = await UserRepository.get_by_id(db, owner_id)
    if owner is None:
        raise NotFoundError("Applicant account not found.", error_code="APPLICANT_NOT_FOUND")

    key = await store.store(owner_id, original_filename, content)

    try:
        document = await repository.create(
            db,
            owner_id=owner_id,
            document_type=document_type,
            original_filename=original_filename[:MAX_DISPLAY_NAME_LENGTH],
            stored_key=key,
            file_size_bytes=len(content),
            content_type=normalize_content_type(content_type),
        )
    except IntegrityError as e:
        await db.rollback()
        await _discard_stored_file(store, key)
        if repository.UNIQUE_SLOT_CONSTRAINT in str(e.orig):
            logger.warning(f"Concurrent upload of {document_type.value} for owner {owner_id} lost the race")
            raise DocumentTypeConflictError(document_type) from e
        raise
    except Exception:
        await db.rollback()
        await _discard_stored_file(store, key)
        raise

    logger.info(
        f"Document {document.id} uploaded: owner={owner_id}, type={document_type.value}, "
        f"size={document.file_size_bytes}"
    )
    return document


async def list_documents(db: AsyncSession, owner_id: UUID) -> list[Document]:
    """List an applicant's documents, newest first."""
    return await repository.list_by_owner(db, owner_id)


async def get_owned_document(db: AsyncSession, document_id: UUID, owner_id: UUID) -> Document:
    """
    Get a document belonging to the applicant.

    Raises:
        DocumentNotFoundError: If absent or owned by someone else
    """
    document = await repository.get_owned(db, document_id, owner_id)
    if document is None:
        logger.warning(f"Document {document_id} not found for owner {owner_id}")
        raise DocumentNotFoundError(document_id)
    return document


async def load_owned_document(
    db: AsyncSession,
    store: FileStore,
    document_id: UUID,
    owner_id: UUID,
) -> tuple[Document, bytes]:
    """Return an applicant's document together with its bytes."""
    document = await get_owned_document(db, document_id, owner_id)
    content = await store.load(document.stored_key)
    return document, content


async def delete_document(
    db: AsyncSession,
    store: FileStore,
    document_id: UUID,
    owner_id: UUID,
) -> None:
    """
    Delete an applicant's document, bytes first.

    Raises:
        DocumentNotFoundError: If absent, not owned, or deleted concurrently
        StorageFailureError: If the bytes could not be removed; metadata is kept
    """
    document = await get_owned_document(db, document_id, owner_id)

    try:
        await store.delete(document.stored_key)
    except StoredFileNotFoundError:
        logger.warning(f"Stored file for document {document_id} was already missing, removing metadata")

    if not await repository.delete_owned(db, document_id, owner_id):
        raise DocumentNotFoundError(document_id)

    logger.info(f"Document {document_id} deleted by owner {owner_id}")


def get_catalog() -> list[tuple[DocumentType, DocumentTypeSpec]]:
    """The static document type catalog, in declaration order."""
    return list(CATALOG.items())


# ============================================
# Admin operations
# ============================================


async def update_document_status(
    db: AsyncSession,
    document_id: UUID,
    new_status: DocumentStatus,
    notes: str | None,
    admin_id: UUID,
) -> Document:
    """
    Change a document's review status.

    Args:
        db: Database session
        document_id: Document to review
        new_status: Target status
        notes: Reviewer notes; required for REJECTED and VALIDATION_FAILED
        admin_id: Reviewing admin, for the audit log

    Returns:
        The document after the change (unchanged if already in new_status)

    Raises:
        DocumentNotFoundError: If the document does not exist
        InvalidStatusTransitionError: If the transition is not allowed
        NotesRequiredError: If notes are required but blank
    """
    logger.info(f"Admin {admin_id} setting document {document_id} to {new_status.value}")

    document, changed = await repository.update_status(db, document_id, new_status, notes)

    if document is None:
        logger.warning(f"Document not found: {document_id}")
        raise DocumentNotFoundError(document_id)

    if not changed:
        logger.info(f"Document {document_id} already {new_status.value}, nothing to do")
        return document

    logger.info(f"Document {document_id} is now {new_status.value}")
    await _notify_status_change(db, document)

    return document


async def get_document_for_admin(db: AsyncSession, document_id: UUID) -> Document:
    document = await repository.get_by_id(db, document_id)
    if document is None:
        raise DocumentNotFoundError(document_id)
    return document


async def load_document_for_admin(
    db: AsyncSession,
    store: FileStore,
    document_id: UUID,
) -> tuple[Document, bytes]:
    """Return any document with its bytes, for admin review."""
    document = await get_document_for_admin(db, document_id)
    content = await store.load(document.stored_key)
    return document, content
