"""
Documents Repository

Database operations for document metadata, including the review status
state machine.

Design Principles:
- Every owner-facing query filters on owner_id; nothing is reached by id alone
- Status updates lock the row (SELECT ... FOR UPDATE) for the whole check-and-write
- The non-repeatable type rule is enforced by the uq_documents_owner_unique_slot
  constraint; exists_for_type() is only a fast path for a friendlier error
"""

from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from admissions.core.exceptions import InvalidTransitionError, ValidationFailedError

from .catalog import DocumentType, unique_slot_for
from .models import Document, DocumentStatus

UNIQUE_SLOT_CONSTRAINT = "uq_documents_owner_unique_slot"

# Allowed status changes. Decisions need a reviewable source; an admin may
# always move a document back into the review queue. MISSING is never stored.
VALID_STATUS_TRANSITIONS: dict[DocumentStatus, set[DocumentStatus]] = {
    DocumentStatus.UPLOADED: {
        DocumentStatus.VALIDATION_PENDING,
        DocumentStatus.VALIDATION_FAILED,
        DocumentStatus.VALIDATED,
        DocumentStatus.REJECTED,
    },
    DocumentStatus.VALIDATION_PENDING: {
        DocumentStatus.UPLOADED,
        DocumentStatus.VALIDATION_FAILED,
        DocumentStatus.VALIDATED,
        DocumentStatus.REJECTED,
    },
    DocumentStatus.VALIDATION_FAILED: {
        DocumentStatus.UPLOADED,
        DocumentStatus.VALIDATION_PENDING,
        DocumentStatus.VALIDATED,
        DocumentStatus.REJECTED,
    },
    # Re-open only
    DocumentStatus.VALIDATED: {
        DocumentStatus.UPLOADED,
        DocumentStatus.VALIDATION_PENDING,
        DocumentStatus.VALIDATION_FAILED,
    },
    DocumentStatus.REJECTED: {
        DocumentStatus.UPLOADED,
        DocumentStatus.VALIDATION_PENDING,
        DocumentStatus.VALIDATION_FAILED,
    },
}

TERMINAL_STATUSES = frozenset({DocumentStatus.VALIDATED, DocumentStatus.REJECTED})
NOTES_REQUIRED_STATUSES = frozenset({DocumentStatus.REJECTED, DocumentStatus.VALIDATION_FAILED})


class InvalidStatusTransitionError(InvalidTransitionError):
    """Raised when a document status change is not allowed."""

    def __init__(self, current_status: DocumentStatus, new_status: DocumentStatus):
        self.current_status = current_status
        self.new_status = new_status
        valid_transitions = VALID_STATUS_TRANSITIONS.get(current_status, set())
        super().__init__(
            f"Invalid status transition: {current_status.value} -> {new_status.value}. "
            f"Valid transitions: {sorted(s.value for s in valid_transitions)}"
        )


class NotesRequiredError(ValidationFailedError):
    """Raised when a rejection or failed validation carries no notes."""

    def __init__(self, new_status: DocumentStatus):
        super().__init__(
            f"Validation notes are required when setting status to {new_status.value}.",
            error_code="VALIDATION_NOTES_REQUIRED",
        )


def check_transition(current: DocumentStatus, new: DocumentStatus) -> None:
    """
    Raises:
        InvalidStatusTransitionError: If current -> new is not allowed
    """
    if new not in VALID_STATUS_TRANSITIONS.get(current, set()):
        raise InvalidStatusTransitionError(current, new)


def normalize_notes(notes: str | None) -> str | None:
    if notes is None:
        return None
    stripped = notes.strip()
    return stripped or None


async def create(
    db: AsyncSession,
    *,
    owner_id: UUID,
    document_type: DocumentType,
    original_filename: str,
    stored_key: str,
    file_size_bytes: int,
    content_type: str,
) -> Document:
    """
    Insert a new document in UPLOADED status.

    Raises:
        sqlalchemy.exc.IntegrityError: If the owner already has a live document
            of a non-repeatable type (constraint uq_documents_owner_unique_slot)
    """
    document = Document(
        owner_id=owner_id,
        document_type=document_type,
        original_filename=original_filename,
        stored_key=stored_key,
        file_size_bytes=file_size_bytes,
        content_type=content_type,
        status=DocumentStatus.UPLOADED,
        uploaded_at=datetime.now(UTC),
        unique_slot=unique_slot_for(document_type),
    )

    db.add(document)
    await db.commit()
    await db.refresh(document)

    return document


async def get_by_id(db: AsyncSession, document_id: UUID) -> Document | None:
    """Get a document by ID regardless of owner. Admin use only."""
    return await db.get(Document, document_id)


async def get_owned(db: AsyncSession, document_id: UUID, owner_id: UUID) -> Document | None:
    """Get a document only if it belongs to owner_id."""
    result = await db.execute(
        select(Document).where(Document.id == document_id, Document.owner_id == owner_id)
    )
    return result.scalar_one_or_none()


async def exists_for_type(db: AsyncSession, owner_id: UUID, document_type: DocumentType) -> bool:
    """Check whether the owner already has a document of this type."""
    result = await db.execute(
        select(func.count(Document.id)).where(
            Document.owner_id == owner_id,
            Document.document_type == document_type,
        )
    )
    return (result.scalar() or 0) > 0


async def list_by_owner(db: AsyncSession, owner_id: UUID) -> list[Document]:
    """List an owner's documents, newest upload first."""
    result = await db.execute(
        select(Document)
        .where(Document.owner_id == owner_id)
        .order_by(Document.uploaded_at.desc(), Document.id.desc())
    )
    return list(result.scalars().all())


async def update_status(
    db: AsyncSession,
    document_id: UUID,
    new_status: DocumentStatus,
    notes: str | None,
) -> tuple[Document | None, bool]:
    """
    Apply a review status change under a row lock.

    Setting the current status again changes nothing. Notes are required for
    REJECTED and VALIDATION_FAILED; for other targets stored notes are
    replaced by the supplied notes or cleared. validated_at is stamped for
    VALIDATED and REJECTED and cleared when the document goes back to review.

    Returns:
        (document, changed). document is None if it does not exist.

    Raises:
        InvalidStatusTransitionError: If the transition is not allowed
        NotesRequiredError: If notes are missing for a status that needs them
    """
    result = await db.execute(
        select(Document).where(Document.id == document_id).with_for_update()
    )
    document = result.scalar_one_or_none()
    if document is None:
        return None, False

    if document.status == new_status:
        # Nothing changed; commit only releases the lock and keeps the instance loaded
        await db.commit()
        return document, False

    check_transition(document.status, new_status)

    cleaned_notes = normalize_notes(notes)
    if new_status in NOTES_REQUIRED_STATUSES and cleaned_notes is None:
        raise NotesRequiredError(new_status)

    document.status = new_status
    document.validation_notes = cleaned_notes
    document.validated_at = datetime.now(UTC) if new_status in TERMINAL_STATUSES else None

    await db.commit()
    await db.refresh(document)

    return document, True


async def delete_owned(db: AsyncSession, document_id: UUID, owner_id: UUID) -> bool:
    """
    Delete a document row belonging to owner_id.

    Returns:
        True if a row was deleted, False if none matched
    """
    result = await db.execute(
        delete(Document).where(Document.id == document_id, Document.owner_id == owner_id)
    )
    await db.commit()
    return result.rowcount > 0


async def get_referenced_keys(db: AsyncSession, keys: list[str]) -> set[str]:
    """Return the subset of keys that some document row references."""
    if not keys:
        return set()
    result = await db.execute(select(Document.stored_key).where(Document.stored_key.in_(keys)))
    return set(result.scalars().all())


async def count_by_status(db: AsyncSession) -> dict[DocumentStatus, int]:
    """Count all documents grouped by status."""
    result = await db.execute(
        select(Document.status, func.count(Document.id)).group_by(Document.status)
    )
    return {status: count for status, count in result.all()}
