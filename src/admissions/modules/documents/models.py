"""
Document Models

Metadata for uploaded documents. Bytes live in the file store; each row
references exactly one stored key.
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Enum, ForeignKey, Index, String, Text, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from admissions.modules.documents.catalog import DocumentType
from admissions.modules.shared import BaseModel


class DocumentStatus(str, enum.Enum):
    """Review status of a document. MISSING is virtual: no row exists."""

    MISSING = "MISSING"
    UPLOADED = "UPLOADED"
    VALIDATION_PENDING = "VALIDATION_PENDING"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    VALIDATED = "VALIDATED"
    REJECTED = "REJECTED"


class Document(BaseModel):
    """
    Uploaded document metadata.

    unique_slot holds the document type for non-repeatable types and NULL
    otherwise; UNIQUE(owner_id, unique_slot) is what actually guarantees at
    most one live document of a non-repeatable type per owner.
    """

    __tablename__ = "documents"

    owner_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id"),
        nullable=False,
    )
    document_type: Mapped[DocumentType] = mapped_column(
        Enum(DocumentType, name="document_type"),
        nullable=False,
    )
    # Display only; never used to resolve a path
    original_filename: Mapped[str] = mapped_column(String(255), nullable=False)
    stored_key: Mapped[str] = mapped_column(String(255), nullable=False)
    file_size_bytes: Mapped[int] = mapped_column(BigInteger, nullable=False)
    content_type: Mapped[str] = mapped_column(String(100), nullable=False)

    status: Mapped[DocumentStatus] = mapped_column(
        Enum(DocumentStatus, name="document_status"),
        nullable=False,
        default=DocumentStatus.UPLOADED,
    )
    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    validated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    validation_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    unique_slot: Mapped[str | None] = mapped_column(String(50), nullable=True)

    __table_args__ = (
        UniqueConstraint("stored_key", name="uq_documents_stored_key"),
        UniqueConstraint("owner_id", "unique_slot", name="uq_documents_owner_unique_slot"),
        Index("ix_documents_owner_uploaded_at", "owner_id", "uploaded_at"),
        Index("ix_documents_status", "status"),
    )

    def __repr__(self) -> str:
        return (
            f"<Document(id={self.id}, owner={self.owner_id}, "
            f"type={self.document_type.value}, status={self.status.value})>"
        )
