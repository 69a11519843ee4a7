"""
Documents Schemas

Pydantic schemas for request validation and response serialization.
The stored key never appears in any response.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from admissions.modules.documents.catalog import DocumentType
from admissions.modules.documents.models import DocumentStatus


class DocumentResponse(BaseModel):
    """Document metadata as shown to applicants and admins."""

    id: UUID
    document_type: DocumentType
    original_filename: str
    file_size_bytes: int
    content_type: str
    status: DocumentStatus
    uploaded_at: datetime
    validated_at: datetime | None = None
    validation_notes: str | None = None

    model_config = ConfigDict(from_attributes=True)


class DocumentListResponse(BaseModel):
    items: list[DocumentResponse]
    total: int


class DocumentTypeInfo(BaseModel):
    """One entry of the document type catalog."""

    document_type: DocumentType
    description: str
    allowed_content_types: list[str]
    max_size_bytes: int
    repeatable: bool
    requires_validation: bool


class DocumentStatusUpdateRequest(BaseModel):
    """Admin request to change a document's review status."""

    new_status: DocumentStatus
    validation_notes: str | None = Field(None, max_length=2000)


class AdminDocumentResponse(DocumentResponse):
    owner_id: UUID
