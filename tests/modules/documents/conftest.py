"""
Fixtures for documents tests.
"""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from admissions.modules.documents.catalog import DocumentType
from admissions.modules.documents.models import Document, DocumentStatus
from admissions.modules.storage.file_store import FileStore
from admissions.modules.users.models import User


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.refresh = AsyncMock()
    db.get = AsyncMock()
    db.execute = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def mock_store():
    """Create a mock file store."""
    store = MagicMock(spec=FileStore)
    store.store = AsyncMock(return_value="stored-key")
    store.load = AsyncMock(return_value=b"%PDF-1.7")
    store.delete = AsyncMock()
    store.list_files = AsyncMock(return_value=[])
    return store


@pytest.fixture
def owner_id():
    return uuid4()


@pytest.fixture
def owner(owner_id):
    """Create a sample applicant account."""
    user = MagicMock(spec=User)
    user.id = owner_id
    user.email = "applicant@example.com"
    user.full_name = "Awa Diallo"
    return user


@pytest.fixture
def make_document(owner_id):
    """Factory for sample documents."""

    def _make(
        status: DocumentStatus = DocumentStatus.UPLOADED,
        document_type: DocumentType = DocumentType.BIRTH_CERTIFICATE,
        notes: str | None = None,
    ) -> Document:
        document = MagicMock(spec=Document)
        document.id = uuid4()
        document.owner_id = owner_id
        document.document_type = document_type
        document.original_filename = "birth.pdf"
        document.stored_key = f"{owner_id}/abc123_birth.pdf"
        document.file_size_bytes = 1024
        document.content_type = "application/pdf"
        document.status = status
        document.uploaded_at = datetime.now(UTC)
        document.validated_at = None
        document.validation_notes = notes
        return document

    return _make
