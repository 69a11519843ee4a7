"""
Tests for documents service functions.

These tests verify the business logic for:
- Upload validation against the type catalog
- Uploading, including the lost-race path on the uniqueness constraint
- Deleting with the stored file already gone or storage failing
- Admin review and the applicant notification
"""

from unittest.mock import AsyncMock, patch
from uuid import UUID, uuid4

import pytest
from sqlalchemy.exc import IntegrityError

from admissions.core.exceptions import NotFoundError, StorageFailureError
from admissions.modules.documents.catalog import MB, DocumentType
from admissions.modules.documents.models import DocumentStatus
from admissions.modules.documents.repository import UNIQUE_SLOT_CONSTRAINT
from admissions.modules.documents.service import (
    DocumentNotFoundError,
    DocumentTypeConflictError,
    EmptyFileError,
    FileTooLargeError,
    UnsupportedContentTypeError,
    delete_document,
    get_catalog,
    get_owned_document,
    load_document_for_admin,
    update_document_status,
    upload_document,
    validate_upload,
)
from admissions.modules.storage.file_store import InvalidFileNameError, StoredFileNotFoundError

SERVICE = "admissions.modules.documents.service"


@pytest.fixture
def admin_id():
    """Return a consistent admin UUID for testing."""
    return UUID("00000000-0000-0000-0000-000000000001")


def unique_violation() -> IntegrityError:
    return IntegrityError(
        "INSERT INTO documents ...",
        {},
        Exception(f'duplicate key value violates unique constraint "{UNIQUE_SLOT_CONSTRAINT}"'),
    )


# ============================================
# Test validate_upload
# ============================================


class TestValidateUpload:
    def test_accepts_file_within_limits(self):
        spec = validate_upload(DocumentType.ID_PHOTO, "image/png", 1 * MB)
        assert spec.max_size_bytes == 1 * MB

    def test_rejects_wrong_content_type(self):
        with pytest.raises(UnsupportedContentTypeError) as exc_info:
            validate_upload(DocumentType.BIRTH_CERTIFICATE, "image/png", 100)
        assert exc_info.value.error_code == "UNSUPPORTED_CONTENT_TYPE"
        assert exc_info.value.status_code == 400

    def test_rejects_empty_file(self):
        with pytest.raises(EmptyFileError):
            validate_upload(DocumentType.BIRTH_CERTIFICATE, "application/pdf", 0)

    def test_rejects_file_one_byte_over_limit(self):
        with pytest.raises(FileTooLargeError) as exc_info:
            validate_upload(DocumentType.ID_PHOTO, "image/jpeg", 1 * MB + 1)
        assert exc_info.value.error_code == "FILE_TOO_LARGE"

    def test_content_type_checked_before_size(self):
        with pytest.raises(UnsupportedContentTypeError):
            validate_upload(DocumentType.ID_PHOTO, "application/zip", 50 * MB)


# ============================================
# Test upload_document
# ============================================


@pytest.mark.asyncio
async def test_upload_document_success(mock_db, mock_store, owner, owner_id, make_document):
    created = make_document()

    with (
        patch(f"{SERVICE}.repository") as mock_repo,
        patch(f"{SERVICE}.UserRepository") as mock_users,
    ):
        mock_repo.exists_for_type = AsyncMock(return_value=False)
        mock_repo.create = AsyncMock(return_value=created)
        mock_users.get_by_id = AsyncMock(return_value=owner)

        result = await upload_document(
            mock_db,
            mock_store,
            owner_id=owner_id,
            document_type=DocumentType.BIRTH_CERTIFICATE,
            original_filename="birth.pdf",
            content_type="application/pdf; charset=binary",
            content=b"%PDF-1.7",
        )

        assert result is created
        mock_store.store.assert_awaited_once_with(owner_id, "birth.pdf", b"%PDF-1.7")
        kwargs = mock_repo.create.call_args.kwargs
        assert kwargs["stored_key"] == "stored-key"
        assert kwargs["content_type"] == "application/pdf"
        assert kwargs["file_size_bytes"] == len(b"%PDF-1.7")


@pytest.mark.asyncio
async def test_upload_document_rejects_second_non_repeatable(mock_db, mock_store, owner_id):
    with patch(f"{SERVICE}.repository") as mock_repo:
        mock_repo.exists_for_type = AsyncMock(return_value=True)

        with pytest.raises(DocumentTypeConflictError) as exc_info:
            await upload_document(
                mock_db,
                mock_store,
                owner_id=owner_id,
                document_type=DocumentType.ID_PHOTO,
                original_filename="me.jpg",
                content_type="image/jpeg",
                content=b"jpeg",
            )

        assert exc_info.value.status_code == 409
        assert "Delete it before uploading" in exc_info.value.message
        assert "failed validation" in exc_info.value.message
        mock_store.store.assert_not_called()


@pytest.mark.asyncio
async def test_upload_document_repeatable_skips_existence_check(
    mock_db, mock_store, owner, owner_id, make_document
):
    with (
        patch(f"{SERVICE}.repository") as mock_repo,
        patch(f"{SERVICE}.UserRepository") as mock_users,
    ):
        mock_repo.exists_for_type = AsyncMock(return_value=True)
        mock_repo.create = AsyncMock(return_value=make_document(document_type=DocumentType.DIPLOMA_BAC))
        mock_users.get_by_id = AsyncMock(return_value=owner)

        await upload_document(
            mock_db,
            mock_store,
            owner_id=owner_id,
            document_type=DocumentType.DIPLOMA_BAC,
            original_filename="bac.pdf",
            content_type="application/pdf",
            content=b"%PDF",
        )

        mock_repo.exists_for_type.assert_not_called()
        mock_repo.create.assert_awaited_once()


@pytest.mark.asyncio
async def test_upload_document_lost_race_removes_bytes(mock_db, mock_store, owner, owner_id):
    with (
        patch(f"{SERVICE}.repository") as mock_repo,
        patch(f"{SERVICE}.UserRepository") as mock_users,
    ):
        mock_repo.UNIQUE_SLOT_CONSTRAINT = UNIQUE_SLOT_CONSTRAINT
        mock_repo.exists_for_type = AsyncMock(return_value=False)
        mock_repo.create = AsyncMock(side_effect=unique_violation())
        mock_users.get_by_id = AsyncMock(return_value=owner)

        with pytest.raises(DocumentTypeConflictError):
            await upload_document(
                mock_db,
                mock_store,
                owner_id=owner_id,
                document_type=DocumentType.ID_CARD_FRONT,
                original_filename="front.png",
                content_type="image/png",
                content=b"png",
            )

        mock_db.rollback.assert_awaited_once()
        mock_store.delete.assert_awaited_once_with("stored-key")


@pytest.mark.asyncio
async def test_upload_document_other_integrity_error_is_reraised(mock_db, mock_store, owner, owner_id):
    error = IntegrityError("INSERT", {}, Exception('violates foreign key constraint "documents_owner_id_fkey"'))

    with (
        patch(f"{SERVICE}.repository") as mock_repo,
        patch(f"{SERVICE}.UserRepository") as mock_users,
    ):
        mock_repo.UNIQUE_SLOT_CONSTRAINT = UNIQUE_SLOT_CONSTRAINT
        mock_repo.exists_for_type = AsyncMock(return_value=False)
        mock_repo.create = AsyncMock(side_effect=error)
        mock_users.get_by_id = AsyncMock(return_value=owner)

        with pytest.raises(IntegrityError):
            await upload_document(
                mock_db,
                mock_store,
                owner_id=owner_id,
                document_type=DocumentType.ID_PHOTO,
                original_filename="me.png",
                content_type="image/png",
                content=b"png",
            )

        mock_store.delete.assert_awaited_once_with("stored-key")


@pytest.mark.asyncio
async def test_upload_document_cleanup_failure_still_reports_conflict(
    mock_db, mock_store, owner, owner_id
):
    mock_store.delete = AsyncMock(side_effect=StorageFailureError())

    with (
        patch(f"{SERVICE}.repository") as mock_repo,
        patch(f"{SERVICE}.UserRepository") as mock_users,
    ):
        mock_repo.UNIQUE_SLOT_CONSTRAINT = UNIQUE_SLOT_CONSTRAINT
        mock_repo.exists_for_type = AsyncMock(return_value=False)
        mock_repo.create = AsyncMock(side_effect=unique_violation())
        mock_users.get_by_id = AsyncMock(return_value=owner)

        with pytest.raises(DocumentTypeConflictError):
            await upload_document(
                mock_db,
                mock_store,
                owner_id=owner_id,
                document_type=DocumentType.ID_PHOTO,
                original_filename="me.png",
                content_type="image/png",
                content=b"png",
            )


@pytest.mark.asyncio
async def test_upload_document_storage_failure_writes_no_metadata(mock_db, mock_store, owner, owner_id):
    mock_store.store = AsyncMock(side_effect=StorageFailureError())

    with (
        patch(f"{SERVICE}.repository") as mock_repo,
        patch(f"{SERVICE}.UserRepository") as mock_users,
    ):
        mock_repo.exists_for_type = AsyncMock(return_value=False)
        mock_repo.create = AsyncMock()
        mock_users.get_by_id = AsyncMock(return_value=owner)

        with pytest.raises(StorageFailureError):
            await upload_document(
                mock_db,
                mock_store,
                owner_id=owner_id,
                document_type=DocumentType.BIRTH_CERTIFICATE,
                original_filename="birth.pdf",
                content_type="application/pdf",
                content=b"%PDF",
            )

        mock_repo.create.assert_not_called()


@pytest.mark.asyncio
async def test_upload_document_invalid_name_is_propagated(mock_db, mock_store, owner, owner_id):
    mock_store.store = AsyncMock(side_effect=InvalidFileNameError())

    with (
        patch(f"{SERVICE}.repository") as mock_repo,
        patch(f"{SERVICE}.UserRepository") as mock_users,
    ):
        mock_repo.exists_for_type = AsyncMock(return_value=False)
        mock_users.get_by_id = AsyncMock(return_value=owner)

        with pytest.raises(InvalidFileNameError):
            await upload_document(
                mock_db,
                mock_store,
                owner_id=owner_id,
                document_type=DocumentType.BIRTH_CERTIFICATE,
                original_filename="../../etc/passwd",
                content_type="application/pdf",
                content=b"%PDF",
            )


@pytest.mark.asyncio
async def test_upload_document_unknown_owner(mock_db, mock_store, owner_id):
    with (
        patch(f"{SERVICE}.repository") as mock_repo,
        patch(f"{SERVICE}.UserRepository") as mock_users,
    ):
        mock_repo.exists_for_type = AsyncMock(return_value=False)
        mock_users.get_by_id = AsyncMock(return_value=None)

        with pytest.raises(NotFoundError) as exc_info:
            await upload_document(
                mock_db,
                mock_store,
                owner_id=owner_id,
                document_type=DocumentType.BIRTH_CERTIFICATE,
                original_filename="birth.pdf",
                content_type="application/pdf",
                content=b"%PDF",
            )

        assert exc_info.value.error_code == "APPLICANT_NOT_FOUND"
        mock_store.store.assert_not_called()


# ============================================
# Test read and delete
# ============================================


@pytest.mark.asyncio
async def test_get_owned_document_not_owned_is_not_found(mock_db, owner_id):
    with patch(f"{SERVICE}.repository") as mock_repo:
        mock_repo.get_owned = AsyncMock(return_value=None)

        with pytest.raises(DocumentNotFoundError) as exc_info:
            await get_owned_document(mock_db, uuid4(), owner_id)

        assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_delete_document_removes_bytes_then_metadata(mock_db, mock_store, owner_id, make_document):
    doc = make_document()

    with patch(f"{SERVICE}.repository") as mock_repo:
        mock_repo.get_owned = AsyncMock(return_value=doc)
        mock_repo.delete_owned = AsyncMock(return_value=True)

        await delete_document(mock_db, mock_store, doc.id, owner_id)

        mock_store.delete.assert_awaited_once_with(doc.stored_key)
        mock_repo.delete_owned.assert_awaited_once_with(mock_db, doc.id, owner_id)


@pytest.mark.asyncio
async def test_delete_document_with_missing_bytes_still_removes_metadata(
    mock_db, mock_store, owner_id, make_document
):
    doc = make_document()
    mock_store.delete = AsyncMock(side_effect=StoredFileNotFoundError(doc.stored_key))

    with patch(f"{SERVICE}.repository") as mock_repo:
        mock_repo.get_owned = AsyncMock(return_value=doc)
        mock_repo.delete_owned = AsyncMock(return_value=True)

        await delete_document(mock_db, mock_store, doc.id, owner_id)

        mock_repo.delete_owned.assert_awaited_once()


@pytest.mark.asyncio
async def test_delete_document_storage_failure_keeps_metadata(mock_db, mock_store, owner_id, make_document):
    doc = make_document()
    mock_store.delete = AsyncMock(side_effect=StorageFailureError())

    with patch(f"{SERVICE}.repository") as mock_repo:
        mock_repo.get_owned = AsyncMock(return_value=doc)
        mock_repo.delete_owned = AsyncMock(return_value=True)

        with pytest.raises(StorageFailureError):
            await delete_document(mock_db, mock_store, doc.id, owner_id)

        mock_repo.delete_owned.assert_not_called()


@pytest.mark.asyncio
async def test_delete_document_concurrently_deleted(mock_db, mock_store, owner_id, make_document):
    doc = make_document()

    with patch(f"{SERVICE}.repository") as mock_repo:
        mock_repo.get_owned = AsyncMock(return_value=doc)
        mock_repo.delete_owned = AsyncMock(return_value=False)

        with pytest.raises(DocumentNotFoundError):
            await delete_document(mock_db, mock_store, doc.id, owner_id)


def test_get_catalog_lists_every_type():
    assert [t for t, _ in get_catalog()] == list(DocumentType)


# ============================================
# Test admin review
# ============================================


@pytest.mark.asyncio
async def test_update_document_status_notifies_owner(mock_db, owner, admin_id, make_document):
    doc = make_document(status=DocumentStatus.REJECTED, notes="Expired")

    with (
        patch(f"{SERVICE}.repository") as mock_repo,
        patch(f"{SERVICE}.UserRepository") as mock_users,
        patch(f"{SERVICE}.send_document_status_update", new_callable=AsyncMock) as mock_send,
    ):
        mock_repo.update_status = AsyncMock(return_value=(doc, True))
        mock_users.get_by_id = AsyncMock(return_value=owner)

        result = await update_document_status(
            mock_db, doc.id, DocumentStatus.REJECTED, "Expired", admin_id
        )

        assert result is doc
        mock_repo.update_status.assert_awaited_once_with(
            mock_db, doc.id, DocumentStatus.REJECTED, "Expired"
        )
        mock_send.assert_awaited_once()
        assert mock_send.call_args.kwargs["to_email"] == owner.email
        assert mock_send.call_args.kwargs["new_status"] == "REJECTED"
        assert mock_send.call_args.kwargs["notes"] == "Expired"


@pytest.mark.asyncio
async def test_update_document_status_noop_sends_nothing(mock_db, admin_id, make_document):
    doc = make_document(status=DocumentStatus.VALIDATED)

    with (
        patch(f"{SERVICE}.repository") as mock_repo,
        patch(f"{SERVICE}.send_document_status_update", new_callable=AsyncMock) as mock_send,
    ):
        mock_repo.update_status = AsyncMock(return_value=(doc, False))

        result = await update_document_status(
            mock_db, doc.id, DocumentStatus.VALIDATED, None, admin_id
        )

        assert result is doc
        mock_send.assert_not_called()


@pytest.mark.asyncio
async def test_update_document_status_missing_document(mock_db, admin_id):
    with patch(f"{SERVICE}.repository") as mock_repo:
        mock_repo.update_status = AsyncMock(return_value=(None, False))

        with pytest.raises(DocumentNotFoundError):
            await update_document_status(mock_db, uuid4(), DocumentStatus.VALIDATED, None, admin_id)


@pytest.mark.asyncio
async def test_update_document_status_email_failure_keeps_change(mock_db, owner, admin_id, make_document):
    doc = make_document(status=DocumentStatus.VALIDATED)

    with (
        patch(f"{SERVICE}.repository") as mock_repo,
        patch(f"{SERVICE}.UserRepository") as mock_users,
        patch(
            f"{SERVICE}.send_document_status_update",
            new_callable=AsyncMock,
            side_effect=RuntimeError("mail down"),
        ),
    ):
        mock_repo.update_status = AsyncMock(return_value=(doc, True))
        mock_users.get_by_id = AsyncMock(return_value=owner)

        result = await update_document_status(
            mock_db, doc.id, DocumentStatus.VALIDATED, None, admin_id
        )

        assert result is doc


@pytest.mark.asyncio
async def test_load_document_for_admin_any_owner(mock_db, mock_store, make_document):
    doc = make_document()

    with patch(f"{SERVICE}.repository") as mock_repo:
        mock_repo.get_by_id = AsyncMock(return_value=doc)

        document, content = await load_document_for_admin(mock_db, mock_store, doc.id)

        assert document is doc
        assert content == b"%PDF-1.7"
        mock_store.load.assert_awaited_once_with(doc.stored_key)
