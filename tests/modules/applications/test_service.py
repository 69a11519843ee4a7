"""
Tests for application status service functions.

These tests verify:
- Setting a status, including the no-op when it is unchanged
- Notification after a real change only
- Admin application detail
- Dashboard statistics and the approval rate
"""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import UUID, uuid4

import pytest

from admissions.modules.applications.service import (
    STATS_WINDOW_DAYS,
    ApplicantNotFoundError,
    approval_rate,
    get_application_detail,
    get_dashboard_stats,
    get_status,
    set_status,
)
from admissions.modules.documents.models import DocumentStatus
from admissions.modules.users.models import ApplicationStatus, User, UserRole

SERVICE = "admissions.modules.applications.service"


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.refresh = AsyncMock()
    db.execute = AsyncMock()
    return db


@pytest.fixture
def admin_id():
    """Return a consistent admin UUID for testing."""
    return UUID("00000000-0000-0000-0000-000000000001")


@pytest.fixture
def applicant():
    user = MagicMock(spec=User)
    user.id = uuid4()
    user.email = "applicant@example.com"
    user.full_name = "Moussa Sow"
    user.role = UserRole.APPLICANT
    user.application_status = ApplicationStatus.PENDING
    return user


# ============================================
# Test get_status / set_status
# ============================================


@pytest.mark.asyncio
async def test_get_status_unknown_applicant(mock_db):
    with patch(f"{SERVICE}.UserRepository") as mock_users:
        mock_users.get_by_id = AsyncMock(return_value=None)

        with pytest.raises(ApplicantNotFoundError) as exc_info:
            await get_status(mock_db, uuid4())

        assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_set_status_changes_and_notifies(mock_db, applicant, admin_id):
    updated = MagicMock(spec=User)
    updated.id = applicant.id
    updated.email = applicant.email
    updated.full_name = applicant.full_name
    updated.application_status = ApplicationStatus.APPROVED

    with (
        patch(f"{SERVICE}.UserRepository") as mock_users,
        patch(f"{SERVICE}.send_application_status_update", new_callable=AsyncMock) as mock_send,
    ):
        mock_users.lock = AsyncMock(return_value=applicant)
        mock_users.update_application_status = AsyncMock(return_value=updated)

        result = await set_status(mock_db, applicant.id, ApplicationStatus.APPROVED, admin_id)

        assert result is updated
        args = mock_users.update_application_status.call_args.args
        assert args[1] is applicant
        assert args[2] == ApplicationStatus.APPROVED
        assert args[3].tzinfo is not None
        mock_send.assert_awaited_once_with(
            to_email="applicant@example.com",
            applicant_name="Moussa Sow",
            new_status="APPROVED",
        )


@pytest.mark.asyncio
async def test_set_status_same_value_is_noop(mock_db, applicant, admin_id):
    with (
        patch(f"{SERVICE}.UserRepository") as mock_users,
        patch(f"{SERVICE}.send_application_status_update", new_callable=AsyncMock) as mock_send,
    ):
        mock_users.lock = AsyncMock(return_value=applicant)
        mock_users.update_application_status = AsyncMock()

        result = await set_status(mock_db, applicant.id, ApplicationStatus.PENDING, admin_id)

        assert result is applicant
        mock_users.update_application_status.assert_not_called()
        mock_send.assert_not_called()
        mock_db.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_set_status_can_reverse_a_decision(mock_db, applicant, admin_id):
    applicant.application_status = ApplicationStatus.REJECTED

    with (
        patch(f"{SERVICE}.UserRepository") as mock_users,
        patch(f"{SERVICE}.send_application_status_update", new_callable=AsyncMock),
    ):
        mock_users.lock = AsyncMock(return_value=applicant)
        mock_users.update_application_status = AsyncMock(return_value=applicant)

        await set_status(mock_db, applicant.id, ApplicationStatus.APPROVED, admin_id)

        mock_users.update_application_status.assert_awaited_once()


@pytest.mark.asyncio
async def test_set_status_email_failure_is_swallowed(mock_db, applicant, admin_id):
    with (
        patch(f"{SERVICE}.UserRepository") as mock_users,
        patch(
            f"{SERVICE}.send_application_status_update",
            new_callable=AsyncMock,
            side_effect=RuntimeError("mail down"),
        ),
    ):
        mock_users.lock = AsyncMock(return_value=applicant)
        mock_users.update_application_status = AsyncMock(return_value=applicant)

        result = await set_status(mock_db, applicant.id, ApplicationStatus.REJECTED, admin_id)

        assert result is applicant


@pytest.mark.asyncio
async def test_set_status_unknown_applicant(mock_db, admin_id):
    with patch(f"{SERVICE}.UserRepository") as mock_users:
        mock_users.lock = AsyncMock(return_value=None)

        with pytest.raises(ApplicantNotFoundError):
            await set_status(mock_db, uuid4(), ApplicationStatus.APPROVED, admin_id)


@pytest.mark.asyncio
async def test_set_status_refuses_admin_account(mock_db, admin_id):
    other_admin = MagicMock(spec=User)
    other_admin.id = uuid4()
    other_admin.role = UserRole.ADMIN
    other_admin.application_status = ApplicationStatus.ACTIVE

    with (
        patch(f"{SERVICE}.UserRepository") as mock_users,
        patch(f"{SERVICE}.send_application_status_update", new_callable=AsyncMock) as mock_send,
    ):
        mock_users.lock = AsyncMock(return_value=other_admin)
        mock_users.update_application_status = AsyncMock()

        with pytest.raises(ApplicantNotFoundError) as exc_info:
            await set_status(mock_db, other_admin.id, ApplicationStatus.APPROVED, admin_id)

        assert exc_info.value.error_code == "APPLICANT_NOT_FOUND"
        mock_users.update_application_status.assert_not_called()
        mock_send.assert_not_called()
        assert other_admin.application_status == ApplicationStatus.ACTIVE


@pytest.mark.asyncio
async def test_get_status_refuses_admin_account(mock_db):
    admin = MagicMock(spec=User)
    admin.role = UserRole.ADMIN

    with patch(f"{SERVICE}.UserRepository") as mock_users:
        mock_users.get_by_id = AsyncMock(return_value=admin)

        with pytest.raises(ApplicantNotFoundError):
            await get_status(mock_db, uuid4())


# ============================================
# Test get_application_detail
# ============================================


@pytest.mark.asyncio
async def test_get_application_detail(mock_db, applicant):
    with (
        patch(f"{SERVICE}.UserRepository") as mock_users,
        patch(f"{SERVICE}.academic_repository") as mock_academic,
        patch(f"{SERVICE}.document_repository") as mock_documents,
        patch(f"{SERVICE}.profile_repository") as mock_profile,
    ):
        mock_users.get_by_id = AsyncMock(return_value=applicant)
        mock_profile.get_personal_info = AsyncMock(return_value="personal")
        mock_profile.get_contact_info = AsyncMock(return_value=None)
        mock_academic.list_by_owner = AsyncMock(return_value=["record"])
        mock_documents.list_by_owner = AsyncMock(return_value=["document"])

        result = await get_application_detail(mock_db, applicant.id)

        assert result == {
            "user": applicant,
            "personal_info": "personal",
            "contact_info": None,
            "academic_records": ["record"],
            "documents": ["document"],
        }


# ============================================
# Test dashboard statistics
# ============================================


class TestApprovalRate:
    def test_empty_counts(self):
        assert approval_rate({}) == 0.0

    def test_rounds_to_two_decimals(self):
        counts = {
            ApplicationStatus.APPROVED: 1,
            ApplicationStatus.REJECTED: 1,
            ApplicationStatus.PENDING: 1,
        }
        assert approval_rate(counts) == 33.33

    def test_active_accounts_are_ignored(self):
        counts = {ApplicationStatus.APPROVED: 3, ApplicationStatus.ACTIVE: 10}
        assert approval_rate(counts) == 100.0


@pytest.mark.asyncio
async def test_get_dashboard_stats(mock_db):
    now = datetime(2026, 3, 1, tzinfo=UTC)

    with (
        patch(f"{SERVICE}.UserRepository") as mock_users,
        patch(f"{SERVICE}.document_repository") as mock_documents,
    ):
        mock_users.count_applicants_by_status = AsyncMock(
            return_value={
                ApplicationStatus.PENDING: 5,
                ApplicationStatus.APPROVED: 3,
                ApplicationStatus.REJECTED: 2,
            }
        )
        mock_users.count_applicants_by_status_since = AsyncMock(
            return_value={ApplicationStatus.APPROVED: 1, ApplicationStatus.REJECTED: 3}
        )
        mock_documents.count_by_status = AsyncMock(
            return_value={
                DocumentStatus.UPLOADED: 4,
                DocumentStatus.VALIDATION_PENDING: 2,
                DocumentStatus.VALIDATED: 9,
            }
        )

        stats = await get_dashboard_stats(mock_db, now=now)

        assert stats == {
            "total_applicants": 10,
            "pending": 5,
            "approved": 3,
            "rejected": 2,
            "documents_awaiting_review": 6,
            "approval_rate_last_30_days": 25.0,
        }
        since = mock_users.count_applicants_by_status_since.call_args.args[1]
        assert since == now - timedelta(days=STATS_WINDOW_DAYS)
