"""
Applications Service Layer

Owns the applicant's overall application status.

Any status may follow any other so admins can reverse a decision. Setting
the current status again is a no-op. Every real change stamps
status_updated_at; only the latest change time is kept, and the 30-day
approval rate is computed from it.
"""

import logging
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from admissions.core.email import send_application_status_update
from admissions.core.exceptions import NotFoundError
from admissions.modules.academic_history import repository as academic_repository
from admissions.modules.documents import repository as document_repository
from admissions.modules.documents.models import DocumentStatus
from admissions.modules.profile import repository as profile_repository
from admissions.modules.users.models import ApplicationStatus, User, UserRole
from admissions.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)

STATS_WINDOW_DAYS = 30

# Documents an admin still has to look at
AWAITING_REVIEW_STATUSES = (DocumentStatus.UPLOADED, DocumentStatus.VALIDATION_PENDING)


class ApplicantNotFoundError(NotFoundError):
    def __init__(self, owner_id: UUID):
        self.owner_id = owner_id
        super().__init__(message="Applicant not found.", error_code="APPLICANT_NOT_FOUND")


def _is_applicant(user: User | None) -> bool:
    return user is not None and user.role == UserRole.APPLICANT


async def _notify_status_change(user: User) -> None:
    try:
        await send_application_status_update(
            to_email=user.email,
            applicant_name=user.full_name,
            new_status=user.application_status.value,
        )
    except Exception as e:
        # Don't fail the request - email is non-critical
        logger.error(f"Failed to send application status email to user {user.id}: {e}", exc_info=True)


async def get_status(db: AsyncSession, owner_id: UUID) -> User:
    """
    Get the account carrying an applicant's status.

    Raises:
        ApplicantNotFoundError: If no applicant account exists
    """
    user = await UserRepository.get_by_id(db, owner_id)
    if not _is_applicant(user):
        raise ApplicantNotFoundError(owner_id)
    return user


async def set_status(
    db: AsyncSession,
    owner_id: UUID,
    new_status: ApplicationStatus,
    admin_id: UUID,
) -> User:
    """
    Set an applicant's application status.

    Args:
        db: Database session
        owner_id: Applicant account
        new_status: Target status, reachable from any status
        admin_id: Admin making the change, for the audit log

    Returns:
        The account with its current status

    Raises:
        ApplicantNotFoundError: If no applicant account exists
    """
    logger.info(f"Admin {admin_id} setting application status of {owner_id} to {new_status.value}")

    user = await UserRepository.lock(db, owner_id)
    if not _is_applicant(user):
        logger.warning(f"Applicant not found: {owner_id}")
        raise ApplicantNotFoundError(owner_id)

    if user.application_status == new_status:
        # Nothing changed; commit only releases the lock and keeps the instance loaded
        await db.commit()
        logger.info(f"Application of {owner_id} already {new_status.value}, nothing to do")
        return user

    previous = user.application_status
    user = await UserRepository.update_application_status(db, user, new_status, datetime.now(UTC))
    logger.info(f"Application of {owner_id} changed {previous.value} -> {new_status.value}")

    await _notify_status_change(user)
    return user


async def get_application_detail(db: AsyncSession, owner_id: UUID) -> dict[str, Any]:
    """
    Collect everything an admin reviews for one applicant.

    Returns:
        Dict with user, personal_info and contact_info (None until saved),
        academic_records and documents

    Raises:
        ApplicantNotFoundError: If no applicant account exists
    """
    user = await get_status(db, owner_id)
    personal_info = await profile_repository.get_personal_info(db, owner_id)
    contact_info = await profile_repository.get_contact_info(db, owner_id)
    records = await academic_repository.list_by_owner(db, owner_id)
    documents = await document_repository.list_by_owner(db, owner_id)

    return {
        "user": user,
        "personal_info": personal_info,
        "contact_info": contact_info,
        "academic_records": records,
        "documents": documents,
    }


def approval_rate(counts: dict[ApplicationStatus, int]) -> float:
    """
    Percentage of APPROVED among PENDING, APPROVED and REJECTED, two decimals.

    0.0 when there is nothing to count.
    """
    approved = counts.get(ApplicationStatus.APPROVED, 0)
    total = (
        approved
        + counts.get(ApplicationStatus.REJECTED, 0)
        + counts.get(ApplicationStatus.PENDING, 0)
    )
    if total == 0:
        return 0.0
    return round(approved / total * 100.0, 2)


async def get_dashboard_stats(db: AsyncSession, now: datetime | None = None) -> dict[str, Any]:
    """
    Simple counts for the admin dashboard.

    Returns:
        Dict with total_applicants, pending, approved, rejected,
        documents_awaiting_review and approval_rate_last_30_days
    """
    now = now or datetime.now(UTC)

    by_status = await UserRepository.count_applicants_by_status(db)
    recent = await UserRepository.count_applicants_by_status_since(
        db, now - timedelta(days=STATS_WINDOW_DAYS)
    )
    documents = await document_repository.count_by_status(db)

    stats = {
        "total_applicants": sum(by_status.values()),
        "pending": by_status.get(ApplicationStatus.PENDING, 0),
        "approved": by_status.get(ApplicationStatus.APPROVED, 0),
        "rejected": by_status.get(ApplicationStatus.REJECTED, 0),
        "documents_awaiting_review": sum(documents.get(s, 0) for s in AWAITING_REVIEW_STATUSES),
        "approval_rate_last_30_days": approval_rate(recent),
    }
    logger.info(f"Dashboard stats: {stats}")
    return stats
