"""
Academic History Service Layer

Adds, replaces and deletes an applicant's academic records.

Overlap validation and the write happen in one transaction: the owner's
account row is locked with SELECT ... FOR UPDATE, then the owner's full set
of records is read and validated, then the record is written and committed.
Two concurrent additions for the same owner are therefore serialized and the
second one validates against the first.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, date, datetime
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from admissions.core.exceptions import NotFoundError, OverlapError, ValidationFailedError
from admissions.modules.academic_history import repository
from admissions.modules.academic_history.models import AcademicRecord
from admissions.modules.academic_history.validator import validate_interval
from admissions.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 255


class AcademicRecordNotFoundError(NotFoundError):
    def __init__(self, record_id: UUID):
        self.record_id = record_id
        super().__init__(message="Academic record not found.", error_code="ACADEMIC_RECORD_NOT_FOUND")


class FutureDateError(ValidationFailedError):
    def __init__(self, field: str, value: date):
        super().__init__(
            f"{field} {value.isoformat()} cannot be in the future.",
            error_code="DATE_IN_FUTURE",
        )


@dataclass(frozen=True)
class AcademicRecordInput:
    institution_name: str
    specialization: str
    start_date: date
    end_date: date | None = None


def _clean_input(data: AcademicRecordInput, today: date) -> AcademicRecordInput:
    """
    Trim names and reject blank or over-long names and future dates.

    Raises:
        ValidationFailedError: On any invalid field
    """
    institution_name = data.institution_name.strip()
    specialization = data.specialization.strip()

    for label, value in (("Institution name", institution_name), ("Specialization", specialization)):
        if not value:
            raise ValidationFailedError(f"{label} is required.")
        if len(value) > MAX_NAME_LENGTH:
            raise ValidationFailedError(f"{label} must be at most {MAX_NAME_LENGTH} characters.")

    if data.start_date > today:
        raise FutureDateError("Start date", data.start_date)
    if data.end_date is not None and data.end_date > today:
        raise FutureDateError("End date", data.end_date)

    return AcademicRecordInput(
        institution_name=institution_name,
        specialization=specialization,
        start_date=data.start_date,
        end_date=data.end_date,
    )


async def _lock_owner(db: AsyncSession, owner_id: UUID) -> None:
    owner = await UserRepository.lock(db, owner_id)
    if owner is None:
        raise NotFoundError("Applicant account not found.", error_code="APPLICANT_NOT_FOUND")


async def list_records(db: AsyncSession, owner_id: UUID) -> list[AcademicRecord]:
    """List an applicant's records, most recent start first."""
    return await repository.list_by_owner(db, owner_id)


async def add_record(
    db: AsyncSession,
    owner_id: UUID,
    data: AcademicRecordInput,
    today: date | None = None,
) -> AcademicRecord:
    """
    Add an academic record.

    Raises:
        ValidationFailedError: Blank names, future dates or end before start
        OverlapError: The period overlaps an existing record
        NotFoundError: Applicant account does not exist
    """
    cleaned = _clean_input(data, today or datetime.now(UTC).date())

    await _lock_owner(db, owner_id)
    existing = await repository.list_by_owner(db, owner_id)

    try:
        validate_interval(cleaned.start_date, cleaned.end_date, existing)
    except OverlapError as e:
        logger.warning(f"Academic record for {owner_id} overlaps record {e.conflicting_record_id}")
        raise

    record = await repository.create(
        db,
        owner_id=owner_id,
        institution_name=cleaned.institution_name,
        specialization=cleaned.specialization,
        start_date=cleaned.start_date,
        end_date=cleaned.end_date,
    )

    logger.info(f"Academic record {record.id} added for owner {owner_id}")
    return record


async def update_record(
    db: AsyncSession,
    owner_id: UUID,
    record_id: UUID,
    data: AcademicRecordInput,
    today: date | None = None,
) -> AcademicRecord:
    """
    Replace an academic record's fields.

    The record is validated against every other record of the owner.

    Raises:
        AcademicRecordNotFoundError: Absent or owned by someone else
        ValidationFailedError: Blank names, future dates or end before start
        OverlapError: The new period overlaps another record
    """
    cleaned = _clean_input(data, today or datetime.now(UTC).date())

    await _lock_owner(db, owner_id)
    existing = await repository.list_by_owner(db, owner_id)

    record = next((r for r in existing if r.id == record_id), None)
    if record is None:
        logger.warning(f"Academic record {record_id} not found for owner {owner_id}")
        raise AcademicRecordNotFoundError(record_id)

    try:
        validate_interval(cleaned.start_date, cleaned.end_date, existing, exclude_id=record_id)
    except OverlapError as e:
        logger.warning(f"Academic record {record_id} would overlap record {e.conflicting_record_id}")
        raise

    updated = await repository.update(
        db,
        record,
        institution_name=cleaned.institution_name,
        specialization=cleaned.specialization,
        start_date=cleaned.start_date,
        end_date=cleaned.end_date,
    )

    logger.info(f"Academic record {record_id} updated for owner {owner_id}")
    return updated


async def delete_record(db: AsyncSession, owner_id: UUID, record_id: UUID) -> None:
    """
    Delete an academic record.

    Raises:
        AcademicRecordNotFoundError: Absent or owned by someone else
    """
    if not await repository.delete_owned(db, record_id, owner_id):
        logger.warning(f"Academic record {record_id} not found for owner {owner_id}")
        raise AcademicRecordNotFoundError(record_id)

    logger.info(f"Academic record {record_id} deleted for owner {owner_id}")
