"""
Profile Service Layer

Saves and reads an applicant's personal and contact details.

Saving is create-or-replace: the first save inserts the owner's row, later
saves overwrite every field. The owner's account row is locked for the save
so two concurrent first saves cannot both insert.
"""

import logging
import re
from dataclasses import asdict, dataclass
from datetime import UTC, date, datetime
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from admissions.core.exceptions import NotFoundError, ValidationFailedError
from admissions.modules.profile import repository
from admissions.modules.profile.models import ContactInfo, Gender, IdDocumentType, PersonalInfo
from admissions.modules.users.models import UserRole
from admissions.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)

MIN_AGE = 16

NAME_PUNCTUATION = " .'-"
PHONE_PATTERN = re.compile(r"^\+?[0-9\s\-()]+$")


class PersonalInfoNotFoundError(NotFoundError):
    def __init__(self, owner_id: UUID):
        self.owner_id = owner_id
        super().__init__(message="Personal information not provided yet.", error_code="PERSONAL_INFO_NOT_FOUND")


class ContactInfoNotFoundError(NotFoundError):
    def __init__(self, owner_id: UUID):
        self.owner_id = owner_id
        super().__init__(message="Contact information not provided yet.", error_code="CONTACT_INFO_NOT_FOUND")


class ApplicantTooYoungError(ValidationFailedError):
    def __init__(self):
        super().__init__(
            f"Applicant must be at least {MIN_AGE} years old.",
            error_code="APPLICANT_TOO_YOUNG",
        )


@dataclass(frozen=True)
class PersonalInfoInput:
    last_name: str
    first_names: str
    gender: Gender
    date_of_birth: date
    nationality: str
    id_document_type: IdDocumentType


@dataclass(frozen=True)
class ContactInfoInput:
    phone_number: str
    address_street: str
    address_city: str
    address_postal_code: str
    address_country: str
    emergency_contact_name: str
    emergency_contact_relationship: str
    emergency_contact_phone: str
    address_street2: str | None = None


def age_on(date_of_birth: date, today: date) -> int:
    """Whole years between date_of_birth and today."""
    before_birthday = (today.month, today.day) < (date_of_birth.month, date_of_birth.day)
    return today.year - date_of_birth.year - int(before_birthday)


def _required(label: str, value: str) -> str:
    value = value.strip()
    if not value:
        raise ValidationFailedError(f"{label} is required.")
    return value


def _person_name(label: str, value: str) -> str:
    value = _required(label, value)
    if not all(ch.isalpha() or ch in NAME_PUNCTUATION for ch in value):
        raise ValidationFailedError(
            f"{label} must contain only letters, spaces, dots, apostrophes or hyphens.",
            error_code="INVALID_NAME",
        )
    return value


def _phone(label: str, value: str) -> str:
    value = _required(label, value)
    if not PHONE_PATTERN.match(value):
        raise ValidationFailedError(f"{label} is not a valid phone number.", error_code="INVALID_PHONE")
    return value


def _clean_personal_info(data: PersonalInfoInput, today: date) -> PersonalInfoInput:
    """
    Trim text fields and check names and age.

    Raises:
        ValidationFailedError: On any invalid field
        ApplicantTooYoungError: Younger than MIN_AGE on `today`
    """
    if data.date_of_birth >= today:
        raise ValidationFailedError("Date of birth must be in the past.", error_code="DATE_IN_FUTURE")
    if age_on(data.date_of_birth, today) < MIN_AGE:
        raise ApplicantTooYoungError()

    return PersonalInfoInput(
        last_name=_person_name("Last name", data.last_name),
        first_names=_person_name("First names", data.first_names),
        gender=data.gender,
        date_of_birth=data.date_of_birth,
        nationality=_required("Nationality", data.nationality),
        id_document_type=data.id_document_type,
    )


def _clean_contact_info(data: ContactInfoInput) -> ContactInfoInput:
    street2 = data.address_street2.strip() if data.address_street2 else None

    return ContactInfoInput(
        phone_number=_phone("Phone number", data.phone_number),
        address_street=_required("Street", data.address_street),
        address_street2=street2 or None,
        address_city=_required("City", data.address_city),
        address_postal_code=_required("Postal code", data.address_postal_code),
        address_country=_required("Country", data.address_country),
        emergency_contact_name=_required("Emergency contact name", data.emergency_contact_name),
        emergency_contact_relationship=_required(
            "Emergency contact relationship", data.emergency_contact_relationship
        ),
        emergency_contact_phone=_phone("Emergency contact phone", data.emergency_contact_phone),
    )


async def _lock_applicant(db: AsyncSession, owner_id: UUID) -> None:
    owner = await UserRepository.lock(db, owner_id)
    if owner is None or owner.role != UserRole.APPLICANT:
        raise NotFoundError("Applicant account not found.", error_code="APPLICANT_NOT_FOUND")


async def get_personal_info(db: AsyncSession, owner_id: UUID) -> PersonalInfo:
    """
    Raises:
        PersonalInfoNotFoundError: Nothing saved yet
    """
    info = await repository.get_personal_info(db, owner_id)
    if info is None:
        raise PersonalInfoNotFoundError(owner_id)
    return info


async def save_personal_info(
    db: AsyncSession,
    owner_id: UUID,
    data: PersonalInfoInput,
    today: date | None = None,
) -> PersonalInfo:
    """
    Create or replace an applicant's personal details.

    Raises:
        ValidationFailedError: Invalid names or date of birth
        ApplicantTooYoungError: Under MIN_AGE
        NotFoundError: Applicant account does not exist
    """
    cleaned = _clean_personal_info(data, today or datetime.now(UTC).date())

    await _lock_applicant(db, owner_id)
    info = await repository.save_personal_info(db, owner_id, asdict(cleaned))

    logger.info(f"Personal info saved for owner {owner_id}")
    return info


async def get_contact_info(db: AsyncSession, owner_id: UUID) -> ContactInfo:
    """
    Raises:
        ContactInfoNotFoundError: Nothing saved yet
    """
    info = await repository.get_contact_info(db, owner_id)
    if info is None:
        raise ContactInfoNotFoundError(owner_id)
    return info


async def save_contact_info(db: AsyncSession, owner_id: UUID, data: ContactInfoInput) -> ContactInfo:
    """
    Create or replace an applicant's contact details.

    The email verification flag is never taken from the caller.

    Raises:
        ValidationFailedError: Blank fields or invalid phone numbers
        NotFoundError: Applicant account does not exist
    """
    cleaned = _clean_contact_info(data)

    await _lock_applicant(db, owner_id)
    info = await repository.save_contact_info(db, owner_id, asdict(cleaned))

    logger.info(f"Contact info saved for owner {owner_id}")
    return info
