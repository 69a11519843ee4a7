"""
Tests for applicant profile service functions.

These tests verify:
- Personal info validation (names, date of birth, minimum age)
- Contact info validation (required fields, phone numbers)
- Saves happen under the owner lock and only for applicant accounts
- Reads before the first save are not found
"""

from datetime import date
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest

from admissions.core.exceptions import NotFoundError, ValidationFailedError
from admissions.modules.profile.models import ContactInfo, Gender, IdDocumentType, PersonalInfo
from admissions.modules.profile.service import (
    MIN_AGE,
    ApplicantTooYoungError,
    ContactInfoInput,
    ContactInfoNotFoundError,
    PersonalInfoInput,
    PersonalInfoNotFoundError,
    age_on,
    get_contact_info,
    get_personal_info,
    save_contact_info,
    save_personal_info,
)
from admissions.modules.users.models import User, UserRole

SERVICE = "admissions.modules.profile.service"
TODAY = date(2026, 3, 1)


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.refresh = AsyncMock()
    db.execute = AsyncMock()
    return db


@pytest.fixture
def owner_id():
    return uuid4()


def account(role: UserRole = UserRole.APPLICANT) -> User:
    user = MagicMock(spec=User)
    user.id = uuid4()
    user.role = role
    return user


def personal_input(**overrides) -> PersonalInfoInput:
    values = {
        "last_name": "  Ndiaye ",
        "first_names": "Awa Marie",
        "gender": Gender.FEMALE,
        "date_of_birth": date(2005, 6, 15),
        "nationality": " Senegalese ",
        "id_document_type": IdDocumentType.NATIONAL_ID_CARD,
    }
    values.update(overrides)
    return PersonalInfoInput(**values)


def contact_input(**overrides) -> ContactInfoInput:
    values = {
        "phone_number": "+221 77 123 45 67",
        "address_street": "12 Rue Carnot",
        "address_street2": "  ",
        "address_city": "Dakar",
        "address_postal_code": "10200",
        "address_country": "Senegal",
        "emergency_contact_name": "Fatou Ndiaye",
        "emergency_contact_relationship": "Mother",
        "emergency_contact_phone": "(221) 33-821-00-00",
    }
    values.update(overrides)
    return ContactInfoInput(**values)


class TestAgeOn:
    def test_birthday_already_passed(self):
        assert age_on(date(2010, 1, 15), TODAY) == 16

    def test_birthday_not_yet_reached(self):
        assert age_on(date(2010, 3, 2), TODAY) == 15

    def test_on_the_birthday(self):
        assert age_on(date(2010, 3, 1), TODAY) == 16


# ============================================
# Test personal info
# ============================================


@pytest.mark.asyncio
async def test_save_personal_info_trims_and_saves(mock_db, owner_id):
    saved = MagicMock(spec=PersonalInfo)

    with (
        patch(f"{SERVICE}.repository") as mock_repo,
        patch(f"{SERVICE}.UserRepository") as mock_users,
    ):
        mock_users.lock = AsyncMock(return_value=account())
        mock_repo.save_personal_info = AsyncMock(return_value=saved)

        result = await save_personal_info(mock_db, owner_id, personal_input(), today=TODAY)

        assert result is saved
        mock_users.lock.assert_awaited_once_with(mock_db, owner_id)
        fields = mock_repo.save_personal_info.call_args.args[2]
        assert fields["last_name"] == "Ndiaye"
        assert fields["nationality"] == "Senegalese"
        assert fields["gender"] == Gender.FEMALE


@pytest.mark.asyncio
async def test_save_personal_info_accepts_exactly_min_age(mock_db, owner_id):
    with (
        patch(f"{SERVICE}.repository") as mock_repo,
        patch(f"{SERVICE}.UserRepository") as mock_users,
    ):
        mock_users.lock = AsyncMock(return_value=account())
        mock_repo.save_personal_info = AsyncMock()

        dob = date(TODAY.year - MIN_AGE, TODAY.month, TODAY.day)
        await save_personal_info(mock_db, owner_id, personal_input(date_of_birth=dob), today=TODAY)

        mock_repo.save_personal_info.assert_awaited_once()


@pytest.mark.asyncio
async def test_save_personal_info_rejects_too_young(mock_db, owner_id):
    with (
        patch(f"{SERVICE}.repository") as mock_repo,
        patch(f"{SERVICE}.UserRepository") as mock_users,
    ):
        mock_users.lock = AsyncMock(return_value=account())
        mock_repo.save_personal_info = AsyncMock()

        with pytest.raises(ApplicantTooYoungError) as exc_info:
            await save_personal_info(
                mock_db, owner_id, personal_input(date_of_birth=date(2010, 3, 2)), today=TODAY
            )

        assert exc_info.value.status_code == 400
        assert exc_info.value.error_code == "APPLICANT_TOO_YOUNG"
        mock_users.lock.assert_not_called()
        mock_repo.save_personal_info.assert_not_called()


@pytest.mark.asyncio
async def test_save_personal_info_rejects_future_birth_date(mock_db, owner_id):
    with pytest.raises(ValidationFailedError) as exc_info:
        await save_personal_info(
            mock_db, owner_id, personal_input(date_of_birth=date(2026, 3, 2)), today=TODAY
        )

    assert exc_info.value.error_code == "DATE_IN_FUTURE"


@pytest.mark.asyncio
@pytest.mark.parametrize("name", ["Ndiaye2", "   ", "Ndiaye_Sow", "N'Diaye <script>"])
async def test_save_personal_info_rejects_bad_names(mock_db, owner_id, name):
    with pytest.raises(ValidationFailedError):
        await save_personal_info(mock_db, owner_id, personal_input(last_name=name), today=TODAY)


@pytest.mark.asyncio
async def test_save_personal_info_accepts_accented_and_compound_names(mock_db, owner_id):
    with (
        patch(f"{SERVICE}.repository") as mock_repo,
        patch(f"{SERVICE}.UserRepository") as mock_users,
    ):
        mock_users.lock = AsyncMock(return_value=account())
        mock_repo.save_personal_info = AsyncMock()

        await save_personal_info(
            mock_db,
            owner_id,
            personal_input(last_name="N'Diaye-Sène", first_names="Élise J. Awa"),
            today=TODAY,
        )

        fields = mock_repo.save_personal_info.call_args.args[2]
        assert fields["last_name"] == "N'Diaye-Sène"


@pytest.mark.asyncio
async def test_save_personal_info_refuses_admin_account(mock_db, owner_id):
    with (
        patch(f"{SERVICE}.repository") as mock_repo,
        patch(f"{SERVICE}.UserRepository") as mock_users,
    ):
        mock_users.lock = AsyncMock(return_value=account(UserRole.ADMIN))
        mock_repo.save_personal_info = AsyncMock()

        with pytest.raises(NotFoundError):
            await save_personal_info(mock_db, owner_id, personal_input(), today=TODAY)

        mock_repo.save_personal_info.assert_not_called()


@pytest.mark.asyncio
async def test_get_personal_info_before_first_save(mock_db, owner_id):
    with patch(f"{SERVICE}.repository") as mock_repo:
        mock_repo.get_personal_info = AsyncMock(return_value=None)

        with pytest.raises(PersonalInfoNotFoundError) as exc_info:
            await get_personal_info(mock_db, owner_id)

        assert exc_info.value.status_code == 404


# ============================================
# Test contact info
# ============================================


@pytest.mark.asyncio
async def test_save_contact_info_cleans_fields(mock_db, owner_id):
    saved = MagicMock(spec=ContactInfo)

    with (
        patch(f"{SERVICE}.repository") as mock_repo,
        patch(f"{SERVICE}.UserRepository") as mock_users,
    ):
        mock_users.lock = AsyncMock(return_value=account())
        mock_repo.save_contact_info = AsyncMock(return_value=saved)

        result = await save_contact_info(mock_db, owner_id, contact_input())

        assert result is saved
        fields = mock_repo.save_contact_info.call_args.args[2]
        assert fields["address_street2"] is None
        assert fields["emergency_contact_phone"] == "(221) 33-821-00-00"
        assert "email_verified" not in fields


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides",
    [
        {"phone_number": "call me"},
        {"emergency_contact_phone": "+221 77 abc"},
        {"address_city": "  "},
        {"emergency_contact_relationship": ""},
    ],
)
async def test_save_contact_info_rejects_invalid_fields(mock_db, owner_id, overrides):
    with patch(f"{SERVICE}.repository") as mock_repo:
        mock_repo.save_contact_info = AsyncMock()

        with pytest.raises(ValidationFailedError):
            await save_contact_info(mock_db, owner_id, contact_input(**overrides))

        mock_repo.save_contact_info.assert_not_called()


@pytest.mark.asyncio
async def test_save_contact_info_unknown_owner(mock_db, owner_id):
    with patch(f"{SERVICE}.UserRepository") as mock_users:
        mock_users.lock = AsyncMock(return_value=None)

        with pytest.raises(NotFoundError) as exc_info:
            await save_contact_info(mock_db, owner_id, contact_input())

        assert exc_info.value.error_code == "APPLICANT_NOT_FOUND"


@pytest.mark.asyncio
async def test_get_contact_info_before_first_save(mock_db, owner_id):
    with patch(f"{SERVICE}.repository") as mock_repo:
        mock_repo.get_contact_info = AsyncMock(return_value=None)

        with pytest.raises(ContactInfoNotFoundError):
            await get_contact_info(mock_db, owner_id)
