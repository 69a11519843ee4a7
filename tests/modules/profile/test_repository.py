"""
Unit tests for the profile repository: first save inserts, later saves overwrite.
"""

from datetime import date
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from admissions.modules.profile import repository
from admissions.modules.profile.models import ContactInfo, Gender, IdDocumentType, PersonalInfo


def execute_result(value):
    """A mock query result whose scalar_one_or_none() returns value."""
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


@pytest.fixture
def mock_db():
    db = AsyncMock()
    db.add = MagicMock()
    db.commit = AsyncMock()
    db.refresh = AsyncMock()
    return db


PERSONAL_FIELDS = {
    "last_name": "Ndiaye",
    "first_names": "Awa",
    "gender": Gender.FEMALE,
    "date_of_birth": date(2005, 6, 15),
    "nationality": "Senegalese",
    "id_document_type": IdDocumentType.PASSPORT,
}


@pytest.mark.asyncio
async def test_first_personal_info_save_inserts(mock_db):
    owner_id = uuid4()
    mock_db.execute.return_value = execute_result(None)

    info = await repository.save_personal_info(mock_db, owner_id, PERSONAL_FIELDS)

    assert isinstance(info, PersonalInfo)
    assert info.owner_id == owner_id
    assert info.id_document_type == IdDocumentType.PASSPORT
    mock_db.add.assert_called_once_with(info)
    mock_db.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_personal_info_save_overwrites_existing(mock_db):
    existing = SimpleNamespace(owner_id=uuid4(), last_name="Old", nationality="Malian")
    mock_db.execute.return_value = execute_result(existing)

    info = await repository.save_personal_info(mock_db, existing.owner_id, PERSONAL_FIELDS)

    assert info is existing
    assert info.last_name == "Ndiaye"
    assert info.nationality == "Senegalese"
    mock_db.add.assert_not_called()
    mock_db.refresh.assert_awaited_once_with(existing)


@pytest.mark.asyncio
async def test_first_contact_info_save_is_unverified(mock_db):
    mock_db.execute.return_value = execute_result(None)

    info = await repository.save_contact_info(
        mock_db,
        uuid4(),
        {
            "phone_number": "+221771234567",
            "address_street": "12 Rue Carnot",
            "address_street2": None,
            "address_city": "Dakar",
            "address_postal_code": "10200",
            "address_country": "Senegal",
            "emergency_contact_name": "Fatou Ndiaye",
            "emergency_contact_relationship": "Mother",
            "emergency_contact_phone": "+221338210000",
        },
    )

    assert isinstance(info, ContactInfo)
    assert info.email_verified is False
    mock_db.add.assert_called_once_with(info)


@pytest.mark.asyncio
async def test_contact_info_save_keeps_verification_flag(mock_db):
    existing = SimpleNamespace(owner_id=uuid4(), email_verified=True, address_city="Thiès")
    mock_db.execute.return_value = execute_result(existing)

    info = await repository.save_contact_info(mock_db, existing.owner_id, {"address_city": "Dakar"})

    assert info.email_verified is True
    assert info.address_city == "Dakar"
