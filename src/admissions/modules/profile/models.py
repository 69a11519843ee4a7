"""
Profile Models

Personal details and contact details of an applicant. Each table holds at
most one row per owner; saving again overwrites it.
"""

import uuid
from datetime import date
from enum import Enum

from sqlalchemy import Boolean, Date, Float, ForeignKey, String
from sqlalchemy.dialects.postgresql import ENUM, UUID
from sqlalchemy.orm import Mapped, mapped_column

from admissions.modules.shared import BaseModel


class Gender(str, Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"
    OTHER = "OTHER"


class IdDocumentType(str, Enum):
    """Identity document the applicant will upload as ID card scans."""

    NATIONAL_ID_CARD = "NATIONAL_ID_CARD"
    PASSPORT = "PASSPORT"
    RESIDENCE_PERMIT = "RESIDENCE_PERMIT"


class PersonalInfo(BaseModel):
    """Civil status of an applicant."""

    __tablename__ = "personal_info"

    owner_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id"),
        unique=True,
        nullable=False,
    )
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    # All given names, space separated
    first_names: Mapped[str] = mapped_column(String(150), nullable=False)
    gender: Mapped[Gender] = mapped_column(
        ENUM(Gender, name="gender", create_type=True),
        nullable=False,
    )
    date_of_birth: Mapped[date] = mapped_column(Date, nullable=False)
    nationality: Mapped[str] = mapped_column(String(100), nullable=False)
    id_document_type: Mapped[IdDocumentType] = mapped_column(
        ENUM(IdDocumentType, name="id_document_type", create_type=True),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<PersonalInfo(owner={self.owner_id}, {self.last_name})>"


class ContactInfo(BaseModel):
    """Phone, postal address and emergency contact of an applicant."""

    __tablename__ = "contact_info"

    owner_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id"),
        unique=True,
        nullable=False,
    )
    # Never set from a request body
    email_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    phone_number: Mapped[str] = mapped_column(String(30), nullable=False)

    address_street: Mapped[str] = mapped_column(String(255), nullable=False)
    address_street2: Mapped[str | None] = mapped_column(String(100), nullable=True)
    address_city: Mapped[str] = mapped_column(String(100), nullable=False)
    address_postal_code: Mapped[str] = mapped_column(String(20), nullable=False)
    address_country: Mapped[str] = mapped_column(String(100), nullable=False)
    address_latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    address_longitude: Mapped[float | None] = mapped_column(Float, nullable=True)

    emergency_contact_name: Mapped[str] = mapped_column(String(150), nullable=False)
    emergency_contact_relationship: Mapped[str] = mapped_column(String(100), nullable=False)
    emergency_contact_phone: Mapped[str] = mapped_column(String(30), nullable=False)

    def __repr__(self) -> str:
        return f"<ContactInfo(owner={self.owner_id}, {self.address_city})>"
