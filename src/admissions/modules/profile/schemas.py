"""
Profile Schemas
"""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from admissions.modules.profile.models import ContactInfo, Gender, IdDocumentType


class PersonalInfoRequest(BaseModel):
    last_name: str = Field(..., min_length=1, max_length=100)
    first_names: str = Field(..., min_length=1, max_length=150)
    gender: Gender
    date_of_birth: date
    nationality: str = Field(..., min_length=1, max_length=100)
    id_document_type: IdDocumentType


class PersonalInfoResponse(BaseModel):
    last_name: str
    first_names: str
    gender: Gender
    date_of_birth: date
    nationality: str
    id_document_type: IdDocumentType
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class Address(BaseModel):
    street: str = Field(..., min_length=1, max_length=255)
    street2: str | None = Field(None, max_length=100)
    city: str = Field(..., min_length=1, max_length=100)
    postal_code: str = Field(..., min_length=1, max_length=20)
    country: str = Field(..., min_length=1, max_length=100)


class EmergencyContact(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    relationship: str = Field(..., min_length=1, max_length=100)
    phone: str = Field(..., min_length=1, max_length=30)


class ContactInfoRequest(BaseModel):
    """email_verified is not accepted here; it is managed by the service."""

    phone_number: str = Field(..., min_length=1, max_length=30)
    address: Address
    emergency_contact: EmergencyContact


class AddressResponse(Address):
    latitude: float | None = None
    longitude: float | None = None


class ContactInfoResponse(BaseModel):
    email_verified: bool
    phone_number: str
    address: AddressResponse
    emergency_contact: EmergencyContact
    updated_at: datetime

    @classmethod
    def from_model(cls, info: ContactInfo) -> "ContactInfoResponse":
        return cls(
            email_verified=info.email_verified,
            phone_number=info.phone_number,
            address=AddressResponse(
                street=info.address_street,
                street2=info.address_street2,
                city=info.address_city,
                postal_code=info.address_postal_code,
                country=info.address_country,
                latitude=info.address_latitude,
                longitude=info.address_longitude,
            ),
            emergency_contact=EmergencyContact(
                name=info.emergency_contact_name,
                relationship=info.emergency_contact_relationship,
                phone=info.emergency_contact_phone,
            ),
            updated_at=info.updated_at,
        )
