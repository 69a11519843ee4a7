"""
Profile Router (applicant)

Endpoints:
- GET /applicant/personal-info - Own personal details
- PUT /applicant/personal-info - Create or replace personal details
- GET /applicant/contact-info - Own contact details
- PUT /applicant/contact-info - Create or replace contact details

GET answers 404 until the first save.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from admissions.core.auth import CurrentUser, get_current_applicant
from admissions.core.database import get_db
from admissions.core.exceptions import ServiceError
from admissions.modules.profile import service
from admissions.modules.profile.schemas import (
    ContactInfoRequest,
    ContactInfoResponse,
    PersonalInfoRequest,
    PersonalInfoResponse,
)
from admissions.modules.profile.service import ContactInfoInput, PersonalInfoInput

# Mounted at /applicant
router = APIRouter()


def _handle_service_error(e: ServiceError) -> None:
    """Convert service errors to HTTPExceptions."""
    raise HTTPException(
        status_code=e.status_code,
        detail={"error": e.error_code, "message": e.message},
    ) from e


@router.get("/personal-info", response_model=PersonalInfoResponse, summary="My Personal Info")
async def get_personal_info(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_applicant),
) -> PersonalInfoResponse:
    try:
        info = await service.get_personal_info(db, current_user.id)
    except ServiceError as e:
        _handle_service_error(e)

    return PersonalInfoResponse.model_validate(info)


@router.put(
    "/personal-info",
    response_model=PersonalInfoResponse,
    summary="Save Personal Info",
    responses={400: {"description": "Invalid names, or applicant younger than 16"}},
)
async def save_personal_info(
    data: PersonalInfoRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_applicant),
) -> PersonalInfoResponse:
    try:
        info = await service.save_personal_info(db, current_user.id, PersonalInfoInput(**data.model_dump()))
    except ServiceError as e:
        _handle_service_error(e)

    return PersonalInfoResponse.model_validate(info)


@router.get("/contact-info", response_model=ContactInfoResponse, summary="My Contact Info")
async def get_contact_info(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_applicant),
) -> ContactInfoResponse:
    try:
        info = await service.get_contact_info(db, current_user.id)
    except ServiceError as e:
        _handle_service_error(e)

    return ContactInfoResponse.from_model(info)


@router.put("/contact-info", response_model=ContactInfoResponse, summary="Save Contact Info")
async def save_contact_info(
    data: ContactInfoRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_applicant),
) -> ContactInfoResponse:
    fields = ContactInfoInput(
        phone_number=data.phone_number,
        address_street=data.address.street,
        address_street2=data.address.street2,
        address_city=data.address.city,
        address_postal_code=data.address.postal_code,
        address_country=data.address.country,
        emergency_contact_name=data.emergency_contact.name,
        emergency_contact_relationship=data.emergency_contact.relationship,
        emergency_contact_phone=data.emergency_contact.phone,
    )

    try:
        info = await service.save_contact_info(db, current_user.id, fields)
    except ServiceError as e:
        _handle_service_error(e)

    return ContactInfoResponse.from_model(info)
