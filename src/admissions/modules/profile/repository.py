"""
Profile Repository

Database operations for personal and contact details. One row per owner.
"""

from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import ContactInfo, PersonalInfo


async def get_personal_info(db: AsyncSession, owner_id: UUID) -> PersonalInfo | None:
    result = await db.execute(select(PersonalInfo).where(PersonalInfo.owner_id == owner_id))
    return result.scalar_one_or_none()


async def get_contact_info(db: AsyncSession, owner_id: UUID) -> ContactInfo | None:
    result = await db.execute(select(ContactInfo).where(ContactInfo.owner_id == owner_id))
    return result.scalar_one_or_none()


async def save_personal_info(db: AsyncSession, owner_id: UUID, fields: dict[str, Any]) -> PersonalInfo:
    """
    Create or overwrite the owner's personal details and commit.

    Callers hold the owner's row lock so two first saves cannot both insert.
    """
    info = await get_personal_info(db, owner_id)
    if info is None:
        info = PersonalInfo(owner_id=owner_id, **fields)
        db.add(info)
    else:
        for name, value in fields.items():
            setattr(info, name, value)

    await db.commit()
    await db.refresh(info)

    return info


async def save_contact_info(db: AsyncSession, owner_id: UUID, fields: dict[str, Any]) -> ContactInfo:
    """
    Create or overwrite the owner's contact details and commit.

    email_verified is left as stored; new rows start unverified.
    """
    info = await get_contact_info(db, owner_id)
    if info is None:
        info = ContactInfo(owner_id=owner_id, email_verified=False, **fields)
        db.add(info)
    else:
        for name, value in fields.items():
            setattr(info, name, value)

    await db.commit()
    await db.refresh(info)

    return info
