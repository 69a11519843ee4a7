"""
Academic History Repository

Database operations for academic records. Every query is scoped to an owner.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import AcademicRecord


async def list_by_owner(db: AsyncSession, owner_id: UUID) -> list[AcademicRecord]:
    """List an owner's records, most recent start first."""
    result = await db.execute(
        select(AcademicRecord)
        .where(AcademicRecord.owner_id == owner_id)
        .order_by(AcademicRecord.start_date.desc(), AcademicRecord.id)
    )
    return list(result.scalars().all())


async def create(
    db: AsyncSession,
    *,
    owner_id: UUID,
    institution_name: str,
    specialization: str,
    start_date: date,
    end_date: date | None,
) -> AcademicRecord:
    """Insert a record and commit the current transaction."""
    record = AcademicRecord(
        owner_id=owner_id,
        institution_name=institution_name,
        specialization=specialization,
        start_date=start_date,
        end_date=end_date,
    )

    db.add(record)
    await db.commit()
    await db.refresh(record)

    return record


async def update(
    db: AsyncSession,
    record: AcademicRecord,
    *,
    institution_name: str,
    specialization: str,
    start_date: date,
    end_date: date | None,
) -> AcademicRecord:
    """Overwrite a loaded record's fields and commit."""
    record.institution_name = institution_name
    record.specialization = specialization
    record.start_date = start_date
    record.end_date = end_date

    await db.commit()
    await db.refresh(record)

    return record


async def delete_owned(db: AsyncSession, record_id: UUID, owner_id: UUID) -> bool:
    """
    Delete a record belonging to owner_id.

    Returns:
        True if a row was deleted
    """
    result = await db.execute(
        delete(AcademicRecord).where(
            AcademicRecord.id == record_id,
            AcademicRecord.owner_id == owner_id,
        )
    )
    await db.commit()
    return result.rowcount > 0
