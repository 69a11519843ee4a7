"""
User Repository

Database operations for user accounts and their application status.
"""

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from admissions.modules.users.models import ApplicationStatus, User, UserRole

logger = logging.getLogger(__name__)


class UserRepository:
    """Repository for user database operations."""

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        email: str,
        first_name: str,
        last_name: str,
        role: UserRole = UserRole.APPLICANT,
        phone: str | None = None,
        user_id: UUID | None = None,
    ) -> User:
        """
        Create a new user record.

        Applicants start as PENDING; every other role is marked ACTIVE.

        Args:
            db: Database session
            email: User's email address (unique)
            first_name: User's first name
            last_name: User's last name
            role: User's role
            phone: Phone number (optional)
            user_id: Identity-service subject to reuse as primary key (optional)

        Returns:
            Created User instance
        """
        user = User(
            email=email,
            first_name=first_name,
            last_name=last_name,
            role=role,
            phone=phone,
            application_status=(
                ApplicationStatus.PENDING if role == UserRole.APPLICANT else ApplicationStatus.ACTIVE
            ),
        )
        if user_id is not None:
            user.id = user_id

        db.add(user)
        await db.flush()
        await db.refresh(user)

        logger.info(f"Created user: {user.id} ({user.role.value})")
        return user

    @staticmethod
    async def get_by_id(db: AsyncSession, user_id: UUID) -> User | None:
        """Get a user by ID."""
        result = await db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_email(db: AsyncSession, email: str) -> User | None:
        """Get a user by email address."""
        result = await db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    @staticmethod
    async def lock(db: AsyncSession, user_id: UUID) -> User | None:
        """
        Load a user with SELECT ... FOR UPDATE.

        Held until the caller's transaction ends; serializes writes that must
        see a consistent view of everything the user owns.
        """
        result = await db.execute(select(User).where(User.id == user_id).with_for_update())
        return result.scalar_one_or_none()

    @staticmethod
    async def count_applicants_by_status(db: AsyncSession) -> dict[ApplicationStatus, int]:
        """Count applicant accounts grouped by application status."""
        result = await db.execute(
            select(User.application_status, func.count(User.id))
            .where(User.role == UserRole.APPLICANT)
            .group_by(User.application_status)
        )
        return {status: count for status, count in result.all()}

    @staticmethod
    async def count_applicants_by_status_since(
        db: AsyncSession, since: datetime
    ) -> dict[ApplicationStatus, int]:
        """Count applicants whose status last changed at or after `since`, by status."""
        result = await db.execute(
            select(User.application_status, func.count(User.id))
            .where(User.role == UserRole.APPLICANT, User.status_updated_at >= since)
            .group_by(User.application_status)
        )
        return {status: count for status, count in result.all()}

    @staticmethod
    async def update_application_status(
        db: AsyncSession,
        user: User,
        status: ApplicationStatus,
        changed_at: datetime,
    ) -> User:
        """Set a user's application status and its change timestamp, then commit."""
        user.application_status = status
        user.status_updated_at = changed_at

        await db.commit()
        await db.refresh(user)

        return user
