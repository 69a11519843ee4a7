"""add personal and contact info

Revision ID: 0002b4d8f1a6
Revises: 0001a7c3e9b2
Create Date: 2026-10-19 14:00:00.000000

One row per applicant in each table, enforced by a unique owner_id.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "0002b4d8f1a6"
down_revision: str | Sequence[str] | None = "0001a7c3e9b2"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

gender = postgresql.ENUM("MALE", "FEMALE", "OTHER", name="gender", create_type=False)
id_document_type = postgresql.ENUM(
    "NATIONAL_ID_CARD", "PASSPORT", "RESIDENCE_PERMIT", name="id_document_type", create_type=False
)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def upgrade() -> None:
    """Create enum types, personal_info and contact_info."""
    bind = op.get_bind()
    for enum_type in (gender, id_document_type):
        enum_type.create(bind, checkfirst=True)

    op.create_table(
        "personal_info",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        *_timestamps(),
        sa.Column("owner_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("first_names", sa.String(length=150), nullable=False),
        sa.Column("gender", gender, nullable=False),
        sa.Column("date_of_birth", sa.Date(), nullable=False),
        sa.Column("nationality", sa.String(length=100), nullable=False),
        sa.Column("id_document_type", id_document_type, nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"], name="fk_personal_info_owner_id"),
        sa.UniqueConstraint("owner_id", name="uq_personal_info_owner_id"),
    )

    op.create_table(
        "contact_info",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        *_timestamps(),
        sa.Column("owner_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("email_verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("phone_number", sa.String(length=30), nullable=False),
        sa.Column("address_street", sa.String(length=255), nullable=False),
        sa.Column("address_street2", sa.String(length=100), nullable=True),
        sa.Column("address_city", sa.String(length=100), nullable=False),
        sa.Column("address_postal_code", sa.String(length=20), nullable=False),
        sa.Column("address_country", sa.String(length=100), nullable=False),
        sa.Column("address_latitude", sa.Float(), nullable=True),
        sa.Column("address_longitude", sa.Float(), nullable=True),
        sa.Column("emergency_contact_name", sa.String(length=150), nullable=False),
        sa.Column("emergency_contact_relationship", sa.String(length=100), nullable=False),
        sa.Column("emergency_contact_phone", sa.String(length=30), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"], name="fk_contact_info_owner_id"),
        sa.UniqueConstraint("owner_id", name="uq_contact_info_owner_id"),
    )


def downgrade() -> None:
    """Drop both tables, then the enum types."""
    op.drop_table("contact_info")
    op.drop_table("personal_info")

    bind = op.get_bind()
    for enum_type in (id_document_type, gender):
        enum_type.drop(bind, checkfirst=True)
