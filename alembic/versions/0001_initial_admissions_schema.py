"""initial admissions schema

Revision ID: 0001a7c3e9b2
Revises:
Create Date: 2026-10-19 09:00:00.000000

Creates users, documents and academic_records.

documents.unique_slot holds the document type for non-repeatable types and
NULL otherwise. UNIQUE(owner_id, unique_slot) therefore allows one live
document per non-repeatable type and owner while ignoring repeatable types
(PostgreSQL treats NULLs as distinct). This constraint, not the application
pre-check, is what prevents two concurrent uploads from both succeeding.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "0001a7c3e9b2"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

user_role = postgresql.ENUM("APPLICANT", "ADMIN", name="user_role", create_type=False)
application_status = postgresql.ENUM(
    "PENDING", "APPROVED", "REJECTED", "ACTIVE", name="application_status", create_type=False
)
document_type = postgresql.ENUM(
    "DIPLOMA_BAC",
    "DIPLOMA_HIGHER",
    "ID_CARD_FRONT",
    "ID_CARD_BACK",
    "BIRTH_CERTIFICATE",
    "ID_PHOTO",
    name="document_type",
    create_type=False,
)
document_status = postgresql.ENUM(
    "MISSING",
    "UPLOADED",
    "VALIDATION_PENDING",
    "VALIDATION_FAILED",
    "VALIDATED",
    "REJECTED",
    name="document_status",
    create_type=False,
)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def upgrade() -> None:
    """Create enum types and the three tables."""
    bind = op.get_bind()
    for enum_type in (user_role, application_status, document_type, document_status):
        enum_type.create(bind, checkfirst=True)

    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        *_timestamps(),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("phone", sa.String(length=20), nullable=True),
        sa.Column("role", user_role, nullable=False, server_default="APPLICANT"),
        sa.Column("application_status", application_status, nullable=False, server_default="PENDING"),
        sa.Column(
            "status_updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_role_application_status", "users", ["role", "application_status"])
    op.create_index("ix_users_status_updated_at", "users", ["status_updated_at"])

    op.create_table(
        "documents",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        *_timestamps(),
        sa.Column("owner_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("document_type", document_type, nullable=False),
        sa.Column("original_filename", sa.String(length=255), nullable=False),
        sa.Column("stored_key", sa.String(length=255), nullable=False),
        sa.Column("file_size_bytes", sa.BigInteger(), nullable=False),
        sa.Column("content_type", sa.String(length=100), nullable=False),
        sa.Column("status", document_status, nullable=False, server_default="UPLOADED"),
        sa.Column(
            "uploaded_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column("validated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("validation_notes", sa.Text(), nullable=True),
        sa.Column("unique_slot", sa.String(length=50), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"], name="fk_documents_owner_id"),
        sa.UniqueConstraint("stored_key", name="uq_documents_stored_key"),
        sa.UniqueConstraint("owner_id", "unique_slot", name="uq_documents_owner_unique_slot"),
    )
    op.create_index("ix_documents_owner_uploaded_at", "documents", ["owner_id", "uploaded_at"])
    op.create_index("ix_documents_status", "documents", ["status"])

    op.create_table(
        "academic_records",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        *_timestamps(),
        sa.Column("owner_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("institution_name", sa.String(length=255), nullable=False),
        sa.Column("specialization", sa.String(length=255), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"], name="fk_academic_records_owner_id"),
        sa.CheckConstraint(
            "end_date IS NULL OR end_date >= start_date",
            name="ck_academic_records_date_order",
        ),
    )
    op.create_index(
        "ix_academic_records_owner_start", "academic_records", ["owner_id", "start_date"]
    )


def downgrade() -> None:
    """Drop the tables, then the enum types."""
    op.drop_index("ix_academic_records_owner_start", table_name="academic_records")
    op.drop_table("academic_records")

    op.drop_index("ix_documents_status", table_name="documents")
    op.drop_index("ix_documents_owner_uploaded_at", table_name="documents")
    op.drop_table("documents")

    op.drop_index("ix_users_status_updated_at", table_name="users")
    op.drop_index("ix_users_role_application_status", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")

    bind = op.get_bind()
    for enum_type in (document_status, document_type, application_status, user_role):
        enum_type.drop(bind, checkfirst=True)
