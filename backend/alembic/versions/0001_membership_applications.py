"""Create membership_applications table.

Revision ID: 0001
Revises:
Create Date: 2026-10-19
"""

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

from alembic import op
import sqlalchemy as sa

application_status = sa.Enum(
    "PENDING", "UNDER_REVIEW", "APPROVED", "REJECTED", name="applicationstatus"
)


def upgrade() -> None:
    op.create_table(
        "membership_applications",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("reference", sa.String(40), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("date_of_birth", sa.String(20), nullable=False),
        sa.Column("gender", sa.String(20), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(30), nullable=False),
        sa.Column("alternate_phone", sa.String(30)),
        sa.Column("street", sa.String(255), nullable=False),
        sa.Column("city", sa.String(100), nullable=False),
        sa.Column("state", sa.String(100), nullable=False),
        sa.Column("zip_code", sa.String(20), nullable=False),
        sa.Column("country", sa.String(100), nullable=False),
        sa.Column("has_disability", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("disability_details", sa.Text),
        sa.Column("preferred_genres", sa.Text, nullable=False, server_default=""),
        sa.Column("reading_frequency", sa.String(20), nullable=False),
        sa.Column("subscribe_newsletter", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("id_document", sa.String(50)),
        sa.Column("proof_of_address", sa.String(50)),
        sa.Column("additional_documents", sa.String(50)),
        sa.Column("application_fee", sa.Float, nullable=False, server_default="0"),
        sa.Column("status", application_status, nullable=False, server_default="PENDING"),
        sa.Column("review_notes", sa.Text),
        sa.Column("reviewed_by", sa.String(255)),
        sa.Column("reviewed_at", sa.DateTime),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
    )
    op.create_index(
        "ix_membership_applications_reference", "membership_applications", ["reference"], unique=True
    )
    op.create_index("ix_membership_applications_email", "membership_applications", ["email"])
    op.create_index("ix_membership_applications_status", "membership_applications", ["status"])


def downgrade() -> None:
    op.drop_index("ix_membership_applications_status", "membership_applications")
    op.drop_index("ix_membership_applications_email", "membership_applications")
    op.drop_index("ix_membership_applications_reference", "membership_applications")
    op.drop_table("membership_applications")
    application_status.drop(op.get_bind(), checkfirst=True)
