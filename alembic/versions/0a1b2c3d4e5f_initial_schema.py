"""initial schema

Revision ID: 0a1b2c3d4e5f
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from alembic import op
import sqlalchemy as sa

revision = "0a1b2c3d4e5f"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # --- Enums ---
    documenttier = sa.Enum("public", "confidential", "restricted", name="documenttier")
    accessrequeststatus = sa.Enum(
        "pending", "approved", "revoked", name="accessrequeststatus"
    )
    documenttier.create(op.get_bind(), checkfirst=True)
    accessrequeststatus.create(op.get_bind(), checkfirst=True)

    # --- User profiles ---
    op.create_table(
        "user_profiles",
        sa.Column("user_id", sa.UUID(), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("role", sa.String(length=40), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("user_id"),
    )
    op.create_index("ix_user_profiles_email", "user_profiles", ["email"])

    # --- Documents ---
    op.create_table(
        "documents",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("slug", sa.String(length=120), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "tier",
            sa.Enum(
                "public",
                "confidential",
                "restricted",
                name="documenttier",
                create_type=False,
            ),
            nullable=False,
        ),
        sa.Column("visibility", sa.JSON(), nullable=False),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("content_ref", sa.String(length=1024), nullable=True),
        sa.Column("icon", sa.String(length=60), nullable=False),
        sa.Column("created_by", sa.UUID(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("slug", name="uq_documents_slug"),
    )
    op.create_index("ix_documents_tier", "documents", ["tier"])

    # --- Access requests ---
    op.create_table(
        "access_requests",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("user_id", sa.UUID(), nullable=False),
        sa.Column("document_id", sa.UUID(), nullable=False),
        sa.Column(
            "status",
            sa.Enum(
                "pending",
                "approved",
                "revoked",
                name="accessrequeststatus",
                create_type=False,
            ),
            nullable=False,
        ),
        sa.Column("nda_signed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("signer_name", sa.String(length=255), nullable=True),
        sa.Column("signer_entity", sa.String(length=255), nullable=True),
        sa.Column("signer_title", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["user_profiles.user_id"]),
        sa.ForeignKeyConstraint(["document_id"], ["documents.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "user_id", "document_id", name="uq_access_requests_user_document"
        ),
        sa.CheckConstraint(
            "status = 'pending' OR nda_signed_at IS NOT NULL",
            name="ck_access_requests_nda_signed",
        ),
    )
    op.create_index(
        "ix_access_requests_document_id", "access_requests", ["document_id"]
    )
    op.create_index("ix_access_requests_status", "access_requests", ["status"])

    # --- Invites ---
    op.create_table(
        "document_invites",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("token", sa.String(length=128), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("document_id", sa.UUID(), nullable=False),
        sa.Column("claimed", sa.Boolean(), nullable=False),
        sa.Column("claimed_by", sa.UUID(), nullable=True),
        sa.Column("claimed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_by", sa.UUID(), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["document_id"], ["documents.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("token", name="uq_document_invites_token"),
    )
    op.create_index("ix_document_invites_email", "document_invites", ["email"])
    op.create_index(
        "ix_document_invites_document_id", "document_invites", ["document_id"]
    )

    # --- Notifications ---
    op.create_table(
        "notifications",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("user_id", sa.UUID(), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("event_type", sa.String(length=100), nullable=False),
        sa.Column("entity_type", sa.String(length=80), nullable=False),
        sa.Column("entity_id", sa.String(length=36), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["user_profiles.user_id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])
    op.create_index("ix_notifications_is_read", "notifications", ["is_read"])
    op.create_index("ix_notifications_event_type", "notifications", ["event_type"])


def downgrade() -> None:
    op.drop_index("ix_notifications_event_type", table_name="notifications")
    op.drop_index("ix_notifications_is_read", table_name="notifications")
    op.drop_index("ix_notifications_user_id", table_name="notifications")
    op.drop_table("notifications")

    op.drop_index("ix_document_invites_document_id", table_name="document_invites")
    op.drop_index("ix_document_invites_email", table_name="document_invites")
    op.drop_table("document_invites")

    op.drop_index("ix_access_requests_status", table_name="access_requests")
    op.drop_index("ix_access_requests_document_id", table_name="access_requests")
    op.drop_table("access_requests")

    op.drop_index("ix_documents_tier", table_name="documents")
    op.drop_table("documents")

    op.drop_index("ix_user_profiles_email", table_name="user_profiles")
    op.drop_table("user_profiles")

    sa.Enum(name="accessrequeststatus").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="documenttier").drop(op.get_bind(), checkfirst=True)
