import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    JSON,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dataroom.db import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class DocumentTier(enum.Enum):
    public = "public"
    confidential = "confidential"
    restricted = "restricted"


class AccessRequestStatus(enum.Enum):
    pending = "pending"
    approved = "approved"
    revoked = "revoked"


class AccessState(enum.Enum):
    """Effective access for a (user, document) pair; ``none`` is never stored."""

    none = "none"
    pending = "pending"
    approved = "approved"
    revoked = "revoked"


class UserRole(enum.Enum):
    viewer = "viewer"
    investor = "investor"
    partner = "partner"
    admin = "admin"


# ---------------------------------------------------------------------------
# Users (identity is external; this is the locally stored role flag)
# ---------------------------------------------------------------------------


class UserProfile(Base):
    __tablename__ = "user_profiles"
    __table_args__ = (Index("ix_user_profiles_email", "email"),)

    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    role: Mapped[str] = mapped_column(
        String(40), nullable=False, default=UserRole.viewer.value
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    access_requests = relationship("AccessRequest", back_populates="user")


# ---------------------------------------------------------------------------
# Document Registry
# ---------------------------------------------------------------------------


class Document(Base):
    __tablename__ = "documents"
    __table_args__ = (
        UniqueConstraint("slug", name="uq_documents_slug"),
        Index("ix_documents_tier", "tier"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    slug: Mapped[str] = mapped_column(String(120), nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    tier: Mapped[DocumentTier] = mapped_column(
        Enum(DocumentTier), nullable=False, default=DocumentTier.confidential
    )
    visibility: Mapped[list] = mapped_column(
        JSON, nullable=False, default=lambda: [UserRole.admin.value]
    )
    content: Mapped[str | None] = mapped_column(Text)
    content_ref: Mapped[str | None] = mapped_column(String(1024))
    icon: Mapped[str] = mapped_column(String(60), nullable=False, default="file-text")
    created_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    access_requests = relationship("AccessRequest", back_populates="document")
    invites = relationship("Invite", back_populates="document")


# ---------------------------------------------------------------------------
# Access Requests (one per user x document)
# ---------------------------------------------------------------------------


class AccessRequest(Base):
    __tablename__ = "access_requests"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "document_id", name="uq_access_requests_user_document"
        ),
        CheckConstraint(
            "status = 'pending' OR nda_signed_at IS NOT NULL",
            name="ck_access_requests_nda_signed",
        ),
        Index("ix_access_requests_document_id", "document_id"),
        Index("ix_access_requests_status", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("user_profiles.user_id"), nullable=False
    )
    document_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("documents.id"), nullable=False
    )
    status: Mapped[AccessRequestStatus] = mapped_column(
        Enum(AccessRequestStatus),
        nullable=False,
        default=AccessRequestStatus.pending,
    )
    # NDA fields are stamped on creation and never updated
    nda_signed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    signer_name: Mapped[str | None] = mapped_column(String(255))
    signer_entity: Mapped[str | None] = mapped_column(String(255))
    signer_title: Mapped[str | None] = mapped_column(String(255))

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    user = relationship("UserProfile", back_populates="access_requests")
    document = relationship("Document", back_populates="access_requests")

    @property
    def user_email(self) -> str | None:
        return self.user.email if self.user else None


# ---------------------------------------------------------------------------
# Invites (single-use, expiring)
# ---------------------------------------------------------------------------


class Invite(Base):
    __tablename__ = "document_invites"
    __table_args__ = (
        UniqueConstraint("token", name="uq_document_invites_token"),
        Index("ix_document_invites_email", "email"),
        Index("ix_document_invites_document_id", "document_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    token: Mapped[str] = mapped_column(String(128), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    document_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("documents.id"), nullable=False
    )
    claimed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    claimed_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True))
    claimed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_by: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    document = relationship("Document", back_populates="invites")


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------


class Notification(Base):
    __tablename__ = "notifications"
    __table_args__ = (
        Index("ix_notifications_user_id", "user_id"),
        Index("ix_notifications_is_read", "is_read"),
        Index("ix_notifications_event_type", "event_type"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("user_profiles.user_id"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    event_type: Mapped[str] = mapped_column(String(100), nullable=False)
    entity_type: Mapped[str] = mapped_column(String(80), nullable=False)
    entity_id: Mapped[str] = mapped_column(String(36), nullable=False)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False)
    read_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    metadata_: Mapped[dict | None] = mapped_column("metadata", JSON)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    user = relationship("UserProfile", foreign_keys=[user_id])
