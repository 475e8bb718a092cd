import logging
import secrets
from datetime import datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from dataroom.config import settings
from dataroom.errors import (
    AccessDenied,
    InvalidOrExpired,
    NotFound,
    Unauthenticated,
    ValidationFailed,
)
from dataroom.models.dataroom import AccessRequest, Document, DocumentTier, Invite
from dataroom.observability import ACCESS_TRANSITIONS, INVITE_CLAIMS
from dataroom.schemas.access import NdaSignature
from dataroom.schemas.invite import InviteCreate
from dataroom.services.access import AccessRequests
from dataroom.services.common import (
    apply_ordering,
    apply_pagination,
    as_utc,
    coerce_uuid,
    conditional_update,
)
from dataroom.services.event import EventType, publish_event
from dataroom.services.identity import require_administrator
from dataroom.services.response import ListResponseMixin

logger = logging.getLogger(__name__)

# 32 random bytes -> 43 URL-safe characters, 256 bits of entropy
TOKEN_BYTES = 32


def generate_token() -> str:
    return secrets.token_urlsafe(TOKEN_BYTES)


def build_invite_url(token: str) -> str:
    return f"{settings.public_base_url.rstrip('/')}/invite/{token}"


def is_usable(invite: Invite, now: datetime | None = None) -> bool:
    now = now or datetime.now(timezone.utc)
    return not invite.claimed and as_utc(invite.expires_at) > now


class Invites(ListResponseMixin):
    @staticmethod
    def create(db: Session, actor, payload: InviteCreate) -> tuple[Invite, str]:
        require_administrator(actor, "invite creation")
        document = db.get(Document, coerce_uuid(payload.document_id))
        if not document or not document.is_active:
            raise NotFound("Document not found")
        if document.tier == DocumentTier.public:
            raise ValidationFailed("Public documents do not need an invite")

        days = payload.expires_in_days or settings.invite_expiry_days
        invite = Invite(
            token=generate_token(),
            email=payload.email.strip().lower(),
            document_id=document.id,
            created_by=actor.id,
            expires_at=datetime.now(timezone.utc) + timedelta(days=days),
        )
        db.add(invite)
        db.commit()
        db.refresh(invite)
        logger.info(
            "Created invite %s for %s on document %s (expires in %d days)",
            invite.id,
            invite.email,
            document.id,
            days,
        )
        publish_event(
            EventType.invite_created,
            entity_type="invite",
            entity_id=invite.id,
            actor_id=actor.id,
            document_id=document.id,
            payload={"email": invite.email},
        )
        return invite, build_invite_url(invite.token)

    @staticmethod
    def _lookup(db: Session, token: str) -> Invite:
        invite = db.scalar(
            select(Invite)
            .where(Invite.token == token)
            .execution_options(populate_existing=True)
        )
        if not invite:
            raise NotFound("Invite not found")
        return invite

    @staticmethod
    def resolve(db: Session, token: str) -> Invite:
        """Claimed, timed-out and orphaned invites fail identically.

        An invite whose document has since been deleted can no longer be
        claimed.
        """
        invite = Invites._lookup(db, token)
        if not is_usable(invite) or not invite.document.is_active:
            raise InvalidOrExpired()
        return invite

    @staticmethod
    def claim(
        db: Session, token: str, user, signature: NdaSignature
    ) -> tuple[Invite, AccessRequest]:
        if user is None:
            raise Unauthenticated()
        invite = Invites.resolve(db, token)
        if invite.email != user.email.strip().lower():
            INVITE_CLAIMS.labels("email_mismatch").inc()
            raise AccessDenied("This invite was issued to a different email address")

        invite_id = invite.id
        document_id = invite.document_id
        now = datetime.now(timezone.utc)

        # NDA row and claim flag commit together or not at all
        created = AccessRequests.sign_nda(db, user, document_id, signature)
        claimed = conditional_update(
            db,
            Invite,
            [
                Invite.token == token,
                Invite.claimed.is_(False),
                Invite.expires_at > now,
            ],
            {"claimed": True, "claimed_by": user.id, "claimed_at": now},
        )
        if claimed != 1:
            db.rollback()
            INVITE_CLAIMS.labels("rejected").inc()
            logger.info("Rejected claim of invite %s by user %s", invite_id, user.id)
            raise InvalidOrExpired()
        db.commit()

        INVITE_CLAIMS.labels("claimed").inc()
        invite = db.get(Invite, invite_id, populate_existing=True)
        request = AccessRequests.get_for(db, user.id, document_id)
        logger.info(
            "Claimed invite %s by user %s; access request %s is %s",
            invite_id,
            user.id,
            request.id,
            request.status.value,
        )
        if created:
            ACCESS_TRANSITIONS.labels(request.status.value).inc()
            publish_event(
                EventType.access_requested,
                entity_type="access_request",
                entity_id=request.id,
                actor_id=user.id,
                document_id=document_id,
                user_id=user.id,
                payload={"status": request.status.value, "invite_id": str(invite_id)},
            )
        publish_event(
            EventType.invite_claimed,
            entity_type="invite",
            entity_id=invite_id,
            actor_id=user.id,
            document_id=document_id,
            user_id=user.id,
            payload={"email": invite.email, "access_request_id": str(request.id)},
        )
        return invite, request

    @staticmethod
    def list(
        db: Session,
        document_id: str | None,
        email: str | None,
        claimed: bool | None,
        order_by: str,
        order_dir: str,
        limit: int,
        offset: int,
    ) -> list[Invite]:
        stmt = select(Invite)
        if document_id is not None:
            stmt = stmt.where(Invite.document_id == coerce_uuid(document_id))
        if email is not None:
            stmt = stmt.where(Invite.email == email.strip().lower())
        if claimed is not None:
            stmt = stmt.where(Invite.claimed == claimed)
        stmt = apply_ordering(
            stmt,
            order_by,
            order_dir,
            {"created_at": Invite.created_at, "expires_at": Invite.expires_at},
        )
        return db.scalars(apply_pagination(stmt, limit, offset)).all()


invites = Invites()
