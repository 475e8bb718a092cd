"""Access-request lifecycle.

Per (user, document) pair::

    none --(user signs NDA)--> pending --(admin)--> approved <--(admin)--> revoked
                                       \\--(admin)--> revoked

``none`` is the absence of a row and is left exactly once. Creation is an
atomic insert-ignore on the (user_id, document_id) unique key, so racing
signatures collapse onto one row. Administrator writes are single
conditional UPDATEs; repeating one is a no-op.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from dataroom.errors import (
    AccessDenied,
    NotFound,
    Unauthenticated,
    ValidationFailed,
)
from dataroom.models.dataroom import (
    AccessRequest,
    AccessRequestStatus,
    AccessState,
    Document,
    DocumentTier,
)
from dataroom.observability import ACCESS_TRANSITIONS
from dataroom.schemas.access import NdaSignature
from dataroom.services.common import (
    apply_ordering,
    apply_pagination,
    coerce_uuid,
    conditional_update,
    insert_ignore,
)
from dataroom.services.event import EventType, publish_event
from dataroom.services.identity import is_administrator, require_administrator
from dataroom.services.response import ListResponseMixin

logger = logging.getLogger(__name__)

# target status -> statuses an administrator may move from
ADMIN_TRANSITIONS: dict[AccessRequestStatus, tuple[AccessRequestStatus, ...]] = {
    AccessRequestStatus.approved: (
        AccessRequestStatus.pending,
        AccessRequestStatus.revoked,
        AccessRequestStatus.approved,
    ),
    AccessRequestStatus.revoked: (
        AccessRequestStatus.pending,
        AccessRequestStatus.approved,
        AccessRequestStatus.revoked,
    ),
}

_TRANSITION_EVENTS = {
    AccessRequestStatus.approved: EventType.access_approved,
    AccessRequestStatus.revoked: EventType.access_revoked,
}

_DENIED_MESSAGES = {
    AccessState.none: "Access required. Sign the NDA to request access.",
    AccessState.pending: "Access pending approval.",
    AccessState.revoked: "Access to this document has been revoked.",
}


def effective_state(
    document: Document,
    user,
    row_status: AccessRequestStatus | None,
    admin: bool | None = None,
) -> AccessState:
    """Pure decision for one pair; ``row_status`` is None when no row exists."""
    if document.tier == DocumentTier.public:
        return AccessState.approved
    if user is None:
        return AccessState.none
    if admin if admin is not None else is_administrator(user):
        return AccessState.approved
    if row_status is None:
        return AccessState.none
    return AccessState(row_status.value)


def parse_admin_target(status: str) -> AccessRequestStatus:
    try:
        target = AccessRequestStatus(status)
    except ValueError:
        target = None
    if target not in ADMIN_TRANSITIONS:
        raise ValidationFailed(
            f"Invalid status: {status}. Allowed: approved, revoked",
            details={"allowed": [s.value for s in ADMIN_TRANSITIONS]},
        )
    return target


def _get_active_document(db: Session, document_id) -> Document:
    document = db.get(Document, coerce_uuid(document_id))
    if not document or not document.is_active:
        raise NotFound("Document not found")
    return document


class AccessRequests(ListResponseMixin):
    @staticmethod
    def resolve(db: Session, user, document: Document) -> AccessState:
        if document.tier == DocumentTier.public:
            return AccessState.approved
        if user is None:
            return AccessState.none
        if is_administrator(user):
            return AccessState.approved
        row_status = db.scalar(
            select(AccessRequest.status).where(
                AccessRequest.user_id == user.id,
                AccessRequest.document_id == document.id,
            )
        )
        return effective_state(document, user, row_status, admin=False)

    @staticmethod
    def status_for(db: Session, user, document_id: str) -> AccessState:
        return AccessRequests.resolve(db, user, _get_active_document(db, document_id))

    @staticmethod
    def get_for(db: Session, user_id, document_id) -> AccessRequest | None:
        return db.scalar(
            select(AccessRequest)
            .where(
                AccessRequest.user_id == coerce_uuid(user_id),
                AccessRequest.document_id == coerce_uuid(document_id),
            )
            .execution_options(populate_existing=True)
        )

    @staticmethod
    def get(db: Session, request_id: str) -> AccessRequest:
        request = db.get(AccessRequest, coerce_uuid(request_id))
        if not request:
            raise NotFound("Access request not found")
        return request

    @staticmethod
    def sign_nda(db: Session, user, document_id, signature: NdaSignature) -> bool:
        """NONE -> PENDING without committing; True when a row was created."""
        return insert_ignore(
            db,
            AccessRequest,
            {
                "user_id": user.id,
                "document_id": coerce_uuid(document_id),
                "status": AccessRequestStatus.pending,
                "nda_signed_at": datetime.now(timezone.utc),
                "signer_name": signature.signer_name.strip(),
                "signer_entity": (signature.signer_entity or "").strip() or None,
                "signer_title": (signature.signer_title or "").strip() or None,
            },
            ["user_id", "document_id"],
        )

    @staticmethod
    def request_access(
        db: Session, user, document_id: str, signature: NdaSignature
    ) -> tuple[AccessRequest, bool]:
        if user is None:
            raise Unauthenticated()
        document = _get_active_document(db, document_id)
        if document.tier == DocumentTier.public:
            raise ValidationFailed("Public documents do not require an access request")

        created = AccessRequests.sign_nda(db, user, document.id, signature)
        db.commit()
        request = AccessRequests.get_for(db, user.id, document.id)
        if created:
            ACCESS_TRANSITIONS.labels(AccessRequestStatus.pending.value).inc()
            logger.info(
                "Created access request %s for user %s on document %s",
                request.id,
                user.id,
                document.id,
            )
            publish_event(
                EventType.access_requested,
                entity_type="access_request",
                entity_id=request.id,
                actor_id=user.id,
                document_id=document.id,
                user_id=user.id,
                payload={
                    "status": request.status.value,
                    "document_slug": document.slug,
                    "signer_name": request.signer_name,
                },
            )
        else:
            logger.info(
                "Access request %s already exists with status %s",
                request.id,
                request.status.value,
            )
        return request, created

    @staticmethod
    def transition(db: Session, actor, request_id: str, status: str) -> AccessRequest:
        require_administrator(actor, "access transition")
        target = parse_admin_target(status)
        request_uuid = coerce_uuid(request_id)

        updated = conditional_update(
            db,
            AccessRequest,
            [
                AccessRequest.id == request_uuid,
                AccessRequest.status.in_(ADMIN_TRANSITIONS[target]),
                AccessRequest.nda_signed_at.is_not(None),
            ],
            {"status": target},
        )
        if not updated:
            db.rollback()
            existing = db.get(AccessRequest, request_uuid)
            if existing is None:
                raise NotFound("Access request not found")
            raise ValidationFailed(
                f"Cannot move access request from {existing.status.value} "
                f"to {target.value}"
            )
        db.commit()

        request = db.get(AccessRequest, request_uuid, populate_existing=True)
        ACCESS_TRANSITIONS.labels(target.value).inc()
        logger.info(
            "Updated access request %s to %s by %s", request.id, target.value, actor.id
        )
        publish_event(
            _TRANSITION_EVENTS[target],
            entity_type="access_request",
            entity_id=request.id,
            actor_id=actor.id,
            document_id=request.document_id,
            user_id=request.user_id,
            payload={"status": target.value},
        )
        return request

    @staticmethod
    def require_content_access(db: Session, user, document: Document) -> AccessState:
        """Gate for serving content; errors never include the content itself."""
        state = AccessRequests.resolve(db, user, document)
        if state == AccessState.approved:
            return state
        if user is None:
            raise Unauthenticated("Sign in to request access to this document")
        logger.info(
            "Denied content of document %s to user %s (%s)",
            document.id,
            user.id,
            state.value,
        )
        raise AccessDenied(_DENIED_MESSAGES[state], details={"access_status": state.value})

    @staticmethod
    def list(
        db: Session,
        status: str | None,
        document_id: str | None,
        user_id: str | None,
        order_by: str,
        order_dir: str,
        limit: int,
        offset: int,
    ) -> list[AccessRequest]:
        stmt = select(AccessRequest).options(
            selectinload(AccessRequest.user), selectinload(AccessRequest.document)
        )
        if status is not None:
            try:
                stmt = stmt.where(AccessRequest.status == AccessRequestStatus(status))
            except ValueError:
                raise ValidationFailed(f"Invalid status: {status}")
        if document_id is not None:
            stmt = stmt.where(AccessRequest.document_id == coerce_uuid(document_id))
        if user_id is not None:
            stmt = stmt.where(AccessRequest.user_id == coerce_uuid(user_id))
        stmt = apply_ordering(
            stmt,
            order_by,
            order_dir,
            {
                "created_at": AccessRequest.created_at,
                "updated_at": AccessRequest.updated_at,
            },
        )
        return db.scalars(apply_pagination(stmt, limit, offset)).all()


access_requests = AccessRequests()
