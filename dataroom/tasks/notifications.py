import logging

from dataroom.celery_app import celery_app

logger = logging.getLogger(__name__)

# event type -> (audience, title)
NOTIFIED_EVENTS = {
    "access.requested": ("admins", "New access request"),
    "invite.claimed": ("admins", "Invite claimed"),
    "access.approved": ("subject", "Access approved"),
    "access.revoked": ("subject", "Access revoked"),
}


@celery_app.task(
    name="dataroom.tasks.notifications.dispatch_notifications", ignore_result=True
)
def dispatch_notifications(
    event_type: str,
    entity_type: str,
    entity_id: str,
    actor_id: str | None = None,
    document_id: str | None = None,
    user_id: str | None = None,
    payload: dict | None = None,
) -> None:
    """Create in-app notifications for an access event.

    Requests and invite claims go to administrators; approvals and
    revocations go to the requesting user.
    """
    if event_type not in NOTIFIED_EVENTS:
        return

    from dataroom.db import SessionLocal

    db = SessionLocal()
    try:
        _dispatch(
            db, event_type, entity_type, entity_id, actor_id, document_id, user_id, payload
        )
    except Exception as e:
        logger.exception("Failed to dispatch notifications for %s: %s", event_type, e)
    finally:
        db.close()


def _dispatch(
    db: "Session",  # type: ignore[name-defined]  # noqa: F821
    event_type: str,
    entity_type: str,
    entity_id: str,
    actor_id: str | None,
    document_id: str | None,
    user_id: str | None,
    payload: dict | None,
) -> int:
    from dataroom.models.dataroom import Document, Notification
    from dataroom.services.common import coerce_uuid

    audience, title = NOTIFIED_EVENTS[event_type]
    if audience == "admins":
        recipients = _admin_recipients(db)
    else:
        recipients = [coerce_uuid(user_id)] if user_id else []

    document = db.get(Document, coerce_uuid(document_id)) if document_id else None
    body = _body(event_type, document.title if document else None, payload or {})

    count = 0
    for recipient in recipients:
        if actor_id and str(recipient) == str(actor_id):
            continue
        db.add(
            Notification(
                user_id=recipient,
                title=title,
                body=body,
                event_type=event_type,
                entity_type=entity_type,
                entity_id=str(entity_id),
                metadata_={
                    "document_id": document_id,
                    "document_slug": document.slug if document else None,
                    "status": (payload or {}).get("status"),
                },
            )
        )
        count += 1

    db.commit()
    logger.info("Dispatched %d notifications for event %s", count, event_type)
    return count


def _admin_recipients(db: "Session") -> list:  # type: ignore[name-defined]  # noqa: F821
    from sqlalchemy import func, or_, select

    from dataroom.config import settings
    from dataroom.models.dataroom import UserProfile, UserRole

    criteria = [UserProfile.role == UserRole.admin.value]
    if settings.admin_emails:
        criteria.append(func.lower(UserProfile.email).in_(sorted(settings.admin_emails)))
    return list(db.scalars(select(UserProfile.user_id).where(or_(*criteria))).all())


def _body(event_type: str, document_title: str | None, payload: dict) -> str:
    subject = f'"{document_title}"' if document_title else "a document"
    if event_type == "access.requested":
        signer = payload.get("signer_name") or "A user"
        return f"{signer} signed the NDA and requested access to {subject}."
    if event_type == "invite.claimed":
        return f"{payload.get('email', 'An invitee')} claimed their invite to {subject}."
    if event_type == "access.approved":
        return f"Your access to {subject} has been approved."
    return f"Your access to {subject} has been revoked."
