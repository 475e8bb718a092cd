import enum
import logging
import uuid

logger = logging.getLogger(__name__)


class EventType(enum.Enum):
    access_requested = "access.requested"
    access_approved = "access.approved"
    access_revoked = "access.revoked"

    invite_created = "invite.created"
    invite_claimed = "invite.claimed"

    document_created = "document.created"
    document_updated = "document.updated"
    document_deleted = "document.deleted"

    role_changed = "user.role_changed"


def _str_or_none(value) -> str | None:
    return str(value) if value else None


def publish_event(
    event_type: EventType,
    entity_type: str,
    entity_id: str | uuid.UUID,
    actor_id: str | uuid.UUID | None = None,
    document_id: str | uuid.UUID | None = None,
    user_id: str | uuid.UUID | None = None,
    payload: dict | None = None,
) -> None:
    """Fire-and-forget event publishing.

    Queues a Celery task for fan-out to the realtime relay and to in-app
    notifications. Called after the write has committed. Never raises:
    logs failures and continues.
    """
    try:
        from dataroom.tasks.events import process_event

        process_event.delay(
            event_type=event_type.value,
            entity_type=entity_type,
            entity_id=str(entity_id),
            actor_id=_str_or_none(actor_id),
            document_id=_str_or_none(document_id),
            user_id=_str_or_none(user_id),
            payload=payload or {},
        )
        logger.debug(
            "Published event %s for %s/%s", event_type.value, entity_type, entity_id
        )
    except Exception as e:
        logger.exception("Failed to publish event %s: %s", event_type.value, e)
