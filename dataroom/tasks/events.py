import logging

from dataroom.celery_app import celery_app

logger = logging.getLogger(__name__)

# Events whose subject user should see the change without polling
RELAYED_EVENTS = frozenset(
    {
        "access.requested",
        "access.approved",
        "access.revoked",
        "invite.claimed",
    }
)


@celery_app.task(name="dataroom.tasks.events.process_event", ignore_result=True)
def process_event(
    event_type: str,
    entity_type: str,
    entity_id: str,
    actor_id: str | None = None,
    document_id: str | None = None,
    user_id: str | None = None,
    payload: dict | None = None,
) -> None:
    """Central fan-out task for data room events.

    Dispatches to the realtime relay and to in-app notifications.
    Each fan-out is wrapped so one failure doesn't block the other.
    """
    event_data = {
        "event_type": event_type,
        "entity_type": entity_type,
        "entity_id": entity_id,
        "actor_id": actor_id,
        "document_id": document_id,
        "user_id": user_id,
        "payload": payload or {},
    }
    logger.info("Processing event %s for %s/%s", event_type, entity_type, entity_id)

    _fanout_relay(event_data)
    _fanout_notifications(event_data)


def _fanout_relay(event_data: dict) -> None:
    if event_data["event_type"] not in RELAYED_EVENTS or not event_data["user_id"]:
        return
    try:
        from dataroom.tasks.realtime import relay_access_change

        relay_access_change.delay(**event_data)
    except Exception as e:
        logger.exception("Failed to fan-out realtime relay: %s", e)


def _fanout_notifications(event_data: dict) -> None:
    try:
        from dataroom.tasks.notifications import dispatch_notifications

        dispatch_notifications.delay(**event_data)
    except Exception as e:
        logger.exception("Failed to fan-out notifications: %s", e)
