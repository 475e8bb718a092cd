import json
import logging
from datetime import datetime, timezone
from functools import lru_cache

from redis import Redis
from redis.exceptions import RedisError

from dataroom.celery_app import celery_app
from dataroom.config import settings

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def _redis_client() -> Redis:
    return Redis.from_url(settings.redis_url)


def channel_for_user(user_id: str) -> str:
    """Subscribers filter by user: one pub/sub channel per user id."""
    return f"{settings.realtime_channel_prefix}:{user_id}"


def build_message(
    event_type: str,
    entity_type: str,
    entity_id: str,
    document_id: str | None,
    user_id: str,
    payload: dict | None,
) -> dict:
    payload = payload or {}
    return {
        "event": event_type,
        "entity_type": entity_type,
        "record": {
            "id": entity_id,
            "user_id": user_id,
            "document_id": document_id,
            "status": payload.get("status"),
        },
        "sent_at": datetime.now(timezone.utc).isoformat(),
    }


@celery_app.task(
    name="dataroom.tasks.realtime.relay_access_change",
    ignore_result=True,
    bind=True,
    max_retries=3,
    default_retry_delay=2,
)
def relay_access_change(
    self: "celery_app.Task",  # type: ignore[name-defined]
    event_type: str,
    entity_type: str,
    entity_id: str,
    actor_id: str | None = None,
    document_id: str | None = None,
    user_id: str | None = None,
    payload: dict | None = None,
) -> None:
    """Publish an access change on the subject user's channel."""
    if not user_id:
        return
    message = build_message(
        event_type, entity_type, entity_id, document_id, user_id, payload
    )
    channel = channel_for_user(user_id)
    try:
        receivers = _redis_client().publish(channel, json.dumps(message))
        logger.debug("Relayed %s to %s (%s receivers)", event_type, channel, receivers)
    except RedisError as e:
        logger.warning("Realtime relay of %s to %s failed: %s", event_type, channel, e)
        try:
            self.retry(countdown=2 * (2 ** (self.request.retries or 0)))
        except self.MaxRetriesExceededError:
            logger.error("Realtime relay of %s exhausted retries", event_type)
