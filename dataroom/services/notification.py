from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from dataroom.errors import NotFound
from dataroom.models.dataroom import Notification
from dataroom.services.common import apply_ordering, apply_pagination, coerce_uuid
from dataroom.services.response import ListResponseMixin

logger = logging.getLogger(__name__)


def _unread_filter(user_id):
    return (
        Notification.user_id == coerce_uuid(user_id),
        Notification.is_read.is_(False),
        Notification.is_active.is_(True),
    )


class Notifications(ListResponseMixin):
    @staticmethod
    def get(db: Session, user_id: str, notification_id: str) -> Notification:
        notification = db.get(Notification, coerce_uuid(notification_id))
        # other users' notifications are indistinguishable from missing ones
        if not notification or notification.user_id != coerce_uuid(user_id):
            raise NotFound("Notification not found")
        return notification

    @staticmethod
    def list(
        db: Session,
        user_id: str,
        event_type: str | None,
        is_read: bool | None,
        order_by: str,
        order_dir: str,
        limit: int,
        offset: int,
    ) -> List[Notification]:
        query = db.query(Notification).filter(
            Notification.user_id == coerce_uuid(user_id),
            Notification.is_active.is_(True),
        )
        if event_type is not None:
            query = query.filter(Notification.event_type == event_type)
        if is_read is not None:
            query = query.filter(Notification.is_read == is_read)
        query = apply_ordering(
            query,
            order_by,
            order_dir,
            {"created_at": Notification.created_at},
        )
        return apply_pagination(query, limit, offset).all()

    @staticmethod
    def mark_read(db: Session, user_id: str, notification_ids: List[str]) -> int:
        now = datetime.now(timezone.utc)
        count = 0
        for nid in notification_ids:
            notification = db.get(Notification, coerce_uuid(nid))
            if (
                notification
                and notification.user_id == coerce_uuid(user_id)
                and not notification.is_read
            ):
                notification.is_read = True
                notification.read_at = now
                count += 1
        db.commit()
        logger.info("Marked %d notifications as read for user %s", count, user_id)
        return count

    @staticmethod
    def mark_all_read(db: Session, user_id: str) -> int:
        now = datetime.now(timezone.utc)
        notifications = db.query(Notification).filter(*_unread_filter(user_id)).all()
        for n in notifications:
            n.is_read = True
            n.read_at = now
        db.commit()
        logger.info(
            "Marked all %d notifications as read for user %s",
            len(notifications),
            user_id,
        )
        return len(notifications)

    @staticmethod
    def unread_count(db: Session, user_id: str) -> int:
        return db.scalar(
            select(func.count()).select_from(Notification).where(*_unread_filter(user_id))
        )

    @staticmethod
    def dismiss(db: Session, user_id: str, notification_id: str) -> None:
        notification = Notifications.get(db, user_id, notification_id)
        notification.is_active = False
        db.commit()
        logger.info("Dismissed notification %s", notification_id)


notifications = Notifications()
