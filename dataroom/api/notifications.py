from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from dataroom.api.deps import get_db, require_user
from dataroom.schemas.common import ListResponse
from dataroom.schemas.notification import (
    MarkReadRequest,
    NotificationRead,
    UnreadCountResponse,
)
from dataroom.services.identity import CurrentUser
from dataroom.services.notification import notifications

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/unread-count", response_model=UnreadCountResponse)
def unread_count(
    db: Session = Depends(get_db), user: CurrentUser = Depends(require_user)
):
    return {"count": notifications.unread_count(db, str(user.id))}


@router.get("", response_model=ListResponse[NotificationRead])
def list_notifications(
    event_type: str | None = None,
    is_read: bool | None = None,
    order_by: str = Query(default="created_at"),
    order_dir: str = Query(default="desc", pattern="^(asc|desc)$"),
    limit: int = Query(default=25, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_user),
):
    return notifications.list_response(
        db,
        str(user.id),
        event_type,
        is_read,
        order_by,
        order_dir,
        limit,
        offset,
    )


@router.post("/mark-read")
def mark_read(
    payload: MarkReadRequest,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_user),
):
    count = notifications.mark_read(
        db, str(user.id), [str(nid) for nid in payload.notification_ids]
    )
    return {"marked": count}


@router.post("/mark-all-read")
def mark_all_read(
    db: Session = Depends(get_db), user: CurrentUser = Depends(require_user)
):
    return {"marked": notifications.mark_all_read(db, str(user.id))}


@router.get("/{notification_id}", response_model=NotificationRead)
def get_notification(
    notification_id: str,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_user),
):
    return notifications.get(db, str(user.id), notification_id)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
def dismiss_notification(
    notification_id: str,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_user),
):
    notifications.dismiss(db, str(user.id), notification_id)
