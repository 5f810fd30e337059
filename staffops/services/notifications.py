from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.orm import Session

from staffops import storage
from staffops.errors import NotFoundError
from staffops.models import Notification
from staffops.realtime import EVENT_NOTIFICATION, Broadcaster
from staffops.settings import get_settings

logger = logging.getLogger("staffops.notifications")

NOTIFICATION_TYPE_SHIFT_OFFER = "shift_offer"
NOTIFICATION_TYPE_SHIFT_ACCEPTED = "shift_accepted"
NOTIFICATION_TYPE_SHIFT_REJECTED = "shift_rejected"
NOTIFICATION_TYPE_NEW_MESSAGE = "new_message"
NOTIFICATION_TYPE_NEW_REVIEW = "new_review"


def deliver(broadcaster: Broadcaster | None, user_id: str, payload: dict[str, Any]) -> int:
    if broadcaster is None:
        return 0
    try:
        return broadcaster.broadcast_to_user(user_id, payload)
    except Exception:
        logger.exception(
            "notification_delivery_failed",
            extra={"user_id": user_id, "event_type": payload.get("type")},
        )
        return 0


def notify(
    db: Session,
    broadcaster: Broadcaster | None,
    *,
    user_id: str,
    type: str,
    title: str,
    message: str,
    related_id: str | None,
    payload: dict[str, Any] | None = None,
) -> Notification:
    """Persist a notification and push a live event to the recipient.

    The commit also covers whatever the caller flushed in the same session, so a
    state change and the notice about it land together. The push happens only
    after the commit and can never undo it.
    """
    notification = storage.insert_notification(
        db,
        user_id=user_id,
        type=type,
        title=title,
        message=message,
        related_id=related_id,
    )
    db.commit()
    delivered = deliver(broadcaster, user_id, payload or {"type": EVENT_NOTIFICATION})
    logger.info(
        "notification_created",
        extra={
            "notification_id": notification.id,
            "user_id": user_id,
            "notification_type": type,
            "related_id": related_id,
            "live_deliveries": delivered,
        },
    )
    return notification


def list_notifications(db: Session, user_id: str) -> list[Notification]:
    return storage.list_notifications(db, user_id, limit=get_settings().notification_list_limit)


def unread_count(db: Session, user_id: str) -> int:
    return storage.count_unread_notifications(db, user_id)


def mark_read(db: Session, notification_id: str, *, user_id: str) -> None:
    if not storage.mark_notification_read(db, notification_id, user_id=user_id):
        db.rollback()
        raise NotFoundError("Notification not found")
    db.commit()


def mark_all_read(db: Session, user_id: str) -> int:
    updated = storage.mark_all_notifications_read(db, user_id)
    db.commit()
    return updated
