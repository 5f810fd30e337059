from __future__ import annotations

from sqlalchemy.orm import Session

from staffops import storage
from staffops.errors import ValidationError
from staffops.models import Message
from staffops.realtime import EVENT_NEW_MESSAGE, Broadcaster
from staffops.schemas import MessageCreate, MessageRead
from staffops.services.notifications import NOTIFICATION_TYPE_NEW_MESSAGE, deliver, notify

MESSAGE_PREVIEW_CHARS = 100


def _sender_name(db: Session, sender_id: str) -> str:
    profile = storage.get_staff_profile(db, sender_id)
    if profile is not None and profile.display_name:
        return profile.display_name
    return "Someone"


def send_message(
    db: Session,
    payload: MessageCreate,
    *,
    sender_id: str,
    broadcaster: Broadcaster | None,
) -> Message:
    content = payload.content.strip()
    if not content:
        raise ValidationError("Message cannot be empty")

    message = storage.insert_message(
        db,
        sender_id=sender_id,
        recipient_id=payload.recipient_id,
        content=content,
    )
    event = {
        "type": EVENT_NEW_MESSAGE,
        "message": MessageRead.model_validate(message).model_dump(mode="json"),
    }
    notify(
        db,
        broadcaster,
        user_id=payload.recipient_id,
        type=NOTIFICATION_TYPE_NEW_MESSAGE,
        title="New Message",
        message=f"{_sender_name(db, sender_id)}: {content[:MESSAGE_PREVIEW_CHARS]}",
        related_id=message.id,
        payload=event,
    )
    if sender_id != payload.recipient_id:
        deliver(broadcaster, sender_id, event)
    return message


def get_conversation(db: Session, *, user_id: str, partner_id: str) -> list[Message]:
    storage.mark_conversation_read(db, user_id, partner_id)
    db.commit()
    return storage.list_conversation(db, user_id, partner_id)
