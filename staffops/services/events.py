from __future__ import annotations

from sqlalchemy.orm import Session

from staffops import storage
from staffops.errors import InvalidStateError, NotFoundError, ValidationError
from staffops.models import Event
from staffops.schemas import EventCreate, EventDetailRead, EventRead, EventUpdate

_REQUIRED_TEXT_FIELDS = ("title", "venue", "start_time", "end_time")


def create_event(db: Session, payload: EventCreate, *, created_by: str) -> Event:
    event = storage.insert_event(db, created_by=created_by, **payload.model_dump())
    db.commit()
    return event


def list_events(db: Session) -> list[Event]:
    return storage.list_events(db)


def get_event_detail(db: Session, event_id: str) -> EventDetailRead:
    event = storage.get_event(db, event_id)
    if event is None:
        raise NotFoundError("Event not found")
    shift_count, confirmed_count = storage.count_event_shifts(db, event_id)
    return EventDetailRead(
        **EventRead.model_validate(event).model_dump(),
        shift_count=shift_count,
        confirmed_count=confirmed_count,
    )


def update_event(db: Session, event_id: str, patch: EventUpdate) -> Event:
    event = storage.get_event(db, event_id)
    if event is None:
        raise NotFoundError("Event not found")
    fields = patch.model_dump(exclude_unset=True)
    for key in _REQUIRED_TEXT_FIELDS + ("date", "status", "required_staff"):
        if key in fields and fields[key] is None:
            raise ValidationError(f"{key} cannot be null")
    storage.apply_event_patch(db, event, fields)
    db.commit()
    return event


def delete_event(db: Session, event_id: str) -> None:
    event = storage.get_event(db, event_id)
    if event is None:
        raise NotFoundError("Event not found")
    if storage.event_has_shift_history(db, event.id):
        raise InvalidStateError("Event has shifts with recorded time entries or reviews and cannot be deleted")
    storage.delete_event(db, event)
    db.commit()
