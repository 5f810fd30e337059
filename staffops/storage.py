"""Typed read/write helpers over the ORM models.

Nothing here commits; callers own the transaction. Conditional writes return
whether a row was actually changed so the services can detect lost races.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import and_, delete, func, or_, select, update
from sqlalchemy.orm import Session, selectinload

from staffops.models import (
    AssignmentType,
    Event,
    Message,
    Notification,
    Review,
    Shift,
    ShiftStatus,
    StaffProfile,
    TimeEntry,
    TimeEntryStatus,
)


def get_staff_profile(db: Session, user_id: str) -> StaffProfile | None:
    return db.get(StaffProfile, user_id)


# Events


def get_event(db: Session, event_id: str) -> Event | None:
    return db.get(Event, event_id)


def list_events(db: Session) -> list[Event]:
    return list(db.scalars(select(Event).order_by(Event.date.desc(), Event.id.asc())).all())


def insert_event(db: Session, **fields: Any) -> Event:
    event = Event(**fields)
    db.add(event)
    db.flush()
    return event


def apply_event_patch(db: Session, event: Event, fields: dict[str, Any]) -> Event:
    for key, value in fields.items():
        setattr(event, key, value)
    db.flush()
    return event


def event_has_shift_history(db: Session, event_id: str) -> bool:
    shift_ids = select(Shift.id).where(Shift.event_id == event_id)
    return _has_history(db, shift_ids)


def delete_event(db: Session, event: Event) -> None:
    db.execute(delete(Shift).where(Shift.event_id == event.id).execution_options(synchronize_session=False))
    db.delete(event)
    db.flush()


def count_event_shifts(db: Session, event_id: str) -> tuple[int, int]:
    total, confirmed = db.execute(
        select(
            func.count(Shift.id),
            func.count(Shift.id).filter(Shift.status == ShiftStatus.CONFIRMED),
        ).where(Shift.event_id == event_id)
    ).one()
    return int(total or 0), int(confirmed or 0)


# Shifts


def get_shift(db: Session, shift_id: str) -> Shift | None:
    return db.get(Shift, shift_id)


def insert_shift(db: Session, **fields: Any) -> Shift:
    shift = Shift(**fields)
    db.add(shift)
    db.flush()
    return shift


def list_shifts_by_event(db: Session, event_id: str) -> list[Shift]:
    stmt = select(Shift).where(Shift.event_id == event_id).order_by(Shift.role.asc(), Shift.id.asc())
    return list(db.scalars(stmt).all())


def list_shifts_by_staff(db: Session, staff_id: str) -> list[Shift]:
    stmt = (
        select(Shift)
        .join(Event, Shift.event_id == Event.id)
        .options(selectinload(Shift.event))
        .where(Shift.staff_id == staff_id)
        .order_by(Event.date.desc(), Shift.id.asc())
    )
    return list(db.scalars(stmt).all())


def list_available_shifts(db: Session) -> list[Shift]:
    stmt = (
        select(Shift)
        .join(Event, Shift.event_id == Event.id)
        .options(selectinload(Shift.event))
        .where(
            Shift.status == ShiftStatus.OPEN,
            or_(Shift.assignment_type == AssignmentType.PUBLISHING, Shift.staff_id.is_(None)),
        )
        .order_by(Event.date.asc(), Shift.id.asc())
    )
    return list(db.scalars(stmt).all())


def claim_open_shift(db: Session, shift_id: str, *, staff_id: str, now_utc: datetime) -> bool:
    result = db.execute(
        update(Shift)
        .where(
            Shift.id == shift_id,
            Shift.status == ShiftStatus.OPEN,
            Shift.assignment_type == AssignmentType.PUBLISHING,
        )
        .values(status=ShiftStatus.CONFIRMED, staff_id=staff_id, responded_at=now_utc)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def confirm_offered_shift(db: Session, shift_id: str, *, staff_id: str, now_utc: datetime) -> bool:
    result = db.execute(
        update(Shift)
        .where(
            Shift.id == shift_id,
            Shift.staff_id == staff_id,
            Shift.status != ShiftStatus.COMPLETED,
        )
        .values(status=ShiftStatus.CONFIRMED, responded_at=now_utc)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def reopen_shift(db: Session, shift_id: str, *, now_utc: datetime) -> bool:
    result = db.execute(
        update(Shift)
        .where(Shift.id == shift_id, Shift.status != ShiftStatus.COMPLETED)
        .values(status=ShiftStatus.OPEN, staff_id=None, responded_at=now_utc)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def apply_shift_patch(db: Session, shift: Shift, fields: dict[str, Any], *, now_utc: datetime) -> Shift:
    for key, value in fields.items():
        setattr(shift, key, value)
    shift.responded_at = now_utc
    db.flush()
    return shift


def shift_has_history(db: Session, shift_id: str) -> bool:
    return _has_history(db, select(Shift.id).where(Shift.id == shift_id))


def _has_history(db: Session, shift_ids: Any) -> bool:
    entry = db.scalar(select(TimeEntry.id).where(TimeEntry.shift_id.in_(shift_ids)).limit(1))
    if entry is not None:
        return True
    review = db.scalar(select(Review.id).where(Review.shift_id.in_(shift_ids)).limit(1))
    return review is not None


def delete_shift(db: Session, shift: Shift) -> None:
    db.delete(shift)
    db.flush()


# Time entries


def get_active_time_entry(db: Session, staff_id: str) -> TimeEntry | None:
    return db.scalar(
        select(TimeEntry).where(
            TimeEntry.staff_id == staff_id,
            TimeEntry.status == TimeEntryStatus.ACTIVE,
        )
    )


def insert_time_entry(db: Session, **fields: Any) -> TimeEntry:
    entry = TimeEntry(**fields)
    db.add(entry)
    db.flush()
    return entry


def finalize_time_entry(
    db: Session,
    entry_id: str,
    *,
    clock_out: datetime,
    total_minutes: int,
) -> bool:
    result = db.execute(
        update(TimeEntry)
        .where(TimeEntry.id == entry_id, TimeEntry.status == TimeEntryStatus.ACTIVE)
        .values(clock_out=clock_out, total_minutes=total_minutes, status=TimeEntryStatus.COMPLETED)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def list_time_entries_by_staff(db: Session, staff_id: str) -> list[TimeEntry]:
    stmt = (
        select(TimeEntry)
        .options(selectinload(TimeEntry.shift).selectinload(Shift.event))
        .where(TimeEntry.staff_id == staff_id)
        .order_by(TimeEntry.clock_in.desc())
    )
    return list(db.scalars(stmt).all())


# Notifications


def insert_notification(db: Session, **fields: Any) -> Notification:
    notification = Notification(is_read=False, **fields)
    db.add(notification)
    db.flush()
    return notification


def list_notifications(db: Session, user_id: str, *, limit: int) -> list[Notification]:
    stmt = (
        select(Notification)
        .where(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc(), Notification.id.asc())
        .limit(limit)
    )
    return list(db.scalars(stmt).all())


def mark_notification_read(db: Session, notification_id: str, *, user_id: str) -> bool:
    result = db.execute(
        update(Notification)
        .where(Notification.id == notification_id, Notification.user_id == user_id)
        .values(is_read=True)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def mark_all_notifications_read(db: Session, user_id: str) -> int:
    result = db.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.is_read.is_(False))
        .values(is_read=True)
        .execution_options(synchronize_session=False)
    )
    return int(result.rowcount or 0)


def count_unread_notifications(db: Session, user_id: str) -> int:
    count = db.scalar(
        select(func.count(Notification.id)).where(
            Notification.user_id == user_id,
            Notification.is_read.is_(False),
        )
    )
    return int(count or 0)


# Messages


def insert_message(db: Session, **fields: Any) -> Message:
    message = Message(is_read=False, **fields)
    db.add(message)
    db.flush()
    return message


def list_conversation(db: Session, user_id: str, partner_id: str) -> list[Message]:
    stmt = (
        select(Message)
        .where(
            or_(
                and_(Message.sender_id == user_id, Message.recipient_id == partner_id),
                and_(Message.sender_id == partner_id, Message.recipient_id == user_id),
            )
        )
        .order_by(Message.created_at.asc(), Message.id.asc())
    )
    return list(db.scalars(stmt).all())


def mark_conversation_read(db: Session, user_id: str, partner_id: str) -> int:
    result = db.execute(
        update(Message)
        .where(
            Message.sender_id == partner_id,
            Message.recipient_id == user_id,
            Message.is_read.is_(False),
        )
        .values(is_read=True)
        .execution_options(synchronize_session=False)
    )
    return int(result.rowcount or 0)


# Reviews


def insert_review(db: Session, **fields: Any) -> Review:
    review = Review(**fields)
    db.add(review)
    db.flush()
    return review


def list_reviews_for_reviewee(db: Session, user_id: str) -> list[Review]:
    stmt = (
        select(Review)
        .options(selectinload(Review.shift))
        .where(Review.reviewee_id == user_id)
        .order_by(Review.created_at.desc())
    )
    return list(db.scalars(stmt).all())


def list_reviews_for_event(db: Session, event_id: str) -> list[Review]:
    stmt = (
        select(Review)
        .join(Shift, Review.shift_id == Shift.id)
        .where(Shift.event_id == event_id)
        .order_by(Review.created_at.desc())
    )
    return list(db.scalars(stmt).all())
