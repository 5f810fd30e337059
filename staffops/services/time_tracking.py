from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from staffops import storage
from staffops.errors import ConflictError, ForbiddenError, InvalidStateError, NotFoundError
from staffops.models import ShiftStatus, TimeEntry, TimeEntryStatus

logger = logging.getLogger("staffops.time_tracking")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _normalize_ts(ts: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored as UTC.
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def elapsed_minutes(clock_in: datetime, clock_out: datetime) -> int:
    seconds = (_normalize_ts(clock_out) - _normalize_ts(clock_in)).total_seconds()
    if seconds < 0:
        raise RuntimeError("clock_out precedes clock_in")
    return int(seconds // 60)


def earned_cents(pay_rate: int | None, total_minutes: int | None, break_minutes: int | None) -> int | None:
    if pay_rate is None or total_minutes is None:
        return None
    billable_minutes = max(0, total_minutes - (break_minutes or 0))
    return pay_rate * billable_minutes // 60


def get_active_entry(db: Session, staff_id: str) -> TimeEntry | None:
    return storage.get_active_time_entry(db, staff_id)


def clock_in(db: Session, *, staff_id: str, shift_id: str) -> TimeEntry:
    shift = storage.get_shift(db, shift_id)
    if shift is None:
        raise NotFoundError("Shift not found")
    if shift.staff_id != staff_id:
        raise ForbiddenError("This shift is not assigned to you")
    if shift.status != ShiftStatus.CONFIRMED:
        raise InvalidStateError("Shift must be confirmed to clock in")
    if storage.get_active_time_entry(db, staff_id) is not None:
        raise ConflictError("Already clocked in to another shift")

    try:
        entry = storage.insert_time_entry(
            db,
            shift_id=shift.id,
            staff_id=staff_id,
            clock_in=_utcnow(),
            break_minutes=shift.break_minutes or 0,
            status=TimeEntryStatus.ACTIVE,
        )
        db.commit()
    except IntegrityError as exc:
        # uq_time_entries_active_staff: a concurrent clock-in won.
        db.rollback()
        raise ConflictError("Already clocked in to another shift") from exc

    logger.info(
        "clock_in",
        extra={"time_entry_id": entry.id, "shift_id": shift.id, "staff_id": staff_id},
    )
    return entry


def clock_out(db: Session, *, staff_id: str) -> TimeEntry:
    entry = storage.get_active_time_entry(db, staff_id)
    if entry is None:
        raise InvalidStateError("Not clocked in")

    clock_out_ts = _utcnow()
    total_minutes = elapsed_minutes(entry.clock_in, clock_out_ts)
    if not storage.finalize_time_entry(db, entry.id, clock_out=clock_out_ts, total_minutes=total_minutes):
        db.rollback()
        raise ConflictError("Time entry was already closed")
    db.commit()
    db.refresh(entry)

    logger.info(
        "clock_out",
        extra={
            "time_entry_id": entry.id,
            "shift_id": entry.shift_id,
            "staff_id": staff_id,
            "total_minutes": total_minutes,
        },
    )
    return entry


@dataclass(frozen=True, slots=True)
class TimeEntryHistoryRow:
    entry: TimeEntry
    shift_role: str
    event_id: str
    event_title: str
    pay_rate: int | None
    earned_cents: int | None


def list_history(db: Session, staff_id: str) -> list[TimeEntryHistoryRow]:
    rows: list[TimeEntryHistoryRow] = []
    for entry in storage.list_time_entries_by_staff(db, staff_id):
        shift = entry.shift
        rows.append(
            TimeEntryHistoryRow(
                entry=entry,
                shift_role=shift.role,
                event_id=shift.event_id,
                event_title=shift.event.title,
                pay_rate=shift.pay_rate,
                earned_cents=earned_cents(shift.pay_rate, entry.total_minutes, entry.break_minutes),
            )
        )
    return rows
