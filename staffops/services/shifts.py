from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.orm import Session

from staffops import storage
from staffops.errors import ConflictError, ForbiddenError, InvalidStateError, NotFoundError, ValidationError
from staffops.models import AssignmentType, Shift, ShiftStatus
from staffops.realtime import Broadcaster
from staffops.schemas import ShiftCreate, ShiftUpdate
from staffops.services.notifications import (
    NOTIFICATION_TYPE_SHIFT_ACCEPTED,
    NOTIFICATION_TYPE_SHIFT_OFFER,
    NOTIFICATION_TYPE_SHIFT_REJECTED,
    notify,
)

logger = logging.getLogger("staffops.shifts")

SHIFT_ACTION_ACCEPT = "accept"
SHIFT_ACTION_REJECT = "reject"
SHIFT_ACTION_CLAIM = "claim"
SHIFT_ACTIONS = (SHIFT_ACTION_ACCEPT, SHIFT_ACTION_REJECT, SHIFT_ACTION_CLAIM)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _initial_status(assignment_type: AssignmentType, staff_id: str | None) -> ShiftStatus:
    if not staff_id:
        return ShiftStatus.OPEN
    if assignment_type == AssignmentType.AUTOCONFIRM:
        return ShiftStatus.CONFIRMED
    return ShiftStatus.PENDING


def _coerce_assignment_type(value: AssignmentType | str) -> AssignmentType:
    try:
        return AssignmentType(value)
    except ValueError as exc:
        raise ValidationError(
            "assignment_type must be one of: autoconfirm, seekreply, publishing"
        ) from exc


def create_shift(db: Session, payload: ShiftCreate, *, broadcaster: Broadcaster | None) -> Shift:
    role = payload.role.strip()
    if not role:
        raise ValidationError("Role is required")
    assignment_type = _coerce_assignment_type(payload.assignment_type)
    if storage.get_event(db, payload.event_id) is None:
        raise NotFoundError("Event not found")

    staff_id = payload.staff_id or None
    now_utc = _utcnow()
    shift = storage.insert_shift(
        db,
        event_id=payload.event_id,
        staff_id=staff_id,
        role=role,
        assignment_type=assignment_type,
        status=_initial_status(assignment_type, staff_id),
        pay_rate=payload.pay_rate,
        notes=payload.notes,
        break_minutes=payload.break_minutes,
        assigned_at=now_utc if staff_id else None,
    )

    if staff_id and assignment_type != AssignmentType.AUTOCONFIRM:
        notify(
            db,
            broadcaster,
            user_id=staff_id,
            type=NOTIFICATION_TYPE_SHIFT_OFFER,
            title="New Shift Offer",
            message=f"You've been offered a {role} shift",
            related_id=shift.id,
        )
    else:
        db.commit()

    logger.info(
        "shift_created",
        extra={
            "shift_id": shift.id,
            "event_id": shift.event_id,
            "assignment_type": assignment_type.value,
            "status": shift.status.value,
            "staff_id": staff_id,
        },
    )
    return shift


def respond_to_shift(
    db: Session,
    shift_id: str,
    *,
    acting_user_id: str,
    action: str,
    broadcaster: Broadcaster | None,
) -> Shift:
    if action not in SHIFT_ACTIONS:
        raise ValidationError("Invalid action. Must be accept, reject, or claim.")

    shift = storage.get_shift(db, shift_id)
    if shift is None:
        raise NotFoundError("Shift not found")

    now_utc = _utcnow()
    if action != SHIFT_ACTION_CLAIM and shift.status == ShiftStatus.COMPLETED:
        raise InvalidStateError("This shift is already completed")
    if action == SHIFT_ACTION_CLAIM:
        if shift.assignment_type != AssignmentType.PUBLISHING:
            raise InvalidStateError("This shift is not available for claiming")
        if shift.status != ShiftStatus.OPEN:
            raise InvalidStateError("This shift has already been taken")
        if not storage.claim_open_shift(db, shift.id, staff_id=acting_user_id, now_utc=now_utc):
            db.rollback()
            raise ConflictError("Another staff member claimed this shift first")
    elif action == SHIFT_ACTION_ACCEPT:
        if shift.staff_id != acting_user_id:
            raise ForbiddenError("This shift was not offered to you")
        if not storage.confirm_offered_shift(db, shift.id, staff_id=acting_user_id, now_utc=now_utc):
            db.rollback()
            raise ConflictError("This shift offer changed before it could be accepted")
    else:
        if not storage.reopen_shift(db, shift.id, now_utc=now_utc):
            db.rollback()
            raise ConflictError("This shift changed before it could be declined")

    event = storage.get_event(db, shift.event_id)
    if event is None:
        db.commit()
    elif action == SHIFT_ACTION_REJECT:
        notify(
            db,
            broadcaster,
            user_id=event.created_by,
            type=NOTIFICATION_TYPE_SHIFT_REJECTED,
            title="Shift Declined",
            message=f"A staff member declined the {shift.role} shift for {event.title}",
            related_id=shift.id,
        )
    else:
        notify(
            db,
            broadcaster,
            user_id=event.created_by,
            type=NOTIFICATION_TYPE_SHIFT_ACCEPTED,
            title="Shift Accepted",
            message=f"A staff member accepted the {shift.role} shift for {event.title}",
            related_id=shift.id,
        )

    db.refresh(shift)
    logger.info(
        "shift_responded",
        extra={
            "shift_id": shift.id,
            "action": action,
            "acting_user_id": acting_user_id,
            "status": shift.status.value,
        },
    )
    return shift


def update_shift(db: Session, shift_id: str, patch: ShiftUpdate) -> Shift:
    shift = storage.get_shift(db, shift_id)
    if shift is None:
        raise NotFoundError("Shift not found")

    fields: dict[str, Any] = patch.model_dump(exclude_unset=True)
    if "role" in fields:
        if fields["role"] is None or not fields["role"].strip():
            raise ValidationError("Role cannot be empty")
        fields["role"] = fields["role"].strip()
    if "status" in fields and fields["status"] is None:
        raise ValidationError("Status cannot be null")
    if fields.get("staff_id") and fields["staff_id"] != shift.staff_id:
        fields["assigned_at"] = _utcnow()

    storage.apply_shift_patch(db, shift, fields, now_utc=_utcnow())
    db.commit()
    db.refresh(shift)
    if shift.status in (ShiftStatus.PENDING, ShiftStatus.CONFIRMED) and shift.staff_id is None:
        logger.warning(
            "shift_override_without_staff",
            extra={"shift_id": shift.id, "status": shift.status.value},
        )
    return shift


def delete_shift(db: Session, shift_id: str) -> None:
    shift = storage.get_shift(db, shift_id)
    if shift is None:
        raise NotFoundError("Shift not found")
    if storage.shift_has_history(db, shift.id):
        raise InvalidStateError("Shift has recorded time entries or reviews and cannot be deleted")
    storage.delete_shift(db, shift)
    db.commit()


def list_event_shifts(db: Session, event_id: str) -> list[Shift]:
    if storage.get_event(db, event_id) is None:
        raise NotFoundError("Event not found")
    return storage.list_shifts_by_event(db, event_id)


def list_my_shifts(db: Session, staff_id: str) -> list[Shift]:
    return storage.list_shifts_by_staff(db, staff_id)


def list_available_shifts(db: Session) -> list[Shift]:
    return storage.list_available_shifts(db)
