from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from staffops.audit import log_audit
from staffops.db import get_db
from staffops.schemas import ClockInRequest, TimeEntryHistoryItem, TimeEntryRead
from staffops.security import CurrentUser, get_current_user
from staffops.services import time_tracking

router = APIRouter(tags=["attendance"])


@router.get("/api/time/active", response_model=TimeEntryRead | None)
def get_active_entry(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TimeEntryRead | None:
    return time_tracking.get_active_entry(db, user.user_id)


@router.get("/api/time/history", response_model=list[TimeEntryHistoryItem])
def list_history(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[TimeEntryHistoryItem]:
    return [
        TimeEntryHistoryItem(
            **TimeEntryRead.model_validate(row.entry).model_dump(),
            shift_role=row.shift_role,
            event_id=row.event_id,
            event_title=row.event_title,
            pay_rate=row.pay_rate,
            earned_cents=row.earned_cents,
        )
        for row in time_tracking.list_history(db, user.user_id)
    ]


@router.post("/api/time/clock-in", response_model=TimeEntryRead)
def clock_in(
    payload: ClockInRequest,
    request: Request,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TimeEntryRead:
    entry = time_tracking.clock_in(db, staff_id=user.user_id, shift_id=payload.shift_id)
    request.state.time_entry_id = entry.id
    log_audit(
        db,
        request,
        actor=user,
        action="CLOCK_IN",
        entity_type="time_entry",
        entity_id=entry.id,
        details={"shift_id": entry.shift_id},
    )
    return entry


@router.post("/api/time/clock-out", response_model=TimeEntryRead)
def clock_out(
    request: Request,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TimeEntryRead:
    entry = time_tracking.clock_out(db, staff_id=user.user_id)
    request.state.time_entry_id = entry.id
    log_audit(
        db,
        request,
        actor=user,
        action="CLOCK_OUT",
        entity_type="time_entry",
        entity_id=entry.id,
        details={"shift_id": entry.shift_id, "total_minutes": entry.total_minutes},
    )
    return entry
