from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from staffops.audit import log_audit
from staffops.db import get_db
from staffops.realtime import Broadcaster, get_broadcaster
from staffops.schemas import (
    EventDetailRead,
    EventRead,
    ShiftRead,
    ShiftRespondRequest,
    ShiftWithEventRead,
)
from staffops.security import CurrentUser, get_current_user
from staffops.services import events as event_service
from staffops.services import shifts as shift_service

router = APIRouter(tags=["shifts"])


@router.get("/api/events", response_model=list[EventRead])
def list_events(
    _user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[EventRead]:
    return event_service.list_events(db)


@router.get("/api/events/{event_id}", response_model=EventDetailRead)
def get_event(
    event_id: str,
    _user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> EventDetailRead:
    return event_service.get_event_detail(db, event_id)


@router.get("/api/events/{event_id}/shifts", response_model=list[ShiftRead])
def list_event_shifts(
    event_id: str,
    _user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[ShiftRead]:
    return shift_service.list_event_shifts(db, event_id)


@router.get("/api/shifts/my", response_model=list[ShiftWithEventRead])
def list_my_shifts(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[ShiftWithEventRead]:
    return shift_service.list_my_shifts(db, user.user_id)


@router.get("/api/shifts/available", response_model=list[ShiftWithEventRead])
def list_available_shifts(
    _user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[ShiftWithEventRead]:
    return shift_service.list_available_shifts(db)


@router.patch("/api/shifts/{shift_id}/respond", response_model=ShiftRead)
def respond_to_shift(
    shift_id: str,
    payload: ShiftRespondRequest,
    request: Request,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    broadcaster: Broadcaster = Depends(get_broadcaster),
) -> ShiftRead:
    shift = shift_service.respond_to_shift(
        db,
        shift_id,
        acting_user_id=user.user_id,
        action=payload.action,
        broadcaster=broadcaster,
    )
    log_audit(
        db,
        request,
        actor=user,
        action=f"SHIFT_{payload.action.upper()}",
        entity_type="shift",
        entity_id=shift.id,
        details={"status": shift.status.value},
    )
    return shift
