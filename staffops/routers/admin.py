from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from staffops.audit import log_audit
from staffops.db import get_db
from staffops.realtime import Broadcaster, get_broadcaster
from staffops.schemas import (
    EventCreate,
    EventRead,
    EventUpdate,
    ReviewRead,
    ShiftCreate,
    ShiftRead,
    ShiftUpdate,
)
from staffops.security import CurrentUser, require_admin
from staffops.services import events as event_service
from staffops.services import reviews as review_service
from staffops.services import shifts as shift_service

router = APIRouter(tags=["admin"])


@router.post("/api/admin/events", response_model=EventRead, status_code=status.HTTP_201_CREATED)
def create_event(
    payload: EventCreate,
    request: Request,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
) -> EventRead:
    event = event_service.create_event(db, payload, created_by=admin.user_id)
    log_audit(
        db,
        request,
        actor=admin,
        action="EVENT_CREATED",
        entity_type="event",
        entity_id=event.id,
        details={"title": event.title, "status": event.status.value},
    )
    return event


@router.patch("/api/admin/events/{event_id}", response_model=EventRead)
def update_event(
    event_id: str,
    payload: EventUpdate,
    request: Request,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
) -> EventRead:
    event = event_service.update_event(db, event_id, payload)
    log_audit(
        db,
        request,
        actor=admin,
        action="EVENT_UPDATED",
        entity_type="event",
        entity_id=event.id,
        details={"fields": sorted(payload.model_fields_set)},
    )
    return event


@router.delete("/api/admin/events/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_event(
    event_id: str,
    request: Request,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
) -> None:
    event_service.delete_event(db, event_id)
    log_audit(db, request, actor=admin, action="EVENT_DELETED", entity_type="event", entity_id=event_id)


@router.get("/api/admin/events/{event_id}/reviews", response_model=list[ReviewRead])
def list_event_reviews(
    event_id: str,
    _admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
) -> list[ReviewRead]:
    return review_service.list_event_reviews(db, event_id)


@router.post("/api/admin/shifts", response_model=ShiftRead, status_code=status.HTTP_201_CREATED)
def create_shift(
    payload: ShiftCreate,
    request: Request,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
    broadcaster: Broadcaster = Depends(get_broadcaster),
) -> ShiftRead:
    shift = shift_service.create_shift(db, payload, broadcaster=broadcaster)
    log_audit(
        db,
        request,
        actor=admin,
        action="SHIFT_CREATED",
        entity_type="shift",
        entity_id=shift.id,
        details={
            "event_id": shift.event_id,
            "assignment_type": shift.assignment_type.value,
            "status": shift.status.value,
            "staff_id": shift.staff_id,
        },
    )
    return shift


@router.patch("/api/admin/shifts/{shift_id}", response_model=ShiftRead)
def update_shift(
    shift_id: str,
    payload: ShiftUpdate,
    request: Request,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
) -> ShiftRead:
    shift = shift_service.update_shift(db, shift_id, payload)
    log_audit(
        db,
        request,
        actor=admin,
        action="SHIFT_UPDATED",
        entity_type="shift",
        entity_id=shift.id,
        details=payload.model_dump(mode="json", exclude_unset=True),
    )
    return shift


@router.delete("/api/admin/shifts/{shift_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_shift(
    shift_id: str,
    request: Request,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
) -> None:
    shift_service.delete_shift(db, shift_id)
    log_audit(db, request, actor=admin, action="SHIFT_DELETED", entity_type="shift", entity_id=shift_id)
