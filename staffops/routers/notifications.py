from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from staffops.db import get_db
from staffops.schemas import MarkAllReadResponse, NotificationRead, SuccessResponse, UnreadCountResponse
from staffops.security import CurrentUser, get_current_user
from staffops.services import notifications as notification_service

router = APIRouter(tags=["notifications"])


@router.get("/api/notifications", response_model=list[NotificationRead])
def list_notifications(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[NotificationRead]:
    return notification_service.list_notifications(db, user.user_id)


@router.get("/api/notifications/unread-count", response_model=UnreadCountResponse)
def unread_count(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> UnreadCountResponse:
    return UnreadCountResponse(count=notification_service.unread_count(db, user.user_id))


@router.patch("/api/notifications/read-all", response_model=MarkAllReadResponse)
def mark_all_read(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> MarkAllReadResponse:
    return MarkAllReadResponse(updated=notification_service.mark_all_read(db, user.user_id))


@router.patch("/api/notifications/{notification_id}/read", response_model=SuccessResponse)
def mark_read(
    notification_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> SuccessResponse:
    notification_service.mark_read(db, notification_id, user_id=user.user_id)
    return SuccessResponse()
