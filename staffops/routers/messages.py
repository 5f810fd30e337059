from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from staffops.db import get_db
from staffops.realtime import Broadcaster, get_broadcaster
from staffops.schemas import MessageCreate, MessageRead, ReviewCreate, ReviewRead
from staffops.security import CurrentUser, get_current_user
from staffops.services import messages as message_service
from staffops.services import reviews as review_service

router = APIRouter(tags=["messages"])


@router.post("/api/messages", response_model=MessageRead, status_code=status.HTTP_201_CREATED)
def send_message(
    payload: MessageCreate,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    broadcaster: Broadcaster = Depends(get_broadcaster),
) -> MessageRead:
    return message_service.send_message(db, payload, sender_id=user.user_id, broadcaster=broadcaster)


@router.get("/api/messages/{partner_id}", response_model=list[MessageRead])
def get_conversation(
    partner_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[MessageRead]:
    return message_service.get_conversation(db, user_id=user.user_id, partner_id=partner_id)


@router.post("/api/reviews", response_model=ReviewRead, status_code=status.HTTP_201_CREATED)
def create_review(
    payload: ReviewCreate,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    broadcaster: Broadcaster = Depends(get_broadcaster),
) -> ReviewRead:
    return review_service.create_review(db, payload, reviewer_id=user.user_id, broadcaster=broadcaster)


@router.get("/api/reviews/my", response_model=list[ReviewRead])
def list_my_reviews(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[ReviewRead]:
    return review_service.list_received_reviews(db, user.user_id)
