from __future__ import annotations

from sqlalchemy.orm import Session

from staffops import storage
from staffops.errors import NotFoundError, ValidationError
from staffops.models import Review
from staffops.realtime import Broadcaster
from staffops.schemas import ReviewCreate
from staffops.services.notifications import NOTIFICATION_TYPE_NEW_REVIEW, notify


def create_review(
    db: Session,
    payload: ReviewCreate,
    *,
    reviewer_id: str,
    broadcaster: Broadcaster | None,
) -> Review:
    if not 1 <= payload.rating <= 5:
        raise ValidationError("Rating must be between 1 and 5")
    if storage.get_shift(db, payload.shift_id) is None:
        raise NotFoundError("Shift not found")

    review = storage.insert_review(
        db,
        shift_id=payload.shift_id,
        reviewer_id=reviewer_id,
        reviewee_id=payload.reviewee_id,
        rating=payload.rating,
        comment=payload.comment,
    )
    profile = storage.get_staff_profile(db, reviewer_id)
    reviewer_name = profile.display_name if profile is not None and profile.display_name else "Someone"
    notify(
        db,
        broadcaster,
        user_id=payload.reviewee_id,
        type=NOTIFICATION_TYPE_NEW_REVIEW,
        title="New Performance Review",
        message=f"{reviewer_name} left you a {payload.rating}-star review",
        related_id=review.id,
    )
    return review


def list_received_reviews(db: Session, user_id: str) -> list[Review]:
    return storage.list_reviews_for_reviewee(db, user_id)


def list_event_reviews(db: Session, event_id: str) -> list[Review]:
    if storage.get_event(db, event_id) is None:
        raise NotFoundError("Event not found")
    return storage.list_reviews_for_event(db, event_id)
