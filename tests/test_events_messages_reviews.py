from __future__ import annotations

import unittest
from datetime import datetime, timezone

from sqlalchemy import select

from staffops.errors import InvalidStateError, NotFoundError, ValidationError
from staffops.models import AssignmentType, EventStatus, Message, Notification, Shift, ShiftStatus, TimeEntry
from staffops.schemas import EventCreate, EventUpdate, MessageCreate, ReviewCreate
from staffops.services.events import create_event, delete_event, get_event_detail, list_events, update_event
from staffops.services.messages import get_conversation, send_message
from staffops.services.reviews import create_review, list_event_reviews, list_received_reviews
from staffops.services.time_tracking import clock_in
from tests.support import (
    ADMIN_ID,
    STAFF_A,
    STAFF_B,
    RecordingBroadcaster,
    make_session_factory,
    seed_event,
    seed_profiles,
    seed_shift,
)


class EventServiceTests(unittest.TestCase):
    def setUp(self) -> None:
        self.db = make_session_factory()()
        seed_profiles(self.db)

    def tearDown(self) -> None:
        self.db.close()

    def test_create_and_list_events(self) -> None:
        event = create_event(
            self.db,
            EventCreate(
                title="Launch Party",
                venue="Rooftop",
                date=datetime(2026, 12, 1, tzinfo=timezone.utc),
                start_time="19:00",
                end_time="01:00",
                required_staff=6,
            ),
            created_by=ADMIN_ID,
        )

        self.assertEqual(event.created_by, ADMIN_ID)
        self.assertEqual(event.status, EventStatus.DRAFT)
        self.assertEqual([item.id for item in list_events(self.db)], [event.id])

    def test_detail_counts_shifts(self) -> None:
        event = seed_event(self.db)
        seed_shift(self.db, event)
        seed_shift(self.db, event, status=ShiftStatus.CONFIRMED, staff_id=STAFF_A, role="Chef")

        detail = get_event_detail(self.db, event.id)

        self.assertEqual(detail.shift_count, 2)
        self.assertEqual(detail.confirmed_count, 1)
        self.assertEqual(detail.title, "Gala Dinner")

    def test_update_rejects_null_required_field(self) -> None:
        event = seed_event(self.db)

        with self.assertRaises(ValidationError):
            update_event(self.db, event.id, EventUpdate(title=None))

        updated = update_event(self.db, event.id, EventUpdate(status=EventStatus.COMPLETED))
        self.assertEqual(updated.status, EventStatus.COMPLETED)

    def test_delete_event_removes_its_shifts(self) -> None:
        event = seed_event(self.db)
        shift = seed_shift(self.db, event)

        delete_event(self.db, event.id)

        self.assertIsNone(self.db.scalar(select(Shift).where(Shift.id == shift.id)))
        with self.assertRaises(NotFoundError):
            get_event_detail(self.db, event.id)

    def test_delete_event_with_worked_shift_is_refused(self) -> None:
        event = seed_event(self.db)
        shift = seed_shift(
            self.db,
            event,
            assignment_type=AssignmentType.AUTOCONFIRM,
            status=ShiftStatus.CONFIRMED,
            staff_id=STAFF_A,
        )
        clock_in(self.db, staff_id=STAFF_A, shift_id=shift.id)

        with self.assertRaises(InvalidStateError):
            delete_event(self.db, event.id)

        self.assertEqual(get_event_detail(self.db, event.id).shift_count, 1)
        self.assertEqual(len(self.db.scalars(select(TimeEntry)).all()), 1)


class MessageServiceTests(unittest.TestCase):
    def setUp(self) -> None:
        self.db = make_session_factory()()
        seed_profiles(self.db)
        self.broadcaster = RecordingBroadcaster()

    def tearDown(self) -> None:
        self.db.close()

    def test_send_notifies_recipient_and_echoes_to_sender(self) -> None:
        message = send_message(
            self.db,
            MessageCreate(recipient_id=STAFF_B, content="  Can you cover Friday?  "),
            sender_id=STAFF_A,
            broadcaster=self.broadcaster,
        )

        self.assertEqual(message.content, "Can you cover Friday?")
        notification = self.db.scalar(select(Notification).where(Notification.user_id == STAFF_B))
        self.assertEqual(notification.type, "new_message")
        self.assertEqual(notification.message, "Alex: Can you cover Friday?")
        recipient_events = self.broadcaster.sent_to(STAFF_B)
        sender_events = self.broadcaster.sent_to(STAFF_A)
        self.assertEqual(recipient_events[0]["type"], "new_message")
        self.assertEqual(recipient_events[0]["message"]["id"], message.id)
        self.assertEqual(sender_events, recipient_events)

    def test_blank_message_is_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            send_message(
                self.db,
                MessageCreate(recipient_id=STAFF_B, content="   "),
                sender_id=STAFF_A,
                broadcaster=None,
            )

    def test_conversation_marks_incoming_read(self) -> None:
        send_message(self.db, MessageCreate(recipient_id=STAFF_B, content="hi"), sender_id=STAFF_A, broadcaster=None)
        send_message(self.db, MessageCreate(recipient_id=STAFF_A, content="hey"), sender_id=STAFF_B, broadcaster=None)

        thread = get_conversation(self.db, user_id=STAFF_B, partner_id=STAFF_A)

        self.assertEqual(sorted(item.content for item in thread), ["hey", "hi"])
        incoming = self.db.scalar(select(Message).where(Message.recipient_id == STAFF_B))
        outgoing = self.db.scalar(select(Message).where(Message.recipient_id == STAFF_A))
        self.db.refresh(incoming)
        self.db.refresh(outgoing)
        self.assertTrue(incoming.is_read)
        self.assertFalse(outgoing.is_read)


class ReviewServiceTests(unittest.TestCase):
    def setUp(self) -> None:
        self.db = make_session_factory()()
        seed_profiles(self.db)
        self.event = seed_event(self.db)
        self.shift = seed_shift(
            self.db,
            self.event,
            assignment_type=AssignmentType.AUTOCONFIRM,
            status=ShiftStatus.COMPLETED,
            staff_id=STAFF_A,
        )

    def tearDown(self) -> None:
        self.db.close()

    def test_review_notifies_reviewee(self) -> None:
        broadcaster = RecordingBroadcaster()

        review = create_review(
            self.db,
            ReviewCreate(shift_id=self.shift.id, reviewee_id=STAFF_A, rating=5, comment="Great work"),
            reviewer_id=ADMIN_ID,
            broadcaster=broadcaster,
        )

        notification = self.db.scalar(select(Notification).where(Notification.user_id == STAFF_A))
        self.assertEqual(notification.type, "new_review")
        self.assertEqual(notification.related_id, review.id)
        self.assertEqual(notification.message, "Dana Admin left you a 5-star review")
        self.assertEqual(broadcaster.sent_to(STAFF_A), [{"type": "notification"}])
        self.assertEqual([item.id for item in list_received_reviews(self.db, STAFF_A)], [review.id])
        self.assertEqual([item.id for item in list_event_reviews(self.db, self.event.id)], [review.id])

    def test_review_for_unknown_shift_is_not_found(self) -> None:
        with self.assertRaises(NotFoundError):
            create_review(
                self.db,
                ReviewCreate(shift_id="missing", reviewee_id=STAFF_A, rating=3),
                reviewer_id=ADMIN_ID,
                broadcaster=None,
            )

    def test_event_reviews_for_unknown_event_is_not_found(self) -> None:
        with self.assertRaises(NotFoundError):
            list_event_reviews(self.db, "missing")


if __name__ == "__main__":
    unittest.main()
