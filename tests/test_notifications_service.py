from __future__ import annotations

import unittest
from unittest.mock import patch

from staffops.errors import NotFoundError
from staffops.services.notifications import (
    deliver,
    list_notifications,
    mark_all_read,
    mark_read,
    notify,
    unread_count,
)
from staffops.settings import Settings
from tests.support import STAFF_A, STAFF_B, ExplodingBroadcaster, RecordingBroadcaster, make_session_factory


def _notify(db, broadcaster, user_id: str, title: str = "Hello"):  # type: ignore[no-untyped-def]
    return notify(
        db,
        broadcaster,
        user_id=user_id,
        type="shift_offer",
        title=title,
        message="You've been offered a Server shift",
        related_id=None,
    )


class NotificationServiceTests(unittest.TestCase):
    def setUp(self) -> None:
        self.factory = make_session_factory()
        self.db = self.factory()

    def tearDown(self) -> None:
        self.db.close()

    def test_notify_persists_then_pushes_generic_event(self) -> None:
        broadcaster = RecordingBroadcaster()

        notification = _notify(self.db, broadcaster, STAFF_A)

        self.assertFalse(notification.is_read)
        self.assertEqual(unread_count(self.db, STAFF_A), 1)
        self.assertEqual(broadcaster.sent, [(STAFF_A, {"type": "notification"})])

    def test_notify_survives_broadcaster_failure(self) -> None:
        with self.assertLogs("staffops.notifications", level="ERROR"):
            _notify(self.db, ExplodingBroadcaster(), STAFF_A)

        check = self.factory()
        try:
            self.assertEqual(unread_count(check, STAFF_A), 1)
        finally:
            check.close()

    def test_deliver_without_broadcaster_is_noop(self) -> None:
        self.assertEqual(deliver(None, STAFF_A, {"type": "notification"}), 0)

    def test_mark_read_is_scoped_to_owner(self) -> None:
        notification = _notify(self.db, None, STAFF_A)

        with self.assertRaises(NotFoundError):
            mark_read(self.db, notification.id, user_id=STAFF_B)
        self.assertEqual(unread_count(self.db, STAFF_A), 1)

        mark_read(self.db, notification.id, user_id=STAFF_A)
        self.assertEqual(unread_count(self.db, STAFF_A), 0)

    def test_mark_read_unknown_id_is_not_found(self) -> None:
        with self.assertRaises(NotFoundError):
            mark_read(self.db, "missing", user_id=STAFF_A)

    def test_mark_all_read_only_touches_caller(self) -> None:
        _notify(self.db, None, STAFF_A)
        _notify(self.db, None, STAFF_A)
        _notify(self.db, None, STAFF_B)

        self.assertEqual(mark_all_read(self.db, STAFF_A), 2)
        self.assertEqual(unread_count(self.db, STAFF_A), 0)
        self.assertEqual(unread_count(self.db, STAFF_B), 1)
        self.assertEqual(mark_all_read(self.db, STAFF_A), 0)

    def test_list_is_capped_by_settings(self) -> None:
        for index in range(4):
            _notify(self.db, None, STAFF_A, title=f"n{index}")

        with patch(
            "staffops.services.notifications.get_settings",
            return_value=Settings(notification_list_limit=3),
        ):
            rows = list_notifications(self.db, STAFF_A)

        self.assertEqual(len(rows), 3)
        self.assertTrue(all(row.user_id == STAFF_A for row in rows))


if __name__ == "__main__":
    unittest.main()
