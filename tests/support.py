from __future__ import annotations

from collections.abc import Generator
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy import event as sa_event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import staffops.models  # noqa: F401
from staffops.db import Base
from staffops.models import (
    AssignmentType,
    Event,
    EventStatus,
    Shift,
    ShiftStatus,
    StaffProfile,
    UserRole,
)

ADMIN_ID = "admin-1"
STAFF_A = "staff-a"
STAFF_B = "staff-b"


def make_session_factory(path: str | None = None) -> sessionmaker[Session]:
    if path is None:
        engine = create_engine(
            "sqlite+pysqlite:///:memory:",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        engine = create_engine(
            f"sqlite+pysqlite:///{path}",
            connect_args={"check_same_thread": False, "timeout": 30},
        )

        @sa_event.listens_for(engine, "connect")
        def _disable_pysqlite_begin(dbapi_connection, _record):  # type: ignore[no-untyped-def]
            dbapi_connection.isolation_level = None

        # Each transaction takes the write lock up front.
        @sa_event.listens_for(engine, "begin")
        def _begin_immediate(connection):  # type: ignore[no-untyped-def]
            connection.exec_driver_sql("BEGIN IMMEDIATE")

    @sa_event.listens_for(engine, "connect")
    def _enforce_foreign_keys(dbapi_connection, _record):  # type: ignore[no-untyped-def]
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def override_get_db(factory: sessionmaker[Session]):
    def _override() -> Generator[Session, None, None]:
        db = factory()
        try:
            yield db
        finally:
            db.close()

    return _override


class RecordingBroadcaster:
    def __init__(self) -> None:
        self.sent: list[tuple[str, dict[str, Any]]] = []

    def broadcast_to_user(self, user_id: str, payload: dict[str, Any]) -> int:
        self.sent.append((user_id, payload))
        return 1

    def sent_to(self, user_id: str) -> list[dict[str, Any]]:
        return [payload for target, payload in self.sent if target == user_id]


class ExplodingBroadcaster:
    def broadcast_to_user(self, user_id: str, payload: dict[str, Any]) -> int:
        raise RuntimeError("socket layer down")


def seed_profiles(db: Session) -> None:
    db.add_all(
        [
            StaffProfile(user_id=ADMIN_ID, role=UserRole.ADMIN, display_name="Dana Admin"),
            StaffProfile(user_id=STAFF_A, role=UserRole.STAFF, display_name="Alex"),
            StaffProfile(user_id=STAFF_B, role=UserRole.STAFF, display_name="Blair"),
        ]
    )
    db.commit()


def seed_event(db: Session, *, created_by: str = ADMIN_ID, title: str = "Gala Dinner") -> Event:
    event = Event(
        title=title,
        venue="Grand Hall",
        date=datetime(2026, 11, 20, tzinfo=timezone.utc),
        start_time="18:00",
        end_time="23:00",
        status=EventStatus.PUBLISHED,
        required_staff=4,
        created_by=created_by,
    )
    db.add(event)
    db.commit()
    return event


def seed_shift(
    db: Session,
    event: Event,
    *,
    assignment_type: AssignmentType = AssignmentType.PUBLISHING,
    status: ShiftStatus = ShiftStatus.OPEN,
    staff_id: str | None = None,
    role: str = "Bartender",
    pay_rate: int | None = 2400,
    break_minutes: int | None = None,
) -> Shift:
    shift = Shift(
        event_id=event.id,
        role=role,
        assignment_type=assignment_type,
        status=status,
        staff_id=staff_id,
        pay_rate=pay_rate,
        break_minutes=break_minutes,
    )
    db.add(shift)
    db.commit()
    return shift
