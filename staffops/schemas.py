from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from staffops.models import AssignmentType, EventStatus, ShiftStatus, TimeEntryStatus

ShiftAction = Literal["accept", "reject", "claim"]


class EventCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    venue: str = Field(min_length=1, max_length=255)
    date: datetime
    start_time: str = Field(min_length=1, max_length=32)
    end_time: str = Field(min_length=1, max_length=32)
    venue_address: str | None = Field(default=None, max_length=512)
    description: str | None = None
    uniform_requirements: str | None = None
    special_instructions: str | None = None
    required_staff: int = Field(default=0, ge=0)
    status: EventStatus = EventStatus.DRAFT


class EventUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(default=None, min_length=1, max_length=255)
    venue: str | None = Field(default=None, min_length=1, max_length=255)
    date: datetime | None = None
    start_time: str | None = Field(default=None, min_length=1, max_length=32)
    end_time: str | None = Field(default=None, min_length=1, max_length=32)
    venue_address: str | None = Field(default=None, max_length=512)
    description: str | None = None
    uniform_requirements: str | None = None
    special_instructions: str | None = None
    required_staff: int | None = Field(default=None, ge=0)
    status: EventStatus | None = None


class EventRead(BaseModel):
    id: str
    title: str
    venue: str
    venue_address: str | None
    date: datetime
    start_time: str
    end_time: str
    description: str | None
    uniform_requirements: str | None
    special_instructions: str | None
    status: EventStatus
    required_staff: int
    created_by: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class EventDetailRead(EventRead):
    shift_count: int = 0
    confirmed_count: int = 0


class ShiftCreate(BaseModel):
    event_id: str = Field(min_length=1)
    role: str = Field(min_length=1, max_length=255)
    assignment_type: AssignmentType
    pay_rate: int | None = Field(default=None, ge=0)
    notes: str | None = None
    break_minutes: int | None = Field(default=None, ge=0)
    staff_id: str | None = Field(default=None, min_length=1)


class ShiftUpdate(BaseModel):
    """Fields an admin may overwrite directly; only keys present in the body are applied."""

    model_config = ConfigDict(extra="forbid")

    staff_id: str | None = None
    role: str | None = Field(default=None, min_length=1, max_length=255)
    status: ShiftStatus | None = None
    pay_rate: int | None = Field(default=None, ge=0)
    notes: str | None = None
    break_minutes: int | None = Field(default=None, ge=0)


class ShiftRespondRequest(BaseModel):
    action: ShiftAction


class ShiftRead(BaseModel):
    id: str
    event_id: str
    staff_id: str | None
    role: str
    assignment_type: AssignmentType
    status: ShiftStatus
    pay_rate: int | None
    notes: str | None
    break_minutes: int | None
    assigned_at: datetime | None
    responded_at: datetime | None

    model_config = ConfigDict(from_attributes=True)


class ShiftWithEventRead(ShiftRead):
    event: EventRead


class ClockInRequest(BaseModel):
    shift_id: str = Field(min_length=1)


class TimeEntryRead(BaseModel):
    id: str
    shift_id: str
    staff_id: str
    clock_in: datetime
    clock_out: datetime | None
    total_minutes: int | None
    break_minutes: int
    notes: str | None
    status: TimeEntryStatus

    model_config = ConfigDict(from_attributes=True)


class TimeEntryHistoryItem(TimeEntryRead):
    shift_role: str
    event_id: str
    event_title: str
    pay_rate: int | None
    earned_cents: int | None


class NotificationRead(BaseModel):
    id: str
    user_id: str
    type: str
    title: str
    message: str
    is_read: bool
    related_id: str | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UnreadCountResponse(BaseModel):
    count: int


class MarkAllReadResponse(BaseModel):
    updated: int


class MessageCreate(BaseModel):
    recipient_id: str = Field(min_length=1)
    content: str = Field(min_length=1, max_length=5000)


class MessageRead(BaseModel):
    id: str
    sender_id: str
    recipient_id: str
    content: str
    is_read: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ReviewCreate(BaseModel):
    shift_id: str = Field(min_length=1)
    reviewee_id: str = Field(min_length=1)
    rating: int = Field(ge=1, le=5)
    comment: str | None = None


class ReviewRead(BaseModel):
    id: str
    shift_id: str
    reviewer_id: str
    reviewee_id: str
    rating: int
    comment: str | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SuccessResponse(BaseModel):
    success: bool = True
