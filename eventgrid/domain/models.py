"""Domain models for the calendar event store."""

from __future__ import annotations

import uuid
from datetime import date, datetime, time
from enum import StrEnum
from typing import NamedTuple

from pydantic import (
    BaseModel,
    Field,
    computed_field,
    field_serializer,
    field_validator,
    model_validator,
)


class RecurrenceType(StrEnum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    CUSTOM = "custom"


class RecurrenceUnit(StrEnum):
    DAYS = "days"
    WEEKS = "weeks"
    MONTHS = "months"


class ConflictType(StrEnum):
    CONTAINED = "contained"
    CONTAINS = "contains"
    OVERLAPS_START = "overlaps_start"
    OVERLAPS_END = "overlaps_end"


class TimelineEntryType(StrEnum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    CONFLICT_DETECTED = "conflict_detected"


DEFAULT_COLOR = "#3b82f6"


def _now() -> datetime:
    return datetime.now()


def _new_id() -> str:
    return str(uuid.uuid4())


class TimeOfDay(int):
    """Minutes since midnight; orders the same way as an ``HH:MM`` string."""

    @classmethod
    def of(cls, value: datetime | time) -> TimeOfDay:
        return cls(value.hour * 60 + value.minute)

    def __repr__(self) -> str:
        return f"TimeOfDay({int(self) // 60:02d}:{int(self) % 60:02d})"


class Interval(NamedTuple):
    start: datetime
    end: datetime


def _require_local(value: datetime | time | None) -> datetime | time | None:
    # Events are wall-clock times; naive and aware values cannot be compared.
    if value is not None and value.tzinfo is not None:
        raise ValueError("Times must be local, without a UTC offset")
    return value


# ---------------------------------------------------------------------------
# Core domain models
# ---------------------------------------------------------------------------


class Recurrence(BaseModel):
    """Repeat rule attached to an event.

    ``type`` and ``unit`` are kept as plain strings: an unrecognised value is
    stored as-is and simply never matches a day.
    """

    type: str
    interval: int = 1
    unit: str = RecurrenceUnit.WEEKS


class EventFields(BaseModel):
    """Event-shaped payload shared by stored events and conflict candidates."""

    title: str
    description: str = ""
    date: datetime
    end_time: time | None = None
    color: str = DEFAULT_COLOR
    recurrence: Recurrence | None = None

    _local_times = field_validator("date", "end_time")(_require_local)

    @field_serializer("end_time", when_used="json")
    def _end_time_hhmm(self, value: time | None) -> str | None:
        return value.strftime("%H:%M") if value is not None else None

    @property
    def anchor_date(self) -> date:
        return self.date.date()

    @property
    def is_recurring(self) -> bool:
        return self.recurrence is not None


class Event(EventFields):
    id: str = Field(default_factory=_new_id)
    created_at: datetime = Field(default_factory=_now)


class ConflictedEvent(Event):
    conflict_type: ConflictType


class TimelineEntry(BaseModel):
    id: str = Field(default_factory=_new_id)
    event_id: str
    timestamp: datetime = Field(default_factory=_now)
    type: TimelineEntryType
    payload: dict = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Request / Response DTOs
# ---------------------------------------------------------------------------


class RecurrenceIn(BaseModel):
    type: RecurrenceType
    interval: int = Field(default=1, gt=0)
    unit: RecurrenceUnit = RecurrenceUnit.WEEKS


class EventCreate(BaseModel):
    """Form-level payload; enforces the rules a user-entered event must meet."""

    title: str
    description: str = ""
    date: datetime
    end_time: time | None = None
    color: str = DEFAULT_COLOR
    recurrence: RecurrenceIn | None = None

    _local_times = field_validator("date", "end_time")(_require_local)

    @field_validator("title", "description")
    @classmethod
    def _strip(cls, value: str) -> str:
        return value.strip()

    @field_validator("title")
    @classmethod
    def _title_required(cls, value: str) -> str:
        if not value:
            raise ValueError("Title is required")
        return value

    @model_validator(mode="after")
    def _end_after_start(self) -> EventCreate:
        if self.end_time is None:
            return self
        if TimeOfDay.of(self.end_time) <= TimeOfDay.of(self.date):
            raise ValueError("End time must be after start time")
        return self

    def to_fields(self) -> dict:
        return self.model_dump(mode="python")


class EventUpdate(BaseModel):
    """Partial update; only fields that were explicitly sent are applied."""

    title: str | None = None
    description: str | None = None
    date: datetime | None = None
    end_time: time | None = None
    color: str | None = None
    recurrence: RecurrenceIn | None = None


class MoveRequest(BaseModel):
    day: date


class ConflictCheckRequest(BaseModel):
    candidate: EventFields
    exclude_event_id: str | None = None


class ConflictReport(BaseModel):
    conflicts: list[ConflictedEvent] = Field(default_factory=list)
    has_recurring_conflicts: bool = False

    @computed_field
    @property
    def conflict_count(self) -> int:
        return len(self.conflicts) + (1 if self.has_recurring_conflicts else 0)

    @property
    def has_any(self) -> bool:
        return self.conflict_count > 0


class EventWithConflicts(BaseModel):
    event: Event
    conflicts: ConflictReport


class CalendarDay(BaseModel):
    day: date
    in_month: bool
    events: list[Event] = Field(default_factory=list)
