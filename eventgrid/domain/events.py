"""Domain events emitted when the calendar changes."""

from __future__ import annotations

from pydantic import BaseModel, Field


class EventCreated(BaseModel):
    """Fired after a new calendar event is stored."""

    event_id: str
    conflicting_event_ids: list[str] = Field(default_factory=list)
    has_recurring_conflicts: bool = False


class EventUpdated(BaseModel):
    """Fired after fields of a stored event change (edit or drag-and-drop move)."""

    event_id: str
    changed_fields: list[str]
    conflicting_event_ids: list[str] = Field(default_factory=list)
    has_recurring_conflicts: bool = False


class EventDeleted(BaseModel):
    event_id: str
    title: str


class ConflictDetected(BaseModel):
    """Fired when a created or updated event overlaps others. Advisory only."""

    event_id: str
    conflicting_event_ids: list[str]
    has_recurring_conflicts: bool = False
