"""Service for detecting scheduling conflicts between events."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime

import structlog

from eventgrid.domain.models import (
    ConflictedEvent,
    ConflictReport,
    ConflictType,
    Event,
    EventFields,
    Interval,
    TimeOfDay,
)
from eventgrid.services.intervals import anchor_interval
from eventgrid.services.recurrence import MAX_CUSTOM_RECURRENCE_STEPS, occurs_on

logger = structlog.get_logger(__name__)


def events_on_day(
    events: Iterable[Event],
    day: date | datetime,
    max_steps: int = MAX_CUSTOM_RECURRENCE_STEPS,
) -> list[Event]:
    """Return the events that have an occurrence on *day*, in input order."""
    return [event for event in events if occurs_on(event, day, max_steps=max_steps)]


def overlaps(a: Interval, b: Interval) -> bool:
    """Half-open overlap: intervals that only touch at a boundary do not conflict."""
    return a.start < b.end and b.start < a.end


def classify_conflict(candidate: Interval, existing: Interval) -> ConflictType:
    """Describe how *candidate* sits relative to an overlapping *existing* interval."""
    if candidate.start >= existing.start and candidate.end <= existing.end:
        return ConflictType.CONTAINED
    if existing.start >= candidate.start and existing.end <= candidate.end:
        return ConflictType.CONTAINS
    if candidate.start < existing.start and candidate.end > existing.start:
        return ConflictType.OVERLAPS_START
    return ConflictType.OVERLAPS_END


def find_conflicts(
    events: Iterable[Event],
    candidate: EventFields,
    exclude_event_id: str | None = None,
) -> list[ConflictedEvent]:
    """Return existing events whose anchor occurrence overlaps the candidate's.

    Only the anchor-date occurrence of each side is compared; later
    occurrences of recurring events are covered by
    :func:`find_recurring_conflicts`.
    """
    candidate_interval = anchor_interval(candidate)

    conflicts: list[ConflictedEvent] = []
    for event in events:
        if event.id == exclude_event_id:
            continue
        existing_interval = anchor_interval(event)
        if not overlaps(candidate_interval, existing_interval):
            continue
        conflicts.append(
            ConflictedEvent(
                **event.model_dump(),
                conflict_type=classify_conflict(candidate_interval, existing_interval),
            )
        )

    logger.debug(
        "conflicts_checked",
        candidate_date=candidate.date.isoformat(),
        conflicts_count=len(conflicts),
    )
    return conflicts


def find_recurring_conflicts(
    events: Iterable[Event],
    candidate: EventFields,
    exclude_event_id: str | None = None,
    max_steps: int = MAX_CUSTOM_RECURRENCE_STEPS,
) -> bool:
    """Return True if a recurring event collides with the candidate on its anchor day.

    Only the time of day of each side is compared, so the existing event's
    own anchor date does not matter beyond deciding whether it recurs on the
    candidate's day.
    """
    candidate_interval = anchor_interval(candidate)
    candidate_start = TimeOfDay.of(candidate_interval.start)
    candidate_end = TimeOfDay.of(candidate_interval.end)

    for event in events:
        if event.id == exclude_event_id or not event.is_recurring:
            continue
        if not occurs_on(event, candidate.anchor_date, max_steps=max_steps):
            continue
        existing_interval = anchor_interval(event)
        existing_start = TimeOfDay.of(existing_interval.start)
        existing_end = TimeOfDay.of(existing_interval.end)
        if candidate_start < existing_end and candidate_end > existing_start:
            logger.debug(
                "recurring_conflict_found",
                candidate_date=candidate.date.isoformat(),
                event_id=event.id,
            )
            return True
    return False


def has_conflicts(
    events: Iterable[Event],
    candidate: EventFields,
    exclude_event_id: str | None = None,
) -> bool:
    """Return True if any existing event overlaps the candidate's anchor occurrence."""
    candidate_interval = anchor_interval(candidate)
    return any(
        overlaps(candidate_interval, anchor_interval(event))
        for event in events
        if event.id != exclude_event_id
    )


def conflict_report(
    events: Iterable[Event],
    candidate: EventFields,
    exclude_event_id: str | None = None,
    max_steps: int = MAX_CUSTOM_RECURRENCE_STEPS,
) -> ConflictReport:
    """Run both conflict checks against one snapshot of *events*."""
    snapshot = list(events)
    return ConflictReport(
        conflicts=find_conflicts(snapshot, candidate, exclude_event_id),
        has_recurring_conflicts=find_recurring_conflicts(
            snapshot, candidate, exclude_event_id, max_steps=max_steps
        ),
    )
