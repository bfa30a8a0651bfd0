"""FastAPI application — entry point for the calendar event service."""

from __future__ import annotations

from datetime import MAXYEAR, MINYEAR, date, datetime

import structlog
from fastapi import FastAPI, HTTPException
from pydantic import ValidationError

from eventgrid.config import get_settings
from eventgrid.domain.bus import EventBus
from eventgrid.domain.events import EventCreated, EventDeleted, EventUpdated
from eventgrid.domain.handlers import HandlerRegistry
from eventgrid.domain.models import (
    CalendarDay,
    ConflictCheckRequest,
    ConflictReport,
    Event,
    EventCreate,
    EventFields,
    EventUpdate,
    EventWithConflicts,
    MoveRequest,
    TimelineEntry,
)
from eventgrid.logging_config import setup_logging
from eventgrid.repos.memory import (
    EventRepository,
    TimelineRepository,
    create_event_repository,
)
from eventgrid.services.calendar_grid import month_view
from eventgrid.services.conflicts import conflict_report, events_on_day

settings = get_settings()
setup_logging(settings.log_level, settings.log_json)
logger = structlog.get_logger(__name__)

app = FastAPI(title=settings.app_name)

# ── Singletons (created at import time for simplicity) ────────────────
event_bus = EventBus()
event_repo = (
    create_event_repository() if settings.seed_sample_data else EventRepository()
)
timeline_repo = TimelineRepository()

handler_registry = HandlerRegistry(
    bus=event_bus,
    event_repo=event_repo,
    timeline_repo=timeline_repo,
)


def _check(
    candidate: EventFields, exclude_event_id: str | None = None
) -> ConflictReport:
    return conflict_report(
        event_repo.list_all(),
        candidate,
        exclude_event_id,
        max_steps=settings.max_custom_recurrence_steps,
    )


def _get_or_404(event_id: str) -> Event:
    event = event_repo.get(event_id)
    if event is None:
        raise HTTPException(status_code=404, detail="Event not found")
    return event


def _validate_draft(fields: dict) -> EventCreate:
    """Re-run form validation on a merged event, reporting failures as a 422."""
    try:
        return EventCreate.model_validate(fields)
    except ValidationError as exc:
        raise HTTPException(
            status_code=422,
            detail=exc.errors(
                include_url=False, include_context=False, include_input=False
            ),
        ) from exc


def _commit_update(
    event_id: str, changes: dict, report: ConflictReport
) -> EventWithConflicts:
    updated = event_repo.update(event_id, changes)
    if updated is None:
        raise HTTPException(status_code=404, detail="Event not found")
    event_bus.publish(
        EventUpdated(
            event_id=event_id,
            changed_fields=sorted(changes),
            conflicting_event_ids=[c.id for c in report.conflicts],
            has_recurring_conflicts=report.has_recurring_conflicts,
        )
    )
    return EventWithConflicts(event=updated, conflicts=report)


# ── Routes ────────────────────────────────────────────────────────────


@app.post("/events", response_model=EventWithConflicts, status_code=201)
def create_event(payload: EventCreate) -> EventWithConflicts:
    """Store a new event. Conflicts are reported but never block creation."""
    candidate = EventFields.model_validate(payload.to_fields())
    report = _check(candidate)

    event = Event.model_validate(payload.to_fields())
    event_repo.add(event)
    event_bus.publish(
        EventCreated(
            event_id=event.id,
            conflicting_event_ids=[c.id for c in report.conflicts],
            has_recurring_conflicts=report.has_recurring_conflicts,
        )
    )
    return EventWithConflicts(event=event, conflicts=report)


@app.get("/events", response_model=list[Event])
def list_events() -> list[Event]:
    """Return all stored events in insertion order."""
    return event_repo.list_all()


@app.get("/events/{event_id}", response_model=Event)
def get_event(event_id: str) -> Event:
    return _get_or_404(event_id)


@app.patch("/events/{event_id}", response_model=EventWithConflicts)
def update_event(event_id: str, body: EventUpdate) -> EventWithConflicts:
    """Apply a field-level edit; the event never conflicts with itself."""
    current = _get_or_404(event_id)
    changes = body.model_dump(exclude_unset=True)

    merged = {**current.model_dump(include=set(EventFields.model_fields)), **changes}
    draft_fields = _validate_draft(merged).to_fields()
    changes = {field: draft_fields[field] for field in changes}
    report = _check(EventFields.model_validate(draft_fields), event_id)
    return _commit_update(event_id, changes, report)


@app.post("/events/{event_id}/move", response_model=EventWithConflicts)
def move_event(event_id: str, body: MoveRequest) -> EventWithConflicts:
    """Re-anchor an event on another day, keeping its start time of day."""
    current = _get_or_404(event_id)
    new_date = datetime.combine(body.day, current.date.time())

    candidate = current.model_copy(update={"date": new_date})
    report = _check(candidate, event_id)
    logger.info(
        "event_moved",
        event_id=event_id,
        from_date=current.anchor_date.isoformat(),
        to_date=body.day.isoformat(),
        conflicts_count=report.conflict_count,
    )
    return _commit_update(event_id, {"date": new_date}, report)


@app.delete("/events/{event_id}", status_code=200)
def delete_event(event_id: str) -> dict:
    event = _get_or_404(event_id)
    event_repo.delete(event_id)
    event_bus.publish(EventDeleted(event_id=event_id, title=event.title))
    return {"status": "deleted"}


@app.get("/events/{event_id}/timeline", response_model=list[TimelineEntry])
def get_event_timeline(event_id: str) -> list[TimelineEntry]:
    """Return the activity history of an event, including deleted ones."""
    entries = timeline_repo.list_for_event(event_id)
    if not entries and event_repo.get(event_id) is None:
        raise HTTPException(status_code=404, detail="Event not found")
    return entries


@app.get("/days/{day}/events", response_model=list[Event])
def list_events_on_day(day: date) -> list[Event]:
    """Return every event with an occurrence on *day*, recurring ones included."""
    return events_on_day(
        event_repo.list_all(), day, max_steps=settings.max_custom_recurrence_steps
    )


@app.get("/calendar/{year}/{month}", response_model=list[CalendarDay])
def get_month(year: int, month: int) -> list[CalendarDay]:
    """Return the month grid (whole weeks, Sunday first) with each day's events."""
    if not MINYEAR <= year <= MAXYEAR:
        raise HTTPException(
            status_code=422, detail=f"Year must be between {MINYEAR} and {MAXYEAR}"
        )
    if not 1 <= month <= 12:
        raise HTTPException(status_code=422, detail="Month must be between 1 and 12")
    return month_view(
        event_repo.list_all(),
        year,
        month,
        max_steps=settings.max_custom_recurrence_steps,
    )


@app.post("/conflicts/check", response_model=ConflictReport)
def check_conflicts(body: ConflictCheckRequest) -> ConflictReport:
    """Dry-run conflict check for a candidate event (e.g. while a form is edited)."""
    return _check(body.candidate, body.exclude_event_id)
