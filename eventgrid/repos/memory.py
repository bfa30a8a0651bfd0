"""In-memory repositories for events and their timelines."""

from __future__ import annotations

from datetime import datetime, timedelta

from eventgrid.domain.models import Event, Recurrence, TimelineEntry


class EventRepository:
    """Dict-backed store for Event instances, keyed by id.

    Iteration follows insertion order; updates keep an event in place.
    """

    def __init__(self) -> None:
        self._store: dict[str, Event] = {}

    def add(self, event: Event) -> None:
        self._store[event.id] = event

    def get(self, event_id: str) -> Event | None:
        return self._store.get(event_id)

    def list_all(self) -> list[Event]:
        """Return a snapshot; later mutations do not affect the returned list."""
        return list(self._store.values())

    def update(self, event_id: str, changes: dict) -> Event | None:
        """Apply a field-level update and return the new event, or None if unknown."""
        current = self._store.get(event_id)
        if current is None:
            return None
        changes = {k: v for k, v in changes.items() if k not in ("id", "created_at")}
        updated = Event.model_validate({**current.model_dump(), **changes})
        self._store[event_id] = updated
        return updated

    def delete(self, event_id: str) -> bool:
        return self._store.pop(event_id, None) is not None

    def clear(self) -> None:
        self._store.clear()


class TimelineRepository:
    """List-backed store for TimelineEntry instances."""

    def __init__(self) -> None:
        self._entries: list[TimelineEntry] = []

    def add(self, entry: TimelineEntry) -> None:
        self._entries.append(entry)

    def list_for_event(self, event_id: str) -> list[TimelineEntry]:
        return sorted(
            [e for e in self._entries if e.event_id == event_id],
            key=lambda e: e.timestamp,
        )

    def clear(self) -> None:
        self._entries.clear()


# ---------------------------------------------------------------------------
# Seed data – a few events useful for trying out the month view and conflicts
# ---------------------------------------------------------------------------


def _seed_events(repo: EventRepository, today: datetime) -> None:
    morning = today.replace(hour=9, minute=0, second=0, microsecond=0)

    repo.add(
        Event(
            title="Team standup",
            date=morning,
            end_time=morning.replace(minute=15).time(),
            recurrence=Recurrence(type="weekly"),
        )
    )
    repo.add(
        Event(
            title="Gym",
            date=morning.replace(hour=18),
            end_time=morning.replace(hour=19, minute=30).time(),
            color="#10b981",
            recurrence=Recurrence(type="custom", interval=2, unit="days"),
        )
    )
    repo.add(
        Event(
            title="Dentist appointment",
            date=morning + timedelta(days=1, hours=5),
            description="Downtown Dental",
            color="#ef4444",
        )
    )


def create_event_repository(today: datetime | None = None) -> EventRepository:
    """Return an EventRepository pre-loaded with sample data."""
    repo = EventRepository()
    _seed_events(repo, today or datetime.now())
    return repo
