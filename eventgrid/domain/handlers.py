"""Domain event handlers — wired up at application startup."""

from __future__ import annotations

import structlog

from eventgrid.domain.bus import EventBus
from eventgrid.domain.events import (
    ConflictDetected,
    EventCreated,
    EventDeleted,
    EventUpdated,
)
from eventgrid.domain.models import TimelineEntry, TimelineEntryType
from eventgrid.repos.memory import EventRepository, TimelineRepository

logger = structlog.get_logger(__name__)


class HandlerRegistry:
    """Wires domain-event handlers to the bus with access to the repositories."""

    def __init__(
        self,
        bus: EventBus,
        event_repo: EventRepository,
        timeline_repo: TimelineRepository,
    ) -> None:
        self.bus = bus
        self.event_repo = event_repo
        self.timeline_repo = timeline_repo
        self._register()

    def _register(self) -> None:
        self.bus.subscribe(EventCreated, self.on_event_created)
        self.bus.subscribe(EventUpdated, self.on_event_updated)
        self.bus.subscribe(EventDeleted, self.on_event_deleted)
        self.bus.subscribe(ConflictDetected, self.on_conflict_detected)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def on_event_created(self, event: EventCreated) -> None:
        stored = self.event_repo.get(event.event_id)
        if stored is None:
            return

        self.timeline_repo.add(
            TimelineEntry(event_id=event.event_id, type=TimelineEntryType.CREATED)
        )
        logger.info("event_created", event_id=stored.id, title=stored.title)

        self._publish_conflicts(
            event.event_id, event.conflicting_event_ids, event.has_recurring_conflicts
        )

    def on_event_updated(self, event: EventUpdated) -> None:
        stored = self.event_repo.get(event.event_id)
        if stored is None:
            return

        self.timeline_repo.add(
            TimelineEntry(
                event_id=event.event_id,
                type=TimelineEntryType.UPDATED,
                payload={"changed_fields": event.changed_fields},
            )
        )
        logger.info(
            "event_updated", event_id=stored.id, changed_fields=event.changed_fields
        )

        self._publish_conflicts(
            event.event_id, event.conflicting_event_ids, event.has_recurring_conflicts
        )

    def on_event_deleted(self, event: EventDeleted) -> None:
        # The event is already gone from the repository; only the timeline remains.
        self.timeline_repo.add(
            TimelineEntry(
                event_id=event.event_id,
                type=TimelineEntryType.DELETED,
                payload={"title": event.title},
            )
        )
        logger.info("event_deleted", event_id=event.event_id)

    def on_conflict_detected(self, event: ConflictDetected) -> None:
        self.timeline_repo.add(
            TimelineEntry(
                event_id=event.event_id,
                type=TimelineEntryType.CONFLICT_DETECTED,
                payload={
                    "conflicting_event_ids": event.conflicting_event_ids,
                    "has_recurring_conflicts": event.has_recurring_conflicts,
                },
            )
        )
        logger.warning(
            "conflict_detected",
            event_id=event.event_id,
            conflicting_event_ids=event.conflicting_event_ids,
            has_recurring_conflicts=event.has_recurring_conflicts,
        )

    def _publish_conflicts(
        self,
        event_id: str,
        conflicting_event_ids: list[str],
        has_recurring_conflicts: bool,
    ) -> None:
        if not conflicting_event_ids and not has_recurring_conflicts:
            return
        self.bus.publish(
            ConflictDetected(
                event_id=event_id,
                conflicting_event_ids=conflicting_event_ids,
                has_recurring_conflicts=has_recurring_conflicts,
            )
        )
