"""Service for turning an event into concrete start/end instants for a given day."""

from __future__ import annotations

from datetime import date, datetime, timedelta

from eventgrid.domain.models import EventFields, Interval

DEFAULT_DURATION = timedelta(hours=1)


def materialize(event: EventFields, day: date) -> Interval:
    """Return the interval of *event* if it took place on *day*.

    Whether the event actually occurs on *day* is not checked here. An
    ``end_time`` earlier than the start yields an interval ending before it
    starts; form validation keeps such events out.
    """
    start = datetime.combine(day, event.date.time())
    if event.end_time is None:
        return Interval(start, start + DEFAULT_DURATION)
    end = datetime.combine(day, event.end_time)
    return Interval(start, end)


def anchor_interval(event: EventFields) -> Interval:
    """Interval of the event's first (anchor-date) occurrence."""
    return materialize(event, event.anchor_date)
