"""Service for laying out a month as whole Sunday-to-Saturday weeks."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date

from dateutil.relativedelta import SA, SU, relativedelta

from eventgrid.domain.models import CalendarDay, Event
from eventgrid.services.conflicts import events_on_day
from eventgrid.services.recurrence import MAX_CUSTOM_RECURRENCE_STEPS


def month_grid(year: int, month: int) -> list[date]:
    """Return every day shown for *month*, padded out to full weeks.

    The grid starts on the Sunday on or before the 1st and ends on the
    Saturday on or after the last day of the month. At the ends of the
    supported date range the padding stops at ``date.min`` / ``date.max``.
    """
    first = date(year, month, 1)
    last = first + relativedelta(day=31)
    start = _pad(first, SU(-1), date.min)
    end = _pad(last, SA(+1), date.max)
    return [date.fromordinal(n) for n in range(start.toordinal(), end.toordinal() + 1)]


def _pad(day: date, weekday, limit: date) -> date:
    try:
        return day + relativedelta(weekday=weekday)
    except OverflowError:
        return limit


def month_view(
    events: Iterable[Event],
    year: int,
    month: int,
    max_steps: int = MAX_CUSTOM_RECURRENCE_STEPS,
) -> list[CalendarDay]:
    snapshot = list(events)
    return [
        CalendarDay(
            day=day,
            in_month=day.month == month,
            events=events_on_day(snapshot, day, max_steps=max_steps),
        )
        for day in month_grid(year, month)
    ]
