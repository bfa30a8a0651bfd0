"""Service for deciding whether an event (one-off or recurring) falls on a day."""

from __future__ import annotations

from datetime import date, datetime

import structlog
from dateutil.relativedelta import relativedelta

from eventgrid.domain.models import EventFields, RecurrenceType, RecurrenceUnit

logger = structlog.get_logger(__name__)

# Custom rules are walked forward from the anchor; targets further out than
# this many steps are reported as not occurring.
MAX_CUSTOM_RECURRENCE_STEPS = 100

_STEP_FOR_UNIT = {
    RecurrenceUnit.DAYS: lambda n: relativedelta(days=n),
    RecurrenceUnit.WEEKS: lambda n: relativedelta(weeks=n),
    RecurrenceUnit.MONTHS: lambda n: relativedelta(months=n),
}


def occurs_on(
    event: EventFields,
    target: date | datetime,
    max_steps: int = MAX_CUSTOM_RECURRENCE_STEPS,
) -> bool:
    """Return True if *event* has an occurrence on the calendar day *target*.

    Comparisons are date-only. Malformed recurrence (unknown type or unit,
    non-positive interval) never occurs.
    """
    anchor = event.anchor_date
    day = _as_date(target)

    recurrence = event.recurrence
    if recurrence is None:
        return day == anchor

    if recurrence.type == RecurrenceType.DAILY:
        return day >= anchor
    if recurrence.type == RecurrenceType.WEEKLY:
        return day >= anchor and day.weekday() == anchor.weekday()
    if recurrence.type == RecurrenceType.MONTHLY:
        return day >= anchor and day.day == anchor.day
    if recurrence.type == RecurrenceType.CUSTOM:
        return _custom_occurs_on(
            anchor, day, recurrence.interval, recurrence.unit, max_steps
        )

    logger.debug("unknown_recurrence_type", recurrence_type=recurrence.type)
    return False


def _custom_occurs_on(
    anchor: date, day: date, interval: int, unit: str, max_steps: int
) -> bool:
    step = _STEP_FOR_UNIT.get(unit)
    if step is None or interval <= 0:
        logger.debug("invalid_custom_recurrence", interval=interval, unit=unit)
        return False

    # Offsets are applied cumulatively so month-end clamping carries forward
    # (Jan 31 -> Feb 29 -> Mar 29).
    current = anchor
    for _ in range(max_steps):
        if current == day:
            return True
        if current > day:
            return False
        current = current + step(interval)
    return False


def _as_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value
