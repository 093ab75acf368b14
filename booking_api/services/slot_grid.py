"""Slot grid - discretizes time intervals and checks requested windows.

A slot is the start timestamp of one grid step. Availability and booking
validation compare sets of slot starts, so both must be built with the same
granularity (``settings.SLOT_GRANULARITY_MINUTES``).
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Mapping

from booking_api.core.config import settings
from booking_api.db.types import ensure_utc
from booking_api.services.errors import InvalidIntervalError

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# date -> slot starts on that (UTC) day, keys in ascending order
SlotsByDay = dict[date, list[datetime]]
# date -> free slot starts; a missing day means "not configured"
Availability = Mapping[date, frozenset[datetime]]


def _validate(start: datetime, end: datetime, granularity_minutes: int) -> None:
    if granularity_minutes <= 0:
        raise InvalidIntervalError(
            f"Granularity must be positive, got {granularity_minutes}"
        )
    if start >= end:
        raise InvalidIntervalError(
            f"Interval start {start.isoformat()} must be before end {end.isoformat()}"
        )


def resolve_granularity(granularity_minutes: int | None = None) -> int:
    """The configured step when none is given; non-positive steps are rejected."""
    granularity = (
        settings.SLOT_GRANULARITY_MINUTES if granularity_minutes is None else granularity_minutes
    )
    if granularity <= 0:
        raise InvalidIntervalError(f"Granularity must be positive, got {granularity}")
    return granularity


def discretize(start: datetime, end: datetime, granularity_minutes: int) -> SlotsByDay:
    """
    Split ``[start, end)`` into grid steps, grouped by the day each step starts on.

    The last step is emitted even when it is cut short by ``end``; a slot that
    starts before midnight and runs past it stays under its start date.
    """
    start = ensure_utc(start)
    end = ensure_utc(end)
    _validate(start, end, granularity_minutes)

    step = timedelta(minutes=granularity_minutes)
    slots: SlotsByDay = {}
    current = start
    while current < end:
        slots.setdefault(current.date(), []).append(current)
        current += step
    return slots


def is_aligned(moment: datetime, granularity_minutes: int) -> bool:
    """True when ``moment`` falls on the global grid (epoch multiples of the step)."""
    if granularity_minutes <= 0:
        raise InvalidIntervalError(
            f"Granularity must be positive, got {granularity_minutes}"
        )
    offset = ensure_utc(moment) - _EPOCH
    return offset % timedelta(minutes=granularity_minutes) == timedelta(0)


def is_available(
    requested_start: datetime,
    requested_end: datetime,
    availability: Availability,
    granularity_minutes: int,
) -> bool:
    """
    Check that every slot of ``[requested_start, requested_end)`` is free.

    Stops at the first spanned day missing from ``availability`` or the
    first slot not in that day's free set.
    """
    requested = discretize(requested_start, requested_end, granularity_minutes)
    for day, day_slots in requested.items():
        free = availability.get(day)
        if free is None:
            return False
        for slot in day_slots:
            if slot not in free:
                return False
    return True
