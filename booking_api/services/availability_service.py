"""Availability service - free slots per calendar day.

Free slots are working-hour slots minus slots covered by breaktime, blocked,
or off periods, all discretized on the same grid.

Handles:
- Per-calendar availability for a window
- Listing shapes for calendars and whole locations
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import NamedTuple
from uuid import UUID

from sqlalchemy.orm import Session

from booking_api.core.config import settings
from booking_api.db.enums import BLOCKING_TIMEPERIOD_TYPES, TimeperiodType
from booking_api.db.models import Timeperiod
from booking_api.db.types import ensure_utc
from booking_api.services import calendar_service
from booking_api.services.errors import InvalidIntervalError
from booking_api.services.slot_grid import discretize, resolve_granularity

logger = logging.getLogger(__name__)


# =============================================================================
# Types
# =============================================================================

class DaySlots(NamedTuple):
    """Free slot starts for one day, ascending."""
    date: date
    slot_times: list[datetime]


class CalendarAvailability(NamedTuple):
    calendar_id: UUID
    days: list[DaySlots]


# =============================================================================
# Calculation
# =============================================================================

def _slots_by_day(
    periods: list[Timeperiod],
    granularity_minutes: int,
) -> dict[date, set[datetime]]:
    slots: dict[date, set[datetime]] = {}
    for period in periods:
        for day, day_slots in discretize(period.start_at, period.end_at, granularity_minutes).items():
            slots.setdefault(day, set()).update(day_slots)
    return slots


def compute_availability(
    db: Session,
    calendar_id: UUID,
    window_start: datetime,
    window_end: datetime,
    granularity_minutes: int | None = None,
) -> dict[date, frozenset[datetime]]:
    """
    Free slots per day for a calendar within ``[window_start, window_end)``.

    Days without working hours are absent. A working day whose slots are all
    blocked maps to an empty set.

    Raises ``CalendarNotFoundError`` if the calendar does not exist.
    """
    granularity = resolve_granularity(granularity_minutes)
    window_start = ensure_utc(window_start)
    window_end = ensure_utc(window_end)
    if window_start >= window_end:
        raise InvalidIntervalError(
            f"Window start {window_start.isoformat()} must be before end {window_end.isoformat()}"
        )

    calendar_service.retrieve_calendar(db, calendar_id)

    working_periods = calendar_service.list_timeperiods(
        db, calendar_id, [TimeperiodType.WORKING_HOUR], window_start, window_end
    )
    blocking_periods = calendar_service.list_timeperiods(
        db, calendar_id, BLOCKING_TIMEPERIOD_TYPES, window_start, window_end
    )

    working = _slots_by_day(working_periods, granularity)
    blocking = _slots_by_day(blocking_periods, granularity)

    availability: dict[date, frozenset[datetime]] = {}
    for day in sorted(working):
        in_window = {slot for slot in working[day] if window_start <= slot < window_end}
        if not in_window:
            continue
        availability[day] = frozenset(in_window - blocking.get(day, set()))

    logger.debug(
        "Computed availability for calendar %s: %d day(s), %d working / %d blocking periods",
        calendar_id,
        len(availability),
        len(working_periods),
        len(blocking_periods),
    )
    return availability


# =============================================================================
# Listing
# =============================================================================

def resolve_window(
    date_start: date | None = None,
    date_end: date | None = None,
) -> tuple[datetime, datetime]:
    """
    Turn an inclusive date range into a UTC ``[start, end)`` window.

    Defaults to today plus ``AVAILABILITY_WINDOW_DAYS``; ranges longer than
    ``MAX_AVAILABILITY_RANGE_DAYS`` are clamped.
    """
    if date_start is None:
        date_start = datetime.now(timezone.utc).date()
    if date_end is None:
        date_end = date_start + timedelta(days=settings.AVAILABILITY_WINDOW_DAYS)
    if date_end < date_start:
        raise InvalidIntervalError(
            f"date_end {date_end.isoformat()} is before date_start {date_start.isoformat()}"
        )
    if (date_end - date_start).days > settings.MAX_AVAILABILITY_RANGE_DAYS:
        date_end = date_start + timedelta(days=settings.MAX_AVAILABILITY_RANGE_DAYS)

    start = datetime.combine(date_start, time.min, tzinfo=timezone.utc)
    end = datetime.combine(date_end + timedelta(days=1), time.min, tzinfo=timezone.utc)
    return start, end


def to_day_slots(availability: dict[date, frozenset[datetime]]) -> list[DaySlots]:
    return [DaySlots(date=day, slot_times=sorted(slots)) for day, slots in availability.items()]


def get_calendar_availability(
    db: Session,
    calendar_id: UUID,
    date_start: date | None = None,
    date_end: date | None = None,
) -> list[DaySlots]:
    """Free slot times per day for one calendar."""
    window_start, window_end = resolve_window(date_start, date_end)
    return to_day_slots(compute_availability(db, calendar_id, window_start, window_end))


def get_location_availability(
    db: Session,
    location_id: UUID,
    date_start: date | None = None,
    date_end: date | None = None,
) -> list[CalendarAvailability]:
    """Free slot times per day for every calendar of a location."""
    window_start, window_end = resolve_window(date_start, date_end)
    result = []
    for calendar in calendar_service.list_location_calendars(db, location_id):
        availability = compute_availability(db, calendar.id, window_start, window_end)
        result.append(CalendarAvailability(calendar_id=calendar.id, days=to_day_slots(availability)))
    return result
