"""Calendar service - locations, calendars, and their time periods."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from booking_api.db.enums import DEFAULT_CALENDAR_COLOR, TimeperiodType
from booking_api.db.models import Calendar, Location, Timeperiod
from booking_api.db.types import ensure_utc
from booking_api.services.errors import (
    CalendarNotFoundError,
    InvalidIntervalError,
    LocationNotFoundError,
    TimeperiodNotFoundError,
)
from booking_api.services.slot_grid import is_aligned, resolve_granularity

logger = logging.getLogger(__name__)


# =============================================================================
# Locations
# =============================================================================

def create_location(
    db: Session,
    name: str,
    metadata: dict[str, Any] | None = None,
) -> Location:
    """Create a new location."""
    location = Location(name=name.strip(), metadata_=metadata)
    db.add(location)
    db.flush()
    return location


def get_location(db: Session, location_id: UUID) -> Location | None:
    """Get a location by ID (soft-deleted rows excluded)."""
    return db.execute(
        select(Location).where(Location.id == location_id, Location.deleted_at.is_(None))
    ).scalar_one_or_none()


def retrieve_location(db: Session, location_id: UUID) -> Location:
    location = get_location(db, location_id)
    if not location:
        raise LocationNotFoundError(f"Location {location_id} was not found")
    return location


# =============================================================================
# Calendars
# =============================================================================

def create_calendar(
    db: Session,
    name: str,
    location_id: UUID | None = None,
    color: str | None = None,
    metadata: dict[str, Any] | None = None,
) -> Calendar:
    """Create a calendar, optionally attached to a location."""
    if location_id is not None:
        retrieve_location(db, location_id)

    calendar = Calendar(
        name=name.strip(),
        location_id=location_id,
        color=color or DEFAULT_CALENDAR_COLOR,
        metadata_=metadata,
    )
    db.add(calendar)
    db.flush()
    return calendar


def get_calendar(db: Session, calendar_id: UUID) -> Calendar | None:
    """Get a calendar by ID (soft-deleted rows excluded)."""
    return db.execute(
        select(Calendar).where(Calendar.id == calendar_id, Calendar.deleted_at.is_(None))
    ).scalar_one_or_none()


def retrieve_calendar(db: Session, calendar_id: UUID) -> Calendar:
    """Get a calendar or raise ``CalendarNotFoundError``."""
    calendar = get_calendar(db, calendar_id)
    if not calendar:
        raise CalendarNotFoundError(f"Calendar {calendar_id} was not found")
    return calendar


def calendar_exists(db: Session, calendar_id: UUID) -> bool:
    return get_calendar(db, calendar_id) is not None


def lock_calendar(db: Session, calendar_id: UUID) -> Calendar:
    """
    Load the calendar row with ``FOR UPDATE``.

    Serializes booking transactions on the same calendar across processes
    (PostgreSQL); SQLite ignores the clause.
    """
    calendar = db.execute(
        select(Calendar)
        .where(Calendar.id == calendar_id, Calendar.deleted_at.is_(None))
        .with_for_update()
    ).scalar_one_or_none()
    if not calendar:
        raise CalendarNotFoundError(f"Calendar {calendar_id} was not found")
    return calendar


def list_location_calendars(db: Session, location_id: UUID) -> list[Calendar]:
    """List calendars of a location, by name."""
    retrieve_location(db, location_id)
    return list(
        db.execute(
            select(Calendar)
            .where(Calendar.location_id == location_id, Calendar.deleted_at.is_(None))
            .order_by(Calendar.name)
        ).scalars().all()
    )


# =============================================================================
# Time periods
# =============================================================================

def list_timeperiods(
    db: Session,
    calendar_id: UUID,
    types: Iterable[TimeperiodType | str] | None = None,
    window_start: datetime | None = None,
    window_end: datetime | None = None,
    descending: bool = True,
) -> list[Timeperiod]:
    """
    List live periods of a calendar that intersect ``[window_start, window_end)``.

    Ordered by start, latest first by default.
    """
    query = select(Timeperiod).where(
        Timeperiod.calendar_id == calendar_id,
        Timeperiod.deleted_at.is_(None),
    )
    if types is not None:
        query = query.where(Timeperiod.type.in_([TimeperiodType(t).value for t in types]))
    if window_end is not None:
        query = query.where(Timeperiod.start_at < ensure_utc(window_end))
    if window_start is not None:
        query = query.where(Timeperiod.end_at > ensure_utc(window_start))

    order = Timeperiod.start_at.desc() if descending else Timeperiod.start_at.asc()
    return list(db.execute(query.order_by(order)).scalars().all())


def create_timeperiod(
    db: Session,
    calendar_id: UUID,
    type: TimeperiodType | str,
    start_at: datetime,
    end_at: datetime,
    title: str | None = None,
    metadata: dict[str, Any] | None = None,
    granularity_minutes: int | None = None,
) -> Timeperiod:
    """
    Add a period to a calendar.

    The start must sit on the slot grid so configured periods and booking
    requests discretize onto the same slot starts.
    """
    granularity = resolve_granularity(granularity_minutes)
    start_at = ensure_utc(start_at)
    end_at = ensure_utc(end_at)
    if start_at >= end_at:
        raise InvalidIntervalError(
            f"Timeperiod start {start_at.isoformat()} must be before end {end_at.isoformat()}"
        )
    if not is_aligned(start_at, granularity):
        raise InvalidIntervalError(
            f"Timeperiod start {start_at.isoformat()} is not aligned to the "
            f"{granularity}-minute slot grid"
        )

    retrieve_calendar(db, calendar_id)

    period = Timeperiod(
        calendar_id=calendar_id,
        type=TimeperiodType(type).value,
        start_at=start_at,
        end_at=end_at,
        title=title,
        metadata_=metadata,
    )
    db.add(period)
    db.flush()
    logger.debug(
        "Created %s timeperiod %s on calendar %s", period.type, period.id, calendar_id
    )
    return period


def get_timeperiod(db: Session, timeperiod_id: UUID) -> Timeperiod | None:
    return db.execute(
        select(Timeperiod).where(Timeperiod.id == timeperiod_id, Timeperiod.deleted_at.is_(None))
    ).scalar_one_or_none()


def delete_timeperiod(
    db: Session,
    timeperiod_id: UUID,
    calendar_id: UUID | None = None,
) -> Timeperiod:
    """Soft-delete a period. Booking-derived periods are removed this way when a booking moves."""
    period = get_timeperiod(db, timeperiod_id)
    if not period or (calendar_id is not None and period.calendar_id != calendar_id):
        raise TimeperiodNotFoundError(f"Timeperiod {timeperiod_id} was not found")

    period.deleted_at = datetime.now(timezone.utc)
    db.flush()
    return period
