"""Calendar API endpoints - calendars, time periods, and availability."""

from datetime import date, datetime
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from booking_api.core.deps import get_db
from booking_api.db.enums import TimeperiodType
from booking_api.routers import http_error
from booking_api.schemas.calendar import (
    CalendarCreate,
    CalendarRead,
    DaySlotsRead,
    TimeperiodCreate,
    TimeperiodRead,
)
from booking_api.services import availability_service, calendar_service
from booking_api.services.errors import SchedulingError

router = APIRouter()


# =============================================================================
# Calendars
# =============================================================================

@router.post("", response_model=CalendarRead, status_code=status.HTTP_201_CREATED)
def create_calendar(data: CalendarCreate, db: Session = Depends(get_db)):
    """Create a calendar, optionally attached to a location."""
    try:
        calendar = calendar_service.create_calendar(
            db,
            name=data.name,
            location_id=data.location_id,
            color=data.color,
            metadata=data.metadata,
        )
    except SchedulingError as e:
        raise http_error(e)
    db.commit()
    db.refresh(calendar)
    return calendar


@router.get("/{calendar_id}", response_model=CalendarRead)
def get_calendar(calendar_id: UUID, db: Session = Depends(get_db)):
    calendar = calendar_service.get_calendar(db, calendar_id)
    if not calendar:
        raise HTTPException(status_code=404, detail="Calendar not found")
    return calendar


# =============================================================================
# Time periods
# =============================================================================

@router.get("/{calendar_id}/timeperiods", response_model=list[TimeperiodRead])
def list_timeperiods(
    calendar_id: UUID,
    type: list[TimeperiodType] | None = Query(None),
    start: datetime | None = Query(None, description="Only periods ending after this instant"),
    end: datetime | None = Query(None, description="Only periods starting before this instant"),
    db: Session = Depends(get_db),
):
    """List live periods of a calendar, latest first."""
    if not calendar_service.calendar_exists(db, calendar_id):
        raise HTTPException(status_code=404, detail="Calendar not found")
    return calendar_service.list_timeperiods(db, calendar_id, type, start, end)


@router.post(
    "/{calendar_id}/timeperiods",
    response_model=TimeperiodRead,
    status_code=status.HTTP_201_CREATED,
)
def create_timeperiod(
    calendar_id: UUID,
    data: TimeperiodCreate,
    db: Session = Depends(get_db),
):
    """Add working hours, a break, a block, or time off to a calendar."""
    try:
        period = calendar_service.create_timeperiod(
            db,
            calendar_id=calendar_id,
            type=data.type,
            start_at=data.start_at,
            end_at=data.end_at,
            title=data.title,
            metadata=data.metadata,
        )
    except SchedulingError as e:
        raise http_error(e)
    db.commit()
    db.refresh(period)
    return period


@router.delete("/{calendar_id}/timeperiods/{timeperiod_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_timeperiod(
    calendar_id: UUID,
    timeperiod_id: UUID,
    db: Session = Depends(get_db),
):
    try:
        calendar_service.delete_timeperiod(db, timeperiod_id, calendar_id=calendar_id)
    except SchedulingError as e:
        raise http_error(e)
    db.commit()


# =============================================================================
# Availability
# =============================================================================

@router.get("/{calendar_id}/availability", response_model=list[DaySlotsRead])
def get_calendar_availability(
    calendar_id: UUID,
    date_start: date | None = Query(None, description="Start date (YYYY-MM-DD), defaults to today"),
    date_end: date | None = Query(None, description="Inclusive end date"),
    db: Session = Depends(get_db),
):
    """
    Free slot times per day for one calendar.

    Defaults to four weeks from today; longer ranges are clamped.
    """
    try:
        days = availability_service.get_calendar_availability(db, calendar_id, date_start, date_end)
    except SchedulingError as e:
        raise http_error(e)
    return [DaySlotsRead(date=d.date, slot_times=d.slot_times) for d in days]
