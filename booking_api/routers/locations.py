"""Location API endpoints."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from booking_api.core.deps import get_db
from booking_api.routers import http_error
from booking_api.schemas.calendar import (
    CalendarAvailabilityRead,
    CalendarRead,
    DaySlotsRead,
    LocationCreate,
    LocationRead,
)
from booking_api.services import availability_service, calendar_service
from booking_api.services.errors import SchedulingError

router = APIRouter()


@router.post("", response_model=LocationRead, status_code=status.HTTP_201_CREATED)
def create_location(data: LocationCreate, db: Session = Depends(get_db)):
    """Create a location."""
    location = calendar_service.create_location(db, name=data.name, metadata=data.metadata)
    db.commit()
    db.refresh(location)
    return location


@router.get("/{location_id}", response_model=LocationRead)
def get_location(location_id: UUID, db: Session = Depends(get_db)):
    location = calendar_service.get_location(db, location_id)
    if not location:
        raise HTTPException(status_code=404, detail="Location not found")
    return location


@router.get("/{location_id}/calendars", response_model=list[CalendarRead])
def list_calendars(location_id: UUID, db: Session = Depends(get_db)):
    """List the calendars of a location."""
    try:
        return calendar_service.list_location_calendars(db, location_id)
    except SchedulingError as e:
        raise http_error(e)


@router.get("/{location_id}/availability", response_model=list[CalendarAvailabilityRead])
def get_location_availability(
    location_id: UUID,
    date_start: date | None = Query(None, description="Start date (YYYY-MM-DD), defaults to today"),
    date_end: date | None = Query(None, description="Inclusive end date"),
    db: Session = Depends(get_db),
):
    """
    Free slot times per day for every calendar at a location.

    Days without working hours are omitted; fully booked days list no slots.
    """
    try:
        result = availability_service.get_location_availability(
            db, location_id, date_start, date_end
        )
    except SchedulingError as e:
        raise http_error(e)

    return [
        CalendarAvailabilityRead(
            calendar_id=entry.calendar_id,
            days=[DaySlotsRead(date=d.date, slot_times=d.slot_times) for d in entry.days],
        )
        for entry in result
    ]
