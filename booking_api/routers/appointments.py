"""Appointment API endpoints - booking, status changes, and lookups."""

import logging
from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from booking_api.core.config import settings
from booking_api.core.deps import get_db
from booking_api.core.rate_limit import limiter
from booking_api.db.enums import AppointmentStatus
from booking_api.routers import http_error
from booking_api.schemas.appointment import (
    AppointmentBook,
    AppointmentCreate,
    AppointmentListResponse,
    AppointmentRead,
    AppointmentReschedule,
    AppointmentStatusChange,
    AppointmentUpdate,
    CurrentAppointmentResponse,
)
from booking_api.services import appointment_service
from booking_api.services.errors import SchedulingError
from booking_api.utils.pagination import PaginationParams, get_pagination

logger = logging.getLogger(__name__)

router = APIRouter()


# =============================================================================
# Booking
# =============================================================================

@router.post("/book", response_model=AppointmentRead, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.RATE_LIMIT_BOOKING)
def book_appointment(
    data: AppointmentBook,
    request: Request,
    db: Session = Depends(get_db),
):
    """
    Book an order onto a calendar at ``slot_time``.

    The appointment lasts as long as the order's services. Rate limited.
    """
    booking = appointment_service.BookingRequest(
        order_id=data.order_id,
        calendar_id=data.calendar_id,
        slot_time=data.slot_time,
        location_id=data.location_id,
    )
    try:
        return appointment_service.book_appointment(db, booking)
    except SchedulingError as e:
        raise http_error(e)


# =============================================================================
# Appointments
# =============================================================================

@router.get("", response_model=AppointmentListResponse)
def list_appointments(
    order_id: UUID | None = None,
    status: AppointmentStatus | None = None,
    pagination: PaginationParams = Depends(get_pagination),
    db: Session = Depends(get_db),
):
    """List appointments, newest first."""
    appointments, total = appointment_service.list_appointments(
        db,
        order_id=order_id,
        status=status,
        limit=pagination.per_page,
        offset=pagination.offset,
    )
    return AppointmentListResponse(
        items=[AppointmentRead.model_validate(a) for a in appointments],
        total=total,
        page=pagination.page,
        per_page=pagination.per_page,
        pages=pagination.pages(total),
    )


@router.post("", response_model=AppointmentRead, status_code=status.HTTP_201_CREATED)
def create_appointment(data: AppointmentCreate, db: Session = Depends(get_db)):
    """Create a draft appointment, optionally tied to an order."""
    try:
        return appointment_service.create_appointment(
            db, order_id=data.order_id, metadata=data.metadata
        )
    except SchedulingError as e:
        raise http_error(e)


@router.get("/current", response_model=CurrentAppointmentResponse)
def get_current_appointment(
    at: datetime | None = Query(None, description="Instant to check, defaults to now"),
    db: Session = Depends(get_db),
):
    """The appointment in progress, if any."""
    appointment = appointment_service.get_current_appointment(db, now=at)
    return CurrentAppointmentResponse(
        appointment=AppointmentRead.model_validate(appointment) if appointment else None
    )


@router.get("/{appointment_id}", response_model=AppointmentRead)
def get_appointment(appointment_id: UUID, db: Session = Depends(get_db)):
    """Get appointment details."""
    appointment = appointment_service.get_appointment(db, appointment_id)
    if not appointment:
        raise HTTPException(status_code=404, detail="Appointment not found")
    return appointment


@router.patch("/{appointment_id}", response_model=AppointmentRead)
def update_appointment(
    appointment_id: UUID,
    data: AppointmentUpdate,
    db: Session = Depends(get_db),
):
    try:
        return appointment_service.update_appointment(
            db,
            appointment_id,
            metadata=data.metadata,
            is_confirmed=data.is_confirmed,
            notified_via_email_at=data.notified_via_email_at,
            notified_via_sms_at=data.notified_via_sms_at,
        )
    except SchedulingError as e:
        raise http_error(e)


@router.patch("/{appointment_id}/status", response_model=AppointmentRead)
def change_status(
    appointment_id: UUID,
    data: AppointmentStatusChange,
    db: Session = Depends(get_db),
):
    """Move an appointment to a new status (409 if the transition is not allowed)."""
    try:
        return appointment_service.transition_status(db, appointment_id, data.status)
    except SchedulingError as e:
        raise http_error(e)


@router.post("/{appointment_id}/reschedule", response_model=AppointmentRead)
@limiter.limit(settings.RATE_LIMIT_BOOKING)
def reschedule_appointment(
    appointment_id: UUID,
    data: AppointmentReschedule,
    request: Request,
    db: Session = Depends(get_db),
):
    """Move an appointment to a new start, keeping its length."""
    try:
        return appointment_service.reschedule_appointment(db, appointment_id, data.slot_time)
    except SchedulingError as e:
        raise http_error(e)


@router.post("/{appointment_id}/cancel", response_model=AppointmentRead)
def cancel_appointment(appointment_id: UUID, db: Session = Depends(get_db)):
    """Cancel an appointment and free its calendar time."""
    try:
        return appointment_service.cancel_appointment(db, appointment_id)
    except SchedulingError as e:
        raise http_error(e)


@router.delete("/{appointment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_appointment(appointment_id: UUID, db: Session = Depends(get_db)):
    """Soft-delete an appointment. Unknown IDs succeed silently."""
    appointment_service.delete_appointment(db, appointment_id)
