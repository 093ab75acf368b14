"""Appointment service - business logic for booking calendar time.

Handles:
- Appointment CRUD with domain events
- Status changes through the transition table
- Booking workflow (availability check + blocking period, one transaction)
- Cancellation and rescheduling that release or move the blocking period
- Current-appointment lookup
"""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, NamedTuple
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from booking_api.core.config import settings
from booking_api.core.locks import calendar_key, named_locks, order_key
from booking_api.core.structured_logging import build_log_context
from booking_api.db.enums import AppointmentStatus, TimeperiodType, can_transition
from booking_api.db.models import Appointment
from booking_api.db.types import ensure_utc
from booking_api.services import (
    availability_service,
    calendar_service,
    duration_service,
    event_service,
    order_service,
)
from booking_api.services.errors import (
    AppointmentNotFoundError,
    BookingPersistenceError,
    CalendarNotFoundError,
    InvalidIntervalError,
    InvalidStatusTransitionError,
    OrderAlreadyScheduledError,
    SchedulingError,
    SlotUnavailableError,
    TimeperiodNotFoundError,
)
from booking_api.services.event_service import AppointmentEvents
from booking_api.services.slot_grid import is_aligned, is_available

logger = logging.getLogger(__name__)

TIMEPERIOD_META_KEY = "calendar_timeperiod_id"

# Fields callers may change through update_appointment
UPDATABLE_FIELDS = frozenset({
    "status",
    "is_confirmed",
    "notified_via_email_at",
    "notified_via_sms_at",
})


# =============================================================================
# Types
# =============================================================================

class BookingRequest(NamedTuple):
    """Parameters for booking an order onto a calendar."""
    order_id: UUID
    calendar_id: UUID
    slot_time: datetime
    location_id: UUID | None = None


# =============================================================================
# Helpers
# =============================================================================

def generate_booking_code() -> str:
    """Generate a short booking reference."""
    return secrets.token_hex(5).upper()


def _commit(db: Session, context: dict[str, Any]) -> None:
    """Commit the unit of work or roll everything back."""
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Appointment transaction failed", extra=context)
        raise BookingPersistenceError("Could not save appointment, nothing was written") from exc


def _merge_metadata(appointment: Appointment, values: dict[str, Any]) -> None:
    # Reassign so the JSON column is flagged dirty
    appointment.metadata_ = {**(appointment.metadata_ or {}), **values}


def _linked_timeperiod_id(appointment: Appointment) -> UUID | None:
    raw = (appointment.metadata_ or {}).get(TIMEPERIOD_META_KEY)
    return UUID(str(raw)) if raw else None


def _release_timeperiod(db: Session, appointment: Appointment) -> None:
    """Soft-delete the blocking period held by an appointment, if any."""
    timeperiod_id = _linked_timeperiod_id(appointment)
    if timeperiod_id is None:
        return
    try:
        calendar_service.delete_timeperiod(db, timeperiod_id)
    except TimeperiodNotFoundError:
        logger.warning(
            "Appointment %s references missing timeperiod %s", appointment.id, timeperiod_id
        )


def _ensure_schedulable(db: Session, appointment: Appointment) -> None:
    """An appointment may go back to scheduled only while it still holds its booked time."""
    if appointment.scheduled_start is None or appointment.scheduled_end is None:
        raise InvalidStatusTransitionError(
            f"Appointment {appointment.id} has no booked time; book it instead"
        )
    timeperiod_id = _linked_timeperiod_id(appointment)
    if timeperiod_id is None or calendar_service.get_timeperiod(db, timeperiod_id) is None:
        raise InvalidStatusTransitionError(
            f"Appointment {appointment.id} no longer holds its calendar time; book it instead"
        )
    if appointment.order_id is not None and order_has_scheduled_appointment(db, appointment.order_id):
        raise OrderAlreadyScheduledError(
            f"Order {appointment.order_id} already has a scheduled appointment"
        )


def _apply_status(
    db: Session,
    appointment: Appointment,
    status: AppointmentStatus | str,
    via_booking: bool = False,
) -> None:
    target = AppointmentStatus(status)
    if target.value == appointment.status:
        return
    if not can_transition(appointment.status, target.value, via_booking=via_booking):
        raise InvalidStatusTransitionError(
            f"Cannot change appointment status from {appointment.status} to {target.value}"
        )
    if target == AppointmentStatus.SCHEDULED and not via_booking:
        _ensure_schedulable(db, appointment)
    if target == AppointmentStatus.CANCELED:
        _release_timeperiod(db, appointment)
    appointment.status = target.value


# =============================================================================
# Queries
# =============================================================================

def _live_query():
    return select(Appointment).where(Appointment.deleted_at.is_(None))


def get_appointment(db: Session, appointment_id: UUID) -> Appointment | None:
    """Get appointment by ID (soft-deleted rows excluded)."""
    return db.execute(
        _live_query().where(Appointment.id == appointment_id)
    ).scalar_one_or_none()


def retrieve_appointment(db: Session, appointment_id: UUID) -> Appointment:
    """Get appointment or raise ``AppointmentNotFoundError``."""
    appointment = get_appointment(db, appointment_id)
    if not appointment:
        raise AppointmentNotFoundError(f"Appointment {appointment_id} was not found")
    return appointment


def list_appointments(
    db: Session,
    order_id: UUID | None = None,
    status: AppointmentStatus | str | None = None,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[Appointment], int]:
    """List appointments, newest first, with total count."""
    query = _live_query()
    if order_id is not None:
        query = query.where(Appointment.order_id == order_id)
    if status is not None:
        query = query.where(Appointment.status == AppointmentStatus(status).value)

    total = db.execute(select(func.count()).select_from(query.subquery())).scalar_one()
    items = db.execute(
        query.order_by(Appointment.created_at.desc()).offset(offset).limit(limit)
    ).scalars().all()
    return list(items), total


def list_by_order(db: Session, order_id: UUID) -> list[Appointment]:
    """All live appointments of an order."""
    return list(
        db.execute(
            _live_query().where(Appointment.order_id == order_id).order_by(Appointment.created_at)
        ).scalars().all()
    )


def order_has_scheduled_appointment(db: Session, order_id: UUID) -> bool:
    """True if the order already holds a scheduled appointment."""
    return any(
        appointment.status == AppointmentStatus.SCHEDULED.value
        for appointment in list_by_order(db, order_id)
    )


def is_current(
    appointment: Appointment,
    hour_range: float,
    now: datetime | None = None,
) -> bool:
    """True when ``now`` is within ``hour_range`` hours of the appointment window."""
    if appointment.scheduled_start is None or appointment.scheduled_end is None:
        return False
    now = ensure_utc(now) if now else datetime.now(timezone.utc)
    margin = timedelta(hours=hour_range)
    return appointment.scheduled_start - margin <= now <= appointment.scheduled_end + margin


def get_current_appointment(db: Session, now: datetime | None = None) -> Appointment | None:
    """
    The appointment in progress right now.

    Looks at appointments starting within ``CURRENT_APPOINTMENT_WINDOW_HOURS``
    of now and returns the first whose window contains now.
    """
    now = ensure_utc(now) if now else datetime.now(timezone.utc)
    window = timedelta(hours=settings.CURRENT_APPOINTMENT_WINDOW_HOURS)
    candidates = db.execute(
        _live_query()
        .where(
            Appointment.status.in_([
                AppointmentStatus.SCHEDULED.value,
                AppointmentStatus.ON_PROGRESS.value,
            ]),
            Appointment.scheduled_start >= now - window,
            Appointment.scheduled_start <= now + window,
        )
        .order_by(Appointment.scheduled_start)
    ).scalars().all()

    for appointment in candidates:
        if appointment.scheduled_start <= now < appointment.scheduled_end:
            return appointment
    return None


# =============================================================================
# CRUD
# =============================================================================

def create_appointment(
    db: Session,
    order_id: UUID | None = None,
    metadata: dict[str, Any] | None = None,
) -> Appointment:
    """Create a draft appointment and emit ``appointment.created``."""
    if order_id is not None:
        order_service.get_order(db, order_id, with_items=False)

    appointment = Appointment(
        order_id=order_id,
        status=AppointmentStatus.DRAFT.value,
        is_confirmed=False,
        code=generate_booking_code(),
        metadata_=metadata,
    )
    db.add(appointment)
    db.flush()
    _commit(db, build_log_context(appointment_id=str(appointment.id)))

    event_service.emit(AppointmentEvents.CREATED, event_service.build_payload(appointment.id))
    return appointment


def update_appointment(
    db: Session,
    appointment_id: UUID,
    metadata: dict[str, Any] | None = None,
    **changes: Any,
) -> Appointment:
    """
    Update an appointment and emit ``appointment.updated``.

    ``metadata`` is merged into the existing metadata. Status changes go
    through the transition table; moving to canceled frees the calendar time.
    """
    unknown = set(changes) - UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"Cannot update appointment fields: {', '.join(sorted(unknown))}")

    appointment = retrieve_appointment(db, appointment_id)
    context = build_log_context(appointment_id=str(appointment.id))

    # Returning to scheduled competes with bookings of the same order
    lock_keys = []
    target = changes.get("status")
    if (
        target is not None
        and AppointmentStatus(target) == AppointmentStatus.SCHEDULED
        and appointment.order_id is not None
    ):
        lock_keys.append(order_key(appointment.order_id))

    try:
        with named_locks(*lock_keys):
            if metadata:
                _merge_metadata(appointment, metadata)
            for field, value in changes.items():
                if value is None:
                    continue
                if field == "status":
                    _apply_status(db, appointment, value)
                else:
                    setattr(appointment, field, value)
            db.flush()
            _commit(db, context)
    except SchedulingError:
        db.rollback()
        raise

    fields = [f for f, v in changes.items() if v is not None]
    if metadata:
        fields.append("metadata")
    event_service.emit(
        AppointmentEvents.UPDATED, event_service.build_payload(appointment.id, fields)
    )
    return appointment


def transition_status(
    db: Session,
    appointment_id: UUID,
    status: AppointmentStatus | str,
) -> Appointment:
    """Move an appointment to ``status`` if the transition table allows it."""
    return update_appointment(db, appointment_id, status=AppointmentStatus(status).value)


def cancel_appointment(db: Session, appointment_id: UUID) -> Appointment:
    """Cancel an appointment and release its blocking period."""
    return transition_status(db, appointment_id, AppointmentStatus.CANCELED)


def delete_appointment(db: Session, appointment_id: UUID) -> None:
    """Soft-delete an appointment. Unknown IDs are ignored."""
    appointment = get_appointment(db, appointment_id)
    if not appointment:
        return

    _release_timeperiod(db, appointment)
    appointment.deleted_at = datetime.now(timezone.utc)
    db.flush()
    _commit(db, build_log_context(appointment_id=str(appointment_id)))

    event_service.emit(AppointmentEvents.DELETED, event_service.build_payload(appointment_id))


# =============================================================================
# Booking
# =============================================================================

def book_appointment(db: Session, request: BookingRequest) -> Appointment:
    """
    Book an order onto a calendar starting at ``request.slot_time``.

    Steps:
    1. Calendar (and location) must exist
    2. Order must not already hold a scheduled appointment
    3. Duration = sum of the order items' service minutes
    4. Availability for the requested window
    5. Every slot of the window must be free
    6. One transaction: draft appointment → blocked timeperiod → scheduled
    7. Emit ``appointment.created`` then ``appointment.updated``

    Steps 2, 4, 5 and 6 are repeated/done while holding the order and
    calendar locks, so two overlapping requests cannot both commit.

    Raises:
        CalendarNotFoundError / LocationNotFoundError / OrderNotFoundError
        OrderAlreadyScheduledError: order already booked
        SlotUnavailableError: window not fully free
        InvalidIntervalError: slot off the grid or no bookable duration
        BookingPersistenceError: commit failed, nothing written
    """
    granularity = settings.SLOT_GRANULARITY_MINUTES
    slot_time = ensure_utc(request.slot_time)
    context = build_log_context(
        calendar_id=str(request.calendar_id), order_id=str(request.order_id)
    )
    if not is_aligned(slot_time, granularity):
        raise InvalidIntervalError(
            f"Slot time {slot_time.isoformat()} is not on the {granularity}-minute grid"
        )

    # 1. Calendar / location
    calendar = calendar_service.retrieve_calendar(db, request.calendar_id)
    if request.location_id is not None:
        location = calendar_service.retrieve_location(db, request.location_id)
        if calendar.location_id != location.id:
            raise CalendarNotFoundError(
                f"Calendar {request.calendar_id} was not found at location {request.location_id}"
            )

    # 2. Duplicate booking for the order
    if order_has_scheduled_appointment(db, request.order_id):
        raise OrderAlreadyScheduledError(
            f"Order {request.order_id} already has a scheduled appointment"
        )

    # 3. Duration
    order = order_service.get_order(db, request.order_id, with_items=True)
    total_minutes = duration_service.resolve_total_minutes(order.items)
    if total_minutes <= 0:
        raise InvalidIntervalError(f"Order {request.order_id} has no bookable service duration")
    try:
        slot_time_until = slot_time + timedelta(minutes=total_minutes)
    except OverflowError as exc:
        raise InvalidIntervalError(
            f"Order {request.order_id} duration of {total_minutes} minutes is out of range"
        ) from exc

    try:
        with named_locks(order_key(request.order_id), calendar_key(request.calendar_id)):
            order_service.lock_order(db, request.order_id)
            calendar_service.lock_calendar(db, request.calendar_id)

            # Re-check under the locks; another request may have committed meanwhile
            if order_has_scheduled_appointment(db, request.order_id):
                raise OrderAlreadyScheduledError(
                    f"Order {request.order_id} already has a scheduled appointment"
                )

            # 4-5. Availability
            availability = availability_service.compute_availability(
                db, request.calendar_id, slot_time, slot_time_until, granularity
            )
            if not is_available(slot_time, slot_time_until, availability, granularity):
                raise SlotUnavailableError(
                    f"Slot {slot_time.isoformat()} - {slot_time_until.isoformat()} "
                    f"is not available on calendar {request.calendar_id}"
                )

            # 6. Persist
            appointment = Appointment(
                order_id=request.order_id,
                status=AppointmentStatus.DRAFT.value,
                is_confirmed=False,
                code=generate_booking_code(),
            )
            db.add(appointment)
            db.flush()

            timeperiod = calendar_service.create_timeperiod(
                db,
                calendar_id=request.calendar_id,
                type=TimeperiodType.BLOCKED,
                start_at=slot_time,
                end_at=slot_time_until,
                title=f"Appointment for {request.order_id}",
                metadata={"appointment_id": str(appointment.id)},
                granularity_minutes=granularity,
            )

            _apply_status(db, appointment, AppointmentStatus.SCHEDULED, via_booking=True)
            appointment.scheduled_start = slot_time
            appointment.scheduled_end = slot_time_until
            _merge_metadata(appointment, {
                TIMEPERIOD_META_KEY: str(timeperiod.id),
                "calendar_id": str(request.calendar_id),
                "location_id": str(request.location_id) if request.location_id else None,
            })
            db.flush()
            _commit(db, context)
    except SchedulingError as exc:
        db.rollback()
        logger.info("Booking rejected: %s", exc, extra=context)
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Booking transaction failed", extra=context)
        raise BookingPersistenceError("Could not save appointment, nothing was written") from exc

    context["appointment_id"] = str(appointment.id)
    logger.info("Appointment booked", extra=context)

    # 7. Events, after commit
    event_service.emit(AppointmentEvents.CREATED, event_service.build_payload(appointment.id))
    event_service.emit(
        AppointmentEvents.UPDATED,
        event_service.build_payload(
            appointment.id, ["status", "scheduled_start", "scheduled_end", "metadata"]
        ),
    )
    return appointment


def reschedule_appointment(
    db: Session,
    appointment_id: UUID,
    slot_time: datetime,
) -> Appointment:
    """
    Move a booked appointment to a new start, keeping its duration.

    The old blocking period is soft-deleted and a new one created in the same
    transaction; if the new window is not free nothing changes.
    """
    granularity = settings.SLOT_GRANULARITY_MINUTES
    slot_time = ensure_utc(slot_time)
    if not is_aligned(slot_time, granularity):
        raise InvalidIntervalError(
            f"Slot time {slot_time.isoformat()} is not on the {granularity}-minute grid"
        )

    appointment = retrieve_appointment(db, appointment_id)
    if appointment.status not in (
        AppointmentStatus.SCHEDULED.value,
        AppointmentStatus.RESCHEDULE.value,
    ):
        raise InvalidStatusTransitionError(
            f"Cannot reschedule an appointment with status {appointment.status}"
        )
    raw_calendar_id = (appointment.metadata_ or {}).get("calendar_id")
    if not raw_calendar_id or appointment.scheduled_start is None or appointment.scheduled_end is None:
        raise InvalidStatusTransitionError(
            f"Appointment {appointment_id} is not linked to a calendar"
        )
    calendar_id = UUID(str(raw_calendar_id))
    duration = appointment.scheduled_end - appointment.scheduled_start
    slot_time_until = slot_time + duration
    context = build_log_context(
        calendar_id=str(calendar_id), appointment_id=str(appointment_id)
    )

    lock_keys = [calendar_key(calendar_id)]
    if appointment.order_id is not None:
        lock_keys.insert(0, order_key(appointment.order_id))

    try:
        with named_locks(*lock_keys):
            calendar_service.lock_calendar(db, calendar_id)
            if (
                appointment.status != AppointmentStatus.SCHEDULED.value
                and appointment.order_id is not None
                and order_has_scheduled_appointment(db, appointment.order_id)
            ):
                raise OrderAlreadyScheduledError(
                    f"Order {appointment.order_id} already has a scheduled appointment"
                )
            _release_timeperiod(db, appointment)

            availability = availability_service.compute_availability(
                db, calendar_id, slot_time, slot_time_until, granularity
            )
            if not is_available(slot_time, slot_time_until, availability, granularity):
                raise SlotUnavailableError(
                    f"Slot {slot_time.isoformat()} - {slot_time_until.isoformat()} "
                    f"is not available on calendar {calendar_id}"
                )

            timeperiod = calendar_service.create_timeperiod(
                db,
                calendar_id=calendar_id,
                type=TimeperiodType.BLOCKED,
                start_at=slot_time,
                end_at=slot_time_until,
                title=f"Appointment for {appointment.order_id}",
                metadata={"appointment_id": str(appointment.id)},
                granularity_minutes=granularity,
            )
            _apply_status(db, appointment, AppointmentStatus.SCHEDULED, via_booking=True)
            appointment.scheduled_start = slot_time
            appointment.scheduled_end = slot_time_until
            _merge_metadata(appointment, {TIMEPERIOD_META_KEY: str(timeperiod.id)})
            db.flush()
            _commit(db, context)
    except SchedulingError as exc:
        db.rollback()
        logger.info("Reschedule rejected: %s", exc, extra=context)
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Reschedule transaction failed", extra=context)
        raise BookingPersistenceError("Could not move appointment, nothing was written") from exc

    event_service.emit(
        AppointmentEvents.UPDATED,
        event_service.build_payload(
            appointment.id, ["status", "scheduled_start", "scheduled_end", "metadata"]
        ),
    )
    return appointment
