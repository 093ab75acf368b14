"""Appointment enums and lifecycle rules."""

from enum import Enum


class AppointmentStatus(str, Enum):
    """
    Appointment lifecycle status.

    Flow: draft → scheduled → on_progress → finished
                     ↘ reschedule → scheduled
                     ↘ pending / requires_action → scheduled
                     ↘ canceled
    """

    DRAFT = "draft"  # Created by the booking workflow, not yet holding time
    SCHEDULED = "scheduled"  # Holds a blocking period on a calendar
    CANCELED = "canceled"
    REQUIRES_ACTION = "requires_action"
    PENDING = "pending"
    RESCHEDULE = "reschedule"  # Customer asked to move the booking
    ON_PROGRESS = "on_progress"  # Service is being delivered
    FINISHED = "finished"


APPOINTMENT_STATUS_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.DRAFT: frozenset({
        AppointmentStatus.SCHEDULED,
        AppointmentStatus.CANCELED,
    }),
    AppointmentStatus.SCHEDULED: frozenset({
        AppointmentStatus.ON_PROGRESS,
        AppointmentStatus.RESCHEDULE,
        AppointmentStatus.PENDING,
        AppointmentStatus.REQUIRES_ACTION,
        AppointmentStatus.CANCELED,
    }),
    AppointmentStatus.PENDING: frozenset({
        AppointmentStatus.SCHEDULED,
        AppointmentStatus.REQUIRES_ACTION,
        AppointmentStatus.CANCELED,
    }),
    AppointmentStatus.REQUIRES_ACTION: frozenset({
        AppointmentStatus.SCHEDULED,
        AppointmentStatus.PENDING,
        AppointmentStatus.CANCELED,
    }),
    AppointmentStatus.RESCHEDULE: frozenset({
        AppointmentStatus.SCHEDULED,
        AppointmentStatus.CANCELED,
    }),
    AppointmentStatus.ON_PROGRESS: frozenset({
        AppointmentStatus.FINISHED,
        AppointmentStatus.REQUIRES_ACTION,
    }),
    AppointmentStatus.FINISHED: frozenset(),
    AppointmentStatus.CANCELED: frozenset(),
}


# Only the booking workflow may take these; it creates the blocking period
BOOKING_ONLY_TRANSITIONS: frozenset[tuple[AppointmentStatus, AppointmentStatus]] = frozenset({
    (AppointmentStatus.DRAFT, AppointmentStatus.SCHEDULED),
})


def can_transition(current: str, target: str, via_booking: bool = False) -> bool:
    """Check a status change against the transition table."""
    change = (AppointmentStatus(current), AppointmentStatus(target))
    if change in BOOKING_ONLY_TRANSITIONS and not via_booking:
        return False
    return change[1] in APPOINTMENT_STATUS_TRANSITIONS[change[0]]


# Default appointment status
DEFAULT_APPOINTMENT_STATUS = AppointmentStatus.DRAFT
