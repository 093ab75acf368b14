"""Scheduling error taxonomy shared by the service layer.

Routers translate these into HTTP responses; services never swallow them.
"""


class SchedulingError(Exception):
    """Base exception for scheduling service errors."""

    pass


# -----------------------------------------------------------------------------
# Not found (terminal, never retried)
# -----------------------------------------------------------------------------

class NotFoundError(SchedulingError):
    """A referenced record does not exist."""

    pass


class LocationNotFoundError(NotFoundError):
    pass


class CalendarNotFoundError(NotFoundError):
    pass


class TimeperiodNotFoundError(NotFoundError):
    pass


class OrderNotFoundError(NotFoundError):
    pass


class AppointmentNotFoundError(NotFoundError):
    pass


# -----------------------------------------------------------------------------
# Conflicts (caller may re-query and retry with different input)
# -----------------------------------------------------------------------------

class ConflictError(SchedulingError):
    """Request is well-formed but clashes with current state."""

    pass


class OrderAlreadyScheduledError(ConflictError):
    """Order already holds a scheduled appointment."""

    pass


class SlotUnavailableError(ConflictError):
    """Requested window is not fully covered by free slots."""

    pass


class InvalidStatusTransitionError(ConflictError):
    """Status change is not in the appointment transition table."""

    pass


# -----------------------------------------------------------------------------
# Validation (rejected before any I/O)
# -----------------------------------------------------------------------------

class ValidationError(SchedulingError):
    pass


class InvalidIntervalError(ValidationError):
    """Malformed interval or granularity."""

    pass


# -----------------------------------------------------------------------------
# Persistence
# -----------------------------------------------------------------------------

class BookingPersistenceError(SchedulingError):
    """Commit failed; every write of the unit of work was rolled back."""

    pass
