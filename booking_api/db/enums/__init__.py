"""Enum definitions for application constants."""

from booking_api.db.enums.appointments import (
    APPOINTMENT_STATUS_TRANSITIONS,
    BOOKING_ONLY_TRANSITIONS,
    AppointmentStatus,
    DEFAULT_APPOINTMENT_STATUS,
    can_transition,
)
from booking_api.db.enums.calendars import (
    BLOCKING_TIMEPERIOD_TYPES,
    DEFAULT_CALENDAR_COLOR,
    TimeperiodType,
)

__all__ = [
    "APPOINTMENT_STATUS_TRANSITIONS",
    "BOOKING_ONLY_TRANSITIONS",
    "AppointmentStatus",
    "BLOCKING_TIMEPERIOD_TYPES",
    "DEFAULT_APPOINTMENT_STATUS",
    "DEFAULT_CALENDAR_COLOR",
    "TimeperiodType",
    "can_transition",
]
