"""Pydantic schemas for API request/response models."""

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
from booking_api.schemas.calendar import (
    CalendarAvailabilityRead,
    CalendarCreate,
    CalendarRead,
    DaySlotsRead,
    LocationCreate,
    LocationRead,
    TimeperiodCreate,
    TimeperiodRead,
)
