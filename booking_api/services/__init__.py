"""Service layer modules."""

from booking_api.services.appointment_service import (
    BookingRequest,
    book_appointment,
    cancel_appointment,
    reschedule_appointment,
)
from booking_api.services.availability_service import (
    CalendarAvailability,
    DaySlots,
    compute_availability,
)
from booking_api.services.slot_grid import discretize, is_available
