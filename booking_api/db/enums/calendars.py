"""Calendar and timeperiod enums."""

from enum import Enum


class TimeperiodType(str, Enum):
    """Kind of interval stored on a calendar."""

    WORKING_HOUR = "working_hour"  # Bookable time
    BREAKTIME = "breaktime"
    BLOCKED = "blocked"  # Manual blocks and booking-derived reservations
    OFF = "off"


# Types subtracted from working hours when computing availability
BLOCKING_TIMEPERIOD_TYPES: tuple[TimeperiodType, ...] = (
    TimeperiodType.BREAKTIME,
    TimeperiodType.BLOCKED,
    TimeperiodType.OFF,
)

DEFAULT_CALENDAR_COLOR = "#D3D3D3"
