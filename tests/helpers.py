"""Time helpers shared by tests."""
from datetime import date, datetime, time, timezone

# 2030-01-07 is a Monday
MONDAY = date(2030, 1, 7)
TUESDAY = date(2030, 1, 8)


def at(hour: int, minute: int = 0, day: date = MONDAY) -> datetime:
    """UTC instant on ``day``."""
    return datetime.combine(day, time(hour, minute), tzinfo=timezone.utc)
