"""Wall-clock helpers.

All windows are time-of-day values interpreted in the server's single local
timezone. Windows never cross midnight.
"""

from datetime import date, datetime, time
from typing import Callable

Clock = Callable[[], datetime]


def local_now() -> datetime:
    """Current local wall-clock time (naive)."""
    return datetime.now()


def window_bounds(day: date, start: time, end: time) -> tuple[datetime, datetime]:
    """Return the start and end of a pickup window as datetimes."""
    return datetime.combine(day, start), datetime.combine(day, end)


def format_time(value: time) -> str:
    """Format a time of day as ``h:mm AM``."""
    hour = value.hour % 12 or 12
    suffix = "PM" if value.hour >= 12 else "AM"
    return f"{hour}:{value.minute:02d} {suffix}"


WEEKDAY_LABELS = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]


def weekday_label(day: date) -> str:
    """Short weekday label, Sunday first."""
    # date.weekday() is Monday=0
    return WEEKDAY_LABELS[(day.weekday() + 1) % 7]
