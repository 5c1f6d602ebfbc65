"""Time arithmetic shared by the scheduling services.

All instants are naive server-local datetimes. Ranges are half-open
``[start, end)`` so back-to-back ranges never collide.
"""

from datetime import date, datetime, time, timedelta
import math
import re

_HHMM = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def overlaps(a_start, a_end, b_start, b_end) -> bool:
    """True when ``[a_start, a_end)`` and ``[b_start, b_end)`` share an instant.

    Works for any mutually comparable values: datetimes, times or minutes.
    """
    return a_start < b_end and b_start < a_end


def parse_hhmm(value: str) -> time:
    """Parse a 24-hour ``HH:MM`` string. Raises ValueError on anything else."""
    match = _HHMM.match(value or "")
    if not match:
        raise ValueError(f"Invalid time {value!r}, expected HH:MM")
    return time(int(match.group(1)), int(match.group(2)))


def format_hhmm(value: time) -> str:
    return value.strftime("%H:%M")


def combine(day: date, hhmm: str) -> datetime:
    return datetime.combine(day, parse_hhmm(hhmm))


def day_of_week(day: date) -> int:
    """Weekday index with Sunday as 0 and Saturday as 6."""
    return (day.weekday() + 1) % 7


def to_local_naive(value: datetime) -> datetime:
    """Express an aware datetime on the server-local clock; naive passes through."""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def slots_needed(duration_minutes: int, quantum_minutes: int) -> int:
    return math.ceil(duration_minutes / quantum_minutes)


def dates_spanned(start: datetime, end: datetime):
    """Every calendar date touched by ``[start, end)``."""
    last = (end - timedelta(microseconds=1)).date() if end > start else start.date()
    day = start.date()
    while day <= last:
        yield day
        day += timedelta(days=1)
