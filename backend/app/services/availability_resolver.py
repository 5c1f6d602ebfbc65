"""Resolve a contractor's sparse weekly rows into a full seven-day template."""

from dataclasses import dataclass
from datetime import date, datetime
import logging
from typing import Dict, Iterable, Optional, Tuple

from .. import crud
from ..database import transaction
from ..utils.intervals import combine, day_of_week, parse_hhmm
from ..utils.redis_cache import invalidate_availability_cache

logger = logging.getLogger(__name__)

DAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")

DEFAULT_START = "09:00"
DEFAULT_END = "17:00"
# Monday..Friday under the Sunday-first numbering.
DEFAULT_OPEN_DAYS = frozenset({1, 2, 3, 4, 5})


@dataclass(frozen=True)
class DayWindow:
    day_of_week: int
    start_time: str
    end_time: str
    is_available: bool

    def bounds(self, day: date) -> Optional[Tuple[datetime, datetime]]:
        """Working span on ``day``, or None when the day is closed."""
        if not self.is_available:
            return None
        return combine(day, self.start_time), combine(day, self.end_time)

    def to_dict(self) -> dict:
        return {
            "day_of_week": self.day_of_week,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "is_available": self.is_available,
        }


def default_week() -> Dict[int, DayWindow]:
    return {
        d: DayWindow(d, DEFAULT_START, DEFAULT_END, d in DEFAULT_OPEN_DAYS)
        for d in range(7)
    }


def _window_from_row(row) -> DayWindow:
    start, end = row.start_time, row.end_time
    try:
        usable = parse_hhmm(end) > parse_hhmm(start)
    except ValueError:
        usable = False
    if not usable:
        # Rows written before input validation existed; treat the day as closed.
        logger.warning(
            "Ignoring unusable availability row contractor=%s day=%s %s-%s",
            getattr(row, "contractor_id", None),
            row.day_of_week,
            start,
            end,
        )
        return DayWindow(row.day_of_week, DEFAULT_START, DEFAULT_END, False)
    return DayWindow(row.day_of_week, start, end, bool(row.is_available))


def resolve_week(rows: Iterable) -> Dict[int, DayWindow]:
    """Map all seven weekdays to an effective window.

    With no rows the Monday-Friday 09:00-17:00 default applies. Once any row
    exists the stored rows are authoritative and uncovered days are closed.
    """
    rows = [r for r in rows if 0 <= r.day_of_week <= 6]
    if not rows:
        return default_week()
    week = {d: DayWindow(d, DEFAULT_START, DEFAULT_END, False) for d in range(7)}
    for row in rows:
        week[row.day_of_week] = _window_from_row(row)
    return week


def window_for(week: Dict[int, DayWindow], day: date) -> DayWindow:
    return week[day_of_week(day)]


def replace_availability(db, contractor_id: int, days) -> Dict[int, DayWindow]:
    """Store a new weekly template for the contractor and return the effective week."""
    with transaction(db):
        crud.contractor.lock(db, contractor_id)
        rows = crud.crud_availability.replace_for_contractor(db, contractor_id, days)
        week = resolve_week(rows)
    invalidate_availability_cache(contractor_id)
    logger.info(
        "Availability replaced contractor=%s open_days=%s",
        contractor_id,
        [DAY_NAMES[d] for d, w in sorted(week.items()) if w.is_available],
    )
    return week
