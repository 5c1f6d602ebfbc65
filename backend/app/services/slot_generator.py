"""Bookable start times over the rolling horizon, and the contractor board."""

from datetime import date, datetime, timedelta
from itertools import islice
import logging
from typing import Dict, Iterator, List, Optional

from sqlalchemy.orm import Session

from .. import crud, models
from ..core.config import settings
from ..database import begin_snapshot
from ..utils.intervals import format_hhmm, overlaps
from .availability_resolver import DayWindow, resolve_week, window_for
from .conflict_checker import ConflictChecker

logger = logging.getLogger(__name__)


def service_duration(service: models.Service) -> int:
    return service.duration_minutes or settings.DEFAULT_SERVICE_DURATION_MINUTES


class SlotGenerator:
    """Iterable of free start instants for one service duration.

    Each iteration starts a fresh sweep from today, so the object can be
    consumed several times and always yields starts in ascending order.
    Only starts at or after ``now + lead time`` are produced.
    """

    def __init__(
        self,
        week: Dict[int, DayWindow],
        checker: ConflictChecker,
        *,
        duration_minutes: int,
        now: datetime,
        quantum_minutes: Optional[int] = None,
        horizon_days: Optional[int] = None,
        lead_time_minutes: Optional[int] = None,
    ) -> None:
        if duration_minutes <= 0:
            raise ValueError("duration_minutes must be positive")
        self.week = week
        self.checker = checker
        self.duration = timedelta(minutes=duration_minutes)
        self.duration_minutes = duration_minutes
        self.now = now
        self.quantum = timedelta(minutes=quantum_minutes or settings.SLOT_QUANTUM_MINUTES)
        self.horizon_days = settings.BOOKING_HORIZON_DAYS if horizon_days is None else horizon_days
        lead = settings.BOOKING_LEAD_TIME_MINUTES if lead_time_minutes is None else lead_time_minutes
        self.earliest = now + timedelta(minutes=lead)

    def days(self) -> Iterator[date]:
        today = self.now.date()
        for offset in range(self.horizon_days + 1):
            yield today + timedelta(days=offset)

    def __iter__(self) -> Iterator[datetime]:
        for day in self.days():
            bounds = window_for(self.week, day).bounds(day)
            if bounds is None:
                continue
            day_start, day_end = bounds
            candidate = day_start
            while candidate + self.duration <= day_end:
                if candidate >= self.earliest and self.checker.is_free(candidate, self.duration_minutes):
                    yield candidate
                candidate += self.quantum

    def take(self, limit: int) -> List[datetime]:
        return list(islice(self, limit))


def slot_payload(start: datetime) -> dict:
    return {
        "date": start.date().isoformat(),
        "time": format_hhmm(start.time()),
        "datetime": start.isoformat(),
    }


def build_available_slots(db: Session, service: models.Service, *, now: datetime) -> dict:
    """Read availability, bookings and blocks once, then sweep the horizon."""
    begin_snapshot(db)
    duration = service_duration(service)
    window_start = datetime.combine(now.date(), datetime.min.time())
    window_end = window_start + timedelta(days=settings.BOOKING_HORIZON_DAYS + 1)

    week = resolve_week(crud.crud_availability.get_for_contractor(db, service.contractor_id))
    checker = ConflictChecker.load(db, service.contractor_id, window_start, window_end)
    starts = SlotGenerator(week, checker, duration_minutes=duration, now=now).take(
        settings.AVAILABLE_SLOTS_LIMIT
    )
    slots = [slot_payload(s) for s in starts]
    logger.debug(
        "Generated %d slots for service=%s contractor=%s", len(slots), service.id, service.contractor_id
    )
    return {
        "service_id": service.id,
        "duration_minutes": duration,
        "available_slots": slots,
        "next_available_slot": slots[0] if slots else None,
    }


def calendar_board(
    db: Session,
    contractor_id: int,
    start: date,
    end: date,
) -> List[dict]:
    """Per-quantum status of every open working period in ``[start, end]``.

    Blocked takes precedence over booked when a quantum is covered by both.
    """
    begin_snapshot(db)
    quantum = timedelta(minutes=settings.SLOT_QUANTUM_MINUTES)
    week = resolve_week(crud.crud_availability.get_for_contractor(db, contractor_id))
    window_start = datetime.combine(start, datetime.min.time())
    window_end = datetime.combine(end + timedelta(days=1), datetime.min.time())
    checker = ConflictChecker.load(db, contractor_id, window_start, window_end)

    entries: List[dict] = []
    day = start
    while day <= end:
        bounds = window_for(week, day).bounds(day)
        if bounds is not None:
            q_start, day_end = bounds
            while q_start + quantum <= day_end:
                q_end = q_start + quantum
                hits = [b for b in checker.busy if overlaps(q_start, q_end, b.start, b.end)]
                blocked = next((b for b in hits if b.kind == "blocked"), None)
                booked = next((b for b in hits if b.kind == "booking"), None)
                status = "blocked" if blocked else "booked" if booked else "available"
                entries.append(
                    {
                        "date": day.isoformat(),
                        "start_time": format_hhmm(q_start.time()),
                        "end_time": format_hhmm(q_end.time()),
                        "status": status,
                        "booking_id": booked.id if booked and not blocked else None,
                        "blocked_slot_id": blocked.id if blocked else None,
                    }
                )
                q_start = q_end
        day += timedelta(days=1)
    return entries
