"""Interval conflict detection against bookings and blocked ranges.

The checker works on a snapshot: bookings and blocks are read once (see
:meth:`ConflictChecker.load`) and every candidate span is tested in memory,
so a slot sweep costs two queries regardless of its length.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Sequence

from sqlalchemy.orm import Session

from .. import crud, models
from ..utils.intervals import combine, dates_spanned, format_hhmm, overlaps


@dataclass(frozen=True)
class Busy:
    """A span of the contractor's calendar that is taken."""

    kind: str  # "booking" or "blocked"
    id: int
    start: datetime
    end: datetime
    reason: Optional[str] = None

    def to_dict(self) -> dict:
        data = {
            "type": self.kind,
            "id": self.id,
            "date": self.start.date().isoformat(),
            "start_time": format_hhmm(self.start.time()),
            "end_time": format_hhmm(self.end.time()),
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
        }
        if self.reason:
            data["reason"] = self.reason
        return data


def booking_span(booking: models.Booking) -> Busy:
    return Busy("booking", booking.id, booking.scheduled_at, booking.ends_at)


def blocked_span(slot: models.BlockedSlot) -> Optional[Busy]:
    start = combine(slot.date, slot.start_time)
    end = combine(slot.date, slot.end_time)
    if end <= start:
        return None
    return Busy("blocked", slot.id, start, end, slot.reason)


class ConflictChecker:
    def __init__(
        self,
        bookings: Iterable[models.Booking] = (),
        blocked_slots: Iterable[models.BlockedSlot] = (),
    ) -> None:
        spans = [booking_span(b) for b in bookings if b.status.blocks_time]
        spans.extend(s for s in (blocked_span(b) for b in blocked_slots) if s is not None)
        self._busy: List[Busy] = sorted(spans, key=lambda s: (s.start, s.end))

    @classmethod
    def load(
        cls,
        db: Session,
        contractor_id: int,
        window_start: datetime,
        window_end: datetime,
        *,
        exclude_booking_id: Optional[int] = None,
    ) -> "ConflictChecker":
        """Snapshot everything that can intersect ``[window_start, window_end)``."""
        bookings = crud.booking.get_active_overlapping(
            db, contractor_id, window_start, window_end, exclude_booking_id=exclude_booking_id
        )
        blocks = crud.crud_blocked_slot.get_on_dates(
            db, contractor_id, dates_spanned(window_start, window_end)
        )
        return cls(bookings, blocks)

    @property
    def busy(self) -> Sequence[Busy]:
        return tuple(self._busy)

    def find_conflicts(
        self,
        start: datetime,
        duration_minutes: int,
        *,
        exclude_booking_id: Optional[int] = None,
    ) -> List[Busy]:
        """Every busy span that intersects ``[start, start + duration)``.

        The whole span is tested, so a 90 minute service is rejected when any
        of the quanta it covers is taken, not only the first.
        """
        end = start + timedelta(minutes=duration_minutes)
        found = []
        for span in self._busy:
            if span.start >= end:
                break
            if span.kind == "booking" and span.id == exclude_booking_id:
                continue
            if overlaps(start, end, span.start, span.end):
                found.append(span)
        return found

    def is_free(self, start: datetime, duration_minutes: int, **kwargs) -> bool:
        return not self.find_conflicts(start, duration_minutes, **kwargs)
