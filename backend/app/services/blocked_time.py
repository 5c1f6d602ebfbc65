"""Contractor-declared unavailable ranges on specific dates."""

from datetime import datetime
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from .. import crud, models, schemas
from ..database import transaction
from ..utils.errors import BookingValidationError, NotFoundError, SchedulingConflict
from ..utils.intervals import combine, overlaps, parse_hhmm
from ..utils.redis_cache import invalidate_availability_cache

logger = logging.getLogger(__name__)


class BlockedTimeManager:
    def __init__(self, db: Session, contractor: models.Contractor, *, now: Optional[datetime] = None) -> None:
        self.db = db
        self.contractor = contractor
        self._now = now

    @property
    def now(self) -> datetime:
        return self._now if self._now is not None else datetime.now()

    def create(self, data: schemas.BlockedSlotCreate) -> models.BlockedSlot:
        start, end = parse_hhmm(data.start_time), parse_hhmm(data.end_time)
        if end <= start:
            raise BookingValidationError(
                "End time must be after start time",
                code="invalid_range",
                field_errors={"end_time": "must_be_after_start_time"},
            )
        with transaction(self.db):
            crud.contractor.lock(self.db, self.contractor.id)
            existing = crud.crud_blocked_slot.get_on_dates(self.db, self.contractor.id, [data.date])
            clashes = [
                s
                for s in existing
                if overlaps(start, end, parse_hhmm(s.start_time), parse_hhmm(s.end_time))
            ]
            if clashes:
                raise SchedulingConflict(
                    "Time range overlaps an existing blocked range",
                    code="block_overlap",
                    conflicts=[
                        {
                            "type": "blocked",
                            "id": s.id,
                            "date": s.date.isoformat(),
                            "start_time": s.start_time,
                            "end_time": s.end_time,
                            "reason": s.reason,
                        }
                        for s in clashes
                    ],
                )
            slot = crud.crud_blocked_slot.create(
                self.db,
                contractor_id=self.contractor.id,
                day=data.date,
                start_time=data.start_time,
                end_time=data.end_time,
                reason=data.reason,
            )
        invalidate_availability_cache(self.contractor.id)
        logger.info(
            "Blocked %s %s-%s for contractor=%s", data.date, data.start_time, data.end_time, self.contractor.id
        )
        self.db.refresh(slot)
        return slot

    def delete(self, slot_id: int) -> None:
        with transaction(self.db):
            crud.contractor.lock(self.db, self.contractor.id)
            slot = crud.crud_blocked_slot.get_owned(self.db, slot_id, self.contractor.id)
            if slot is None:
                raise NotFoundError("Blocked slot not found")
            if combine(slot.date, slot.start_time) <= self.now:
                raise BookingValidationError(
                    "Cannot remove a blocked range that has already started",
                    code="block_started",
                )
            self.db.delete(slot)
        invalidate_availability_cache(self.contractor.id)
        logger.info("Unblocked slot %s for contractor=%s", slot_id, self.contractor.id)

    def list_upcoming(self) -> List[models.BlockedSlot]:
        return crud.crud_blocked_slot.get_upcoming(self.db, self.contractor.id, self.now.date())
