from datetime import date
from sqlalchemy.orm import Session
from typing import Iterable, List, Optional

from .. import models


def get_owned(db: Session, slot_id: int, contractor_id: int) -> Optional[models.BlockedSlot]:
    return (
        db.query(models.BlockedSlot)
        .filter(
            models.BlockedSlot.id == slot_id,
            models.BlockedSlot.contractor_id == contractor_id,
        )
        .first()
    )


def get_on_dates(db: Session, contractor_id: int, dates: Iterable[date]) -> List[models.BlockedSlot]:
    dates = list(dates)
    if not dates:
        return []
    return (
        db.query(models.BlockedSlot)
        .filter(
            models.BlockedSlot.contractor_id == contractor_id,
            models.BlockedSlot.date.in_(dates),
        )
        .order_by(models.BlockedSlot.date, models.BlockedSlot.start_time)
        .all()
    )


def get_upcoming(db: Session, contractor_id: int, today: date) -> List[models.BlockedSlot]:
    return (
        db.query(models.BlockedSlot)
        .filter(
            models.BlockedSlot.contractor_id == contractor_id,
            models.BlockedSlot.date >= today,
        )
        .order_by(models.BlockedSlot.date, models.BlockedSlot.start_time)
        .all()
    )


def create(
    db: Session,
    *,
    contractor_id: int,
    day: date,
    start_time: str,
    end_time: str,
    reason: Optional[str] = None,
) -> models.BlockedSlot:
    db_slot = models.BlockedSlot(
        contractor_id=contractor_id,
        date=day,
        start_time=start_time,
        end_time=end_time,
        reason=reason,
    )
    db.add(db_slot)
    db.flush()
    return db_slot
