from sqlalchemy.orm import Session
from typing import Iterable, List

from .. import models, schemas


def get_for_contractor(db: Session, contractor_id: int) -> List[models.WeeklyAvailability]:
    return (
        db.query(models.WeeklyAvailability)
        .filter(models.WeeklyAvailability.contractor_id == contractor_id)
        .order_by(models.WeeklyAvailability.day_of_week)
        .all()
    )


def replace_for_contractor(
    db: Session, contractor_id: int, days: Iterable[schemas.AvailabilityDay]
) -> List[models.WeeklyAvailability]:
    """Swap the whole weekly template for ``days`` (flushes, does not commit)."""
    db.query(models.WeeklyAvailability).filter(
        models.WeeklyAvailability.contractor_id == contractor_id
    ).delete(synchronize_session=False)
    rows = [
        models.WeeklyAvailability(
            contractor_id=contractor_id,
            day_of_week=d.day_of_week,
            start_time=d.start_time,
            end_time=d.end_time,
            is_available=d.is_available,
        )
        for d in days
    ]
    db.add_all(rows)
    db.flush()
    return sorted(rows, key=lambda r: r.day_of_week)
