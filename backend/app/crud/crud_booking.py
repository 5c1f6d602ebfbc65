from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload
from typing import Iterable, List, Optional, Sequence
from datetime import datetime, timedelta

from .. import models
from ..models.booking_status import ACTIVE_STATUSES, BookingStatus
from ..utils.intervals import overlaps


class CRUDBooking:
    def get_booking(self, db: Session, booking_id: int) -> Optional[models.Booking]:
        return db.query(models.Booking).filter(models.Booking.id == booking_id).first()

    def get_owned_by_contractor(
        self, db: Session, booking_ids: Sequence[int], contractor_id: int
    ) -> List[models.Booking]:
        if not booking_ids:
            return []
        return (
            db.query(models.Booking)
            .filter(
                models.Booking.id.in_(list(booking_ids)),
                models.Booking.contractor_id == contractor_id,
            )
            .all()
        )

    def get_bookings_by_client(
        self, db: Session, client_id: int, skip: int = 0, limit: int = 100
    ) -> List[models.Booking]:
        return (
            db.query(models.Booking)
            .options(joinedload(models.Booking.service))
            .filter(models.Booking.client_id == client_id)
            .order_by(models.Booking.scheduled_at.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def get_bookings_by_contractor(
        self,
        db: Session,
        contractor_id: int,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        statuses: Optional[Iterable[BookingStatus]] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[models.Booking]:
        query = (
            db.query(models.Booking)
            .options(joinedload(models.Booking.client), joinedload(models.Booking.service))
            .filter(models.Booking.contractor_id == contractor_id)
        )
        if start is not None:
            query = query.filter(models.Booking.scheduled_at >= start)
        if end is not None:
            query = query.filter(models.Booking.scheduled_at < end)
        if statuses:
            query = query.filter(models.Booking.status.in_(list(statuses)))
        return (
            query.order_by(models.Booking.scheduled_at.asc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def get_active_overlapping(
        self,
        db: Session,
        contractor_id: int,
        start: datetime,
        end: datetime,
        exclude_booking_id: Optional[int] = None,
    ) -> List[models.Booking]:
        """Active bookings of a contractor whose span intersects ``[start, end)``.

        Only the start column is indexed, so the scan window reaches back by the
        contractor's longest active booking and the exact test runs in Python.
        """
        base = db.query(models.Booking).filter(
            models.Booking.contractor_id == contractor_id,
            models.Booking.status.in_(list(ACTIVE_STATUSES)),
        )
        if exclude_booking_id is not None:
            base = base.filter(models.Booking.id != exclude_booking_id)
        longest = base.with_entities(func.max(models.Booking.duration_minutes)).scalar()
        if not longest:
            return []
        candidates = (
            base.filter(
                models.Booking.scheduled_at < end,
                models.Booking.scheduled_at > start - timedelta(minutes=longest),
            )
            .order_by(models.Booking.scheduled_at)
            .all()
        )
        return [b for b in candidates if overlaps(b.scheduled_at, b.ends_at, start, end)]

    def count_confirmed_for_client(self, db: Session, client_id: int) -> int:
        return (
            db.query(func.count(models.Booking.id))
            .filter(
                models.Booking.client_id == client_id,
                models.Booking.status == BookingStatus.CONFIRMED,
            )
            .scalar()
            or 0
        )

    def create(
        self,
        db: Session,
        *,
        service: models.Service,
        client_id: int,
        scheduled_at: datetime,
        duration_minutes: int,
        notes: Optional[str] = None,
        status: BookingStatus = BookingStatus.CONFIRMED,
    ) -> models.Booking:
        db_booking = models.Booking(
            service_id=service.id,
            client_id=client_id,
            contractor_id=service.contractor_id,
            scheduled_at=scheduled_at,
            duration_minutes=duration_minutes,
            status=status,
            total_price=service.price,
            notes=notes,
        )
        db.add(db_booking)
        db.flush()
        return db_booking


booking = CRUDBooking()
