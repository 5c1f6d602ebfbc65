# backend/app/api/api_contractor_booking.py

import logging
from datetime import date, datetime, timedelta
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import ORJSONResponse
from sqlalchemy.orm import Session

from .. import crud
from ..database import get_db
from ..models import BookingStatus, Contractor
from ..schemas.booking import (
    BookingResponse,
    BulkStatusResponse,
    BulkStatusUpdate,
    QuickCreateBooking,
    RescheduleRequest,
    StatusUpdate,
)
from ..services.booking_lifecycle import BookingLifecycle
from ..utils import error_response
from .dependencies import get_current_contractor, get_now

router = APIRouter(tags=["contractor-bookings"], default_response_class=ORJSONResponse)
logger = logging.getLogger(__name__)


def _parse_statuses(raw: Optional[str]) -> List[BookingStatus]:
    if not raw:
        return []
    statuses = []
    for part in raw.split(","):
        part = part.strip().lower()
        if not part:
            continue
        try:
            statuses.append(BookingStatus(part))
        except ValueError:
            raise error_response(
                "Invalid status filter",
                {"status": f"unknown:{part}"},
                status.HTTP_422_UNPROCESSABLE_ENTITY,
            ) from None
    return statuses


@router.get("/bookings", response_model=List[BookingResponse])
def read_contractor_bookings(
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None, description="Last day, inclusive"),
    status_filter: Optional[str] = Query(None, alias="status", description="Comma-separated statuses"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    contractor: Contractor = Depends(get_current_contractor),
) -> Any:
    return crud.booking.get_bookings_by_contractor(
        db,
        contractor.id,
        start=datetime.combine(start, datetime.min.time()) if start else None,
        end=datetime.combine(end + timedelta(days=1), datetime.min.time()) if end else None,
        statuses=_parse_statuses(status_filter),
        skip=skip,
        limit=limit,
    )


@router.post(
    "/bookings/quick-create",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
)
def quick_create_booking(
    payload: QuickCreateBooking,
    db: Session = Depends(get_db),
    contractor: Contractor = Depends(get_current_contractor),
    now: datetime = Depends(get_now),
) -> Any:
    """Book on a client's behalf, creating the client account if needed."""
    return BookingLifecycle(db, now=now).quick_create(contractor, payload)


@router.patch("/bookings/{booking_id}/reschedule", response_model=BookingResponse)
def reschedule_booking(
    booking_id: int,
    payload: RescheduleRequest,
    db: Session = Depends(get_db),
    contractor: Contractor = Depends(get_current_contractor),
    now: datetime = Depends(get_now),
) -> Any:
    return BookingLifecycle(db, now=now).reschedule(contractor, booking_id, payload.scheduled_at)


@router.patch("/bookings/{booking_id}/status", response_model=BookingResponse)
def update_booking_status(
    booking_id: int,
    payload: StatusUpdate,
    db: Session = Depends(get_db),
    contractor: Contractor = Depends(get_current_contractor),
    now: datetime = Depends(get_now),
) -> Any:
    return BookingLifecycle(db, now=now).update_status(contractor, booking_id, payload.status)


@router.post("/bookings/bulk-action", response_model=BulkStatusResponse)
def bulk_update_status(
    payload: BulkStatusUpdate,
    db: Session = Depends(get_db),
    contractor: Contractor = Depends(get_current_contractor),
    now: datetime = Depends(get_now),
) -> Any:
    """Apply one status to many bookings; either all change or none do."""
    updated = BookingLifecycle(db, now=now).bulk_update_status(
        contractor, payload.booking_ids, payload.status
    )
    return {"updated": len(updated), "status": payload.status, "bookings": updated}
