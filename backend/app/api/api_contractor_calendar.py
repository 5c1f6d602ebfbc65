# backend/app/api/api_contractor_calendar.py

import logging
from datetime import date, datetime, timedelta
from typing import Any, List

from fastapi import APIRouter, Depends, Query, Response, status
from fastapi.responses import ORJSONResponse
from sqlalchemy.orm import Session

from .. import crud
from ..core.config import settings
from ..database import get_db
from ..models import Contractor
from ..schemas.availability import AvailabilityResponse, AvailabilityUpdate
from ..schemas.blocked_slot import BlockedSlotCreate, BlockedSlotResponse
from ..schemas.slot import CalendarSlot
from ..services.availability_resolver import replace_availability, resolve_week
from ..services.blocked_time import BlockedTimeManager
from ..services.slot_generator import calendar_board
from ..utils import error_response
from .dependencies import get_current_contractor, get_now

router = APIRouter(tags=["contractor-calendar"], default_response_class=ORJSONResponse)
logger = logging.getLogger(__name__)


def _availability_payload(week, *, is_default: bool) -> dict:
    return {
        "is_default": is_default,
        "availability": [week[d].to_dict() for d in range(7)],
    }


@router.get("/availability", response_model=AvailabilityResponse)
def read_availability(
    db: Session = Depends(get_db),
    contractor: Contractor = Depends(get_current_contractor),
) -> Any:
    """Effective weekly template, with the weekday default when nothing is stored."""
    rows = crud.crud_availability.get_for_contractor(db, contractor.id)
    return _availability_payload(resolve_week(rows), is_default=not rows)


@router.put("/availability", response_model=AvailabilityResponse)
def update_availability(
    payload: AvailabilityUpdate,
    db: Session = Depends(get_db),
    contractor: Contractor = Depends(get_current_contractor),
) -> Any:
    week = replace_availability(db, contractor.id, payload.availability)
    return _availability_payload(week, is_default=not payload.availability)


@router.post(
    "/block-time",
    response_model=BlockedSlotResponse,
    status_code=status.HTTP_201_CREATED,
)
def block_time(
    payload: BlockedSlotCreate,
    db: Session = Depends(get_db),
    contractor: Contractor = Depends(get_current_contractor),
    now: datetime = Depends(get_now),
) -> Any:
    return BlockedTimeManager(db, contractor, now=now).create(payload)


@router.delete("/block-time/{slot_id}", status_code=status.HTTP_204_NO_CONTENT)
def unblock_time(
    slot_id: int,
    db: Session = Depends(get_db),
    contractor: Contractor = Depends(get_current_contractor),
    now: datetime = Depends(get_now),
) -> Response:
    BlockedTimeManager(db, contractor, now=now).delete(slot_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/blocked-slots", response_model=List[BlockedSlotResponse])
def read_blocked_slots(
    db: Session = Depends(get_db),
    contractor: Contractor = Depends(get_current_contractor),
    now: datetime = Depends(get_now),
) -> Any:
    return BlockedTimeManager(db, contractor, now=now).list_upcoming()


@router.get("/slots", response_model=List[CalendarSlot])
def read_calendar_slots(
    start: date = Query(..., description="First day, inclusive"),
    end: date = Query(..., description="Last day, inclusive"),
    db: Session = Depends(get_db),
    contractor: Contractor = Depends(get_current_contractor),
) -> Any:
    """Per-quantum available/booked/blocked board for the contractor's calendar."""
    if end < start:
        raise error_response(
            "Invalid date range",
            {"end": "must_not_precede_start"},
            status.HTTP_422_UNPROCESSABLE_ENTITY,
        )
    if end - start > timedelta(days=settings.CALENDAR_MAX_RANGE_DAYS - 1):
        raise error_response(
            "Date range too long",
            {"end": f"max_{settings.CALENDAR_MAX_RANGE_DAYS}_days"},
            status.HTTP_422_UNPROCESSABLE_ENTITY,
        )
    return calendar_board(db, contractor.id, start, end)
