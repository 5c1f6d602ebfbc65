# backend/app/api/api_booking.py

import logging
from datetime import datetime
from typing import Any, List

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import ORJSONResponse
from sqlalchemy.orm import Session

from .. import crud
from ..database import get_db
from ..models import User
from ..schemas.booking import BookingCreate, BookingResponse
from ..services.booking_lifecycle import BookingLifecycle
from ..utils.errors import AuthorizationError, NotFoundError
from .dependencies import get_current_active_client, get_now

router = APIRouter(tags=["bookings"], default_response_class=ORJSONResponse)
logger = logging.getLogger(__name__)
# Mounted by main.py under f"{api_prefix}/bookings".


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_booking(
    *,
    db: Session = Depends(get_db),
    booking_in: BookingCreate,
    current_client: User = Depends(get_current_active_client),
    now: datetime = Depends(get_now),
) -> Any:
    """Book a service. The booking is confirmed immediately when the slot is free."""
    return BookingLifecycle(db, now=now).create(current_client, booking_in)


@router.get("/my-bookings", response_model=List[BookingResponse])
def read_my_bookings(
    db: Session = Depends(get_db),
    current_client: User = Depends(get_current_active_client),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=200),
) -> Any:
    return crud.booking.get_bookings_by_client(db, current_client.id, skip=skip, limit=limit)


@router.get("/{booking_id}", response_model=BookingResponse)
def read_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_client),
) -> Any:
    """Visible to the booking's client and to the contractor who owns it."""
    booking = crud.booking.get_booking(db, booking_id)
    if booking is None:
        raise NotFoundError("Booking not found")
    owns_as_contractor = (
        current_user.contractor is not None
        and current_user.contractor.id == booking.contractor_id
    )
    if booking.client_id != current_user.id and not owns_as_contractor:
        raise AuthorizationError("Not authorized to view this booking")
    return booking


@router.patch("/{booking_id}/cancel", response_model=BookingResponse)
def cancel_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    current_client: User = Depends(get_current_active_client),
    now: datetime = Depends(get_now),
) -> Any:
    return BookingLifecycle(db, now=now).cancel(current_client, booking_id)
