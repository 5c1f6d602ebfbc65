# backend/app/api/api_service.py

from datetime import datetime, timedelta
import logging
from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import ORJSONResponse
from sqlalchemy.orm import Session

from .. import crud
from ..core.config import settings
from ..database import get_db
from ..schemas.slot import AvailableSlotsResponse
from ..services.slot_generator import build_available_slots
from ..utils.errors import NotFoundError
from ..utils.redis_cache import (
    cache_available_slots,
    get_availability_generation,
    get_cached_available_slots,
)
from .dependencies import get_now

router = APIRouter(tags=["services"], default_response_class=ORJSONResponse)
logger = logging.getLogger(__name__)


def _drop_expired(payload: dict, now: datetime) -> dict:
    """Remove cached starts that fell inside the lead time since caching."""
    earliest = now + timedelta(minutes=settings.BOOKING_LEAD_TIME_MINUTES)
    slots = [
        s for s in payload.get("available_slots", [])
        if datetime.fromisoformat(s["datetime"]) >= earliest
    ]
    return {
        **payload,
        "available_slots": slots,
        "next_available_slot": slots[0] if slots else None,
    }


@router.get("/{service_id}/available-slots", response_model=AvailableSlotsResponse)
def read_available_slots(
    service_id: int,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
) -> Any:
    """Bookable start times for the service over the next two weeks.

    Public endpoint; the payload is cached per contractor and service and
    dropped whenever that contractor's calendar changes.
    """
    service = crud.crud_service.get_service(db, service_id)
    # Same gate as booking creation, so every offered slot is bookable.
    if service is None or not service.is_active or not service.contractor.is_approved:
        raise NotFoundError("Service not found")

    generation = get_availability_generation(service.contractor_id)
    if generation is None:
        return build_available_slots(db, service, now=now)

    cached = get_cached_available_slots(service.contractor_id, service.id, now.date(), generation)
    if cached is not None:
        return _drop_expired(cached, now)

    payload = build_available_slots(db, service, now=now)
    cache_available_slots(payload, service.contractor_id, service.id, now.date(), generation)
    return payload
