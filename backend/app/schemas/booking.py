from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional, List, Annotated
from datetime import datetime
from decimal import Decimal
from ..models.booking_status import BookingStatus
from .user import UserSummary
from .service import ServiceSummary


def _lower_status(v):
    # Accept "CONFIRMED" as well as "confirmed".
    if isinstance(v, str):
        return v.strip().lower()
    return v


# Client booking a service for themselves
class BookingCreate(BaseModel):
    service_id: int
    scheduled_at: datetime
    notes: Optional[str] = None


# Contractor booking on a client's behalf
class QuickCreateBooking(BaseModel):
    service_id: int
    client_email: EmailStr
    client_first_name: Optional[str] = None
    client_last_name: Optional[str] = None
    client_phone: Optional[str] = None
    scheduled_at: datetime
    # Overrides the service duration for this booking only.
    duration_minutes: Optional[int] = Field(default=None, gt=0, le=24 * 60)
    notes: Optional[str] = None


class RescheduleRequest(BaseModel):
    scheduled_at: datetime


class StatusUpdate(BaseModel):
    status: BookingStatus

    normalize_status = field_validator("status", mode="before")(_lower_status)


class BulkStatusUpdate(BaseModel):
    booking_ids: List[int] = Field(..., min_length=1, max_length=200)
    status: BookingStatus

    normalize_status = field_validator("status", mode="before")(_lower_status)

    @field_validator("booking_ids")
    @classmethod
    def dedupe(cls, v: List[int]) -> List[int]:
        return list(dict.fromkeys(v))


class BookingResponse(BaseModel):
    id: int
    service_id: int
    client_id: int
    contractor_id: int
    scheduled_at: datetime
    ends_at: datetime
    duration_minutes: int
    status: BookingStatus
    total_price: Annotated[Decimal, Field()]
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    client: Optional[UserSummary] = None
    service: Optional[ServiceSummary] = None

    model_config = {
        "from_attributes": True
    }


class BulkStatusResponse(BaseModel):
    updated: int
    status: BookingStatus
    bookings: List[BookingResponse]
