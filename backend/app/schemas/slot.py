from typing import List, Literal, Optional

from pydantic import BaseModel


class AvailableSlot(BaseModel):
    date: str
    time: str
    datetime: str


class AvailableSlotsResponse(BaseModel):
    service_id: int
    duration_minutes: int
    available_slots: List[AvailableSlot]
    next_available_slot: Optional[AvailableSlot] = None


class CalendarSlot(BaseModel):
    date: str
    start_time: str
    end_time: str
    status: Literal["available", "booked", "blocked"]
    booking_id: Optional[int] = None
    blocked_slot_id: Optional[int] = None
