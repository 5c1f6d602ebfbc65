from .user import UserSummary
from .service import ServiceSummary
from .availability import AvailabilityDay, AvailabilityResponse, AvailabilityUpdate, EffectiveDay
from .blocked_slot import BlockedSlotCreate, BlockedSlotResponse
from .slot import AvailableSlot, AvailableSlotsResponse, CalendarSlot
from .booking import (
    BookingCreate,
    BookingResponse,
    BulkStatusResponse,
    BulkStatusUpdate,
    QuickCreateBooking,
    RescheduleRequest,
    StatusUpdate,
)
