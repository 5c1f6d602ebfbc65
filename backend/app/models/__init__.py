from .base import BaseModel
from .user import User, UserType
from .contractor import Contractor, ContractorStatus
from .availability import WeeklyAvailability
from .blocked_slot import BlockedSlot
from .service import Service
from .booking import Booking
from .booking_status import ACTIVE_STATUSES, TERMINAL_STATUSES, BookingStatus

__all__ = [
    "BaseModel",
    "User",
    "UserType",
    "Contractor",
    "ContractorStatus",
    "WeeklyAvailability",
    "BlockedSlot",
    "Service",
    "Booking",
    "BookingStatus",
    "ACTIVE_STATUSES",
    "TERMINAL_STATUSES",
]
