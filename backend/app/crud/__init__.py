from .crud_user import user
from .crud_contractor import contractor
from .crud_booking import booking
from . import crud_availability
from . import crud_blocked_slot
from . import crud_service

# Singletons are used as ``crud.booking.get_booking(...)``; the module-level
# helpers as ``crud.crud_blocked_slot.get_owned(...)``.
