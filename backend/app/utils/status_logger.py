import logging
from sqlalchemy import event
from sqlalchemy.orm.attributes import NO_VALUE

from ..models import Booking

logger = logging.getLogger(__name__)

_registered = False


def _log_booking_status(target, value, oldvalue, initiator):  # noqa: ANN001
    if oldvalue is NO_VALUE or oldvalue is None or oldvalue == value:
        return value
    logger.info(
        "Booking id=%s contractor=%s status changed from %s to %s",
        getattr(target, "id", "unknown"),
        getattr(target, "contractor_id", "unknown"),
        getattr(oldvalue, "value", oldvalue),
        getattr(value, "value", value),
    )
    return value


def register_status_listeners() -> None:
    """Log every Booking status transition; safe to call more than once."""
    global _registered
    if _registered:
        return
    event.listen(Booking.status, "set", _log_booking_status, retval=False, propagate=True)
    _registered = True
