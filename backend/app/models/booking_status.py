import enum


class BookingStatus(str, enum.Enum):
    """Lifecycle states of a booking.

    ``PENDING`` only appears on legacy rows; new bookings start CONFIRMED.
    """

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES

    @property
    def blocks_time(self) -> bool:
        return self in ACTIVE_STATUSES


# Statuses that occupy the contractor's calendar.
ACTIVE_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED})
# No transition of any kind leaves these.
TERMINAL_STATUSES = frozenset({BookingStatus.CANCELLED, BookingStatus.COMPLETED})
