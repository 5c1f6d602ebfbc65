"""Booking state machine and the time rules guarding each transition.

Every write runs in one transaction that locks the contractor row first, then
reads the conflict set, then writes. All rule violations are raised before
anything is flushed, and bulk transitions validate every member before the
first status changes.
"""

from datetime import datetime, timedelta
import logging
from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from .. import crud, models, schemas
from ..core.config import settings
from ..database import transaction
from ..models.booking_status import BookingStatus
from ..utils.auth import names_from_email
from ..utils.errors import (
    AuthorizationError,
    BookingValidationError,
    NotFoundError,
    SchedulingConflict,
)
from ..utils.intervals import slots_needed, to_local_naive
from ..utils.redis_cache import invalidate_availability_cache
from .conflict_checker import ConflictChecker
from .slot_generator import service_duration

logger = logging.getLogger(__name__)

# Targets a contractor may set on a single booking.
CONTRACTOR_TARGETS = frozenset(
    {BookingStatus.CONFIRMED, BookingStatus.CANCELLED, BookingStatus.COMPLETED}
)
# Bulk transitions additionally require a specific source status.
BULK_REQUIRED_SOURCE = {
    BookingStatus.CONFIRMED: BookingStatus.PENDING,
    BookingStatus.COMPLETED: BookingStatus.CONFIRMED,
}


class BookingLifecycle:
    def __init__(self, db: Session, *, now: Optional[datetime] = None) -> None:
        self.db = db
        self._now = now

    @property
    def now(self) -> datetime:
        return self._now if self._now is not None else datetime.now()

    # ─── guards ──────────────────────────────────────────────────────────────

    def _check_lead_time(self, scheduled_at: datetime, field: str = "scheduled_at") -> None:
        lead = timedelta(minutes=settings.BOOKING_LEAD_TIME_MINUTES)
        if scheduled_at < self.now + lead:
            raise BookingValidationError(
                f"Bookings must be made at least {settings.BOOKING_LEAD_TIME_MINUTES} minutes in advance",
                code="lead_time",
                field_errors={field: "too_soon"},
            )

    def _check_span_free(
        self,
        contractor_id: int,
        start: datetime,
        duration_minutes: int,
        exclude_booking_id: Optional[int] = None,
    ) -> None:
        end = start + timedelta(minutes=duration_minutes)
        checker = ConflictChecker.load(
            self.db, contractor_id, start, end, exclude_booking_id=exclude_booking_id
        )
        conflicts = checker.find_conflicts(
            start, duration_minutes, exclude_booking_id=exclude_booking_id
        )
        if not conflicts:
            return
        if any(c.kind == "booking" for c in conflicts):
            code, message = "booking_overlap", "Time slot is already booked"
        else:
            code, message = "blocked", "Time slot is blocked"
        raise SchedulingConflict(
            message,
            code=code,
            conflicts=[c.to_dict() for c in conflicts],
        )

    @staticmethod
    def _check_not_terminal(booking: models.Booking) -> None:
        if booking.status.is_terminal:
            raise BookingValidationError(
                f"Booking {booking.id} is {booking.status.value} and can no longer change",
                code="terminal_state",
                field_errors={str(booking.id): booking.status.value},
            )

    def _lock(self, contractor_id: int) -> models.Contractor:
        locked = crud.contractor.lock(self.db, contractor_id)
        if locked is None:
            raise NotFoundError("Contractor not found")
        return locked

    def _owned_booking(self, contractor: models.Contractor, booking_id: int) -> models.Booking:
        booking = crud.booking.get_booking(self.db, booking_id)
        if booking is None or booking.contractor_id != contractor.id:
            raise NotFoundError("Booking not found or not owned by contractor")
        return booking

    def _finish(self, booking: models.Booking) -> models.Booking:
        invalidate_availability_cache(booking.contractor_id)
        self.db.refresh(booking)
        return booking

    # ─── creation ────────────────────────────────────────────────────────────

    def create(self, client: models.User, data: schemas.BookingCreate) -> models.Booking:
        """Book a service for ``client``; the booking is CONFIRMED on success."""
        scheduled_at = to_local_naive(data.scheduled_at)
        service = crud.crud_service.get_service(self.db, data.service_id)
        if service is None:
            raise NotFoundError("Service not found", field_errors={"service_id": "not_found"})
        if not service.is_active:
            raise BookingValidationError(
                "Service is not available for booking",
                code="service_inactive",
                field_errors={"service_id": "inactive"},
            )
        contractor = service.contractor
        if not contractor.is_approved:
            raise BookingValidationError(
                "Contractor is not accepting bookings",
                code="contractor_unavailable",
                field_errors={"service_id": "contractor_not_approved"},
            )
        if contractor.user_id == client.id:
            raise BookingValidationError(
                "You cannot book your own service",
                code="self_booking",
                field_errors={"service_id": "own_service"},
            )
        self._check_lead_time(scheduled_at)
        duration = service_duration(service)

        with transaction(self.db):
            self._lock(contractor.id)
            active = crud.booking.count_confirmed_for_client(self.db, client.id)
            if active >= settings.MAX_ACTIVE_BOOKINGS_PER_CLIENT:
                raise BookingValidationError(
                    f"You can have at most {settings.MAX_ACTIVE_BOOKINGS_PER_CLIENT} active bookings",
                    code="active_booking_limit",
                )
            self._check_span_free(contractor.id, scheduled_at, duration)
            booking = crud.booking.create(
                self.db,
                service=service,
                client_id=client.id,
                scheduled_at=scheduled_at,
                duration_minutes=duration,
                notes=data.notes,
            )
        logger.info(
            "Booking %s created by client=%s contractor=%s at %s (%d quanta)",
            booking.id,
            client.id,
            contractor.id,
            scheduled_at.isoformat(),
            slots_needed(duration, settings.SLOT_QUANTUM_MINUTES),
        )
        return self._finish(booking)

    def quick_create(
        self, contractor: models.Contractor, data: schemas.QuickCreateBooking
    ) -> models.Booking:
        """Book one of the contractor's own services on behalf of a client.

        The client is looked up by email and created on first use.
        """
        scheduled_at = to_local_naive(data.scheduled_at)
        service = crud.crud_service.get_service(self.db, data.service_id)
        if service is None or service.contractor_id != contractor.id:
            raise NotFoundError("Service not found or not owned by contractor")
        if not service.is_active:
            raise BookingValidationError(
                "Service is not active",
                code="service_inactive",
                field_errors={"service_id": "inactive"},
            )
        self._check_lead_time(scheduled_at)
        duration = data.duration_minutes or service_duration(service)

        with transaction(self.db):
            self._lock(contractor.id)
            client = crud.user.get_by_email(self.db, data.client_email)
            if client is not None and client.id == contractor.user_id:
                raise BookingValidationError(
                    "A contractor cannot book their own service",
                    code="self_booking",
                    field_errors={"client_email": "own_account"},
                )
            self._check_span_free(contractor.id, scheduled_at, duration)
            if client is None:
                first, last = names_from_email(data.client_email)
                client = crud.user.create_client(
                    self.db,
                    email=data.client_email,
                    first_name=data.client_first_name or first,
                    last_name=data.client_last_name or last,
                    phone=data.client_phone,
                )
                logger.info("Created client %s for quick booking", client.id)
            booking = crud.booking.create(
                self.db,
                service=service,
                client_id=client.id,
                scheduled_at=scheduled_at,
                duration_minutes=duration,
                notes=data.notes,
            )
        logger.info(
            "Quick booking %s created by contractor=%s for client=%s at %s",
            booking.id,
            contractor.id,
            booking.client_id,
            scheduled_at.isoformat(),
        )
        return self._finish(booking)

    # ─── transitions ─────────────────────────────────────────────────────────

    def cancel(self, client: models.User, booking_id: int) -> models.Booking:
        """Client cancellation, allowed only up to the cutoff before the start."""
        booking = crud.booking.get_booking(self.db, booking_id)
        if booking is None:
            raise NotFoundError("Booking not found")
        if booking.client_id != client.id:
            raise AuthorizationError("Not authorized to cancel this booking")
        with transaction(self.db):
            self._lock(booking.contractor_id)
            # Status and start time are only trusted once re-read under the
            # lock; a reschedule may have moved the booking meanwhile.
            self.db.refresh(booking)
            self._check_not_terminal(booking)
            if booking.status != BookingStatus.CONFIRMED:
                raise BookingValidationError(
                    "Only confirmed bookings can be cancelled",
                    code="invalid_transition",
                    field_errors={"status": booking.status.value},
                )
            cutoff = timedelta(minutes=settings.CANCELLATION_CUTOFF_MINUTES)
            if booking.scheduled_at - self.now < cutoff:
                raise BookingValidationError(
                    f"Bookings can only be cancelled at least {settings.CANCELLATION_CUTOFF_MINUTES} minutes before the start",
                    code="cancellation_cutoff",
                )
            booking.status = BookingStatus.CANCELLED
        return self._finish(booking)

    def update_status(
        self, contractor: models.Contractor, booking_id: int, status: BookingStatus
    ) -> models.Booking:
        if status not in CONTRACTOR_TARGETS:
            raise BookingValidationError(
                f"Cannot set status to {status.value}",
                code="invalid_transition",
                field_errors={"status": status.value},
            )
        with transaction(self.db):
            self._lock(contractor.id)
            booking = self._owned_booking(contractor, booking_id)
            self._check_not_terminal(booking)
            booking.status = status
        return self._finish(booking)

    def bulk_update_status(
        self,
        contractor: models.Contractor,
        booking_ids: Iterable[int],
        status: BookingStatus,
    ) -> List[models.Booking]:
        """Move every listed booking to ``status`` or none of them.

        Missing or foreign ids are reported together; so are members whose
        current status does not allow the transition.
        """
        ids = list(dict.fromkeys(booking_ids))
        if not ids:
            raise BookingValidationError("No bookings given", field_errors={"booking_ids": "empty"})
        if status not in CONTRACTOR_TARGETS:
            raise BookingValidationError(
                f"Cannot set status to {status.value}",
                code="invalid_transition",
                field_errors={"status": status.value},
            )
        required = BULK_REQUIRED_SOURCE.get(status)

        with transaction(self.db):
            self._lock(contractor.id)
            found = {b.id: b for b in crud.booking.get_owned_by_contractor(self.db, ids, contractor.id)}
            missing = [i for i in ids if i not in found]
            if missing:
                raise NotFoundError(
                    f"Bookings not found or not owned by contractor: {missing}",
                    field_errors={str(i): "not_found" for i in missing},
                )
            failures: Dict[str, str] = {}
            for booking_id in ids:
                current = found[booking_id].status
                if current.is_terminal:
                    failures[str(booking_id)] = f"terminal:{current.value}"
                elif required is not None and current != required:
                    failures[str(booking_id)] = f"requires:{required.value}"
            if failures:
                raise BookingValidationError(
                    f"{len(failures)} of {len(ids)} bookings cannot move to {status.value}",
                    code="invalid_transition",
                    field_errors=failures,
                )
            for booking_id in ids:
                found[booking_id].status = status
        invalidate_availability_cache(contractor.id)
        logger.info(
            "Bulk status update contractor=%s status=%s ids=%s", contractor.id, status.value, ids
        )
        updated = [found[i] for i in ids]
        for booking in updated:
            self.db.refresh(booking)
        return updated

    def reschedule(
        self, contractor: models.Contractor, booking_id: int, scheduled_at: datetime
    ) -> models.Booking:
        """Move a booking to a new start, keeping its duration and status."""
        scheduled_at = to_local_naive(scheduled_at)
        self._check_lead_time(scheduled_at)
        with transaction(self.db):
            self._lock(contractor.id)
            booking = self._owned_booking(contractor, booking_id)
            self._check_not_terminal(booking)
            self._check_span_free(
                contractor.id, scheduled_at, booking.duration_minutes, exclude_booking_id=booking.id
            )
            previous = booking.scheduled_at
            booking.scheduled_at = scheduled_at
        logger.info(
            "Booking %s rescheduled from %s to %s", booking.id, previous.isoformat(), scheduled_at.isoformat()
        )
        return self._finish(booking)
