# backend/app/models/booking.py

from datetime import timedelta

from sqlalchemy import Column, Integer, DateTime, Numeric, ForeignKey, Index, String, text
from sqlalchemy.orm import relationship

from .base import BaseModel
from .booking_status import BookingStatus
from .types import CaseInsensitiveEnum

_ACTIVE_PREDICATE = "status IN ('pending', 'confirmed')"


class Booking(BaseModel):
    __tablename__ = "bookings"
    __table_args__ = (
        # Two active bookings of one contractor can never start at the same
        # instant, even if two writers both pass the overlap check.
        Index(
            "uq_bookings_contractor_active_start",
            "contractor_id",
            "scheduled_at",
            unique=True,
            sqlite_where=text(_ACTIVE_PREDICATE),
            postgresql_where=text(_ACTIVE_PREDICATE),
        ),
    )

    id               = Column(Integer, primary_key=True, index=True)
    service_id       = Column(Integer, ForeignKey("services.id", ondelete="CASCADE"), nullable=False)
    client_id        = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    # Copied from the service at creation so conflict scans need no join.
    contractor_id    = Column(Integer, ForeignKey("contractors.id"), nullable=False, index=True)
    scheduled_at     = Column(DateTime, nullable=False, index=True)
    duration_minutes = Column(Integer, nullable=False)
    status           = Column(
        CaseInsensitiveEnum(BookingStatus, name="bookingstatus"),
        default=BookingStatus.CONFIRMED,
        nullable=False,
        index=True,
    )
    total_price      = Column(Numeric(10, 2), nullable=False)
    notes            = Column(String, nullable=True)

    client     = relationship("User", foreign_keys=[client_id], back_populates="bookings_as_client")
    contractor = relationship("Contractor", back_populates="bookings")
    service    = relationship("Service", back_populates="bookings")

    @property
    def ends_at(self):
        return self.scheduled_at + timedelta(minutes=self.duration_minutes)
