# backend/app/models/contractor.py

import enum

from sqlalchemy import Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from .base import BaseModel
from .types import CaseInsensitiveEnum


class ContractorStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    SUSPENDED = "suspended"


class Contractor(BaseModel):
    """Business profile of a user who offers services.

    Write paths lock this row to serialize scheduling changes per contractor.
    """

    __tablename__ = "contractors"

    id            = Column(Integer, primary_key=True, index=True)
    user_id       = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    business_name = Column(String, nullable=False)
    status        = Column(
        CaseInsensitiveEnum(ContractorStatus, name="contractorstatus"),
        default=ContractorStatus.PENDING,
        nullable=False,
    )

    user         = relationship("User", back_populates="contractor")
    services     = relationship("Service", back_populates="contractor", cascade="all, delete-orphan")
    availability = relationship(
        "WeeklyAvailability",
        back_populates="contractor",
        cascade="all, delete-orphan",
        order_by="WeeklyAvailability.day_of_week",
    )
    blocked_slots = relationship("BlockedSlot", back_populates="contractor", cascade="all, delete-orphan")
    bookings     = relationship("Booking", back_populates="contractor")

    @property
    def is_approved(self) -> bool:
        return self.status == ContractorStatus.APPROVED
