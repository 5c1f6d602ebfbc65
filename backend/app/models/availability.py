# backend/app/models/availability.py

from sqlalchemy import Boolean, CheckConstraint, Column, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from .base import BaseModel


class WeeklyAvailability(BaseModel):
    """One weekday of a contractor's recurring working template.

    ``day_of_week`` counts from Sunday (0) to Saturday (6); times are ``HH:MM``.
    """

    __tablename__ = "weekly_availability"
    __table_args__ = (
        UniqueConstraint("contractor_id", "day_of_week", name="uq_availability_contractor_day"),
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_availability_day_range"),
    )

    id            = Column(Integer, primary_key=True, index=True)
    contractor_id = Column(Integer, ForeignKey("contractors.id", ondelete="CASCADE"), nullable=False, index=True)
    day_of_week   = Column(Integer, nullable=False)
    start_time    = Column(String(5), nullable=False)
    end_time      = Column(String(5), nullable=False)
    is_available  = Column(Boolean, default=True, nullable=False)

    contractor = relationship("Contractor", back_populates="availability")
