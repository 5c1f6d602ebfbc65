# backend/app/models/blocked_slot.py

from sqlalchemy import Column, Date, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship

from .base import BaseModel


class BlockedSlot(BaseModel):
    __tablename__ = "blocked_slots"
    __table_args__ = (
        Index("ix_blocked_slots_contractor_date", "contractor_id", "date"),
    )

    id            = Column(Integer, primary_key=True, index=True)
    contractor_id = Column(Integer, ForeignKey("contractors.id", ondelete="CASCADE"), nullable=False)
    date          = Column(Date, nullable=False)
    start_time    = Column(String(5), nullable=False)
    end_time      = Column(String(5), nullable=False)
    reason        = Column(String, nullable=True)

    contractor = relationship("Contractor", back_populates="blocked_slots")
