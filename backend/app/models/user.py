# backend/app/models/user.py

from sqlalchemy import Boolean, Column, Integer, String
from sqlalchemy.orm import relationship
from .base import BaseModel
from .types import CaseInsensitiveEnum
import enum


class UserType(str, enum.Enum):
    """Roles that can act on the booking engine."""

    CLIENT = "client"
    CONTRACTOR = "contractor"


class User(BaseModel):
    __tablename__ = "users"

    id         = Column(Integer, primary_key=True, index=True)
    email      = Column(String, unique=True, index=True, nullable=False)
    first_name = Column(String, nullable=False)
    last_name  = Column(String, nullable=False, default="")
    phone      = Column(String, nullable=True)
    user_type  = Column(CaseInsensitiveEnum(UserType, name="usertype"), nullable=False)
    is_active  = Column(Boolean, default=True, nullable=False)

    # Set only when this user is a contractor.
    contractor = relationship(
        "Contractor",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )

    bookings_as_client = relationship(
        "Booking",
        foreign_keys="Booking.client_id",
        back_populates="client",
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
