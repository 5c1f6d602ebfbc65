from datetime import datetime
from sqlalchemy import Column, DateTime
from ..database import Base  # the declarative Base shared by every table


class BaseModel(Base):
    __abstract__ = True

    # Server-local wall clock, matching how scheduled instants are stored.
    created_at = Column(DateTime, default=datetime.now, nullable=False)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now, nullable=False)
