from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ..utils.intervals import parse_hhmm


class BlockedSlotCreate(BaseModel):
    date: date
    start_time: str
    end_time: str
    reason: Optional[str] = Field(default=None, max_length=255)

    @field_validator("start_time", "end_time")
    @classmethod
    def check_hhmm(cls, v: str) -> str:
        parse_hhmm(v)
        return v


class BlockedSlotResponse(BaseModel):
    id: int
    contractor_id: int
    date: date
    start_time: str
    end_time: str
    reason: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}
