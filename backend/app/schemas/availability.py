from typing import List

from pydantic import BaseModel, Field, field_validator, model_validator

from ..utils.intervals import parse_hhmm


class AvailabilityDay(BaseModel):
    """One weekday of the recurring template (0 = Sunday)."""

    day_of_week: int = Field(..., ge=0, le=6)
    start_time: str
    end_time: str
    is_available: bool = True

    @field_validator("start_time", "end_time")
    @classmethod
    def check_hhmm(cls, v: str) -> str:
        parse_hhmm(v)
        return v

    @model_validator(mode="after")
    def check_order(self) -> "AvailabilityDay":
        if self.is_available and parse_hhmm(self.end_time) <= parse_hhmm(self.start_time):
            raise ValueError("end_time must be after start_time")
        return self


class AvailabilityUpdate(BaseModel):
    availability: List[AvailabilityDay] = Field(..., max_length=7)

    @field_validator("availability")
    @classmethod
    def unique_days(cls, v: List[AvailabilityDay]) -> List[AvailabilityDay]:
        days = [d.day_of_week for d in v]
        if len(days) != len(set(days)):
            raise ValueError("Each day_of_week may appear only once")
        return v


class EffectiveDay(BaseModel):
    day_of_week: int
    start_time: str
    end_time: str
    is_available: bool


class AvailabilityResponse(BaseModel):
    # True when the contractor stored no rows and the weekday default applies.
    is_default: bool
    availability: List[EffectiveDay]
