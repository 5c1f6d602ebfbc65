from decimal import Decimal
from typing import Optional

from pydantic import BaseModel


class ServiceSummary(BaseModel):
    id: int
    contractor_id: int
    title: str
    price: Decimal
    duration_minutes: Optional[int] = None
    is_active: bool

    model_config = {"from_attributes": True}
