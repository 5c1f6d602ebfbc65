from pydantic import BaseModel, EmailStr

from ..models.user import UserType


class UserSummary(BaseModel):
    id: int
    email: EmailStr
    first_name: str
    last_name: str
    user_type: UserType

    model_config = {"from_attributes": True}
