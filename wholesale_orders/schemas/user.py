# wholesale_orders/schemas/user.py

from pydantic import BaseModel
from typing import Optional
from datetime import datetime

from wholesale_orders.models.enums import UserRole


class UserResponse(BaseModel):
    """
    User as returned by the API. Only what the order core needs from the
    identity provider: who the actor is and which role they act in.
    """
    id: int
    name: Optional[str] = None
    login: str
    role: UserRole
    created_at: datetime

    model_config = {
        "from_attributes": True
    }


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse
