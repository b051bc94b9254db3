"""Data Transfer Objects for User Use Cases"""

from datetime import datetime
from pydantic import BaseModel, Field
from src.domain.user import User


class RegisterUserCommandDTO(BaseModel):
    email: str = Field(..., description="Email address")
    phone: str = Field(..., description="Phone number (254XXXXXXXXX)")


class UserDTO(BaseModel):
    id: int
    email: str
    phone: str
    created_at: datetime

    @classmethod
    def from_entity(cls, user: User) -> "UserDTO":
        return cls(id=user.id, email=user.email, phone=user.phone, created_at=user.created_at)
