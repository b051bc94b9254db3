"""Request schemas for User API"""

from pydantic import BaseModel, Field


class RegisterUserRequestSchema(BaseModel):
    """
    Request schema for registering a user

    Used for POST /users/register endpoint.
    """

    email: str = Field(..., min_length=1, description="Email address")

    phone: str = Field(..., min_length=1, description="Phone number (254XXXXXXXXX)")

    class Config:
        json_schema_extra = {
            "example": {
                "email": "jane@example.com",
                "phone": "254712345678"
            }
        }
