"""User Domain Entity

A registered wallet owner. Email and phone are both unique, so either one
identifies exactly one user.
"""

from datetime import datetime
from sqlmodel import Field, Column
from sqlalchemy import String
from src.domain.base import BaseModel, BigIntId, utc_column, utcnow


class User(BaseModel, table=True):
    """
    User - wallet owner

    Domain Rules:
    - email is unique
    - phone is unique and matches 254XXXXXXXXX
    - immutable once created
    """

    __tablename__ = "users"

    id: int = Field(
        sa_column=Column(BigIntId, primary_key=True, autoincrement=True),
        description="Unique user identifier (auto-increment)"
    )

    email: str = Field(
        sa_column=Column(String(255), unique=True, index=True, nullable=False),
        description="Email address (unique)"
    )

    phone: str = Field(
        sa_column=Column(String(12), unique=True, index=True, nullable=False),
        description="Phone number in 254XXXXXXXXX format (unique)"
    )

    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=utc_column(),
        description="Registration timestamp"
    )
