"""Shared base for SQLModel entities"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import BigInteger, DateTime, Integer
from sqlmodel import Column, SQLModel

# SQLite only autoincrements INTEGER PRIMARY KEY
BigIntId = BigInteger().with_variant(Integer(), "sqlite")


def generate_uuid() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """Naive UTC timestamp (stored columns are timezone-less)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def utc_column(nullable: bool = False) -> Column:
    """Timezone-less DateTime column holding the values of utcnow()"""
    return Column(DateTime(timezone=False), nullable=nullable)


class BaseModel(SQLModel):
    pass
