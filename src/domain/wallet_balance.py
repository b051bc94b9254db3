"""Wallet Balance Domain Entity

Tracks the KES balance per phone number. Balance is always >= 0 and only
changes through WalletTransactions (deposit on confirmed payment, withdrawal).
"""

from datetime import datetime
from decimal import Decimal
from sqlmodel import Field, Column
from sqlalchemy import CheckConstraint, Numeric, String
from src.domain.base import BaseModel, BigIntId, utc_column, utcnow


class WalletBalance(BaseModel, table=True):
    """
    Wallet Balance - one row per phone

    Domain Rules:
    - One balance per phone (phone is unique)
    - Balance must be non-negative
    - Balance updates only through WalletTransactions
    """

    __tablename__ = "wallet_balances"
    __table_args__ = (
        CheckConstraint('balance >= 0', name='wallet_balance_non_negative'),
    )

    id: int = Field(
        sa_column=Column(BigIntId, primary_key=True, autoincrement=True),
        description="Unique balance row identifier (auto-increment)"
    )

    phone: str = Field(
        sa_column=Column(String(12), unique=True, index=True, nullable=False),
        description="Phone number owning the balance"
    )

    balance: Decimal = Field(
        sa_column=Column(Numeric(18, 2), nullable=False, default=0),
        description="Current balance in KES"
    )

    created_at: datetime = Field(default_factory=utcnow, sa_column=utc_column())

    updated_at: datetime = Field(default_factory=utcnow, sa_column=utc_column())
