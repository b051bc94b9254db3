"""Wallet Transaction Domain Entity

Immutable append-only history of balance mutations per phone.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import Numeric, String
from src.domain.base import BaseModel, BigIntId, utc_column, utcnow


class TransactionType(str, Enum):
    DEPOSIT = "deposit"      # Confirmed STK push credited to the wallet
    WITHDRAW = "withdraw"    # Funds withdrawn from the wallet


class TransactionStatus(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"


class WalletTransaction(BaseModel, table=True):
    """
    Wallet Transaction - statement entry

    Domain Rules:
    - Transactions are immutable (append-only)
    - idempotency_key is unique (a payment is credited at most once)
    - payment_id links deposits to the Payment that produced them
    """

    __tablename__ = "wallet_transactions"
    __table_args__ = (
        Index('ix_wallet_transactions_phone_created_at', 'phone', 'created_at'),
    )

    id: int = Field(
        sa_column=Column(BigIntId, primary_key=True, autoincrement=True),
        description="Unique transaction identifier (auto-increment)"
    )

    phone: str = Field(index=True, description="Wallet phone number")

    transaction_type: TransactionType = Field(description="deposit or withdraw")

    amount: Decimal = Field(
        sa_column=Column(Numeric(18, 2), nullable=False),
        description="Amount in KES (always positive)"
    )

    status: TransactionStatus = Field(default=TransactionStatus.COMPLETED)

    balance_before: Decimal = Field(
        sa_column=Column(Numeric(18, 2), nullable=False),
        description="Balance before the transaction"
    )

    balance_after: Decimal = Field(
        sa_column=Column(Numeric(18, 2), nullable=False),
        description="Balance after the transaction"
    )

    payment_id: Optional[str] = Field(
        default=None,
        index=True,
        description="Payment that produced this entry (deposits)"
    )

    reference: Optional[str] = Field(
        default=None,
        sa_column=Column(String(64), nullable=True),
        description="Payment reference or withdrawal reference"
    )

    idempotency_key: str = Field(
        unique=True,
        index=True,
        description="Unique key (deposit:<reference>, withdraw:<key>)"
    )

    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=utc_column(),
        description="Transaction timestamp (immutable)"
    )
