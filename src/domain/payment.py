"""Payment Domain Entity

One attempt to move money through the mobile-money gateway (STK push).
The record is created in PENDING before the gateway is contacted, so every
initiation attempt is auditable even if the gateway call fails.
"""

import time
import uuid
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import CheckConstraint, Numeric, String, Text
from src.domain.base import BaseModel, generate_uuid, utc_column, utcnow


def new_reference() -> str:
    """Unique gateway reference, e.g. ORDER_1700000000000_A1B2C3"""
    return f"ORDER_{int(time.time() * 1000)}_{uuid.uuid4().hex[:6].upper()}"


class PaymentStatus(str, Enum):
    """Payment lifecycle states"""
    PENDING = "pending"        # Created, waiting for the gateway to resolve
    COMPLETED = "completed"    # Gateway confirmed the payment
    FAILED = "failed"          # Gateway rejected or reported failure
    TIMEOUT = "timeout"        # Polling budget exhausted without a result

    @property
    def is_terminal(self) -> bool:
        return self is not PaymentStatus.PENDING

    @property
    def is_final(self) -> bool:
        """COMPLETED and FAILED never transition again"""
        return self in (PaymentStatus.COMPLETED, PaymentStatus.FAILED)


class SettlementSource(str, Enum):
    """Which writer moved the payment to its terminal state"""
    INITIATE = "initiate"
    POLL = "poll"
    CHECK = "check"
    CALLBACK = "callback"
    SWEEP = "sweep"


class Payment(BaseModel, table=True):
    """
    Payment - central entity of the STK push lifecycle

    Domain Rules:
    - id is local; checkout_request_id is assigned by the gateway on acceptance
    - reference is unique and correlates gateway callbacks and receipts
    - amount is positive
    - COMPLETED and FAILED are final
    """

    __tablename__ = "payments"
    __table_args__ = (
        CheckConstraint('amount > 0', name='payment_amount_positive'),
        Index('ix_payments_status_updated_at', 'status', 'updated_at'),
    )

    id: str = Field(
        default_factory=generate_uuid,
        primary_key=True,
        description="Local payment identifier (UUID)"
    )

    reference: str = Field(
        sa_column=Column(String(64), unique=True, index=True, nullable=False),
        description="Correlation reference sent to the gateway (e.g. ORDER_1700000000000_A1B2C3)"
    )

    phone: str = Field(
        index=True,
        description="Payer phone number (254XXXXXXXXX)"
    )

    amount: Decimal = Field(
        sa_column=Column(Numeric(18, 2), nullable=False),
        description="Amount in KES"
    )

    description: str = Field(
        default="",
        description="Description sent with the STK push"
    )

    status: PaymentStatus = Field(
        default=PaymentStatus.PENDING,
        index=True,
        description="Lifecycle state"
    )

    checkout_request_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(128), unique=True, index=True, nullable=True),
        description="Gateway checkout request id (set once initiation is accepted)"
    )

    transaction_code: Optional[str] = Field(
        default=None,
        sa_column=Column(String(64), nullable=True),
        description="Gateway transaction code (set on completion)"
    )

    error_message: Optional[str] = Field(
        default=None,
        sa_column=Column(Text, nullable=True),
        description="Reason for failure or timeout"
    )

    settled_by: Optional[SettlementSource] = Field(
        default=None,
        description="Writer that applied the terminal transition"
    )

    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=utc_column(),
        description="Creation timestamp"
    )

    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_column=utc_column(),
        description="Last status change timestamp"
    )

    settled_at: Optional[datetime] = Field(
        default=None,
        sa_column=utc_column(nullable=True),
        description="Terminal transition timestamp"
    )

    class Config:
        """SQLModel configuration"""
        json_schema_extra = {
            "example": {
                "id": "6f1c1a9e-2b7e-4d6e-9c1f-0a4f2d1b9e11",
                "reference": "ORDER_1700000000000_A1B2C3",
                "phone": "254712345678",
                "amount": "500.00",
                "description": "Payment via Spawiko API",
                "status": "completed",
                "checkout_request_id": "ws_CO_123456789",
                "transaction_code": "QWE123",
                "error_message": None,
                "created_at": "2024-01-01T00:00:00Z",
                "updated_at": "2024-01-01T00:00:30Z"
            }
        }
