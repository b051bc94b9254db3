"""Request schemas for Wallet API"""

from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field


class BalanceCheckRequestSchema(BaseModel):
    """Request schema for POST /balance/check"""

    phone: str = Field(..., min_length=1, description="Wallet phone number")


class WithdrawRequestSchema(BaseModel):
    """
    Request schema for withdrawing funds

    Used for POST /wallet/withdraw endpoint.
    """

    phone: str = Field(..., min_length=1, description="Wallet phone number")

    amount: Decimal = Field(..., gt=0, description="Amount to withdraw (must be > 0)")

    idempotency_key: Optional[str] = Field(
        default=None,
        min_length=1,
        description="Retry-safe key; repeating it returns the original withdrawal"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "phone": "254712345678",
                "amount": "200",
                "idempotency_key": "withdraw-2024-01-01-001"
            }
        }
