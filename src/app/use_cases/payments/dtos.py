"""Data Transfer Objects for Payment Use Cases

Pydantic models for command inputs, lifecycle settings and response outputs.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field
from src.domain.payment import Payment


class CreditPolicy(str, Enum):
    """When a deposit is credited to the wallet"""
    ON_CONFIRM = "on_confirm"      # After the gateway reports completed
    ON_INITIATE = "on_initiate"    # As soon as the gateway accepts the STK push


class PaymentPolicy(BaseModel):
    """
    Lifecycle settings for the payment controller

    Built from ApplicationConfig; tests construct it directly.
    """

    account_id: Any = Field(default=17, description="Gateway payment account id")
    description: str = Field(default="Payment via Spawiko API")
    max_attempts: int = Field(default=24, ge=1, description="Status polls before timing out")
    poll_interval_seconds: float = Field(default=5.0, ge=0, description="Delay between polls")
    min_amount: Decimal = Field(default=Decimal("1"), gt=0)
    max_amount: Decimal = Field(default=Decimal("150000"), gt=0)
    credit_policy: CreditPolicy = Field(default=CreditPolicy.ON_CONFIRM)
    resolve_timed_out: bool = Field(
        default=True,
        description="Allow check-status and the sweeper to resolve TIMEOUT payments"
    )

    @classmethod
    def from_config(cls, config) -> "PaymentPolicy":
        return cls(
            account_id=config.GATEWAY_ACCOUNT_ID,
            description=config.PAYMENT_DESCRIPTION,
            max_attempts=config.POLL_MAX_ATTEMPTS,
            poll_interval_seconds=config.POLL_INTERVAL_SECONDS,
            min_amount=Decimal(str(config.MIN_PAYMENT_AMOUNT)),
            max_amount=Decimal(str(config.MAX_PAYMENT_AMOUNT)),
            credit_policy=CreditPolicy(config.CREDIT_POLICY),
            resolve_timed_out=config.RESOLVE_TIMED_OUT_PAYMENTS,
        )


class InitiatePaymentCommandDTO(BaseModel):
    """Input to InitiatePayment"""

    phone: str = Field(..., description="Payer phone (254XXXXXXXXX)")
    amount: Decimal = Field(..., description="Amount in KES")
    description: Optional[str] = Field(default=None, description="Overrides the default description")

    class Config:
        json_schema_extra = {
            "example": {"phone": "254712345678", "amount": "500"}
        }


class CallbackCommandDTO(BaseModel):
    """Status pushed by the gateway (or a scheduled sweep) out of band"""

    reference: Optional[str] = None
    checkout_request_id: Optional[str] = None
    status: Optional[str] = None
    transaction_code: Optional[str] = None
    message: Optional[str] = None


class PaymentDTO(BaseModel):
    """Read model of a Payment"""

    id: str
    reference: str
    phone: str
    amount: Decimal
    description: str
    status: str
    checkout_request_id: Optional[str] = None
    transaction_code: Optional[str] = None
    error_message: Optional[str] = None
    settled_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    settled_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, payment: Payment) -> "PaymentDTO":
        return cls(
            id=payment.id,
            reference=payment.reference,
            phone=payment.phone,
            amount=payment.amount,
            description=payment.description,
            status=payment.status.value,
            checkout_request_id=payment.checkout_request_id,
            transaction_code=payment.transaction_code,
            error_message=payment.error_message,
            settled_by=payment.settled_by.value if payment.settled_by else None,
            created_at=payment.created_at,
            updated_at=payment.updated_at,
            settled_at=payment.settled_at,
        )


class SettlementDTO(BaseModel):
    """Result of applying (or ignoring) a terminal transition"""

    applied: bool = Field(..., description="False when the payment was already settled")
    payment: PaymentDTO
    balance: Optional[Decimal] = None


class PaymentOutcomeDTO(BaseModel):
    """
    Caller-facing result of an STK push

    `success` is true only for a completed payment.
    """

    success: bool
    message: str
    status: str
    payment_id: str
    reference: str
    phone: str
    amount: Decimal
    checkout_request_id: Optional[str] = None
    transaction_code: Optional[str] = None
    balance: Optional[Decimal] = None
    attempts: int = Field(default=0, description="Status polls performed")
    last_status: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Last status payload observed from the gateway"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "success": True,
                "message": "Payment completed",
                "status": "completed",
                "payment_id": "6f1c1a9e-2b7e-4d6e-9c1f-0a4f2d1b9e11",
                "reference": "ORDER_1700000000000_A1B2C3",
                "phone": "254712345678",
                "amount": "500.00",
                "checkout_request_id": "ws_CO_123456789",
                "transaction_code": "QWE123",
                "balance": "500.00",
                "attempts": 3
            }
        }


class StatusCheckResponseDTO(BaseModel):
    """Result of a one-shot status check"""

    success: bool
    message: str
    status: str
    payment_id: str
    reference: str
    checkout_request_id: Optional[str] = None
    transaction_code: Optional[str] = None
    gateway_status: Optional[str] = None
    balance: Optional[Decimal] = None
    applied: bool = Field(default=False, description="True if this check settled the payment")


class CallbackOutcomeDTO(BaseModel):
    applied: bool
    message: str
    payment_id: Optional[str] = None
    status: Optional[str] = None


class ListPaymentsResponseDTO(BaseModel):
    payments: List[PaymentDTO]
    total: int
    limit: int
    offset: int


class PaymentStatsDTO(BaseModel):
    total: int
    by_status: Dict[str, int]
    completed_amount: Decimal
    success_rate: float = Field(..., description="completed / settled, 0 when nothing settled")


class ReceiptDTO(BaseModel):
    """Read-only projection of a payment and the resulting balance"""

    payment_id: str
    reference: str
    phone: str
    amount: Decimal
    currency: str = "KES"
    description: str
    status: str
    checkout_request_id: Optional[str] = None
    transaction_code: Optional[str] = None
    balance: Decimal
    created_at: datetime
    settled_at: Optional[datetime] = None
    issued_at: datetime


class SweepResultDTO(BaseModel):
    checked: int
    resolved: int
    orphans_failed: int
    errors: int
    sweep_time: datetime
    execution_time_ms: int
