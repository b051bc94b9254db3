"""Request schemas for Payment API

Pydantic models for validating incoming HTTP requests.
"""

from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, AliasChoices, field_validator


class StkPushRequestSchema(BaseModel):
    """
    Request schema for initiating an STK push

    Used for POST /stkpush endpoint. Phone format and amount bounds are
    checked by the use case so that every rejection carries the same error.
    """

    phone: str = Field(..., description="Payer phone number (254XXXXXXXXX)")

    amount: Decimal = Field(..., description="Amount in KES (whole number)")

    description: Optional[str] = Field(
        default=None,
        max_length=255,
        description="Optional description sent to the gateway"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "phone": "254712345678",
                "amount": 500
            }
        }


class TransactionStatusRequestSchema(BaseModel):
    """Request schema for POST /transaction/status"""

    checkout_request_id: str = Field(
        ...,
        min_length=1,
        description="Gateway checkout request id returned by the STK push"
    )


class CallbackRequestSchema(BaseModel):
    """
    Gateway callback payload

    The gateway owns this format; unknown fields are accepted and ignored.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    reference: Optional[str] = None
    checkout_request_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("checkout_request_id", "CheckoutRequestID"),
    )
    status: Optional[str] = None
    transaction_code: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("transaction_code", "mpesa_receipt_number", "MpesaReceiptNumber"),
    )
    message: Optional[str] = None

    @field_validator("reference", "checkout_request_id", "status", "transaction_code", "message", mode="before")
    @classmethod
    def scalar_to_str(cls, value):
        # Gateways send numeric codes and ids; anything else is dropped
        if value is None or isinstance(value, str):
            return value
        if isinstance(value, (bool, int, float)):
            return str(value)
        return None
