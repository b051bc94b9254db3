"""Validation and gateway status mapping for the payment lifecycle"""

from decimal import Decimal, InvalidOperation
from typing import Optional
from libs.result import Error
from src.domain.payment import PaymentStatus
from src.domain.rules import is_valid_phone
from .dtos import PaymentPolicy

COMPLETED_STATUSES = {"completed", "success", "successful", "paid"}
FAILED_STATUSES = {"failed", "failure", "cancelled", "canceled", "rejected", "error"}


def validate_payment_request(phone: str, amount, policy: PaymentPolicy) -> Optional[Error]:
    """
    Validate phone format and amount bounds before anything is persisted

    Returns:
        Error with code VALIDATION_ERROR, or None when the request is valid
    """
    if not phone or not is_valid_phone(phone):
        return Error(
            code="VALIDATION_ERROR",
            message="Phone number must be in the format 254XXXXXXXXX",
            reason=f"phone={phone!r}",
        )

    try:
        amount = Decimal(str(amount))
    except (InvalidOperation, ValueError):
        return Error(code="VALIDATION_ERROR", message="Amount must be a number")

    if not amount.is_finite() or amount <= 0:
        return Error(code="VALIDATION_ERROR", message="Amount must be greater than 0")

    # STK push only moves whole shillings
    if amount != amount.to_integral_value():
        return Error(
            code="VALIDATION_ERROR",
            message="Amount must be a whole number of KES",
            reason=f"amount={amount}",
        )

    if amount < policy.min_amount or amount > policy.max_amount:
        return Error(
            code="VALIDATION_ERROR",
            message=f"Amount must be between {policy.min_amount} and {policy.max_amount} KES",
            reason=f"amount={amount}",
        )

    return None


def map_gateway_status(status: Optional[str]) -> Optional[PaymentStatus]:
    """
    Map a gateway status string to a terminal PaymentStatus

    Returns None for pending or unrecognised values.
    """
    if not status:
        return None
    normalized = status.strip().lower()
    if normalized in COMPLETED_STATUSES:
        return PaymentStatus.COMPLETED
    if normalized in FAILED_STATUSES:
        return PaymentStatus.FAILED
    return None
