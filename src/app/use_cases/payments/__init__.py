"""Payment lifecycle use cases"""
from .settle_payment import SettlePayment
from .initiate_payment import InitiatePayment
from .check_payment_status import CheckPaymentStatus
from .handle_callback import HandlePaymentCallback
from .get_payment import GetPayment
from .list_payments import ListPayments
from .payment_stats import GetPaymentStats
from .get_receipt import GetReceipt
from .sweep_payments import SweepStalePayments
from .dtos import (
    CreditPolicy,
    PaymentPolicy,
    InitiatePaymentCommandDTO,
    CallbackCommandDTO,
    PaymentDTO,
    SettlementDTO,
    PaymentOutcomeDTO,
    StatusCheckResponseDTO,
    CallbackOutcomeDTO,
    ListPaymentsResponseDTO,
    PaymentStatsDTO,
    ReceiptDTO,
    SweepResultDTO,
)

__all__ = [
    "SettlePayment",
    "InitiatePayment",
    "CheckPaymentStatus",
    "HandlePaymentCallback",
    "GetPayment",
    "ListPayments",
    "GetPaymentStats",
    "GetReceipt",
    "SweepStalePayments",
    "CreditPolicy",
    "PaymentPolicy",
    "InitiatePaymentCommandDTO",
    "CallbackCommandDTO",
    "PaymentDTO",
    "SettlementDTO",
    "PaymentOutcomeDTO",
    "StatusCheckResponseDTO",
    "CallbackOutcomeDTO",
    "ListPaymentsResponseDTO",
    "PaymentStatsDTO",
    "ReceiptDTO",
    "SweepResultDTO",
]
