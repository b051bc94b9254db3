from .base import BaseModel, generate_uuid, utcnow
from .user import User
from .payment import Payment, PaymentStatus, SettlementSource, new_reference
from .wallet_balance import WalletBalance
from .wallet_transaction import WalletTransaction, TransactionType, TransactionStatus

__all__ = [
    "BaseModel",
    "generate_uuid",
    "utcnow",
    "User",
    "Payment",
    "PaymentStatus",
    "SettlementSource",
    "new_reference",
    "WalletBalance",
    "WalletTransaction",
    "TransactionType",
    "TransactionStatus",
]
