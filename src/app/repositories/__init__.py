from .user_repository import UserRepository
from .payment_repository import PaymentRepository
from .wallet_balance_repository import WalletBalanceRepository
from .wallet_transaction_repository import WalletTransactionRepository

__all__ = [
    "UserRepository",
    "PaymentRepository",
    "WalletBalanceRepository",
    "WalletTransactionRepository",
]
