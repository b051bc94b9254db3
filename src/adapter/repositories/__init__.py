from .user_repository import SqlAlchemyUserRepository
from .payment_repository import SqlAlchemyPaymentRepository
from .wallet_balance_repository import SqlAlchemyWalletBalanceRepository
from .wallet_transaction_repository import SqlAlchemyWalletTransactionRepository

__all__ = [
    "SqlAlchemyUserRepository",
    "SqlAlchemyPaymentRepository",
    "SqlAlchemyWalletBalanceRepository",
    "SqlAlchemyWalletTransactionRepository",
]
