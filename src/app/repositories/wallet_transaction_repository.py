"""Wallet Transaction Repository Interface

Append-only. Idempotency is enforced by the unique idempotency_key.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import List, Optional
from src.domain.wallet_transaction import WalletTransaction


class WalletTransactionRepository(ABC):

    @abstractmethod
    async def create(self, transaction: WalletTransaction) -> WalletTransaction:
        """
        Append a transaction

        Raises:
            IntegrityError: If idempotency_key already exists
        """
        pass

    @abstractmethod
    async def get_by_idempotency_key(self, idempotency_key: str) -> Optional[WalletTransaction]:
        pass

    @abstractmethod
    async def list_by_phone(self, phone: str, limit: int = 50, offset: int = 0) -> List[WalletTransaction]:
        """Newest first"""
        pass

    @abstractmethod
    async def count_by_phone(self, phone: str) -> int:
        pass

    @abstractmethod
    async def get_net_sum_by_phone(self, phone: str) -> Decimal:
        """Sum of completed deposits minus completed withdrawals"""
        pass
