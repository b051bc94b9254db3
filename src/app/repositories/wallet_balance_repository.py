"""Wallet Balance Repository Interface

Methods use pessimistic locking (SELECT FOR UPDATE) where the backend
supports it, to keep balance read-modify-write consistent.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import List, Optional
from src.domain.wallet_balance import WalletBalance


class WalletBalanceRepository(ABC):

    @abstractmethod
    async def get_by_phone(self, phone: str, for_update: bool = False) -> Optional[WalletBalance]:
        """
        Retrieve balance row by phone

        Args:
            phone: Wallet phone number
            for_update: If True, lock the row with SELECT FOR UPDATE

        Returns:
            WalletBalance if found, None otherwise
        """
        pass

    @abstractmethod
    async def create(self, wallet: WalletBalance) -> WalletBalance:
        pass

    @abstractmethod
    async def update_balance(self, wallet_id: int, new_balance: Decimal) -> None:
        """Should be called with the row already locked"""
        pass

    @abstractmethod
    async def get_all(self) -> List[WalletBalance]:
        pass
