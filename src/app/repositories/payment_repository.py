"""Payment Repository Interface

Defines the contract for payment persistence. Status changes go through
`transition`, a conditional update that only succeeds while the stored
status is one of the allowed source states.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, Sequence
from src.domain.payment import Payment, PaymentStatus, SettlementSource


class PaymentRepository(ABC):

    @abstractmethod
    async def create(self, payment: Payment) -> Payment:
        """Persist a new payment (flush, no commit)"""
        pass

    @abstractmethod
    async def get_by_id(self, payment_id: str) -> Optional[Payment]:
        """
        Retrieve payment by id, always reloading from storage

        Another writer (callback, sweeper) may have changed the row since
        this session last saw it.
        """
        pass

    @abstractmethod
    async def get_by_reference(self, reference: str) -> Optional[Payment]:
        pass

    @abstractmethod
    async def get_by_checkout_request_id(self, checkout_request_id: str) -> Optional[Payment]:
        pass

    @abstractmethod
    async def set_checkout_request_id(self, payment_id: str, checkout_request_id: str) -> None:
        pass

    @abstractmethod
    async def transition(
        self,
        payment_id: str,
        from_statuses: Sequence[PaymentStatus],
        to_status: PaymentStatus,
        settled_by: SettlementSource,
        transaction_code: Optional[str] = None,
        error_message: Optional[str] = None,
    ) -> bool:
        """
        Move a payment to `to_status` if its stored status is in `from_statuses`

        Returns:
            True if the row was updated, False if another writer got there first
        """
        pass

    @abstractmethod
    async def list_payments(
        self,
        status: Optional[PaymentStatus] = None,
        phone: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Payment]:
        """Newest first"""
        pass

    @abstractmethod
    async def count(self, status: Optional[PaymentStatus] = None, phone: Optional[str] = None) -> int:
        pass

    @abstractmethod
    async def count_by_status(self) -> Dict[PaymentStatus, int]:
        pass

    @abstractmethod
    async def sum_amount(self, status: PaymentStatus) -> Decimal:
        pass

    @abstractmethod
    async def find_stale(
        self,
        statuses: Sequence[PaymentStatus],
        updated_before: datetime,
        limit: int,
    ) -> List[Payment]:
        """Oldest first; used by the sweeper"""
        pass
