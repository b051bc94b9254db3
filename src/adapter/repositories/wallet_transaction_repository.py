"""SQLAlchemy implementation of WalletTransactionRepository

Provides persistence for WalletTransaction entities with idempotency enforcement
via unique constraint on idempotency_key.
"""

from decimal import Decimal
from typing import List, Optional
from sqlalchemy import case
from sqlmodel import select, func, col
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.wallet_transaction_repository import WalletTransactionRepository
from src.domain.wallet_transaction import WalletTransaction, TransactionType, TransactionStatus


class SqlAlchemyWalletTransactionRepository(WalletTransactionRepository):
    """
    SQLAlchemy implementation of WalletTransactionRepository

    Features:
    - Idempotency enforcement via unique idempotency_key constraint
    - Immutable append-only transactions
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, transaction: WalletTransaction) -> WalletTransaction:
        """
        Append a wallet transaction

        Raises:
            IntegrityError: If idempotency_key already exists (duplicate transaction attempt)
        """
        self.session.add(transaction)
        await self.session.flush()
        await self.session.refresh(transaction)
        return transaction

    async def get_by_idempotency_key(self, idempotency_key: str) -> Optional[WalletTransaction]:
        stmt = select(WalletTransaction).where(
            WalletTransaction.idempotency_key == idempotency_key
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_by_phone(self, phone: str, limit: int = 50, offset: int = 0) -> List[WalletTransaction]:
        stmt = (
            select(WalletTransaction)
            .where(WalletTransaction.phone == phone)
            .order_by(col(WalletTransaction.created_at).desc(), col(WalletTransaction.id).desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_by_phone(self, phone: str) -> int:
        stmt = select(func.count()).select_from(WalletTransaction).where(
            WalletTransaction.phone == phone
        )
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def get_net_sum_by_phone(self, phone: str) -> Decimal:
        """
        Deposits add to the balance, withdrawals subtract from it.
        Only completed transactions count.
        """
        signed_amount = case(
            (WalletTransaction.transaction_type == TransactionType.DEPOSIT, WalletTransaction.amount),
            else_=-WalletTransaction.amount,
        )
        stmt = (
            select(func.coalesce(func.sum(signed_amount), 0))
            .where(WalletTransaction.phone == phone)
            .where(WalletTransaction.status == TransactionStatus.COMPLETED)
        )
        result = await self.session.execute(stmt)
        return Decimal(str(result.scalar() or 0))
