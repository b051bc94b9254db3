"""SQLAlchemy implementation of WalletBalanceRepository

Provides persistence for WalletBalance rows with pessimistic locking support
to prevent race conditions during concurrent credits and withdrawals.
"""

from decimal import Decimal
from typing import List, Optional
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.wallet_balance_repository import WalletBalanceRepository
from src.domain.base import utcnow
from src.domain.wallet_balance import WalletBalance


class SqlAlchemyWalletBalanceRepository(WalletBalanceRepository):
    """
    SQLAlchemy implementation of WalletBalanceRepository

    Features:
    - Pessimistic locking via SELECT FOR UPDATE (ignored by SQLite)
    - Atomic balance updates
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_phone(self, phone: str, for_update: bool = False) -> Optional[WalletBalance]:
        """
        Retrieve balance row by phone with optional row-level locking

        Args:
            phone: Wallet phone number
            for_update: If True, locks the row with SELECT FOR UPDATE

        Returns:
            WalletBalance if found, None otherwise
        """
        stmt = (
            select(WalletBalance)
            .where(WalletBalance.phone == phone)
            .execution_options(populate_existing=True)
        )

        if for_update:
            stmt = stmt.with_for_update()

        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, wallet: WalletBalance) -> WalletBalance:
        self.session.add(wallet)
        await self.session.flush()
        await self.session.refresh(wallet)
        return wallet

    async def update_balance(self, wallet_id: int, new_balance: Decimal) -> None:
        """
        Update balance and updated_at timestamp

        Note:
            Should be called within a transaction with the row already locked
        """
        stmt = select(WalletBalance).where(WalletBalance.id == wallet_id)
        result = await self.session.execute(stmt)
        wallet = result.scalar_one_or_none()
        if wallet:
            wallet.balance = new_balance
            wallet.updated_at = utcnow()
            self.session.add(wallet)
            await self.session.flush()

    async def get_all(self) -> List[WalletBalance]:
        stmt = select(WalletBalance).order_by(WalletBalance.id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
