"""SQLAlchemy implementation of PaymentRepository

Status transitions are issued as conditional UPDATE statements so that two
writers racing on the same payment (poll loop, callback, manual check) can
never both apply a terminal transition.
"""

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, Sequence
from sqlalchemy import update
from sqlmodel import select, func, col
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.payment_repository import PaymentRepository
from src.domain.base import utcnow
from src.domain.payment import Payment, PaymentStatus, SettlementSource


class SqlAlchemyPaymentRepository(PaymentRepository):
    """
    SQLAlchemy implementation of PaymentRepository

    Features:
    - Reads bypass the identity map (populate_existing) to see other writers
    - Compare-and-set status transitions
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, payment: Payment) -> Payment:
        self.session.add(payment)
        await self.session.flush()
        await self.session.refresh(payment)
        return payment

    async def _get_one(self, *criteria) -> Optional[Payment]:
        stmt = (
            select(Payment)
            .where(*criteria)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_id(self, payment_id: str) -> Optional[Payment]:
        return await self._get_one(Payment.id == payment_id)

    async def get_by_reference(self, reference: str) -> Optional[Payment]:
        return await self._get_one(Payment.reference == reference)

    async def get_by_checkout_request_id(self, checkout_request_id: str) -> Optional[Payment]:
        return await self._get_one(Payment.checkout_request_id == checkout_request_id)

    async def set_checkout_request_id(self, payment_id: str, checkout_request_id: str) -> None:
        stmt = (
            update(Payment)
            .where(Payment.id == payment_id)
            .values(checkout_request_id=checkout_request_id, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)

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
        Compare-and-set status update

        Note:
            Should be called while holding the payment's lock; the WHERE clause
            still protects against writers in other processes.
        """
        now = utcnow()
        values = {
            "status": to_status,
            "settled_by": settled_by,
            "updated_at": now,
            "settled_at": now,
        }
        if transaction_code is not None:
            values["transaction_code"] = transaction_code
        if error_message is not None:
            values["error_message"] = error_message

        stmt = (
            update(Payment)
            .where(Payment.id == payment_id)
            .where(col(Payment.status).in_(list(from_statuses)))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    def _filtered(self, stmt, status: Optional[PaymentStatus], phone: Optional[str]):
        if status is not None:
            stmt = stmt.where(Payment.status == status)
        if phone is not None:
            stmt = stmt.where(Payment.phone == phone)
        return stmt

    async def list_payments(
        self,
        status: Optional[PaymentStatus] = None,
        phone: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Payment]:
        stmt = self._filtered(select(Payment), status, phone)
        stmt = stmt.order_by(col(Payment.created_at).desc()).offset(offset).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count(self, status: Optional[PaymentStatus] = None, phone: Optional[str] = None) -> int:
        stmt = self._filtered(select(func.count()).select_from(Payment), status, phone)
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def count_by_status(self) -> Dict[PaymentStatus, int]:
        stmt = select(Payment.status, func.count()).group_by(Payment.status)
        result = await self.session.execute(stmt)
        counts = {status: 0 for status in PaymentStatus}
        for status, total in result.all():
            counts[PaymentStatus(status)] = total
        return counts

    async def sum_amount(self, status: PaymentStatus) -> Decimal:
        stmt = select(func.coalesce(func.sum(Payment.amount), 0)).where(Payment.status == status)
        result = await self.session.execute(stmt)
        return Decimal(str(result.scalar() or 0))

    async def find_stale(
        self,
        statuses: Sequence[PaymentStatus],
        updated_before: datetime,
        limit: int,
    ) -> List[Payment]:
        stmt = (
            select(Payment)
            .where(col(Payment.status).in_(list(statuses)))
            .where(Payment.updated_at < updated_before)
            .order_by(col(Payment.updated_at).asc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
