"""Shared setup for integration tests"""

from datetime import timedelta
from decimal import Decimal
from typing import Optional

from src.adapter.repositories import SqlAlchemyPaymentRepository
from src.app.use_cases.payments import InitiatePaymentCommandDTO
from src.depends import build_initiate_payment, build_ledger
from src.domain.base import utcnow
from src.domain.payment import Payment, PaymentStatus, new_reference

PHONE = "254712345678"


async def run_stk_push(session_factory, gateway, locks, policy, phone: str = PHONE, amount: str = "500"):
    async with session_factory() as session:
        use_case = build_initiate_payment(session, gateway, locks, policy)
        return await use_case.execute(InitiatePaymentCommandDTO(phone=phone, amount=Decimal(amount)))


async def store_payment(
    session_factory,
    status: PaymentStatus = PaymentStatus.PENDING,
    checkout_request_id: Optional[str] = None,
    phone: str = PHONE,
    amount: str = "500",
    age_seconds: int = 0,
) -> Payment:
    """Insert a payment as if an earlier request had left it behind"""
    stamp = utcnow() - timedelta(seconds=age_seconds)
    async with session_factory() as session:
        payment = Payment(
            reference=new_reference(),
            phone=phone,
            amount=Decimal(amount),
            description="Payment via Spawiko API",
            status=status,
            checkout_request_id=checkout_request_id,
            created_at=stamp,
            updated_at=stamp,
        )
        session.add(payment)
        await session.commit()
        return payment


async def load_payment(session_factory, payment_id: str) -> Payment:
    async with session_factory() as session:
        return await SqlAlchemyPaymentRepository(session).get_by_id(payment_id)


async def balance_of(session_factory, phone: str = PHONE) -> Decimal:
    async with session_factory() as session:
        return await build_ledger(session).get_balance(phone)


async def transactions_of(session_factory, phone: str = PHONE):
    async with session_factory() as session:
        return await build_ledger(session).list_transactions(phone)
