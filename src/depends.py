import asyncio
from typing import Optional
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from src.adapter.repositories import (
    SqlAlchemyPaymentRepository,
    SqlAlchemyUserRepository,
    SqlAlchemyWalletBalanceRepository,
    SqlAlchemyWalletTransactionRepository,
)
from src.adapter.services.gateway_client import SpawikoGatewayClient
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.services.key_lock import KeyedLock
from src.app.services.ledger_store import LedgerStore
from src.app.services.payment_gateway import PaymentGateway
from src.app.services.task_runner import BackgroundTaskRunner
from src.app.use_cases.payments import (
    CheckPaymentStatus,
    HandlePaymentCallback,
    InitiatePayment,
    PaymentPolicy,
    SettlePayment,
    SweepStalePayments,
)

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)

# Process-wide; payment and balance writers must share one lock registry
payment_locks = KeyedLock()
task_runner = BackgroundTaskRunner()
_gateway: Optional[PaymentGateway] = None


async def get_session() -> AsyncSession:
    async with AsyncSessionLocal() as session:
        yield session


def get_session_factory():
    return AsyncSessionLocal


def get_gateway() -> PaymentGateway:
    global _gateway
    if _gateway is None:
        _gateway = SpawikoGatewayClient.from_config(ApplicationConfig)
    return _gateway


async def close_gateway() -> None:
    global _gateway
    if _gateway is not None:
        await _gateway.aclose()
        _gateway = None


def get_payment_locks() -> KeyedLock:
    return payment_locks


def get_task_runner() -> BackgroundTaskRunner:
    return task_runner


def get_payment_policy() -> PaymentPolicy:
    return PaymentPolicy.from_config(ApplicationConfig)


def build_ledger(session: AsyncSession) -> LedgerStore:
    return LedgerStore(
        user_repo=SqlAlchemyUserRepository(session),
        balance_repo=SqlAlchemyWalletBalanceRepository(session),
        transaction_repo=SqlAlchemyWalletTransactionRepository(session),
    )


def build_settle_payment(session: AsyncSession, locks: KeyedLock, policy: PaymentPolicy) -> SettlePayment:
    return SettlePayment(
        uow=SqlAlchemyUnitOfWork(session),
        payment_repo=SqlAlchemyPaymentRepository(session),
        ledger=build_ledger(session),
        locks=locks,
        policy=policy,
    )


def build_initiate_payment(
    session: AsyncSession,
    gateway: PaymentGateway,
    locks: KeyedLock,
    policy: PaymentPolicy,
    sleep=asyncio.sleep,
) -> InitiatePayment:
    return InitiatePayment(
        uow=SqlAlchemyUnitOfWork(session),
        payment_repo=SqlAlchemyPaymentRepository(session),
        ledger=build_ledger(session),
        gateway=gateway,
        settle=build_settle_payment(session, locks, policy),
        locks=locks,
        policy=policy,
        sleep=sleep,
    )


def build_check_payment_status(
    session: AsyncSession,
    gateway: PaymentGateway,
    locks: KeyedLock,
    policy: PaymentPolicy,
) -> CheckPaymentStatus:
    return CheckPaymentStatus(
        uow=SqlAlchemyUnitOfWork(session),
        payment_repo=SqlAlchemyPaymentRepository(session),
        ledger=build_ledger(session),
        gateway=gateway,
        settle=build_settle_payment(session, locks, policy),
        policy=policy,
    )


def build_handle_callback(session: AsyncSession, locks: KeyedLock, policy: PaymentPolicy) -> HandlePaymentCallback:
    return HandlePaymentCallback(
        uow=SqlAlchemyUnitOfWork(session),
        payment_repo=SqlAlchemyPaymentRepository(session),
        settle=build_settle_payment(session, locks, policy),
    )


def build_sweep_payments(
    session: AsyncSession,
    gateway: PaymentGateway,
    locks: KeyedLock,
    policy: PaymentPolicy,
    min_age_seconds: int = ApplicationConfig.SWEEPER_MIN_AGE_SECONDS,
    batch_size: int = ApplicationConfig.SWEEPER_BATCH_SIZE,
) -> SweepStalePayments:
    return SweepStalePayments(
        uow=SqlAlchemyUnitOfWork(session),
        payment_repo=SqlAlchemyPaymentRepository(session),
        check_status=build_check_payment_status(session, gateway, locks, policy),
        settle=build_settle_payment(session, locks, policy),
        policy=policy,
        min_age_seconds=min_age_seconds,
        batch_size=batch_size,
    )
