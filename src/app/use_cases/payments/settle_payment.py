"""SettlePayment Use Case

Applies a terminal transition to a payment and, on completion, credits the
wallet. Every writer (poll loop, one-shot check, callback, sweeper) goes
through here, so the check-then-set on status and the ledger credit happen
under one per-payment lock.
"""

import logging
from typing import Optional, Tuple
from sqlalchemy.exc import SQLAlchemyError
from libs.result import Result, Return, Error
from src.app.repositories.payment_repository import PaymentRepository
from src.app.services.key_lock import KeyedLock
from src.app.services.ledger_store import LedgerStore, balance_lock_key, deposit_idempotency_key
from src.app.services.unit_of_work import UnitOfWork
from src.domain.payment import PaymentStatus, SettlementSource
from .dtos import PaymentDTO, PaymentPolicy, SettlementDTO

logger = logging.getLogger(__name__)

# Only these writers may resolve a payment the poll loop gave up on
TIMEOUT_RESOLVERS = (SettlementSource.CHECK, SettlementSource.SWEEP)


def payment_lock_key(payment_id: str) -> str:
    return f"payment:{payment_id}"


class SettlePayment:
    """
    Use Case: Move a payment to COMPLETED, FAILED or TIMEOUT exactly once

    Business Rules:
    1. PENDING may move to any terminal state
    2. TIMEOUT may move to COMPLETED/FAILED only through a check or the
       sweeper, and only when the policy allows it
    3. COMPLETED and FAILED are final; later updates are ignored
    4. A completion credits the wallet once (idempotency key deposit:<reference>)
    5. Status update and credit are committed together

    Flow:
    1. Load payment (phone is needed for the balance lock)
    2. Acquire payment lock, then balance lock
    3. Reload and check the current status
    4. Compare-and-set the status
    5. Credit wallet on completion
    6. Commit
    """

    def __init__(
        self,
        uow: UnitOfWork,
        payment_repo: PaymentRepository,
        ledger: LedgerStore,
        locks: KeyedLock,
        policy: PaymentPolicy,
    ):
        self.uow = uow
        self.payment_repo = payment_repo
        self.ledger = ledger
        self.locks = locks
        self.policy = policy

    def allowed_from(self, to_status: PaymentStatus, source: SettlementSource) -> Tuple[PaymentStatus, ...]:
        if to_status is PaymentStatus.TIMEOUT:
            return (PaymentStatus.PENDING,)
        if self.policy.resolve_timed_out and source in TIMEOUT_RESOLVERS:
            return (PaymentStatus.PENDING, PaymentStatus.TIMEOUT)
        return (PaymentStatus.PENDING,)

    async def execute(
        self,
        payment_id: str,
        to_status: PaymentStatus,
        source: SettlementSource,
        transaction_code: Optional[str] = None,
        error_message: Optional[str] = None,
    ) -> Result[SettlementDTO]:
        """
        Apply a terminal transition if the payment is still open to it

        Returns:
            Result[SettlementDTO]: applied=False when another writer settled first
        """
        if not to_status.is_terminal:
            raise ValueError(f"Cannot settle a payment to {to_status.value}")

        payment = await self.payment_repo.get_by_id(payment_id)
        if not payment:
            return Return.err(
                Error(
                    code="PAYMENT_NOT_FOUND",
                    message=f"Payment {payment_id} not found",
                )
            )
        phone = payment.phone

        async with self.locks.hold(payment_lock_key(payment_id)):
            async with self.locks.hold(balance_lock_key(phone)):
                try:
                    return await self._settle_locked(
                        payment_id, to_status, source, transaction_code, error_message
                    )
                except SQLAlchemyError as e:
                    await self.uow.rollback()
                    logger.error(f"Failed to settle payment {payment_id} as {to_status.value}: {e}")
                    return Return.err(
                        Error(
                            code="STORAGE_ERROR",
                            message="Failed to record payment status",
                            reason=str(e),
                            details={"payment_id": payment_id},
                        )
                    )

    async def _settle_locked(
        self,
        payment_id: str,
        to_status: PaymentStatus,
        source: SettlementSource,
        transaction_code: Optional[str],
        error_message: Optional[str],
    ) -> Result[SettlementDTO]:
        current = await self.payment_repo.get_by_id(payment_id)
        allowed = self.allowed_from(to_status, source)

        if current.status not in allowed:
            logger.info(
                f"Ignoring {source.value} update for payment {payment_id}: "
                f"{current.status.value} -> {to_status.value} not allowed"
            )
            return await self._unchanged(current)

        changed = await self.payment_repo.transition(
            payment_id,
            from_statuses=allowed,
            to_status=to_status,
            settled_by=source,
            transaction_code=transaction_code,
            error_message=error_message,
        )
        if not changed:
            # Another process won the compare-and-set
            await self.uow.rollback()
            return await self._unchanged(await self.payment_repo.get_by_id(payment_id))

        if to_status is PaymentStatus.COMPLETED:
            credit = await self.ledger.credit(
                current.phone,
                current.amount,
                idempotency_key=deposit_idempotency_key(current.reference),
                payment_id=payment_id,
                reference=current.reference,
            )
            if credit.is_err():
                await self.uow.rollback()
                return Return.err(credit.error)

        await self.uow.commit()

        settled = await self.payment_repo.get_by_id(payment_id)
        logger.info(
            f"Payment {payment_id} ({settled.reference}) {current.status.value} -> "
            f"{to_status.value} via {source.value}"
        )
        return Return.ok(
            SettlementDTO(
                applied=True,
                payment=PaymentDTO.from_entity(settled),
                balance=await self.ledger.get_balance(settled.phone),
            )
        )

    async def _unchanged(self, payment) -> Result[SettlementDTO]:
        dto = PaymentDTO.from_entity(payment)
        balance = await self.ledger.get_balance(payment.phone)
        await self.uow.rollback()
        return Return.ok(SettlementDTO(applied=False, payment=dto, balance=balance))
