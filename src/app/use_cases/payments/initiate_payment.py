"""InitiatePayment Use Case

Drives one STK push from request to a terminal state: validate, record the
payment as PENDING, ask the gateway to push, then poll the gateway on a
fixed budget until it reports a final status or the budget runs out.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional
from sqlalchemy.exc import SQLAlchemyError
from libs.result import Result, Return, Error
from src.app.repositories.payment_repository import PaymentRepository
from src.app.services.key_lock import KeyedLock
from src.app.services.ledger_store import LedgerStore, balance_lock_key, deposit_idempotency_key
from src.app.services.payment_gateway import PaymentGateway, GatewayUnavailableError, StatusResult
from src.app.services.unit_of_work import UnitOfWork
from src.domain.payment import Payment, PaymentStatus, SettlementSource, new_reference
from .dtos import (
    CreditPolicy,
    InitiatePaymentCommandDTO,
    PaymentDTO,
    PaymentOutcomeDTO,
    PaymentPolicy,
)
from .rules import map_gateway_status, validate_payment_request
from .settle_payment import SettlePayment

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[Any]]

OUTCOME_MESSAGES = {
    PaymentStatus.COMPLETED: "Payment completed",
    PaymentStatus.FAILED: "Payment failed",
    PaymentStatus.TIMEOUT: "Payment status check timeout - still pending",
    PaymentStatus.PENDING: "Payment is still pending",
}


class InitiatePayment:
    """
    Use Case: Initiate an STK push and wait for its outcome

    Business Rules:
    1. Phone and amount are validated before anything is stored
    2. The payment is stored as PENDING before the gateway is contacted
    3. A rejected or failed initiation marks the payment FAILED; no polling
    4. Polling is bounded: policy.max_attempts polls, policy.poll_interval_seconds apart
    5. A status-check failure is retried like a pending answer
    6. Budget exhausted -> TIMEOUT, payment stays queryable
    7. Wallet credit follows policy.credit_policy and happens at most once

    Flow:
    1. Validate
    2. Create PENDING payment, commit
    3. Gateway initiate
    4. Store checkout_request_id, commit (credit now if ON_INITIATE)
    5. Poll loop
    6. Timeout
    """

    def __init__(
        self,
        uow: UnitOfWork,
        payment_repo: PaymentRepository,
        ledger: LedgerStore,
        gateway: PaymentGateway,
        settle: SettlePayment,
        locks: KeyedLock,
        policy: PaymentPolicy,
        sleep: Sleep = asyncio.sleep,
    ):
        self.uow = uow
        self.payment_repo = payment_repo
        self.ledger = ledger
        self.gateway = gateway
        self.settle = settle
        self.locks = locks
        self.policy = policy
        self.sleep = sleep

    async def execute(self, command: InitiatePaymentCommandDTO) -> Result[PaymentOutcomeDTO]:
        """
        Execute the STK push lifecycle

        Args:
            command: InitiatePaymentCommandDTO with phone and amount

        Returns:
            Result[PaymentOutcomeDTO]: outcome for COMPLETED, FAILED (reported
            by the gateway while polling) and TIMEOUT; errors for validation,
            gateway rejection, gateway unavailability and storage failures
        """
        phone = (command.phone or "").strip()

        # Step 1: Validate before any record exists
        validation_error = validate_payment_request(phone, command.amount, self.policy)
        if validation_error:
            return Return.err(validation_error)

        # Step 2: Record the attempt
        description = command.description or self.policy.description
        try:
            payment = await self.payment_repo.create(
                Payment(
                    reference=new_reference(),
                    phone=phone,
                    amount=command.amount,
                    description=description,
                    status=PaymentStatus.PENDING,
                )
            )
            await self.uow.commit()
        except SQLAlchemyError as e:
            await self.uow.rollback()
            logger.error(f"Failed to record payment for {phone}: {e}")
            return Return.err(
                Error(code="STORAGE_ERROR", message="Failed to record payment", reason=str(e))
            )

        payment_id = payment.id
        reference = payment.reference
        amount = payment.amount
        correlation = {"payment_id": payment_id, "reference": reference}
        logger.info(f"Payment {payment_id} ({reference}) created for {phone}, amount={amount}")

        # Step 3: Ask the gateway to push
        try:
            initiation = await self.gateway.initiate(
                self.policy.account_id, phone, amount, reference, description
            )
        except GatewayUnavailableError as e:
            logger.error(f"STK push for {reference} could not reach the gateway: {e}")
            failed = await self.settle.execute(
                payment_id,
                PaymentStatus.FAILED,
                SettlementSource.INITIATE,
                error_message=f"Gateway unavailable: {e}",
            )
            if failed.is_err():
                return Return.err(failed.error)
            return Return.err(
                Error(
                    code="GATEWAY_UNAVAILABLE",
                    message="Payment gateway is unavailable",
                    reason=str(e),
                    details=correlation,
                )
            )

        if not initiation.accepted or not initiation.checkout_request_id:
            message = initiation.message or "STK push rejected by gateway"
            logger.warning(f"STK push for {reference} rejected: {message}")
            failed = await self.settle.execute(
                payment_id,
                PaymentStatus.FAILED,
                SettlementSource.INITIATE,
                error_message=message,
            )
            if failed.is_err():
                return Return.err(failed.error)
            return Return.err(
                Error(
                    code="GATEWAY_REJECTED",
                    message=message,
                    details={**correlation, "gateway_response": initiation.raw},
                )
            )

        # Step 4: Remember the gateway's correlation id
        checkout_request_id = initiation.checkout_request_id
        try:
            await self.payment_repo.set_checkout_request_id(payment_id, checkout_request_id)
            await self.uow.commit()
        except SQLAlchemyError as e:
            await self.uow.rollback()
            logger.error(f"Failed to store checkout_request_id for {payment_id}: {e}")
            return Return.err(
                Error(
                    code="STORAGE_ERROR",
                    message="Failed to record payment status",
                    reason=str(e),
                    details={**correlation, "checkout_request_id": checkout_request_id},
                )
            )
        logger.info(f"STK push for {reference} accepted, checkout_request_id={checkout_request_id}")

        if self.policy.credit_policy is CreditPolicy.ON_INITIATE:
            await self._credit_on_initiate(payment_id, phone, amount, reference)

        # Step 5 and 6: Poll until final or out of budget
        return await self._poll(payment_id, checkout_request_id)

    async def _poll(self, payment_id: str, checkout_request_id: str) -> Result[PaymentOutcomeDTO]:
        last_status: Optional[StatusResult] = None
        max_attempts = self.policy.max_attempts

        for attempt in range(1, max_attempts + 1):
            # A callback or a manual check may have settled it meanwhile
            stored = await self.payment_repo.get_by_id(payment_id)
            if stored.status is not PaymentStatus.PENDING:
                logger.info(f"Payment {payment_id} settled out of band as {stored.status.value}")
                dto = PaymentDTO.from_entity(stored)
                balance = await self.ledger.get_balance(dto.phone)
                await self.uow.rollback()
                return Return.ok(self._outcome(dto, balance, attempt - 1, last_status))
            await self.uow.rollback()

            try:
                last_status = await self.gateway.query_status(checkout_request_id)
            except GatewayUnavailableError as e:
                logger.warning(f"Status check {attempt}/{max_attempts} for {checkout_request_id} failed: {e}")
                last_status = StatusResult(success=False, message=str(e))

            final_status = map_gateway_status(last_status.status) if last_status.success else None
            if final_status is not None:
                error_message = None
                if final_status is PaymentStatus.FAILED:
                    error_message = last_status.message or "Payment failed at gateway"
                settled = await self.settle.execute(
                    payment_id,
                    final_status,
                    SettlementSource.POLL,
                    transaction_code=last_status.transaction_code,
                    error_message=error_message,
                )
                if settled.is_err():
                    return Return.err(settled.error)
                return Return.ok(
                    self._outcome(settled.value.payment, settled.value.balance, attempt, last_status)
                )

            if attempt < max_attempts:
                await self.sleep(self.policy.poll_interval_seconds)

        logger.warning(f"Payment {payment_id} still pending after {max_attempts} status checks")
        timed_out = await self.settle.execute(
            payment_id,
            PaymentStatus.TIMEOUT,
            SettlementSource.POLL,
            error_message=f"No final status after {max_attempts} status checks",
        )
        if timed_out.is_err():
            return Return.err(timed_out.error)
        return Return.ok(
            self._outcome(timed_out.value.payment, timed_out.value.balance, max_attempts, last_status)
        )

    async def _credit_on_initiate(self, payment_id: str, phone: str, amount, reference: str) -> None:
        """
        Credit as soon as the push is accepted

        The completion credit later reuses the same idempotency key and is a
        no-op. A later failure is not reversed.
        """
        async with self.locks.hold(balance_lock_key(phone)):
            try:
                credit = await self.ledger.credit(
                    phone,
                    amount,
                    idempotency_key=deposit_idempotency_key(reference),
                    payment_id=payment_id,
                    reference=reference,
                )
                if credit.is_err():
                    await self.uow.rollback()
                    logger.error(f"Credit on initiate for {reference} failed: {credit.error.message}")
                    return
                await self.uow.commit()
            except SQLAlchemyError as e:
                await self.uow.rollback()
                logger.error(f"Credit on initiate for {reference} failed: {e}")

    def _outcome(
        self,
        payment: PaymentDTO,
        balance,
        attempts: int,
        last_status: Optional[StatusResult],
    ) -> PaymentOutcomeDTO:
        status = PaymentStatus(payment.status)
        last_payload: Optional[Dict[str, Any]] = None
        if last_status is not None:
            last_payload = last_status.raw or last_status.model_dump(exclude={"raw"})

        return PaymentOutcomeDTO(
            success=status is PaymentStatus.COMPLETED,
            message=OUTCOME_MESSAGES[status],
            status=status.value,
            payment_id=payment.id,
            reference=payment.reference,
            phone=payment.phone,
            amount=payment.amount,
            checkout_request_id=payment.checkout_request_id,
            transaction_code=payment.transaction_code,
            balance=balance,
            attempts=attempts,
            last_status=last_payload if status is not PaymentStatus.COMPLETED else None,
        )
