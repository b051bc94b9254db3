"""CheckPaymentStatus Use Case

One-shot status query against the gateway. Applies the same
terminal-transition-if-open rule as the poll loop, without looping.
"""

import logging
from typing import Optional
from libs.result import Result, Return, Error
from src.app.repositories.payment_repository import PaymentRepository
from src.app.services.ledger_store import LedgerStore
from src.app.services.payment_gateway import PaymentGateway, GatewayUnavailableError
from src.app.services.unit_of_work import UnitOfWork
from src.domain.payment import PaymentStatus, SettlementSource
from .dtos import PaymentDTO, PaymentPolicy, StatusCheckResponseDTO
from .rules import map_gateway_status
from .settle_payment import SettlePayment

logger = logging.getLogger(__name__)


class CheckPaymentStatus:
    """
    Use Case: Check one payment's status with the gateway

    Business Rules:
    1. Lookup by payment id or by checkout_request_id
    2. COMPLETED and FAILED are answered from the store, no gateway call
    3. TIMEOUT is re-checked only when the policy allows resolving it
    4. A final gateway status is applied through SettlePayment
    5. A failed status check changes nothing
    """

    def __init__(
        self,
        uow: UnitOfWork,
        payment_repo: PaymentRepository,
        ledger: LedgerStore,
        gateway: PaymentGateway,
        settle: SettlePayment,
        policy: PaymentPolicy,
    ):
        self.uow = uow
        self.payment_repo = payment_repo
        self.ledger = ledger
        self.gateway = gateway
        self.settle = settle
        self.policy = policy

    async def execute(
        self,
        payment_id: Optional[str] = None,
        checkout_request_id: Optional[str] = None,
        source: SettlementSource = SettlementSource.CHECK,
    ) -> Result[StatusCheckResponseDTO]:
        if payment_id:
            payment = await self.payment_repo.get_by_id(payment_id)
        elif checkout_request_id:
            payment = await self.payment_repo.get_by_checkout_request_id(checkout_request_id)
        else:
            return Return.err(
                Error(
                    code="VALIDATION_ERROR",
                    message="payment_id or checkout_request_id is required",
                )
            )

        if not payment:
            return Return.err(
                Error(
                    code="PAYMENT_NOT_FOUND",
                    message=f"Payment {payment_id or checkout_request_id} not found",
                )
            )

        dto = PaymentDTO.from_entity(payment)
        status = payment.status
        balance = await self.ledger.get_balance(dto.phone)
        await self.uow.rollback()

        resolvable = status is PaymentStatus.PENDING or (
            status is PaymentStatus.TIMEOUT and self.policy.resolve_timed_out
        )
        if not resolvable:
            return Return.ok(self._response(dto, balance, success=True))

        if not dto.checkout_request_id:
            return Return.ok(
                self._response(
                    dto, balance, success=False,
                    message="Payment has not been accepted by the gateway",
                )
            )

        try:
            status_result = await self.gateway.query_status(dto.checkout_request_id)
        except GatewayUnavailableError as e:
            logger.warning(f"Status check for {dto.checkout_request_id} failed: {e}")
            return Return.ok(
                self._response(dto, balance, success=False, message="Failed to check transaction status")
            )

        if not status_result.success:
            return Return.ok(
                self._response(dto, balance, success=False, message="Failed to check transaction status")
            )

        final_status = map_gateway_status(status_result.status)
        if final_status is None:
            return Return.ok(
                self._response(dto, balance, success=True, gateway_status=status_result.status)
            )

        settled = await self.settle.execute(
            dto.id,
            final_status,
            source,
            transaction_code=status_result.transaction_code,
            error_message=(status_result.message or "Payment failed at gateway")
            if final_status is PaymentStatus.FAILED else None,
        )
        if settled.is_err():
            return Return.err(settled.error)

        return Return.ok(
            self._response(
                settled.value.payment,
                settled.value.balance,
                success=True,
                gateway_status=status_result.status,
                applied=settled.value.applied,
            )
        )

    def _response(
        self,
        payment: PaymentDTO,
        balance,
        success: bool,
        message: Optional[str] = None,
        gateway_status: Optional[str] = None,
        applied: bool = False,
    ) -> StatusCheckResponseDTO:
        return StatusCheckResponseDTO(
            success=success,
            message=message or f"Transaction is {payment.status}",
            status=payment.status,
            payment_id=payment.id,
            reference=payment.reference,
            checkout_request_id=payment.checkout_request_id,
            transaction_code=payment.transaction_code,
            gateway_status=gateway_status,
            balance=balance,
            applied=applied,
        )
