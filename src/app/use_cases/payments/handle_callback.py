"""HandlePaymentCallback Use Case

Out-of-band status push from the gateway. Reconciles with whatever the poll
loop already recorded: settled payments are left alone.
"""

import logging
from libs.result import Result, Return
from src.app.repositories.payment_repository import PaymentRepository
from src.app.services.unit_of_work import UnitOfWork
from src.domain.payment import PaymentStatus, SettlementSource
from .dtos import CallbackCommandDTO, CallbackOutcomeDTO
from .rules import map_gateway_status
from .settle_payment import SettlePayment

logger = logging.getLogger(__name__)


class HandlePaymentCallback:
    """
    Use Case: Apply a gateway callback

    Business Rules:
    1. Lookup by reference, falling back to checkout_request_id
    2. Unknown payments and non-final statuses are acknowledged and ignored
    3. Only a PENDING payment is moved; anything else is a no-op
    4. Never fails: the gateway always gets its acknowledgement
    """

    def __init__(
        self,
        uow: UnitOfWork,
        payment_repo: PaymentRepository,
        settle: SettlePayment,
    ):
        self.uow = uow
        self.payment_repo = payment_repo
        self.settle = settle

    async def execute(self, command: CallbackCommandDTO) -> Result[CallbackOutcomeDTO]:
        payment = None
        if command.reference:
            payment = await self.payment_repo.get_by_reference(command.reference)
        if payment is None and command.checkout_request_id:
            payment = await self.payment_repo.get_by_checkout_request_id(command.checkout_request_id)

        if payment is None:
            logger.warning(
                f"Callback for unknown payment (reference={command.reference}, "
                f"checkout_request_id={command.checkout_request_id})"
            )
            return Return.ok(CallbackOutcomeDTO(applied=False, message="Unknown payment"))

        payment_id = payment.id
        await self.uow.rollback()

        final_status = map_gateway_status(command.status)
        if final_status is None:
            logger.info(f"Callback for payment {payment_id} with non-final status {command.status!r}")
            return Return.ok(
                CallbackOutcomeDTO(
                    applied=False, message="Non-final status ignored", payment_id=payment_id
                )
            )

        settled = await self.settle.execute(
            payment_id,
            final_status,
            SettlementSource.CALLBACK,
            transaction_code=command.transaction_code,
            error_message=(command.message or "Payment failed at gateway")
            if final_status is PaymentStatus.FAILED else None,
        )
        if settled.is_err():
            logger.error(f"Callback for payment {payment_id} not applied: {settled.error.message}")
            return Return.ok(
                CallbackOutcomeDTO(applied=False, message=settled.error.message, payment_id=payment_id)
            )

        outcome = settled.value
        if not outcome.applied:
            logger.info(
                f"Duplicate or late callback for payment {payment_id} ignored "
                f"(status={outcome.payment.status})"
            )
        return Return.ok(
            CallbackOutcomeDTO(
                applied=outcome.applied,
                message="Callback applied" if outcome.applied else "Payment already settled",
                payment_id=payment_id,
                status=outcome.payment.status,
            )
        )
