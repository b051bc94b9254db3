"""SweepStalePayments Use Case

Re-checks payments nobody is polling any more: PENDING payments older than
the minimum age (their request died) and, when allowed, TIMEOUT payments.
"""

import logging
import time
from datetime import timedelta
from libs.result import Result, Return, Error
from src.app.repositories.payment_repository import PaymentRepository
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utcnow
from src.domain.payment import PaymentStatus, SettlementSource
from .check_payment_status import CheckPaymentStatus
from .dtos import PaymentPolicy, SweepResultDTO
from .settle_payment import SettlePayment

logger = logging.getLogger(__name__)


class SweepStalePayments:
    """
    Use Case: Resolve payments left behind by the poll loop

    Business Rules:
    1. Only payments not updated for min_age_seconds are considered
    2. PENDING without checkout_request_id never reached the gateway -> FAILED
    3. Everything else gets a one-shot status check (source=sweep)
    4. At most batch_size payments per run
    """

    def __init__(
        self,
        uow: UnitOfWork,
        payment_repo: PaymentRepository,
        check_status: CheckPaymentStatus,
        settle: SettlePayment,
        policy: PaymentPolicy,
        min_age_seconds: int = 300,
        batch_size: int = 50,
    ):
        self.uow = uow
        self.payment_repo = payment_repo
        self.check_status = check_status
        self.settle = settle
        self.policy = policy
        self.min_age_seconds = min_age_seconds
        self.batch_size = batch_size

    async def execute(self) -> Result[SweepResultDTO]:
        start_time = time.time()
        sweep_time = utcnow()
        cutoff = sweep_time - timedelta(seconds=self.min_age_seconds)

        statuses = [PaymentStatus.PENDING]
        if self.policy.resolve_timed_out:
            statuses.append(PaymentStatus.TIMEOUT)

        try:
            stale = await self.payment_repo.find_stale(statuses, cutoff, self.batch_size)
            candidates = [(p.id, p.status, p.checkout_request_id) for p in stale]
            await self.uow.rollback()
        except Exception as e:
            logger.error(f"Payment sweep failed to load candidates: {e}")
            return Return.err(
                Error(code="SWEEP_FAILED", message="Failed to load stale payments", reason=str(e))
            )

        resolved = orphans_failed = errors = 0

        for payment_id, status, checkout_request_id in candidates:
            if status is PaymentStatus.PENDING and not checkout_request_id:
                result = await self.settle.execute(
                    payment_id,
                    PaymentStatus.FAILED,
                    SettlementSource.SWEEP,
                    error_message="Initiation interrupted before the gateway accepted it",
                )
                if result.is_err():
                    errors += 1
                elif result.value.applied:
                    orphans_failed += 1
                continue

            result = await self.check_status.execute(
                payment_id=payment_id, source=SettlementSource.SWEEP
            )
            if result.is_err():
                errors += 1
                logger.warning(f"Sweep check for payment {payment_id} failed: {result.error.message}")
            elif result.value.applied:
                resolved += 1

        execution_time_ms = int((time.time() - start_time) * 1000)
        logger.info(
            f"Payment sweep checked {len(candidates)} payment(s): resolved={resolved}, "
            f"orphans_failed={orphans_failed}, errors={errors} in {execution_time_ms}ms"
        )

        return Return.ok(
            SweepResultDTO(
                checked=len(candidates),
                resolved=resolved,
                orphans_failed=orphans_failed,
                errors=errors,
                sweep_time=sweep_time,
                execution_time_ms=execution_time_ms,
            )
        )
