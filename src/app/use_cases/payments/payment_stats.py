"""GetPaymentStats Use Case"""

from libs.result import Result, Return
from src.app.repositories.payment_repository import PaymentRepository
from src.domain.payment import PaymentStatus
from .dtos import PaymentStatsDTO


class GetPaymentStats:
    """
    Counts per status, completed volume and success rate

    success_rate = completed / (completed + failed + timeout)
    """

    def __init__(self, payment_repo: PaymentRepository):
        self.payment_repo = payment_repo

    async def execute(self) -> Result[PaymentStatsDTO]:
        counts = await self.payment_repo.count_by_status()
        completed_amount = await self.payment_repo.sum_amount(PaymentStatus.COMPLETED)

        settled = sum(count for status, count in counts.items() if status.is_terminal)
        success_rate = counts[PaymentStatus.COMPLETED] / settled if settled else 0.0

        return Return.ok(
            PaymentStatsDTO(
                total=sum(counts.values()),
                by_status={status.value: count for status, count in counts.items()},
                completed_amount=completed_amount,
                success_rate=round(success_rate, 4),
            )
        )
