"""ListPayments Use Case

Paginated, newest-first listing with optional status and phone filters.
"""

from typing import Optional
from libs.result import Result, Return, Error
from src.app.repositories.payment_repository import PaymentRepository
from src.domain.payment import PaymentStatus
from .dtos import ListPaymentsResponseDTO, PaymentDTO


class ListPayments:

    def __init__(self, payment_repo: PaymentRepository):
        self.payment_repo = payment_repo

    async def execute(
        self,
        status: Optional[str] = None,
        phone: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Result[ListPaymentsResponseDTO]:
        status_filter = None
        if status:
            try:
                status_filter = PaymentStatus(status.lower())
            except ValueError:
                return Return.err(
                    Error(
                        code="VALIDATION_ERROR",
                        message=f"Unknown payment status {status!r}",
                        reason=f"expected one of {[s.value for s in PaymentStatus]}",
                    )
                )

        payments = await self.payment_repo.list_payments(
            status=status_filter, phone=phone, limit=limit, offset=offset
        )
        total = await self.payment_repo.count(status=status_filter, phone=phone)

        return Return.ok(
            ListPaymentsResponseDTO(
                payments=[PaymentDTO.from_entity(p) for p in payments],
                total=total,
                limit=limit,
                offset=offset,
            )
        )
