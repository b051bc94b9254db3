"""GetPayment Use Case"""

from libs.result import Result, Return, Error
from src.app.repositories.payment_repository import PaymentRepository
from .dtos import PaymentDTO


class GetPayment:

    def __init__(self, payment_repo: PaymentRepository):
        self.payment_repo = payment_repo

    async def execute(self, payment_id: str) -> Result[PaymentDTO]:
        payment = await self.payment_repo.get_by_id(payment_id)
        if not payment:
            return Return.err(
                Error(code="PAYMENT_NOT_FOUND", message=f"Payment {payment_id} not found")
            )
        return Return.ok(PaymentDTO.from_entity(payment))
