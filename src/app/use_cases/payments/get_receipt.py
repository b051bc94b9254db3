"""GetReceipt Use Case

Builds the receipt projection of a payment. Receipts are derived on demand;
nothing is stored.
"""

from libs.result import Result, Return, Error
from src.app.repositories.payment_repository import PaymentRepository
from src.app.services.ledger_store import LedgerStore
from src.domain.base import utcnow
from src.domain.payment import PaymentStatus
from .dtos import ReceiptDTO

RECEIPT_STATUSES = (PaymentStatus.COMPLETED, PaymentStatus.PENDING)


class GetReceipt:

    def __init__(self, payment_repo: PaymentRepository, ledger: LedgerStore):
        self.payment_repo = payment_repo
        self.ledger = ledger

    async def execute(self, payment_id: str) -> Result[ReceiptDTO]:
        """
        Errors:
            PAYMENT_NOT_FOUND: Unknown payment id
            RECEIPT_UNAVAILABLE: Payment is FAILED or TIMEOUT
        """
        payment = await self.payment_repo.get_by_id(payment_id)
        if not payment:
            return Return.err(
                Error(code="PAYMENT_NOT_FOUND", message=f"Payment {payment_id} not found")
            )

        if payment.status not in RECEIPT_STATUSES:
            return Return.err(
                Error(
                    code="RECEIPT_UNAVAILABLE",
                    message=f"No receipt for a {payment.status.value} payment",
                    details={"payment_id": payment.id, "reference": payment.reference},
                )
            )

        return Return.ok(
            ReceiptDTO(
                payment_id=payment.id,
                reference=payment.reference,
                phone=payment.phone,
                amount=payment.amount,
                description=payment.description,
                status=payment.status.value,
                checkout_request_id=payment.checkout_request_id,
                transaction_code=payment.transaction_code,
                balance=await self.ledger.get_balance(payment.phone),
                created_at=payment.created_at,
                settled_at=payment.settled_at,
                issued_at=utcnow(),
            )
        )
