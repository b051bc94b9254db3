"""Get Balance Use Case

Retrieves a wallet's current balance.
"""

from libs.result import Result, Return, Error
from src.app.services.ledger_store import LedgerStore
from src.domain.base import utcnow
from .dtos import BalanceResponseDTO


class GetBalance:
    """
    Get Balance Use Case

    Read-only. Unknown phones report a zero balance.
    """

    def __init__(self, ledger: LedgerStore):
        self.ledger = ledger

    async def execute(self, phone: str) -> Result[BalanceResponseDTO]:
        if not phone:
            return Return.err(Error(code="VALIDATION_ERROR", message="Phone number is required"))

        balance = await self.ledger.get_balance(phone)
        return Return.ok(
            BalanceResponseDTO(phone=phone, balance=balance, timestamp=utcnow())
        )
