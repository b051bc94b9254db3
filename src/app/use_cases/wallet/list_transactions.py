"""ListTransactions Use Case

Wallet statement for one phone, newest first.
"""

from libs.result import Result, Return
from src.app.services.ledger_store import LedgerStore
from .dtos import ListTransactionsResponseDTO, TransactionDTO


class ListTransactions:

    def __init__(self, ledger: LedgerStore):
        self.ledger = ledger

    async def execute(
        self, phone: str, limit: int = 20, offset: int = 0
    ) -> Result[ListTransactionsResponseDTO]:
        transactions = await self.ledger.list_transactions(phone, limit=limit, offset=offset)
        total = await self.ledger.count_transactions(phone)

        return Return.ok(
            ListTransactionsResponseDTO(
                phone=phone,
                transactions=[TransactionDTO.from_entity(txn) for txn in transactions],
                total=total,
                limit=limit,
                offset=offset,
            )
        )
