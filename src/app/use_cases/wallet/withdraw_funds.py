"""WithdrawFunds Use Case

Debits a wallet with idempotency guarantees, serialized per phone.
"""

import logging
import uuid
from sqlalchemy.exc import SQLAlchemyError
from libs.result import Result, Return, Error
from src.app.services.key_lock import KeyedLock
from src.app.services.ledger_store import LedgerStore, balance_lock_key
from src.app.services.unit_of_work import UnitOfWork
from .dtos import TransactionDTO, WithdrawCommandDTO, WithdrawResponseDTO

logger = logging.getLogger(__name__)


class WithdrawFunds:
    """
    Use Case: Withdraw funds from a wallet

    Business Rules:
    1. Idempotency: same idempotency_key returns the same transaction
    2. Sufficient balance: balance >= amount, otherwise INSUFFICIENT_FUNDS
       and the balance is unchanged
    3. Transaction record and balance update are committed together
    """

    def __init__(self, uow: UnitOfWork, ledger: LedgerStore, locks: KeyedLock):
        self.uow = uow
        self.ledger = ledger
        self.locks = locks

    async def execute(self, command: WithdrawCommandDTO) -> Result[WithdrawResponseDTO]:
        idempotency_key = f"withdraw:{command.idempotency_key or uuid.uuid4().hex}"

        async with self.locks.hold(balance_lock_key(command.phone)):
            try:
                result = await self.ledger.debit(
                    command.phone,
                    command.amount,
                    idempotency_key=idempotency_key,
                    reference=command.idempotency_key,
                )
                if result.is_err():
                    await self.uow.rollback()
                    return Return.err(result.error)

                response = WithdrawResponseDTO(
                    transaction=TransactionDTO.from_entity(result.value),
                    balance=await self.ledger.get_balance(command.phone),
                )
                await self.uow.commit()
            except SQLAlchemyError as e:
                await self.uow.rollback()
                logger.error(f"Withdrawal for {command.phone} failed: {e}")
                return Return.err(
                    Error(code="STORAGE_ERROR", message="Failed to record withdrawal", reason=str(e))
                )

        return Return.ok(response)
