"""ReconcileLedger Use Case

Checks each wallet's stored balance against the net of its transactions.
"""

import logging
import time
from libs.result import Result, Return, Error
from src.app.repositories.wallet_balance_repository import WalletBalanceRepository
from src.app.repositories.wallet_transaction_repository import WalletTransactionRepository
from src.domain.base import utcnow
from .dtos import LedgerDiscrepancyDTO, ReconciliationResultDTO

logger = logging.getLogger(__name__)


class ReconcileLedger:
    """
    Use Case: Reconcile wallet balances

    A wallet is consistent when its balance equals completed deposits minus
    completed withdrawals. Nothing is written; drift is only reported.
    """

    def __init__(
        self,
        balance_repo: WalletBalanceRepository,
        transaction_repo: WalletTransactionRepository,
    ):
        self.balance_repo = balance_repo
        self.transaction_repo = transaction_repo

    async def execute(self) -> Result[ReconciliationResultDTO]:
        started = time.time()
        reconciliation_time = utcnow()

        try:
            wallets = await self.balance_repo.get_all()
            discrepancies = []
            for wallet in wallets:
                expected = await self.transaction_repo.get_net_sum_by_phone(wallet.phone)
                if wallet.balance == expected:
                    continue
                discrepancies.append(
                    LedgerDiscrepancyDTO(
                        phone=wallet.phone,
                        wallet_id=wallet.id,
                        wallet_balance=wallet.balance,
                        calculated_balance=expected,
                        discrepancy=wallet.balance - expected,
                    )
                )
        except Exception as e:
            logger.error(f"Wallet reconciliation failed: {e}")
            return Return.err(
                Error(
                    code="RECONCILIATION_FAILED",
                    message="Failed to reconcile wallet ledger",
                    reason=str(e),
                )
            )

        execution_time_ms = int((time.time() - started) * 1000)
        logger.info(
            f"Reconciled {len(wallets)} wallet(s), {len(discrepancies)} mismatch(es) "
            f"in {execution_time_ms}ms"
        )

        return Return.ok(
            ReconciliationResultDTO(
                total_wallets_checked=len(wallets),
                discrepancies_found=len(discrepancies),
                discrepancies=discrepancies,
                reconciliation_time=reconciliation_time,
                execution_time_ms=execution_time_ms,
            )
        )
