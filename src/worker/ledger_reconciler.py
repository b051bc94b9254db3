"""Wallet Ledger Reconciliation Worker

Compares every wallet balance with the net of its transactions (deposits
minus withdrawals). Read-only: discrepancies are reported, never repaired.

    python -m src.worker.ledger_reconciler --once
    python -m src.worker.ledger_reconciler --interval 3600
"""

import asyncio
import logging
from typing import Optional
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.adapter.repositories import (
    SqlAlchemyWalletBalanceRepository,
    SqlAlchemyWalletTransactionRepository,
)
from src.app.use_cases.wallet import ReconcileLedger, ReconciliationResultDTO
from src.domain.base import utcnow

logger = logging.getLogger(__name__)


class LedgerReconcilerWorker:
    """
    Periodic wallet reconciliation

    Pass `session_factory` to share an engine with the caller; otherwise the
    worker opens its own engine on `db_uri` and disposes it on shutdown.
    `stop()` ends `run_forever` after the current cycle.
    """

    def __init__(self, db_uri: Optional[str] = None, session_factory=None):
        self.engine = None
        if session_factory is None:
            self.db_uri = db_uri or ApplicationConfig.DB_URI
            self.engine = create_async_engine(self.db_uri, echo=False, future=True)
            session_factory = sessionmaker(
                self.engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
            )
        self.async_session_factory = session_factory
        self._stopping = asyncio.Event()

    async def run_once(self) -> ReconciliationResultDTO:
        if not ApplicationConfig.RECONCILIATION_ENABLED:
            logger.info("Wallet reconciliation disabled")
            return self._empty_result()

        async with self.async_session_factory() as session:
            result = await ReconcileLedger(
                balance_repo=SqlAlchemyWalletBalanceRepository(session),
                transaction_repo=SqlAlchemyWalletTransactionRepository(session),
            ).execute()

        if result.is_err():
            raise RuntimeError(f"Reconciliation failed: {result.error.message}")

        self._report(result.value)
        return result.value

    async def run_forever(self, interval_seconds: int = 86400):
        logger.info(f"Wallet reconciliation every {interval_seconds}s")

        while not self._stopping.is_set():
            try:
                await self.run_once()
            except Exception as e:
                logger.error(f"Reconciliation cycle failed: {e}")

            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=interval_seconds)
            except asyncio.TimeoutError:
                pass

    def stop(self):
        self._stopping.set()

    async def shutdown(self):
        self.stop()
        if self.engine is not None:
            await self.engine.dispose()

    @staticmethod
    def _empty_result() -> ReconciliationResultDTO:
        return ReconciliationResultDTO(
            total_wallets_checked=0,
            discrepancies_found=0,
            discrepancies=[],
            reconciliation_time=utcnow(),
            execution_time_ms=0,
        )

    @staticmethod
    def _report(result: ReconciliationResultDTO):
        if not result.discrepancies_found:
            logger.info(
                f"{result.total_wallets_checked} wallet(s) balanced ({result.execution_time_ms}ms)"
            )
            return

        logger.error(
            f"{result.discrepancies_found} of {result.total_wallets_checked} wallet(s) "
            f"do not match their transactions"
        )
        for d in result.discrepancies:
            logger.error(
                f"wallet {d.wallet_id} ({d.phone}): stored={d.wallet_balance} "
                f"from_transactions={d.calculated_balance} diff={d.discrepancy}"
            )


async def main():
    import argparse

    logging.basicConfig(
        level=ApplicationConfig.LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Wallet ledger reconciliation")
    parser.add_argument("--once", action="store_true", help="Reconcile once and exit")
    parser.add_argument(
        "--interval", type=int, default=ApplicationConfig.RECONCILIATION_INTERVAL_SECONDS,
        help="Seconds between runs"
    )
    parser.add_argument("--db-uri", default=None, help="Overrides DB_URI")
    args = parser.parse_args()

    worker = LedgerReconcilerWorker(db_uri=args.db_uri)
    try:
        if args.once:
            result = await worker.run_once()
            print(f"Wallets checked: {result.total_wallets_checked}")
            print(f"Discrepancies:   {result.discrepancies_found}")
            for d in result.discrepancies:
                print(f"  {d.phone}: stored={d.wallet_balance} expected={d.calculated_balance}")
        else:
            await worker.run_forever(interval_seconds=args.interval)
    except KeyboardInterrupt:
        logger.info("Received shutdown signal")
    finally:
        await worker.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
