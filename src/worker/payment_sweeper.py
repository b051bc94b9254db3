"""Stale Payment Sweeper Background Worker

Re-checks payments whose poll loop is gone: PENDING payments left behind by
a crash or restart and, when enabled, TIMEOUT payments the gateway has
since resolved. Runs inside the API process (started by the app lifespan)
or as a standalone script.
"""

import asyncio
import logging
from typing import Optional
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.adapter.services.gateway_client import SpawikoGatewayClient
from src.app.services.key_lock import KeyedLock
from src.app.services.payment_gateway import PaymentGateway
from src.app.use_cases.payments import PaymentPolicy, SweepResultDTO
from src.depends import build_sweep_payments

logger = logging.getLogger(__name__)


class PaymentSweeperWorker:
    """
    Background worker that resolves stale payments

    Usage:
        # Run once
        worker = PaymentSweeperWorker()
        result = await worker.run_once()

        # Run continuously
        await worker.run_forever(interval_seconds=60)
    """

    def __init__(
        self,
        session_factory=None,
        gateway: Optional[PaymentGateway] = None,
        locks: Optional[KeyedLock] = None,
        policy: Optional[PaymentPolicy] = None,
        min_age_seconds: Optional[int] = None,
        batch_size: Optional[int] = None,
        db_uri: Optional[str] = None,
    ):
        """
        Initialize the worker

        Inside the API process pass the app's session factory, gateway and
        lock registry so the sweeper and request handlers serialize on the
        same payment locks. Standalone, the worker builds its own.
        """
        self.engine = None
        if session_factory is None:
            self.engine = create_async_engine(db_uri or ApplicationConfig.DB_URI, echo=False, future=True)
            session_factory = sessionmaker(
                self.engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
            )
        self.async_session_factory = session_factory

        self.owns_gateway = gateway is None
        self.gateway = gateway or SpawikoGatewayClient.from_config(ApplicationConfig)
        self.locks = locks or KeyedLock()
        self.policy = policy or PaymentPolicy.from_config(ApplicationConfig)
        self.min_age_seconds = (
            min_age_seconds if min_age_seconds is not None else ApplicationConfig.SWEEPER_MIN_AGE_SECONDS
        )
        self.batch_size = batch_size or ApplicationConfig.SWEEPER_BATCH_SIZE

        logger.info(
            f"PaymentSweeperWorker initialized (min_age={self.min_age_seconds}s, batch={self.batch_size})"
        )

    async def run_once(self) -> SweepResultDTO:
        """
        Run one sweep

        Returns:
            SweepResultDTO with sweep counters
        """
        async with self.async_session_factory() as session:
            use_case = build_sweep_payments(
                session,
                self.gateway,
                self.locks,
                self.policy,
                min_age_seconds=self.min_age_seconds,
                batch_size=self.batch_size,
            )
            result = await use_case.execute()

            if result.is_err():
                logger.error(f"Payment sweep failed: {result.error.message}")
                raise RuntimeError(f"Payment sweep failed: {result.error.message}")

            return result.value

    async def run_forever(self, interval_seconds: int = 60):
        """
        Sweep continuously at the given interval

        Cancel the awaiting task to stop.
        """
        logger.info(f"Starting payment sweeper with {interval_seconds}s interval")

        while True:
            try:
                result = await self.run_once()
                if result.checked:
                    logger.info(
                        f"Sweep cycle complete. Checked {result.checked}, "
                        f"resolved {result.resolved}, failed {result.orphans_failed} orphan(s)"
                    )
            except Exception as e:
                logger.error(f"Sweep cycle failed: {e}")

            await asyncio.sleep(interval_seconds)

    async def shutdown(self):
        """Cleanup resources the worker created itself"""
        if self.owns_gateway:
            await self.gateway.aclose()
        if self.engine is not None:
            await self.engine.dispose()
        logger.info("PaymentSweeperWorker shutdown complete")


async def main():
    """
    Entry point for running the worker as a standalone script

    Usage:
        # Run once
        python -m src.worker.payment_sweeper --once

        # Run continuously
        python -m src.worker.payment_sweeper --interval 60
    """
    import argparse

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Stale Payment Sweeper")
    parser.add_argument("--once", action="store_true", help="Run once and exit")
    parser.add_argument(
        "--interval", type=int, default=ApplicationConfig.SWEEPER_INTERVAL_SECONDS,
        help="Interval between sweeps in seconds"
    )
    parser.add_argument(
        "--min-age", type=int, default=ApplicationConfig.SWEEPER_MIN_AGE_SECONDS,
        help="Only sweep payments not updated for this many seconds"
    )
    args = parser.parse_args()

    worker = PaymentSweeperWorker(min_age_seconds=args.min_age)

    try:
        if args.once:
            result = await worker.run_once()
            print("Sweep complete:")
            print(f"  Payments checked: {result.checked}")
            print(f"  Resolved: {result.resolved}")
            print(f"  Orphans failed: {result.orphans_failed}")
            print(f"  Errors: {result.errors}")
            print(f"  Execution time: {result.execution_time_ms}ms")
        else:
            await worker.run_forever(interval_seconds=args.interval)
    except KeyboardInterrupt:
        logger.info("Received shutdown signal")
    finally:
        await worker.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
