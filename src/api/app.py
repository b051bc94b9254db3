"""FastAPI application factory"""

import asyncio
import logging
from contextlib import asynccontextmanager, suppress
import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlmodel import SQLModel

from src import depends
from src.api.error import register_error_handlers
from src.api.middleware import RequestLoggingMiddleware
from src.api.routes import payments, users, wallet
from src.domain.base import utcnow

logger = logging.getLogger(__name__)


def _configure_logging(config) -> None:
    logging.basicConfig(
        level=getattr(logging, str(config.LOG_LEVEL).upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _init_sentry(config) -> None:
    if not config.ENABLE_SENTRY or not config.DSN_SENTRY:
        return
    sentry_sdk.init(
        dsn=config.DSN_SENTRY,
        environment=config.SENTRY_ENVIRONMENT,
        traces_sample_rate=0.1,
    )
    logger.info(f"Sentry enabled ({config.SENTRY_ENVIRONMENT})")


def _start_sweeper(config):
    from src.worker.payment_sweeper import PaymentSweeperWorker

    worker = PaymentSweeperWorker(
        session_factory=depends.get_session_factory(),
        gateway=depends.get_gateway(),
        locks=depends.get_payment_locks(),
        policy=depends.get_payment_policy(),
        min_age_seconds=config.SWEEPER_MIN_AGE_SECONDS,
        batch_size=config.SWEEPER_BATCH_SIZE,
    )
    return asyncio.create_task(
        worker.run_forever(interval_seconds=config.SWEEPER_INTERVAL_SECONDS),
        name="payment-sweeper",
    )


def create_app(config) -> FastAPI:
    _configure_logging(config)
    _init_sentry(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if config.CREATE_TABLES_ON_STARTUP:
            import src.domain  # noqa: F401  registers tables on SQLModel.metadata

            async with depends.engine.begin() as conn:
                await conn.run_sync(SQLModel.metadata.create_all)
            logger.info("Database tables ensured")

        sweeper = _start_sweeper(config) if config.SWEEPER_ENABLED else None

        yield

        if sweeper is not None:
            sweeper.cancel()
            with suppress(asyncio.CancelledError):
                await sweeper
        await depends.get_task_runner().drain(config.SHUTDOWN_DRAIN_SECONDS)
        await depends.close_gateway()
        await depends.engine.dispose()
        logger.info("Shutdown complete")

    app = FastAPI(
        title="Spawiko Payment Relay",
        description="STK push initiation, status polling and wallet ledger",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=config.CORS_ALLOW_CREDENTIALS,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    if config.ENABLE_LOGGING_MIDDLEWARE:
        app.add_middleware(RequestLoggingMiddleware)

    register_error_handlers(app)

    app.include_router(payments.router, prefix=config.API_PREFIX)
    app.include_router(users.router, prefix=config.API_PREFIX)
    app.include_router(wallet.router, prefix=config.API_PREFIX)

    @app.get("/health", tags=["Health"])
    async def health():
        return {
            "success": True,
            "message": "Payment relay is running",
            "timestamp": utcnow().isoformat(),
        }

    return app
