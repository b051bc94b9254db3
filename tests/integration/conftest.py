import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

import src.domain  # noqa: F401  registers tables on SQLModel.metadata
from src.app.services.key_lock import KeyedLock
from src.app.services.task_runner import BackgroundTaskRunner
from src.app.use_cases.payments import PaymentPolicy
from src.depends import (
    get_gateway,
    get_payment_locks,
    get_payment_policy,
    get_session,
    get_session_factory,
    get_task_runner,
)
from tests.fixtures.gateway import ScriptedGateway


@pytest_asyncio.fixture(scope="function")
async def engine(tmp_path):
    """File-backed SQLite database so concurrent sessions see each other's commits"""
    test_db_url = f"sqlite+aiosqlite:///{tmp_path / 'payments_test.db'}"

    engine = create_async_engine(test_db_url, echo=False, future=True)

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    """Create a new database session for each test"""
    async with session_factory() as session:
        yield session


@pytest.fixture
def locks():
    return KeyedLock()


@pytest.fixture
def policy():
    """Production lifecycle settings without the wait between polls"""
    return PaymentPolicy(poll_interval_seconds=0)


@pytest.fixture
def gateway():
    return ScriptedGateway()


@pytest_asyncio.fixture
async def client(session_factory, gateway, locks, policy):
    """Test client wired to the test database and the scripted gateway"""
    from src.api.app import create_app
    from config import ApplicationConfig

    app = create_app(ApplicationConfig)

    # Each request gets its own session, as in production
    async def override_get_session():
        async with session_factory() as session:
            yield session

    runner = BackgroundTaskRunner()

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_gateway] = lambda: gateway
    app.dependency_overrides[get_payment_locks] = lambda: locks
    app.dependency_overrides[get_payment_policy] = lambda: policy
    app.dependency_overrides[get_task_runner] = lambda: runner

    # Use ASGITransport for httpx AsyncClient
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    await runner.drain(timeout=5)
