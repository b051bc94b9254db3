from .unit_of_work import UnitOfWork
from .payment_gateway import PaymentGateway, GatewayUnavailableError, InitiateResult, StatusResult
from .key_lock import KeyedLock
from .task_runner import BackgroundTaskRunner
from .ledger_store import LedgerStore

__all__ = [
    "UnitOfWork",
    "PaymentGateway",
    "GatewayUnavailableError",
    "InitiateResult",
    "StatusResult",
    "KeyedLock",
    "BackgroundTaskRunner",
    "LedgerStore",
]
