"""Background workers for the payment service"""
from .ledger_reconciler import LedgerReconcilerWorker
from .payment_sweeper import PaymentSweeperWorker

__all__ = ["LedgerReconcilerWorker", "PaymentSweeperWorker"]
