"""Wallet use cases"""
from .get_balance import GetBalance
from .withdraw_funds import WithdrawFunds
from .list_transactions import ListTransactions
from .reconcile_ledger import ReconcileLedger
from .dtos import (
    WithdrawCommandDTO,
    WithdrawResponseDTO,
    BalanceResponseDTO,
    TransactionDTO,
    ListTransactionsResponseDTO,
    LedgerDiscrepancyDTO,
    ReconciliationResultDTO,
)

__all__ = [
    "GetBalance",
    "WithdrawFunds",
    "ListTransactions",
    "ReconcileLedger",
    "WithdrawCommandDTO",
    "WithdrawResponseDTO",
    "BalanceResponseDTO",
    "TransactionDTO",
    "ListTransactionsResponseDTO",
    "LedgerDiscrepancyDTO",
    "ReconciliationResultDTO",
]
