"""Data Transfer Objects for Wallet Use Cases

Pydantic models for command inputs and response outputs.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field
from src.domain.wallet_transaction import WalletTransaction


class WithdrawCommandDTO(BaseModel):
    """
    Command DTO for withdrawing funds

    Used as input to WithdrawFunds use case.
    """

    phone: str = Field(..., description="Wallet phone number")

    amount: Decimal = Field(..., gt=0, description="Amount to withdraw (must be > 0)")

    idempotency_key: Optional[str] = Field(
        default=None,
        description="Unique key for idempotent withdrawals (generated when omitted)"
    )


class BalanceResponseDTO(BaseModel):
    """
    Response DTO for balance check

    Returned by GetBalance use case.
    """

    success: bool = True
    phone: str
    balance: Decimal = Field(..., description="Current balance")
    currency: str = "KSh"
    timestamp: datetime
    message: str = "Balance retrieved successfully"

    class Config:
        json_schema_extra = {
            "example": {
                "success": True,
                "phone": "254712345678",
                "balance": "500.00",
                "currency": "KSh",
                "timestamp": "2024-01-01T00:00:00Z",
                "message": "Balance retrieved successfully"
            }
        }


class TransactionDTO(BaseModel):
    """Single statement entry"""

    id: int
    transaction_type: str
    amount: Decimal
    status: str
    balance_before: Decimal
    balance_after: Decimal
    payment_id: Optional[str] = None
    reference: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_entity(cls, txn: WalletTransaction) -> "TransactionDTO":
        return cls(
            id=txn.id,
            transaction_type=txn.transaction_type.value,
            amount=txn.amount,
            status=txn.status.value,
            balance_before=txn.balance_before,
            balance_after=txn.balance_after,
            payment_id=txn.payment_id,
            reference=txn.reference,
            created_at=txn.created_at,
        )


class WithdrawResponseDTO(BaseModel):
    success: bool = True
    message: str = "Withdrawal successful"
    transaction: TransactionDTO
    balance: Decimal


class ListTransactionsResponseDTO(BaseModel):
    phone: str
    transactions: List[TransactionDTO]
    total: int
    limit: int
    offset: int


class LedgerDiscrepancyDTO(BaseModel):
    """Balance that does not match its transaction history"""

    phone: str
    wallet_id: int
    wallet_balance: Decimal
    calculated_balance: Decimal
    discrepancy: Decimal


class ReconciliationResultDTO(BaseModel):
    total_wallets_checked: int
    discrepancies_found: int
    discrepancies: List[LedgerDiscrepancyDTO]
    reconciliation_time: datetime
    execution_time_ms: int
