"""Wallet API Routes

Balance lookups, withdrawals and the per-phone statement.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlmodel.ext.asyncio.session import AsyncSession

from src.api.error import ClientError
from src.api.schemas.wallet_request import BalanceCheckRequestSchema, WithdrawRequestSchema
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.services.key_lock import KeyedLock
from src.app.use_cases.wallet import (
    BalanceResponseDTO,
    GetBalance,
    ListTransactions,
    ListTransactionsResponseDTO,
    WithdrawCommandDTO,
    WithdrawFunds,
    WithdrawResponseDTO,
)
from src.depends import build_ledger, get_payment_locks, get_session

router = APIRouter(tags=["Wallet"])


@router.post("/balance/check", response_model=BalanceResponseDTO)
async def check_balance(
    request: BalanceCheckRequestSchema,
    session: AsyncSession = Depends(get_session)
):
    """
    Current wallet balance for a phone number.

    Unknown phones have a balance of 0.
    """
    result = await GetBalance(build_ledger(session)).execute(request.phone)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.post(
    "/wallet/withdraw",
    response_model=WithdrawResponseDTO,
    status_code=status.HTTP_200_OK,
    responses={
        400: {
            "description": "Insufficient funds",
            "content": {
                "application/json": {
                    "example": {
                        "success": False,
                        "message": "Insufficient funds. Required: 500, Available: 200",
                        "error": {
                            "code": "INSUFFICIENT_FUNDS",
                            "message": "Insufficient funds. Required: 500, Available: 200"
                        }
                    }
                }
            }
        }
    }
)
async def withdraw(
    request: WithdrawRequestSchema,
    session: AsyncSession = Depends(get_session),
    locks: KeyedLock = Depends(get_payment_locks),
):
    """
    Debit a wallet.

    **Request body:**
    - `phone` (required): Wallet phone number
    - `amount` (required): Amount to withdraw (must be > 0)
    - `idempotency_key` (optional): Repeating a key returns the original withdrawal

    **Returns:**
    - 200: Withdrawal recorded
    - 400: Insufficient funds, balance unchanged
    """
    command = WithdrawCommandDTO(
        phone=request.phone,
        amount=request.amount,
        idempotency_key=request.idempotency_key,
    )
    use_case = WithdrawFunds(SqlAlchemyUnitOfWork(session), build_ledger(session), locks)
    result = await use_case.execute(command)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.get("/wallet/{phone}/transactions", response_model=ListTransactionsResponseDTO)
async def list_transactions(
    phone: str,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    session: AsyncSession = Depends(get_session),
):
    """Statement for a phone number, newest first"""
    result = await ListTransactions(build_ledger(session)).execute(phone, limit=limit, offset=offset)

    if result.is_err():
        raise ClientError(result.error)

    return result.value
