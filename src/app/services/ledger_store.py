"""Ledger Store

Users, wallet balances and the append-only transaction history. This is
plain data access plus invariant enforcement; it never commits. Callers
commit through their UnitOfWork and must hold `balance_lock_key(phone)`
from before `credit`/`debit` until after the commit.
"""

import logging
from decimal import Decimal
from typing import List, Optional
from sqlalchemy.exc import IntegrityError
from libs.result import Result, Return, Error
from src.app.repositories.user_repository import UserRepository
from src.app.repositories.wallet_balance_repository import WalletBalanceRepository
from src.app.repositories.wallet_transaction_repository import WalletTransactionRepository
from src.domain.rules import is_valid_email, is_valid_phone
from src.domain.user import User
from src.domain.wallet_balance import WalletBalance
from src.domain.wallet_transaction import WalletTransaction, TransactionType, TransactionStatus

logger = logging.getLogger(__name__)


def balance_lock_key(phone: str) -> str:
    return f"balance:{phone}"


def deposit_idempotency_key(reference: str) -> str:
    return f"deposit:{reference}"


class LedgerStore:
    """
    Ledger Store - users, balances, transaction history

    Invariants:
    - A phone maps to at most one user, an email to at most one user
    - Balance is never negative and changes only with a WalletTransaction
    - An idempotency key is applied at most once
    """

    def __init__(
        self,
        user_repo: UserRepository,
        balance_repo: WalletBalanceRepository,
        transaction_repo: WalletTransactionRepository,
    ):
        self.user_repo = user_repo
        self.balance_repo = balance_repo
        self.transaction_repo = transaction_repo

    async def register_user(self, email: str, phone: str) -> Result[User]:
        """
        Register a wallet owner

        Errors:
            VALIDATION_ERROR: phone is not 254XXXXXXXXX or email is malformed
            USER_ALREADY_EXISTS: email or phone already registered
        """
        email = (email or "").strip().lower()
        phone = (phone or "").strip()

        if not is_valid_phone(phone):
            return Return.err(
                Error(
                    code="VALIDATION_ERROR",
                    message="Phone number must be in the format 254XXXXXXXXX",
                    reason=f"phone={phone!r}",
                )
            )
        if not is_valid_email(email):
            return Return.err(
                Error(
                    code="VALIDATION_ERROR",
                    message="Invalid email address",
                    reason=f"email={email!r}",
                )
            )

        if await self.user_repo.get_by_email(email) or await self.user_repo.get_by_phone(phone):
            return Return.err(
                Error(
                    code="USER_ALREADY_EXISTS",
                    message="A user with this email or phone is already registered",
                )
            )

        try:
            user = await self.user_repo.create(User(email=email, phone=phone))
        except IntegrityError as e:
            # Lost a race with a concurrent registration
            return Return.err(
                Error(
                    code="USER_ALREADY_EXISTS",
                    message="A user with this email or phone is already registered",
                    reason=str(e.orig) if e.orig else str(e),
                )
            )
        return Return.ok(user)

    async def find_user_by_phone(self, phone: str) -> Optional[User]:
        return await self.user_repo.get_by_phone(phone)

    async def find_user_by_email(self, email: str) -> Optional[User]:
        return await self.user_repo.get_by_email((email or "").strip().lower())

    async def get_balance(self, phone: str) -> Decimal:
        """Unknown phones have a zero balance"""
        wallet = await self.balance_repo.get_by_phone(phone)
        return wallet.balance if wallet else Decimal("0")

    async def credit(
        self,
        phone: str,
        amount: Decimal,
        idempotency_key: str,
        payment_id: Optional[str] = None,
        reference: Optional[str] = None,
    ) -> Result[WalletTransaction]:
        """
        Add `amount` to the balance of `phone`

        Returns the existing transaction when `idempotency_key` was already
        applied; the balance is not touched again.
        """
        if amount <= 0:
            return Return.err(
                Error(code="VALIDATION_ERROR", message="Credit amount must be greater than 0")
            )

        existing = await self.transaction_repo.get_by_idempotency_key(idempotency_key)
        if existing:
            logger.info(f"Credit {idempotency_key} already applied (transaction_id={existing.id})")
            return Return.ok(existing)

        wallet = await self._get_or_create_wallet(phone)
        balance_before = wallet.balance
        balance_after = balance_before + amount

        transaction = await self.append_transaction(
            WalletTransaction(
                phone=phone,
                transaction_type=TransactionType.DEPOSIT,
                amount=amount,
                status=TransactionStatus.COMPLETED,
                balance_before=balance_before,
                balance_after=balance_after,
                payment_id=payment_id,
                reference=reference,
                idempotency_key=idempotency_key,
            )
        )
        await self.balance_repo.update_balance(wallet.id, balance_after)

        logger.info(f"Credited {amount} to {phone}: {balance_before} -> {balance_after}")
        return Return.ok(transaction)

    async def debit(
        self,
        phone: str,
        amount: Decimal,
        idempotency_key: str,
        reference: Optional[str] = None,
    ) -> Result[WalletTransaction]:
        """
        Subtract `amount` from the balance of `phone`

        Errors:
            INSUFFICIENT_FUNDS: balance < amount (balance unchanged)
        """
        if amount <= 0:
            return Return.err(
                Error(code="VALIDATION_ERROR", message="Withdrawal amount must be greater than 0")
            )

        existing = await self.transaction_repo.get_by_idempotency_key(idempotency_key)
        if existing:
            return Return.ok(existing)

        wallet = await self.balance_repo.get_by_phone(phone, for_update=True)
        available = wallet.balance if wallet else Decimal("0")

        if wallet is None or available < amount:
            return Return.err(
                Error(
                    code="INSUFFICIENT_FUNDS",
                    message=f"Insufficient funds. Required: {amount}, Available: {available}",
                    reason=f"balance={available}, required={amount}",
                )
            )

        balance_after = available - amount
        transaction = await self.append_transaction(
            WalletTransaction(
                phone=phone,
                transaction_type=TransactionType.WITHDRAW,
                amount=amount,
                status=TransactionStatus.COMPLETED,
                balance_before=available,
                balance_after=balance_after,
                reference=reference,
                idempotency_key=idempotency_key,
            )
        )
        await self.balance_repo.update_balance(wallet.id, balance_after)

        logger.info(f"Debited {amount} from {phone}: {available} -> {balance_after}")
        return Return.ok(transaction)

    async def append_transaction(self, transaction: WalletTransaction) -> WalletTransaction:
        return await self.transaction_repo.create(transaction)

    async def list_transactions(self, phone: str, limit: int = 50, offset: int = 0) -> List[WalletTransaction]:
        return await self.transaction_repo.list_by_phone(phone, limit=limit, offset=offset)

    async def count_transactions(self, phone: str) -> int:
        return await self.transaction_repo.count_by_phone(phone)

    async def _get_or_create_wallet(self, phone: str) -> WalletBalance:
        wallet = await self.balance_repo.get_by_phone(phone, for_update=True)
        if wallet is None:
            wallet = await self.balance_repo.create(WalletBalance(phone=phone, balance=Decimal("0")))
        return wallet
