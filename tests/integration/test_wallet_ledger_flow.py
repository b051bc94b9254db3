"""Integration tests for users, withdrawals and ledger reconciliation"""

import pytest
from decimal import Decimal

from src.adapter.repositories import (
    SqlAlchemyWalletBalanceRepository,
    SqlAlchemyWalletTransactionRepository,
)
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.use_cases.users import RegisterUser, RegisterUserCommandDTO
from src.app.use_cases.wallet import ReconcileLedger, WithdrawCommandDTO, WithdrawFunds
from src.depends import build_ledger
from tests.integration.helpers import PHONE, balance_of


async def seed_balance(session_factory, amount: str, key: str = "deposit:seed"):
    async with session_factory() as session:
        await build_ledger(session).credit(PHONE, Decimal(amount), idempotency_key=key)
        await session.commit()


async def withdraw(session_factory, locks, amount: str, idempotency_key=None):
    async with session_factory() as session:
        use_case = WithdrawFunds(SqlAlchemyUnitOfWork(session), build_ledger(session), locks)
        return await use_case.execute(
            WithdrawCommandDTO(phone=PHONE, amount=Decimal(amount), idempotency_key=idempotency_key)
        )


async def register(session_factory, email: str, phone: str):
    async with session_factory() as session:
        use_case = RegisterUser(SqlAlchemyUnitOfWork(session), build_ledger(session))
        return await use_case.execute(RegisterUserCommandDTO(email=email, phone=phone))


class TestWithdrawals:

    @pytest.mark.asyncio
    async def test_insufficient_funds_leaves_balance_unchanged(self, session_factory, locks):
        await seed_balance(session_factory, "100")

        result = await withdraw(session_factory, locks, "500")

        assert result.is_err()
        assert result.error.code == "INSUFFICIENT_FUNDS"
        assert await balance_of(session_factory) == Decimal("100")

    @pytest.mark.asyncio
    async def test_repeated_idempotency_key_debits_once(self, session_factory, locks):
        """
        Given: A wallet with 100 KES
        When: The same withdrawal is submitted twice with one idempotency key
        Then: One transaction is recorded and the balance drops once
        """
        # Arrange
        await seed_balance(session_factory, "100")

        # Act
        first = await withdraw(session_factory, locks, "40", idempotency_key="w-1")
        second = await withdraw(session_factory, locks, "40", idempotency_key="w-1")

        # Assert
        assert first.is_ok() and second.is_ok()
        assert first.value.transaction.id == second.value.transaction.id
        assert first.value.transaction.balance_after == Decimal("60")
        assert await balance_of(session_factory) == Decimal("60")

    @pytest.mark.asyncio
    async def test_withdraw_from_unknown_wallet(self, session_factory, locks):
        result = await withdraw(session_factory, locks, "1")

        assert result.error.code == "INSUFFICIENT_FUNDS"


class TestUserRegistration:

    @pytest.mark.asyncio
    async def test_rejects_local_phone_format(self, session_factory):
        result = await register(session_factory, "jane@example.com", "0712345678")

        assert result.is_err()
        assert result.error.code == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_duplicate_phone_or_email_is_rejected(self, session_factory):
        created = await register(session_factory, "jane@example.com", PHONE)
        same_phone = await register(session_factory, "other@example.com", PHONE)
        same_email = await register(session_factory, "Jane@Example.com", "254700000001")

        assert created.is_ok()
        assert created.value.email == "jane@example.com"
        assert same_phone.error.code == "USER_ALREADY_EXISTS"
        assert same_email.error.code == "USER_ALREADY_EXISTS"


class TestLedgerReconciliation:

    @pytest.mark.asyncio
    async def test_detects_balance_drift(self, session_factory, locks):
        await seed_balance(session_factory, "100")
        await withdraw(session_factory, locks, "30", idempotency_key="w-rec")

        async with session_factory() as session:
            reconcile = ReconcileLedger(
                balance_repo=SqlAlchemyWalletBalanceRepository(session),
                transaction_repo=SqlAlchemyWalletTransactionRepository(session),
            )
            clean = await reconcile.execute()
        assert clean.value.total_wallets_checked == 1
        assert clean.value.discrepancies_found == 0

        async with session_factory() as session:
            balances = SqlAlchemyWalletBalanceRepository(session)
            wallet = await balances.get_by_phone(PHONE)
            await balances.update_balance(wallet.id, Decimal("999"))
            await session.commit()

        async with session_factory() as session:
            reconcile = ReconcileLedger(
                balance_repo=SqlAlchemyWalletBalanceRepository(session),
                transaction_repo=SqlAlchemyWalletTransactionRepository(session),
            )
            drifted = await reconcile.execute()

        assert drifted.value.discrepancies_found == 1
        discrepancy = drifted.value.discrepancies[0]
        assert discrepancy.phone == PHONE
        assert discrepancy.calculated_balance == Decimal("70")
        assert discrepancy.discrepancy == Decimal("929")
