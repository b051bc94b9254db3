"""Unit tests for wallet and user use cases"""

import pytest
from datetime import datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from libs.result import Return, Error
from src.app.services.key_lock import KeyedLock
from src.app.use_cases.users import FindUser, RegisterUser, RegisterUserCommandDTO
from src.app.use_cases.wallet import GetBalance, WithdrawCommandDTO, WithdrawFunds
from src.domain.user import User
from src.domain.wallet_transaction import TransactionStatus, TransactionType, WalletTransaction


@pytest.fixture
def mock_ledger():
    ledger = MagicMock()
    ledger.get_balance = AsyncMock(return_value=Decimal("300"))
    return ledger


@pytest.mark.asyncio
class TestWithdrawFunds:

    async def test_successful_withdrawal_commits(self, mock_uow, mock_ledger):
        # Arrange
        txn = WalletTransaction(
            id=9,
            phone="254712345678",
            transaction_type=TransactionType.WITHDRAW,
            amount=Decimal("200"),
            status=TransactionStatus.COMPLETED,
            balance_before=Decimal("500"),
            balance_after=Decimal("300"),
            idempotency_key="withdraw:abc",
            created_at=datetime(2024, 1, 1),
        )
        mock_ledger.debit = AsyncMock(return_value=Return.ok(txn))
        use_case = WithdrawFunds(mock_uow, mock_ledger, KeyedLock())

        # Act
        result = await use_case.execute(
            WithdrawCommandDTO(phone="254712345678", amount=Decimal("200"), idempotency_key="abc")
        )

        # Assert
        assert result.is_ok()
        assert result.value.transaction.transaction_type == "withdraw"
        assert result.value.balance == Decimal("300")
        assert mock_ledger.debit.call_args.kwargs["idempotency_key"] == "withdraw:abc"
        mock_uow.commit.assert_called_once()

    async def test_insufficient_funds_rolls_back(self, mock_uow, mock_ledger):
        mock_ledger.debit = AsyncMock(
            return_value=Return.err(Error(code="INSUFFICIENT_FUNDS", message="Insufficient funds"))
        )
        use_case = WithdrawFunds(mock_uow, mock_ledger, KeyedLock())

        result = await use_case.execute(WithdrawCommandDTO(phone="254712345678", amount=Decimal("900")))

        assert result.error.code == "INSUFFICIENT_FUNDS"
        mock_uow.rollback.assert_called_once()
        mock_uow.commit.assert_not_called()

    async def test_generated_key_when_none_given(self, mock_uow, mock_ledger):
        mock_ledger.debit = AsyncMock(
            return_value=Return.err(Error(code="INSUFFICIENT_FUNDS", message="Insufficient funds"))
        )
        use_case = WithdrawFunds(mock_uow, mock_ledger, KeyedLock())

        await use_case.execute(WithdrawCommandDTO(phone="254712345678", amount=Decimal("1")))

        key = mock_ledger.debit.call_args.kwargs["idempotency_key"]
        assert key.startswith("withdraw:")
        assert len(key) > len("withdraw:")


@pytest.mark.asyncio
class TestGetBalance:

    async def test_returns_balance_in_ksh(self, mock_ledger):
        result = await GetBalance(mock_ledger).execute("254712345678")

        assert result.value.balance == Decimal("300")
        assert result.value.currency == "KSh"
        assert result.value.success is True

    async def test_requires_phone(self, mock_ledger):
        result = await GetBalance(mock_ledger).execute("")

        assert result.error.code == "VALIDATION_ERROR"


@pytest.mark.asyncio
class TestRegisterAndFindUser:

    async def test_register_commits(self, mock_uow):
        ledger = MagicMock()
        ledger.register_user = AsyncMock(
            return_value=Return.ok(
                User(id=1, email="jane@example.com", phone="254712345678", created_at=datetime(2024, 1, 1))
            )
        )

        result = await RegisterUser(mock_uow, ledger).execute(
            RegisterUserCommandDTO(email="jane@example.com", phone="254712345678")
        )

        assert result.value.id == 1
        mock_uow.commit.assert_called_once()

    async def test_register_conflict_rolls_back(self, mock_uow):
        ledger = MagicMock()
        ledger.register_user = AsyncMock(
            return_value=Return.err(Error(code="USER_ALREADY_EXISTS", message="taken"))
        )

        result = await RegisterUser(mock_uow, ledger).execute(
            RegisterUserCommandDTO(email="jane@example.com", phone="254712345678")
        )

        assert result.error.code == "USER_ALREADY_EXISTS"
        mock_uow.rollback.assert_called_once()
        mock_uow.commit.assert_not_called()

    async def test_find_unknown_user(self):
        ledger = MagicMock()
        ledger.find_user_by_phone = AsyncMock(return_value=None)

        result = await FindUser(ledger).execute(phone="254700000000")

        assert result.error.code == "USER_NOT_FOUND"
