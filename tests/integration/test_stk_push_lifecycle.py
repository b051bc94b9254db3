"""Integration tests for the STK push lifecycle against a real database"""

import httpx
import pytest
from decimal import Decimal

from src.adapter.services.gateway_client import SpawikoGatewayClient
from src.app.use_cases.payments import PaymentPolicy
from src.depends import build_check_payment_status
from src.domain.payment import PaymentStatus
from tests.fixtures.gateway import (
    ScriptedGateway,
    accepted,
    completed,
    failed,
    pending,
    rejected,
    unavailable,
)
from tests.integration.helpers import (
    PHONE,
    balance_of,
    load_payment,
    run_stk_push,
    transactions_of,
)


class TestStkPushLifecycle:

    @pytest.mark.asyncio
    async def test_completes_after_third_poll_and_credits_once(self, session_factory, locks, policy):
        """
        Given: The gateway accepts the push and reports completed on the third poll
        When: The STK push runs
        Then: The payment is completed, polled three times and the wallet credited once
        """
        # Arrange
        gateway = ScriptedGateway(
            initiate_result=accepted("CR1"),
            statuses=[pending(), pending(), completed("QWE123")],
        )

        # Act
        result = await run_stk_push(session_factory, gateway, locks, policy)

        # Assert
        assert result.is_ok()
        outcome = result.value
        assert outcome.success is True
        assert outcome.status == "completed"
        assert outcome.checkout_request_id == "CR1"
        assert outcome.transaction_code == "QWE123"
        assert outcome.attempts == 3
        assert outcome.balance == Decimal("500")
        assert gateway.status_calls == ["CR1", "CR1", "CR1"]

        stored = await load_payment(session_factory, outcome.payment_id)
        assert stored.status == PaymentStatus.COMPLETED
        assert stored.settled_by.value == "poll"
        assert await balance_of(session_factory) == Decimal("500")

        transactions = await transactions_of(session_factory)
        assert len(transactions) == 1
        assert transactions[0].idempotency_key == f"deposit:{outcome.reference}"
        assert transactions[0].payment_id == outcome.payment_id

    @pytest.mark.asyncio
    async def test_gateway_sends_request_fields(self, session_factory, locks, policy):
        gateway = ScriptedGateway(statuses=[completed()])

        result = await run_stk_push(session_factory, gateway, locks, policy, amount="750")

        call = gateway.initiate_calls[0]
        assert call["account_id"] == 17
        assert call["phone"] == PHONE
        assert call["amount"] == Decimal("750")
        assert call["reference"] == result.value.reference
        assert call["reference"].startswith("ORDER_")
        assert call["description"] == "Payment via Spawiko API"

    @pytest.mark.asyncio
    async def test_rejected_initiation_fails_without_polling(self, session_factory, locks, policy):
        """
        Given: The gateway rejects the STK push
        When: The STK push runs
        Then: The payment is FAILED, never polled and the balance is untouched
        """
        gateway = ScriptedGateway(initiate_result=rejected("Invalid payment account"))

        result = await run_stk_push(session_factory, gateway, locks, policy)

        assert result.is_err()
        assert result.error.code == "GATEWAY_REJECTED"
        assert result.error.message == "Invalid payment account"
        assert gateway.status_calls == []

        stored = await load_payment(session_factory, result.error.details["payment_id"])
        assert stored.status == PaymentStatus.FAILED
        assert stored.error_message == "Invalid payment account"
        assert await balance_of(session_factory) == Decimal("0")

    @pytest.mark.asyncio
    async def test_unreachable_gateway_at_initiation(self, session_factory, locks, policy):
        gateway = ScriptedGateway(initiate_result=unavailable("connection refused"))

        result = await run_stk_push(session_factory, gateway, locks, policy)

        assert result.is_err()
        assert result.error.code == "GATEWAY_UNAVAILABLE"
        stored = await load_payment(session_factory, result.error.details["payment_id"])
        assert stored.status == PaymentStatus.FAILED
        assert gateway.status_calls == []

    @pytest.mark.asyncio
    async def test_invalid_phone_creates_no_payment(self, session_factory, locks, policy):
        gateway = ScriptedGateway()

        result = await run_stk_push(session_factory, gateway, locks, policy, phone="0712345678")

        assert result.is_err()
        assert result.error.code == "VALIDATION_ERROR"
        assert gateway.initiate_calls == []

    @pytest.mark.asyncio
    async def test_gateway_reported_failure_is_final(self, session_factory, locks, policy):
        gateway = ScriptedGateway(statuses=[pending(), failed("Request cancelled by user")])

        result = await run_stk_push(session_factory, gateway, locks, policy)

        assert result.is_ok()
        assert result.value.status == "failed"
        assert result.value.success is False
        assert result.value.attempts == 2
        assert await balance_of(session_factory) == Decimal("0")

    @pytest.mark.asyncio
    async def test_status_check_errors_are_retried(self, session_factory, locks, policy):
        gateway = ScriptedGateway(statuses=[unavailable(), unavailable(), completed()])

        result = await run_stk_push(session_factory, gateway, locks, policy)

        assert result.value.status == "completed"
        assert result.value.attempts == 3


class TestTimeoutResolution:

    @pytest.mark.asyncio
    async def test_timeout_after_full_budget_then_manual_check_resolves(self, session_factory, locks, policy):
        """
        Given: The gateway answers pending to every poll
        When: The STK push runs, then the payment is checked after the gateway completes it
        Then: It times out after 24 polls; the check completes and credits it; a
              repeated check answers from the store
        """
        # Arrange
        gateway = ScriptedGateway()

        # Act - exhaust the polling budget
        result = await run_stk_push(session_factory, gateway, locks, policy)

        # Assert
        outcome = result.value
        assert outcome.status == "timeout"
        assert outcome.success is False
        assert outcome.attempts == 24
        assert outcome.last_status == {"success": True, "status": "pending"}
        assert len(gateway.status_calls) == 24
        assert await balance_of(session_factory) == Decimal("0")

        # Act - the gateway has since completed it
        gateway.statuses = [completed("LATE1")]
        async with session_factory() as session:
            check = await build_check_payment_status(session, gateway, locks, policy).execute(
                payment_id=outcome.payment_id
            )

        # Assert
        assert check.value.status == "completed"
        assert check.value.applied is True
        assert check.value.transaction_code == "LATE1"
        assert await balance_of(session_factory) == Decimal("500")
        stored = await load_payment(session_factory, outcome.payment_id)
        assert stored.settled_by.value == "check"

        # Act - a completed payment is answered without the gateway
        async with session_factory() as session:
            again = await build_check_payment_status(session, gateway, locks, policy).execute(
                payment_id=outcome.payment_id
            )

        assert again.value.status == "completed"
        assert again.value.applied is False
        assert len(gateway.status_calls) == 25
        assert len(await transactions_of(session_factory)) == 1

    @pytest.mark.asyncio
    async def test_timeout_stays_final_when_resolution_disabled(self, session_factory, locks):
        policy = PaymentPolicy(poll_interval_seconds=0, max_attempts=3, resolve_timed_out=False)
        gateway = ScriptedGateway()

        result = await run_stk_push(session_factory, gateway, locks, policy)
        assert result.value.status == "timeout"

        gateway.statuses = [completed()]
        async with session_factory() as session:
            check = await build_check_payment_status(session, gateway, locks, policy).execute(
                payment_id=result.value.payment_id
            )

        assert check.value.status == "timeout"
        assert check.value.applied is False
        assert len(gateway.status_calls) == 3
        assert await balance_of(session_factory) == Decimal("0")

    @pytest.mark.asyncio
    async def test_check_unknown_payment(self, session_factory, gateway, locks, policy):
        async with session_factory() as session:
            result = await build_check_payment_status(session, gateway, locks, policy).execute(
                payment_id="missing"
            )

        assert result.is_err()
        assert result.error.code == "PAYMENT_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_numeric_gateway_fields_complete_over_http(self, session_factory, locks, policy):
        """
        Given: The gateway answers with numeric ids and codes
        When: The STK push runs through the HTTP client
        Then: The values are stored as strings and the payment completes
        """
        statuses = iter([
            {"success": True, "status": "pending"},
            {"success": True, "status": "completed", "transaction_code": 123456},
        ])

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith("/stkpush.php"):
                return httpx.Response(200, json={"success": True, "checkout_request_id": 98765})
            return httpx.Response(200, json=next(statuses))

        gateway = SpawikoGatewayClient(
            base_url="https://pay.example.test/api/v2",
            api_key="key",
            api_secret="secret",
            transport=httpx.MockTransport(handler),
        )
        try:
            result = await run_stk_push(session_factory, gateway, locks, policy)
        finally:
            await gateway.aclose()

        assert result.is_ok()
        assert result.value.status == "completed"
        assert result.value.checkout_request_id == "98765"
        assert result.value.transaction_code == "123456"
        assert result.value.attempts == 2
        assert await balance_of(session_factory) == Decimal("500")
