"""Integration tests for the stale payment sweep"""

import pytest
from decimal import Decimal

from src.app.use_cases.payments import PaymentPolicy
from src.depends import build_sweep_payments
from src.domain.payment import PaymentStatus
from tests.fixtures.gateway import ScriptedGateway, completed
from tests.integration.helpers import balance_of, load_payment, store_payment


async def sweep(session_factory, gateway, locks, policy, min_age_seconds=60):
    async with session_factory() as session:
        use_case = build_sweep_payments(
            session, gateway, locks, policy, min_age_seconds=min_age_seconds, batch_size=10
        )
        return await use_case.execute()


class TestStalePaymentSweep:

    @pytest.mark.asyncio
    async def test_sweep_fails_orphans_and_resolves_stale_pending(self, session_factory, locks, policy):
        """
        Given: An orphan that never reached the gateway, a stale accepted payment
               and a fresh payment still being polled
        When: The sweep runs
        Then: The orphan fails, the stale payment is completed from the gateway
              and the fresh payment is left to its poll loop
        """
        # Arrange
        orphan = await store_payment(session_factory, age_seconds=600)
        stale = await store_payment(session_factory, checkout_request_id="CR-STALE", age_seconds=600)
        fresh = await store_payment(session_factory, checkout_request_id="CR-FRESH")
        gateway = ScriptedGateway(statuses=[completed("SWEPT1")])

        # Act
        result = await sweep(session_factory, gateway, locks, policy)

        # Assert
        assert result.is_ok()
        assert result.value.checked == 2
        assert result.value.orphans_failed == 1
        assert result.value.resolved == 1
        assert result.value.errors == 0
        assert gateway.status_calls == ["CR-STALE"]

        assert (await load_payment(session_factory, orphan.id)).status == PaymentStatus.FAILED
        swept = await load_payment(session_factory, stale.id)
        assert swept.status == PaymentStatus.COMPLETED
        assert swept.settled_by.value == "sweep"
        assert (await load_payment(session_factory, fresh.id)).status == PaymentStatus.PENDING
        assert await balance_of(session_factory) == Decimal("500")

    @pytest.mark.asyncio
    async def test_sweep_resolves_timed_out_payment(self, session_factory, locks, policy):
        payment = await store_payment(
            session_factory, status=PaymentStatus.TIMEOUT, checkout_request_id="CR-TO", age_seconds=600
        )
        gateway = ScriptedGateway(statuses=[completed()])

        result = await sweep(session_factory, gateway, locks, policy)

        assert result.value.resolved == 1
        assert (await load_payment(session_factory, payment.id)).status == PaymentStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_sweep_skips_timed_out_when_resolution_disabled(self, session_factory, locks):
        policy = PaymentPolicy(poll_interval_seconds=0, resolve_timed_out=False)
        await store_payment(
            session_factory, status=PaymentStatus.TIMEOUT, checkout_request_id="CR-TO2", age_seconds=600
        )
        gateway = ScriptedGateway(statuses=[completed()])

        result = await sweep(session_factory, gateway, locks, policy)

        assert result.value.checked == 0
        assert gateway.status_calls == []

    @pytest.mark.asyncio
    async def test_still_pending_at_gateway_is_left_alone(self, session_factory, locks, policy):
        payment = await store_payment(session_factory, checkout_request_id="CR-WAIT", age_seconds=600)
        gateway = ScriptedGateway()

        result = await sweep(session_factory, gateway, locks, policy)

        assert result.value.checked == 1
        assert result.value.resolved == 0
        assert (await load_payment(session_factory, payment.id)).status == PaymentStatus.PENDING
