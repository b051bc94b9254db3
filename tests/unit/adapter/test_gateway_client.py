"""Unit tests for SpawikoGatewayClient using httpx.MockTransport"""

import json
import httpx
import pytest
from decimal import Decimal

from src.adapter.services.gateway_client import SpawikoGatewayClient
from src.app.services.payment_gateway import GatewayUnavailableError

BASE_URL = "https://pay.example.test/api/v2"


def make_client(handler) -> SpawikoGatewayClient:
    return SpawikoGatewayClient(
        base_url=BASE_URL,
        api_key="key-123",
        api_secret="secret-456",
        timeout=5.0,
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
class TestInitiate:

    async def test_sends_stk_push(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["headers"] = request.headers
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200, json={"success": True, "checkout_request_id": "CR1", "message": "STK push sent"}
            )

        client = make_client(handler)
        result = await client.initiate(17, "254712345678", Decimal("500"), "ORDER_1_ABC123", "Payment")
        await client.aclose()

        assert result.accepted is True
        assert result.checkout_request_id == "CR1"
        assert seen["url"] == f"{BASE_URL}/stkpush.php"
        assert seen["headers"]["X-API-Key"] == "key-123"
        assert seen["headers"]["X-API-Secret"] == "secret-456"
        assert seen["body"] == {
            "payment_account_id": 17,
            "phone": "254712345678",
            "amount": 500,
            "reference": "ORDER_1_ABC123",
            "description": "Payment",
        }

    async def test_rejection_is_not_an_exception(self):
        def handler(request):
            return httpx.Response(200, json={"success": False, "message": "Invalid phone"})

        client = make_client(handler)
        result = await client.initiate(17, "254712345678", Decimal("500"), "ORDER_1", "Payment")

        assert result.accepted is False
        assert result.message == "Invalid phone"
        assert result.raw == {"success": False, "message": "Invalid phone"}

    async def test_client_error_status_is_a_rejection(self):
        def handler(request):
            return httpx.Response(401, json={"message": "Invalid API credentials"})

        client = make_client(handler)
        result = await client.initiate(17, "254712345678", Decimal("500"), "ORDER_1", "Payment")

        assert result.accepted is False
        assert result.message == "Invalid API credentials"

    async def test_server_error_is_unavailable(self):
        def handler(request):
            return httpx.Response(503, text="Service Unavailable")

        client = make_client(handler)
        with pytest.raises(GatewayUnavailableError):
            await client.initiate(17, "254712345678", Decimal("500"), "ORDER_1", "Payment")

    async def test_network_error_is_unavailable(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(handler)
        with pytest.raises(GatewayUnavailableError):
            await client.initiate(17, "254712345678", Decimal("500"), "ORDER_1", "Payment")

    async def test_numeric_checkout_request_id_is_stringified(self):
        def handler(request):
            return httpx.Response(200, json={"success": True, "checkout_request_id": 98765})

        client = make_client(handler)
        result = await client.initiate(17, "254712345678", Decimal("500"), "ORDER_1", "Payment")

        assert result.accepted is True
        assert result.checkout_request_id == "98765"


@pytest.mark.asyncio
class TestQueryStatus:

    async def test_parses_completed_status(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200, json={"success": True, "status": "completed", "transaction_code": "QWE123"}
            )

        client = make_client(handler)
        result = await client.query_status("CR1")

        assert seen["url"] == f"{BASE_URL}/status.php"
        assert seen["body"] == {"checkout_request_id": "CR1"}
        assert result.success is True
        assert result.status == "completed"
        assert result.transaction_code == "QWE123"

    async def test_non_json_body_is_unavailable(self):
        def handler(request):
            return httpx.Response(200, text="<html>maintenance</html>")

        client = make_client(handler)
        with pytest.raises(GatewayUnavailableError):
            await client.query_status("CR1")

    async def test_non_object_body_is_unavailable(self):
        def handler(request):
            return httpx.Response(200, json=["unexpected"])

        client = make_client(handler)
        with pytest.raises(GatewayUnavailableError):
            await client.query_status("CR1")

    async def test_numeric_fields_are_stringified(self):
        def handler(request):
            return httpx.Response(
                200, json={"success": True, "status": "completed", "transaction_code": 123456}
            )

        client = make_client(handler)
        result = await client.query_status("CR1")

        assert result.status == "completed"
        assert result.transaction_code == "123456"

    async def test_object_fields_are_dropped(self):
        def handler(request):
            return httpx.Response(
                200, json={"success": True, "status": {"code": 0}, "message": ["pending"]}
            )

        client = make_client(handler)
        result = await client.query_status("CR1")

        assert result.success is True
        assert result.status is None
        assert result.message is None
        assert result.raw["status"] == {"code": 0}


class TestFromConfig:

    def test_reads_gateway_settings(self):
        class Config:
            GATEWAY_BASE_URL = "https://pay.spawiko.co.ke/api/v2/"
            GATEWAY_API_KEY = "k"
            GATEWAY_API_SECRET = "s"
            GATEWAY_TIMEOUT_SECONDS = 10

        client = SpawikoGatewayClient.from_config(Config)

        assert client.base_url == "https://pay.spawiko.co.ke/api/v2"
