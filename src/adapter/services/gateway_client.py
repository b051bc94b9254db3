"""Spawiko STK Push Gateway Client

httpx implementation of PaymentGateway against the Spawiko v2 API:

- POST {base}/stkpush.php  {payment_account_id, phone, amount, reference, description}
- POST {base}/status.php   {checkout_request_id}

Both authenticate with X-API-Key / X-API-Secret headers.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, Optional
import httpx
from src.app.services.payment_gateway import (
    PaymentGateway,
    GatewayUnavailableError,
    InitiateResult,
    StatusResult,
)

logger = logging.getLogger(__name__)


def _text(body: Dict[str, Any], key: str) -> Optional[str]:
    """Scalar field as a string; numbers are stringified, objects are dropped"""
    value = body.get(key)
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, (bool, int, float)):
        return str(value)
    logger.warning(f"Gateway field {key!r} has unexpected type {type(value).__name__}")
    return None


class SpawikoGatewayClient(PaymentGateway):
    """
    Spawiko gateway over a reusable httpx.AsyncClient

    Transport errors, 5xx responses and non-JSON bodies raise
    GatewayUnavailableError. A JSON body with `success: false` is returned
    as a rejection (initiate) or a failed check (status). Nothing is retried
    here; STK pushes must not be sent twice for one reference.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        api_secret: str,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._headers = {
            "X-API-Key": api_key,
            "X-API-Secret": api_secret,
            "Content-Type": "application/json",
        }
        self._timeout = httpx.Timeout(timeout)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_config(cls, config) -> "SpawikoGatewayClient":
        return cls(
            base_url=config.GATEWAY_BASE_URL,
            api_key=config.GATEWAY_API_KEY,
            api_secret=config.GATEWAY_API_SECRET,
            timeout=float(config.GATEWAY_TIMEOUT_SECONDS),
        )

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self._headers,
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            try:
                await self._client.aclose()
            finally:
                self._client = None

    async def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = await self._get_client().post(path, json=payload)
        except httpx.HTTPError as e:
            raise GatewayUnavailableError(f"{path}: {e.__class__.__name__}: {e}") from e

        if response.status_code >= 500:
            raise GatewayUnavailableError(f"{path}: HTTP {response.status_code}")

        try:
            body = response.json()
        except ValueError as e:
            raise GatewayUnavailableError(
                f"{path}: HTTP {response.status_code} with non-JSON body"
            ) from e

        if not isinstance(body, dict):
            raise GatewayUnavailableError(f"{path}: unexpected response {body!r}")

        if response.status_code >= 400:
            logger.warning(f"Gateway {path} returned HTTP {response.status_code}: {body}")
            body.setdefault("success", False)
        return body

    async def initiate(
        self,
        account_id: Any,
        phone: str,
        amount: Decimal,
        reference: str,
        description: str,
    ) -> InitiateResult:
        payload = {
            "payment_account_id": account_id,
            "phone": phone,
            # Gateway expects whole shillings as a number
            "amount": int(amount),
            "reference": reference,
            "description": description,
        }
        body = await self._post("/stkpush.php", payload)
        return InitiateResult(
            accepted=bool(body.get("success")),
            checkout_request_id=_text(body, "checkout_request_id"),
            message=_text(body, "message"),
            raw=body,
        )

    async def query_status(self, checkout_request_id: str) -> StatusResult:
        body = await self._post("/status.php", {"checkout_request_id": checkout_request_id})
        return StatusResult(
            success=bool(body.get("success")),
            status=_text(body, "status"),
            transaction_code=_text(body, "transaction_code"),
            message=_text(body, "message"),
            raw=body,
        )
