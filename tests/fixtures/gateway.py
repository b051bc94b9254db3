"""Scripted in-memory payment gateway for tests"""

from decimal import Decimal
from typing import Any, Awaitable, Callable, List, Optional, Union

from src.app.services.payment_gateway import (
    GatewayUnavailableError,
    InitiateResult,
    PaymentGateway,
    StatusResult,
)

Scripted = Union[StatusResult, Exception]


def accepted(checkout_request_id: str = "CR1") -> InitiateResult:
    raw = {"success": True, "checkout_request_id": checkout_request_id, "message": "STK push sent"}
    return InitiateResult(accepted=True, checkout_request_id=checkout_request_id, message="STK push sent", raw=raw)


def rejected(message: str = "Invalid payment account") -> InitiateResult:
    return InitiateResult(accepted=False, message=message, raw={"success": False, "message": message})


def pending() -> StatusResult:
    return StatusResult(success=True, status="pending", raw={"success": True, "status": "pending"})


def completed(transaction_code: str = "QWE123") -> StatusResult:
    raw = {"success": True, "status": "completed", "transaction_code": transaction_code}
    return StatusResult(success=True, status="completed", transaction_code=transaction_code, raw=raw)


def failed(message: str = "Request cancelled by user") -> StatusResult:
    raw = {"success": True, "status": "failed", "message": message}
    return StatusResult(success=True, status="failed", message=message, raw=raw)


def unavailable(message: str = "connection refused") -> GatewayUnavailableError:
    return GatewayUnavailableError(message)


class ScriptedGateway(PaymentGateway):
    """
    Plays back scripted gateway answers

    `statuses` are consumed one per status query; once exhausted every query
    answers pending. Exceptions in the script are raised instead of returned.
    `before_status` runs before each status answer (receives the attempt
    number) to simulate out-of-band events while a poll is in flight.
    """

    def __init__(
        self,
        initiate_result: Union[InitiateResult, Exception, None] = None,
        statuses: Optional[List[Scripted]] = None,
        before_status: Optional[Callable[[int], Awaitable[Any]]] = None,
    ):
        self.initiate_result = initiate_result if initiate_result is not None else accepted()
        self.statuses: List[Scripted] = list(statuses or [])
        self.before_status = before_status
        self.initiate_calls: List[dict] = []
        self.status_calls: List[str] = []
        self.closed = False

    async def initiate(
        self,
        account_id: Any,
        phone: str,
        amount: Decimal,
        reference: str,
        description: str,
    ) -> InitiateResult:
        self.initiate_calls.append(
            {
                "account_id": account_id,
                "phone": phone,
                "amount": amount,
                "reference": reference,
                "description": description,
            }
        )
        if isinstance(self.initiate_result, Exception):
            raise self.initiate_result
        return self.initiate_result

    async def query_status(self, checkout_request_id: str) -> StatusResult:
        self.status_calls.append(checkout_request_id)
        if self.before_status is not None:
            await self.before_status(len(self.status_calls))
        answer = self.statuses.pop(0) if self.statuses else pending()
        if isinstance(answer, Exception):
            raise answer
        return answer

    async def aclose(self) -> None:
        self.closed = True

    @property
    def last_reference(self) -> Optional[str]:
        return self.initiate_calls[-1]["reference"] if self.initiate_calls else None
