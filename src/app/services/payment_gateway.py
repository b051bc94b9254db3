"""Payment Gateway Interface

Defines the contract for the external mobile-money gateway (STK push).

The gateway is not authoritative about our state: a transport failure is
raised as GatewayUnavailableError and must not be confused with the gateway
answering `success: false`.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field


class GatewayUnavailableError(Exception):
    """The gateway could not be reached or returned an unusable response"""


class InitiateResult(BaseModel):
    """Gateway answer to an STK push request"""

    accepted: bool
    checkout_request_id: Optional[str] = None
    message: Optional[str] = None
    raw: Dict[str, Any] = Field(default_factory=dict)


class StatusResult(BaseModel):
    """
    Gateway answer to a status query

    `success` describes the status check itself; `status` describes the payment.
    """

    success: bool
    status: Optional[str] = None
    transaction_code: Optional[str] = None
    message: Optional[str] = None
    raw: Dict[str, Any] = Field(default_factory=dict)


class PaymentGateway(ABC):

    @abstractmethod
    async def initiate(
        self,
        account_id: Any,
        phone: str,
        amount: Decimal,
        reference: str,
        description: str,
    ) -> InitiateResult:
        """
        Send an STK push

        Raises:
            GatewayUnavailableError: Network failure or unusable response
        """
        pass

    @abstractmethod
    async def query_status(self, checkout_request_id: str) -> StatusResult:
        """
        Query the status of an STK push

        Raises:
            GatewayUnavailableError: Network failure or unusable response
        """
        pass

    async def aclose(self) -> None:
        """Release underlying connections"""
        return None
