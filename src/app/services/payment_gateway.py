"""Payment Gateway Interface

Contract for tokenized payment processors. Every operation returns a
GatewayResult whose status is one of success, declined or error. Transport
failures are raised as GatewayCommunicationError, never folded into a result.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field
from src.domain.exceptions import GatewayDeclinedError, GatewayProtocolError


class GatewayResultStatus(str, Enum):
    """Outcome of a gateway request"""
    SUCCESS = "success"
    DECLINED = "declined"  # explicit refusal, never retried
    ERROR = "error"  # protocol-level problem, retryable by a supervisor


class GatewayResult(BaseModel):
    """
    Normalized gateway response

    Only the fields relevant to the operation are populated.
    """

    status: GatewayResultStatus = Field(..., description="success, declined or error")
    transaction_id: Optional[str] = Field(default=None, description="Gateway transaction ID")
    amount: Optional[Decimal] = Field(default=None, description="Charged or refunded amount")
    currency: Optional[str] = Field(default=None, description="Currency code")
    form_url: Optional[str] = Field(default=None, description="Hosted card-entry form URL")
    masked_card_last4: Optional[str] = Field(default=None, description="Last four digits of the card")
    code: Optional[str] = Field(default=None, description="Processor response or decline code")
    message: Optional[str] = Field(default=None, description="Processor message")

    @property
    def is_success(self) -> bool:
        return self.status == GatewayResultStatus.SUCCESS

    @property
    def is_declined(self) -> bool:
        return self.status == GatewayResultStatus.DECLINED

    @property
    def is_error(self) -> bool:
        return self.status == GatewayResultStatus.ERROR

    @classmethod
    def success(cls, **fields: Any) -> "GatewayResult":
        return cls(status=GatewayResultStatus.SUCCESS, **fields)

    @classmethod
    def declined(cls, message: Optional[str] = None, code: Optional[str] = None) -> "GatewayResult":
        return cls(status=GatewayResultStatus.DECLINED, message=message, code=code)

    @classmethod
    def error(cls, message: Optional[str] = None, code: Optional[str] = None) -> "GatewayResult":
        return cls(status=GatewayResultStatus.ERROR, message=message, code=code)

    def raise_for_status(self) -> "GatewayResult":
        """
        Convert a non-success result into an exception

        Raises:
            GatewayDeclinedError: status is declined
            GatewayProtocolError: status is error
        """
        context = {"code": self.code} if self.code else None
        if self.is_declined:
            raise GatewayDeclinedError(self.message or "Payment declined", context=context)
        if self.is_error:
            raise GatewayProtocolError(self.message or "Gateway error", context=context)
        return self

    class Config:
        json_schema_extra = {
            "example": {
                "status": "success",
                "transaction_id": "7412983311",
                "amount": "29.99",
                "currency": "USD",
            }
        }


class PaymentGateway(ABC):
    """
    Interface for payment processors

    Implementations must durably record every successful charge or refund
    before returning the success result.
    """

    @abstractmethod
    async def initialize_charge(
        self,
        amount: Decimal,
        currency: str = "USD",
        redirect_url: Optional[str] = None,
        billing_info: Optional[Dict[str, str]] = None,
        shipping_info: Optional[Dict[str, str]] = None,
    ) -> GatewayResult:
        """
        Step one of the hosted three-step flow

        Args:
            amount: Charge amount (> 0)
            currency: Currency code
            redirect_url: Where the hosted form posts the token back
            billing_info: Billing address fields
            shipping_info: Shipping address fields

        Returns:
            GatewayResult with form_url on success

        Raises:
            ValidationError: amount or currency invalid (before any network call)
            GatewayCommunicationError: transport failure
        """
        pass

    @abstractmethod
    async def complete_charge(self, token_id: str) -> GatewayResult:
        """
        Step three: complete a charge with the token returned by the form

        Returns:
            GatewayResult with transaction_id, amount, currency and masked_card_last4
        """
        pass

    @abstractmethod
    async def refund(self, original_transaction_id: str, amount: Decimal) -> GatewayResult:
        """
        Refund all or part of a previous charge

        Raises:
            ValidationError: amount is not positive
        """
        pass

    @abstractmethod
    async def charge_customer(
        self,
        customer_ref: str,
        amount: Decimal,
        currency: str = "USD",
        metadata: Optional[Dict[str, Any]] = None,
    ) -> GatewayResult:
        """
        Charge a customer stored in the gateway's vault

        Used for subscription rebilling and vaulted payment methods.

        Args:
            customer_ref: Gateway-side customer reference
            amount: Charge amount (> 0)
            currency: Currency code
            metadata: subscription_id / billing_cycle for the order description,
                payment_method_token to select a specific vaulted method

        Returns:
            GatewayResult with transaction_id, amount and currency on success
        """
        pass
