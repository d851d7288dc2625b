"""Billing Error Taxonomy

Every exception carries a stable machine-readable ``code``, a human ``message``
and a ``context`` dict for structured logging. ``to_error()`` converts an
exception into a ``libs.result.Error`` so use cases can report it as a
typed failure.
"""

from typing import Any, Dict, List, Optional
from libs.result import Error


class BillingError(Exception):
    """Base class for all billing service errors"""

    code = "BILLING_ERROR"

    def __init__(
        self,
        message: str = "",
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def to_error(self) -> Error:
        return Error(
            code=self.code,
            message=self.message,
            reason=str(self.cause) if self.cause is not None else None,
            details=self.context or None,
        )


class ValidationError(BillingError):
    """Input failed validation; never reaches the network.

    ``field_errors`` maps each violated field to all of its messages.
    """

    code = "VALIDATION_ERROR"

    def __init__(self, field_errors: Dict[str, List[str]], message: Optional[str] = None):
        self.field_errors = field_errors
        fields = ", ".join(sorted(field_errors))
        super().__init__(
            message or f"Invalid input for fields: {fields}",
            context={"field_errors": field_errors},
        )


class GatewayError(BillingError):
    """Base class for payment gateway failures"""

    code = "GATEWAY_ERROR"


class GatewayCommunicationError(GatewayError):
    """Transport-level failure talking to the processor (timeout, connection, HTTP status)"""

    code = "GATEWAY_COMMUNICATION_ERROR"


class GatewayDeclinedError(GatewayError):
    """Processor explicitly refused the charge. Never retried automatically."""

    code = "GATEWAY_DECLINED"


class GatewayProtocolError(GatewayError):
    """Malformed or unexpected processor response. Safe for a supervisor to retry."""

    code = "GATEWAY_PROTOCOL_ERROR"


class TransactionRecordError(GatewayError):
    """Processor approved the request but the local transaction record could not be persisted"""

    code = "TRANSACTION_RECORD_FAILED"


class VaultNotFoundError(BillingError):
    code = "VAULT_NOT_FOUND"


class PaymentMethodExpiredError(BillingError):
    code = "PAYMENT_METHOD_EXPIRED"


class PaymentProcessingError(BillingError):
    """Unexpected failure while charging a vaulted payment method"""

    code = "PAYMENT_PROCESSING_ERROR"


class InvalidFrequencyError(BillingError):
    """Billing frequency outside the supported set.

    Unreachable for validated input; raising it signals a broken invariant.
    """

    code = "INVALID_FREQUENCY"
