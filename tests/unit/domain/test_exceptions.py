"""Unit tests for the billing error taxonomy"""

import pytest
from src.domain.exceptions import (
    BillingError,
    GatewayCommunicationError,
    GatewayDeclinedError,
    GatewayError,
    GatewayProtocolError,
    InvalidFrequencyError,
    PaymentMethodExpiredError,
    PaymentProcessingError,
    TransactionRecordError,
    ValidationError,
    VaultNotFoundError,
)


class TestErrorCodes:

    @pytest.mark.parametrize(
        "exc_class, code",
        [
            (GatewayCommunicationError, "GATEWAY_COMMUNICATION_ERROR"),
            (GatewayDeclinedError, "GATEWAY_DECLINED"),
            (GatewayProtocolError, "GATEWAY_PROTOCOL_ERROR"),
            (TransactionRecordError, "TRANSACTION_RECORD_FAILED"),
            (VaultNotFoundError, "VAULT_NOT_FOUND"),
            (PaymentMethodExpiredError, "PAYMENT_METHOD_EXPIRED"),
            (PaymentProcessingError, "PAYMENT_PROCESSING_ERROR"),
            (InvalidFrequencyError, "INVALID_FREQUENCY"),
        ],
    )
    def test_each_error_has_stable_code(self, exc_class, code):
        error = exc_class("boom")

        assert error.code == code
        assert isinstance(error, BillingError)

    def test_gateway_errors_share_base(self):
        assert issubclass(GatewayCommunicationError, GatewayError)
        assert issubclass(TransactionRecordError, GatewayError)


class TestToError:

    def test_to_error_carries_cause_and_context(self):
        """
        Given: An error raised from an underlying exception with context
        When: Converted with to_error()
        Then: Error has the code, message, cause as reason and context as details
        """
        cause = ConnectionError("connection reset")
        error = PaymentProcessingError(
            "Payment processing failed", context={"vault_id": "v-1"}, cause=cause
        )

        result = error.to_error()

        assert result.code == "PAYMENT_PROCESSING_ERROR"
        assert result.message == "Payment processing failed"
        assert result.reason == "connection reset"
        assert result.details == {"vault_id": "v-1"}
        assert error.__cause__ is cause

    def test_to_error_without_context(self):
        result = VaultNotFoundError("missing").to_error()

        assert result.reason is None
        assert result.details is None


class TestValidationError:

    def test_lists_every_field(self):
        error = ValidationError({"currency": ["bad"], "amount": ["too small", "not positive"]})

        assert error.code == "VALIDATION_ERROR"
        assert error.message == "Invalid input for fields: amount, currency"
        assert error.field_errors["amount"] == ["too small", "not positive"]
        assert error.to_error().details == {
            "field_errors": {"currency": ["bad"], "amount": ["too small", "not positive"]}
        }
