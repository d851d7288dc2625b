"""Unit tests for GatewayResult"""

import pytest
from decimal import Decimal
from src.app.services.payment_gateway import GatewayResult, GatewayResultStatus
from src.domain.exceptions import GatewayDeclinedError, GatewayProtocolError


class TestGatewayResult:

    def test_success(self):
        result = GatewayResult.success(transaction_id="741", amount=Decimal("29.99"), currency="USD")

        assert result.status == GatewayResultStatus.SUCCESS
        assert result.is_success is True
        assert result.is_declined is False
        assert result.is_error is False
        assert result.raise_for_status() is result

    def test_declined_raises_declined_error(self):
        """
        Given: A declined result
        When: raise_for_status is called
        Then: GatewayDeclinedError carries the message and decline code
        """
        result = GatewayResult.declined(message="DECLINE", code="200")

        with pytest.raises(GatewayDeclinedError) as exc_info:
            result.raise_for_status()

        assert exc_info.value.message == "DECLINE"
        assert exc_info.value.context == {"code": "200"}

    def test_error_raises_protocol_error(self):
        result = GatewayResult.error(message="Invalid customer vault id")

        assert result.is_error is True
        with pytest.raises(GatewayProtocolError):
            result.raise_for_status()

    def test_status_is_closed_enum(self):
        assert {s.value for s in GatewayResultStatus} == {"success", "declined", "error"}
