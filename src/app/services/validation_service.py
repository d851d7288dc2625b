"""Validation Service

Input checks shared by use cases and gateway adapters. Each validator returns
a list of messages (empty when valid) so callers can report every violated
field at once.
"""

import re
import uuid as uuid_lib
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Union
from config import ApplicationConfig
from src.domain.exceptions import ValidationError
from src.domain.subscription import BillingFrequency

CURRENCY_PATTERN = re.compile(r"^[A-Z]{3}$")
IDENTIFIER_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")
CONTROL_CHARS_PATTERN = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")

MIN_AMOUNT = Decimal("0.01")
MAX_DECIMAL_PLACES = 2


class ValidationService:
    """
    Stateless input validation

    Usage:
        validator = ValidationService()
        errors = validator.validate_payment_data({"amount": "10", "currency": "usd"})
        validator.ensure_valid(errors)  # raises ValidationError
    """

    def __init__(self, max_amount: Union[Decimal, str, None] = None):
        if max_amount is None:
            max_amount = ApplicationConfig.SUBSCRIPTION_MAX_AMOUNT
        self.max_amount = Decimal(str(max_amount))

    def validate_amount(self, amount: Any) -> List[str]:
        amount = self._to_decimal(amount)
        if amount is None:
            return ["Amount must be a number"]

        errors = []
        if amount <= 0:
            errors.append("Amount must be positive")
        if amount < MIN_AMOUNT or amount > self.max_amount:
            errors.append(f"Amount must be between {MIN_AMOUNT} and {self.max_amount}")
        if amount.as_tuple().exponent < -MAX_DECIMAL_PLACES:
            errors.append(f"Amount cannot have more than {MAX_DECIMAL_PLACES} decimal places")
        return errors

    def validate_currency(self, currency: Optional[str]) -> List[str]:
        if not currency:
            return ["Currency is required"]
        errors = []
        if len(currency) != 3:
            errors.append("Currency must be exactly 3 characters")
        if not CURRENCY_PATTERN.match(currency):
            errors.append("Currency must be 3 uppercase letters")
        return errors

    def validate_customer_id(self, customer_id: Optional[str]) -> List[str]:
        return self._validate_identifier(
            customer_id,
            "Customer ID",
            min_length=3,
            max_length=255,
            pattern_message="Customer ID can only contain letters, numbers, underscores, and hyphens",
        )

    def validate_transaction_id(self, transaction_id: Optional[str]) -> List[str]:
        return self._validate_identifier(
            transaction_id,
            "Transaction ID",
            min_length=5,
            max_length=100,
            pattern_message="Transaction ID contains invalid characters",
        )

    def validate_frequency(self, frequency: Optional[str]) -> List[str]:
        if not frequency:
            return ["Frequency is required"]
        allowed = [f.value for f in BillingFrequency]
        if frequency not in allowed:
            return [f"Frequency must be one of: {', '.join(allowed)}"]
        return []

    def validate_uuid(self, value: Optional[str]) -> List[str]:
        if not value:
            return ["UUID is required"]
        try:
            uuid_lib.UUID(value)
        except (ValueError, AttributeError, TypeError):
            return ["Invalid UUID format"]
        return []

    def sanitize_string(self, value: str) -> str:
        """Strip control characters and surrounding whitespace"""
        return CONTROL_CHARS_PATTERN.sub("", value).strip()

    def validate_payment_data(self, data: Dict[str, Any]) -> Dict[str, List[str]]:
        """
        Validate whichever of amount, currency and customer_id are present

        Args:
            data: Raw input values

        Returns:
            Dict of field -> messages, only for violated fields
        """
        errors: Dict[str, List[str]] = {}

        if data.get("amount") is not None:
            amount_errors = self.validate_amount(data["amount"])
            if amount_errors:
                errors["amount"] = amount_errors

        if data.get("currency") is not None:
            currency_errors = self.validate_currency(self.sanitize_string(str(data["currency"])))
            if currency_errors:
                errors["currency"] = currency_errors

        if data.get("customer_id") is not None:
            customer_errors = self.validate_customer_id(
                self.sanitize_string(str(data["customer_id"]))
            )
            if customer_errors:
                errors["customer_id"] = customer_errors

        return errors

    def ensure_valid(self, errors: Dict[str, List[str]]) -> None:
        if errors:
            raise ValidationError(errors)

    def _validate_identifier(
        self,
        value: Optional[str],
        label: str,
        min_length: int,
        max_length: int,
        pattern_message: str,
    ) -> List[str]:
        if not value:
            return [f"{label} is required"]
        errors = []
        if not min_length <= len(value) <= max_length:
            errors.append(f"{label} must be between {min_length} and {max_length} characters")
        if not IDENTIFIER_PATTERN.match(value):
            errors.append(pattern_message)
        return errors

    def _to_decimal(self, value: Any) -> Optional[Decimal]:
        if isinstance(value, bool):
            return None
        try:
            amount = Decimal(str(value))
        except (InvalidOperation, ValueError):
            return None
        if not amount.is_finite():
            return None
        return amount
