"""StorePaymentMethod Use Case

Adds a tokenized payment method to a customer's vault.
"""

import logging
import re
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.validation_service import ValidationService
from src.app.repositories.payment_vault_repository import PaymentVaultRepository
from src.domain.exceptions import ValidationError
from src.domain.payment_vault import PaymentVaultEntry
from .dtos import StorePaymentMethodCommandDTO, PaymentMethodResponseDTO

logger = logging.getLogger(__name__)

LAST4_PATTERN = re.compile(r"^\d{4}$")
YEAR_PATTERN = re.compile(r"^(\d{2}|\d{4})$")


class StorePaymentMethod:
    """
    Use Case: Store a payment method

    Business Rules:
    1. customer_id, gateway reference and token are required
    2. Expiry month is stored zero-padded (MM), expiry year as four digits
    3. The entry becomes the default iff the customer has no active default;
       a concurrent insert that loses the race is stored as non-default
    """

    def __init__(
        self,
        uow: UnitOfWork,
        vault_repo: PaymentVaultRepository,
        validation_service: Optional[ValidationService] = None,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.uow = uow
        self.vault_repo = vault_repo
        self.validator = validation_service or ValidationService()
        self.clock = clock

    async def execute(self, command: StorePaymentMethodCommandDTO) -> Result[PaymentMethodResponseDTO]:
        """
        Execute store

        Returns:
            Result[PaymentMethodResponseDTO]: Stored entry, with its final is_default

        Errors:
            VALIDATION_ERROR: One or more fields invalid (details.field_errors)
            STORE_PAYMENT_METHOD_FAILED: Persistence failure
        """
        customer_id = self.validator.sanitize_string(command.customer_id)
        gateway_customer_id = self.validator.sanitize_string(command.gateway_customer_id)
        token = command.payment_method_token.strip()

        errors, expiry_month, expiry_year = self._validate(
            customer_id, gateway_customer_id, token, command
        )
        if errors:
            return Return.err(ValidationError(errors).to_error())

        try:
            now = self.clock()
            entry = PaymentVaultEntry(
                customer_id=customer_id,
                gateway_customer_id=gateway_customer_id,
                payment_method_token=token,
                payment_method_type=command.payment_method_type,
                last4_digits=command.last4_digits or None,
                card_brand=command.card_brand or None,
                expiry_month=expiry_month,
                expiry_year=expiry_year,
                billing_name=command.billing_name or None,
                billing_address=command.billing_address or None,
                metadata_json=command.metadata or None,
                created_at=now,
                updated_at=now,
            )

            created = await self.vault_repo.create(entry)
            await self.uow.commit()

            logger.info(
                f"Payment method {created.uuid} stored for customer {customer_id} "
                f"(default={created.is_default})"
            )

            return Return.ok(PaymentMethodResponseDTO.from_entity(created))

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to store payment method for customer {customer_id}: {e}")
            return Return.err(
                Error(
                    code="STORE_PAYMENT_METHOD_FAILED",
                    message="Failed to store payment method",
                    reason=str(e),
                )
            )

    def _validate(
        self,
        customer_id: str,
        gateway_customer_id: str,
        token: str,
        command: StorePaymentMethodCommandDTO,
    ) -> Tuple[Dict[str, List[str]], Optional[str], Optional[str]]:
        errors: Dict[str, List[str]] = {}

        customer_errors = self.validator.validate_customer_id(customer_id)
        if customer_errors:
            errors["customer_id"] = customer_errors
        if not gateway_customer_id:
            errors["gateway_customer_id"] = ["Gateway customer reference is required"]
        if not token:
            errors["payment_method_token"] = ["Payment method token is required"]
        if command.last4_digits and not LAST4_PATTERN.match(command.last4_digits):
            errors["last4_digits"] = ["Last four digits must be exactly 4 digits"]

        expiry_month = None
        if command.expiry_month:
            month = command.expiry_month.strip()
            if not month.isdigit() or not 1 <= int(month) <= 12:
                errors["expiry_month"] = ["Expiry month must be between 1 and 12"]
            else:
                expiry_month = f"{int(month):02d}"

        expiry_year = None
        if command.expiry_year:
            year = command.expiry_year.strip()
            if not YEAR_PATTERN.match(year):
                errors["expiry_year"] = ["Expiry year must have 2 or 4 digits"]
            else:
                expiry_year = f"20{year}" if len(year) == 2 else year

        return errors, expiry_month, expiry_year
