"""ChargeWithVault Use Case

Charges a customer through a stored payment method.
"""

import logging
from datetime import datetime
from typing import Callable, Optional
from libs.result import Result, Return
from src.app.services.payment_gateway import PaymentGateway, GatewayResult
from src.app.services.request_context import RequestContext, measure
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.validation_service import ValidationService
from src.app.repositories.payment_vault_repository import PaymentVaultRepository
from src.domain.exceptions import (
    PaymentMethodExpiredError,
    PaymentProcessingError,
    ValidationError,
    VaultNotFoundError,
)
from .dtos import ChargeVaultCommandDTO

logger = logging.getLogger(__name__)


class ChargeWithVault:
    """
    Use Case: Charge a vaulted payment method

    Business Rules:
    1. amount and currency are validated before any lookup (VALIDATION_ERROR)
    2. The entry must exist and be active (VAULT_NOT_FOUND)
    3. Expired cards are refused before any network call (PAYMENT_METHOD_EXPIRED)
    4. Any exception raised by the gateway becomes PAYMENT_PROCESSING_ERROR
       with the entry id in details
    5. last_used_at is stamped only after a successful charge

    Returns Ok(GatewayResult) whenever the gateway answered, including
    declined and error results.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        vault_repo: PaymentVaultRepository,
        gateway: PaymentGateway,
        validation_service: Optional[ValidationService] = None,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.uow = uow
        self.vault_repo = vault_repo
        self.gateway = gateway
        self.validator = validation_service or ValidationService()
        self.clock = clock

    async def execute(
        self,
        command: ChargeVaultCommandDTO,
        context: Optional[RequestContext] = None,
    ) -> Result[GatewayResult]:
        """
        Execute a vault charge

        Args:
            command: ChargeVaultCommandDTO
            context: Optional request context for step timings

        Returns:
            Result[GatewayResult]

        Errors:
            VALIDATION_ERROR: Invalid amount or currency
            VAULT_NOT_FOUND: Entry missing or inactive
            PAYMENT_METHOD_EXPIRED: Card past its expiry month
            PAYMENT_PROCESSING_ERROR: Gateway raised
        """
        vault_uuid = command.vault_uuid

        errors = self.validator.validate_payment_data(
            {"amount": command.amount, "currency": command.currency}
        )
        if errors:
            return Return.err(ValidationError(errors).to_error())

        with measure(context, "store.get_payment_method"):
            entry = await self.vault_repo.get_by_uuid(vault_uuid)

        if entry is None or not entry.is_active:
            return Return.err(
                VaultNotFoundError(
                    "Payment method not found or inactive",
                    context={"vault_id": vault_uuid},
                ).to_error()
            )

        if entry.is_expired(self.clock().date()):
            return Return.err(
                PaymentMethodExpiredError(
                    "Payment method has expired",
                    context={
                        "vault_id": vault_uuid,
                        "expiry_month": entry.expiry_month,
                        "expiry_year": entry.expiry_year,
                    },
                ).to_error()
            )

        entry_id = entry.id
        customer_id = entry.customer_id
        metadata = dict(command.metadata or {})
        metadata["payment_method_token"] = entry.payment_method_token
        metadata["vault_id"] = vault_uuid

        try:
            with measure(context, "gateway.charge_customer"):
                result = await self.gateway.charge_customer(
                    entry.gateway_customer_id,
                    command.amount,
                    command.currency,
                    metadata,
                )
        except Exception as e:
            logger.error(f"Vault charge failed for payment method {vault_uuid}: {e}")
            return Return.err(
                PaymentProcessingError(
                    f"Payment processing failed: {e}",
                    context={"vault_id": vault_uuid},
                    cause=e,
                ).to_error()
            )

        if not result.is_success:
            log = logger.warning if result.is_declined else logger.error
            log(
                f"Vault charge {result.status.value} for payment method {vault_uuid}: {result.message}"
            )
            return Return.ok(result)

        try:
            await self.vault_repo.mark_used(entry_id, self.clock())
            await self.uow.commit()
        except Exception as e:
            await self.uow.rollback()
            # The charge stands; only the usage stamp is lost
            logger.error(f"Failed to mark payment method {vault_uuid} as used: {e}")

        logger.info(
            f"Vault charge successful: customer {customer_id}, payment method {vault_uuid}, "
            f"transaction {result.transaction_id}"
        )
        return Return.ok(result)
