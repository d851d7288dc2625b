"""CreateSubscription Use Case

Validates and persists a new recurring subscription.
"""

import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.validation_service import ValidationService
from src.app.repositories.subscription_repository import SubscriptionRepository
from src.domain.exceptions import ValidationError
from src.domain.subscription import (
    Subscription,
    SubscriptionStatus,
    BillingFrequency,
    calculate_next_billing_date,
)
from .dtos import CreateSubscriptionCommandDTO, SubscriptionResponseDTO

logger = logging.getLogger(__name__)


class CreateSubscription:
    """
    Use Case: Create a subscription

    Business Rules:
    1. customer_id, amount, currency and frequency are validated together;
       the error lists every violated field
    2. New subscriptions start active with billing_cycle=0
    3. next_billing_at = created_at + one frequency interval
    """

    def __init__(
        self,
        uow: UnitOfWork,
        subscription_repo: SubscriptionRepository,
        validation_service: Optional[ValidationService] = None,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.uow = uow
        self.subscription_repo = subscription_repo
        self.validator = validation_service or ValidationService()
        self.clock = clock

    async def execute(self, command: CreateSubscriptionCommandDTO) -> Result[SubscriptionResponseDTO]:
        """
        Execute subscription creation

        Args:
            command: CreateSubscriptionCommandDTO

        Returns:
            Result[SubscriptionResponseDTO]: Created subscription or error

        Errors:
            VALIDATION_ERROR: One or more fields invalid (details.field_errors)
            CREATE_SUBSCRIPTION_FAILED: Persistence failure
        """
        customer_id = self.validator.sanitize_string(command.customer_id)
        currency = self.validator.sanitize_string(command.currency)
        frequency = self.validator.sanitize_string(command.frequency)

        errors = self._validate(customer_id, command, currency, frequency)
        if errors:
            return Return.err(ValidationError(errors).to_error())

        try:
            created_at = self.clock()
            subscription = Subscription(
                customer_id=customer_id,
                amount=command.amount,
                currency=currency,
                status=SubscriptionStatus.ACTIVE,
                frequency=BillingFrequency(frequency),
                created_at=created_at,
                next_billing_at=calculate_next_billing_date(created_at, BillingFrequency(frequency)),
                billing_cycle=0,
                metadata_json=command.metadata or None,
                updated_at=created_at,
            )

            created = await self.subscription_repo.create(subscription)
            await self.uow.commit()

            logger.info(
                f"Subscription created: {created.uuid} for customer {customer_id}, "
                f"{created.amount} {created.currency} {created.frequency.value}"
            )

            return Return.ok(SubscriptionResponseDTO.from_entity(created))

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to create subscription for customer {customer_id}: {e}")
            return Return.err(
                Error(
                    code="CREATE_SUBSCRIPTION_FAILED",
                    message="Failed to create subscription",
                    reason=str(e),
                )
            )

    def _validate(
        self,
        customer_id: str,
        command: CreateSubscriptionCommandDTO,
        currency: str,
        frequency: str,
    ) -> Dict[str, List[str]]:
        checks = {
            "customer_id": self.validator.validate_customer_id(customer_id),
            "amount": self.validator.validate_amount(command.amount),
            "currency": self.validator.validate_currency(currency),
            "frequency": self.validator.validate_frequency(frequency),
        }
        return {field: messages for field, messages in checks.items() if messages}
