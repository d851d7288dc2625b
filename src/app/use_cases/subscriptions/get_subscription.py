"""Get Subscription Use Case

Retrieves a subscription by its external UUID.
"""

from typing import Optional
from libs.result import Result, Return, Error
from src.app.repositories.subscription_repository import SubscriptionRepository
from src.app.services.validation_service import ValidationService
from src.domain.exceptions import ValidationError
from .dtos import SubscriptionResponseDTO


class GetSubscription:
    """
    Get Subscription Use Case

    Read-only; returns cancelled subscriptions as well as active ones.
    """

    def __init__(
        self,
        subscription_repo: SubscriptionRepository,
        validation_service: Optional[ValidationService] = None,
    ):
        self.subscription_repo = subscription_repo
        self.validator = validation_service or ValidationService()

    async def execute(self, subscription_uuid: str) -> Result[SubscriptionResponseDTO]:
        """
        Errors:
            VALIDATION_ERROR: Malformed UUID
            SUBSCRIPTION_NOT_FOUND: No subscription with this UUID
        """
        uuid_errors = self.validator.validate_uuid(subscription_uuid)
        if uuid_errors:
            return Return.err(ValidationError({"subscription_uuid": uuid_errors}).to_error())

        subscription = await self.subscription_repo.get_by_uuid(subscription_uuid)

        if not subscription:
            return Return.err(
                Error(
                    code="SUBSCRIPTION_NOT_FOUND",
                    message=f"Subscription {subscription_uuid} not found",
                )
            )

        return Return.ok(SubscriptionResponseDTO.from_entity(subscription))
