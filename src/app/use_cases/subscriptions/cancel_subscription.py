"""CancelSubscription Use Case

Terminal transition from active to cancelled.
"""

import logging
from datetime import datetime
from typing import Callable, Optional
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.validation_service import ValidationService
from src.app.repositories.subscription_repository import SubscriptionRepository
from src.domain.exceptions import ValidationError

logger = logging.getLogger(__name__)


class CancelSubscription:
    """
    Use Case: Cancel a subscription

    Returns Ok(False), not an error, when the subscription does not exist or
    is already cancelled. The transition is a single conditional update, so
    a concurrent billing run never advances a cancelled subscription.
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

    async def execute(self, subscription_uuid: str) -> Result[bool]:
        """
        Execute cancellation

        Args:
            subscription_uuid: External subscription identifier

        Returns:
            Result[bool]: True if cancelled now, False if missing or already cancelled

        Errors:
            VALIDATION_ERROR: Malformed UUID
            CANCEL_SUBSCRIPTION_FAILED: Persistence failure
        """
        uuid_errors = self.validator.validate_uuid(subscription_uuid)
        if uuid_errors:
            return Return.err(ValidationError({"subscription_uuid": uuid_errors}).to_error())

        try:
            cancelled = await self.subscription_repo.cancel(subscription_uuid, self.clock())

            if not cancelled:
                await self.uow.rollback()
                logger.warning(
                    f"Subscription {subscription_uuid} not found or already cancelled"
                )
                return Return.ok(False)

            await self.uow.commit()
            logger.info(f"Subscription cancelled: {subscription_uuid}")
            return Return.ok(True)

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to cancel subscription {subscription_uuid}: {e}")
            return Return.err(
                Error(
                    code="CANCEL_SUBSCRIPTION_FAILED",
                    message="Failed to cancel subscription",
                    reason=str(e),
                )
            )
