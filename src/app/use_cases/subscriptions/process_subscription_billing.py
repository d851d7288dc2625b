"""ProcessSubscriptionBilling Use Case

Charges one subscription through the payment gateway and advances its
billing cycle on success.
"""

import logging
from datetime import datetime
from typing import Callable, Optional
from libs.result import Result, Return, Error
from src.app.services.payment_gateway import PaymentGateway, GatewayResult
from src.app.services.request_context import RequestContext, measure
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.subscription_repository import SubscriptionRepository
from src.domain.exceptions import BillingError
from src.domain.subscription import Subscription, calculate_next_billing_date
from .dtos import BillingResultDTO

logger = logging.getLogger(__name__)


class ProcessSubscriptionBilling:
    """
    Use Case: Bill a single subscription

    Business Rules:
    1. Inactive subscriptions are never charged (SUBSCRIPTION_NOT_ACTIVE)
    2. The gateway receives subscription_id and billing_cycle = cycle + 1
    3. Success: last_billing_at = now, next_billing_at = now + interval,
       billing_cycle + 1, in one update guarded on status and expected cycle
    4. Declined/error: billing fields untouched, gateway result returned as is

    Outcomes:
    - Ok(BillingResultDTO): the gateway answered (success, declined or error)
    - Err: no answer to report (inactive subscription, gateway exception,
      or the charge succeeded but the billing fields could not be saved)
    """

    def __init__(
        self,
        uow: UnitOfWork,
        subscription_repo: SubscriptionRepository,
        gateway: PaymentGateway,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.uow = uow
        self.subscription_repo = subscription_repo
        self.gateway = gateway
        self.clock = clock

    async def execute(
        self,
        subscription: Subscription,
        context: Optional[RequestContext] = None,
    ) -> Result[BillingResultDTO]:
        """
        Execute billing for one subscription

        Args:
            subscription: Freshly loaded subscription
            context: Optional request context for step timings

        Returns:
            Result[BillingResultDTO]

        Errors:
            SUBSCRIPTION_NOT_ACTIVE: Subscription is cancelled
            GATEWAY_*: Gateway raised (communication, validation, record failure)
            BILLING_PROCESSING_FAILED: Unexpected failure before a charge was made
            BILLING_STATE_UPDATE_FAILED: Charged, but billing fields were not saved
        """
        if not subscription.is_active():
            return Return.err(
                Error(
                    code="SUBSCRIPTION_NOT_ACTIVE",
                    message="Subscription is not active",
                    details={"subscription_uuid": subscription.uuid},
                )
            )

        # Captured up front: a commit or rollback inside the gateway may expire the entity
        subscription_id = subscription.id
        subscription_uuid = subscription.uuid
        customer_id = subscription.customer_id
        frequency = subscription.frequency
        expected_cycle = subscription.billing_cycle
        next_billing_at = subscription.next_billing_at

        try:
            with measure(context, "gateway.charge_customer"):
                gateway_result = await self.gateway.charge_customer(
                    customer_id,
                    subscription.amount,
                    subscription.currency,
                    {
                        "subscription_id": subscription_uuid,
                        "billing_cycle": expected_cycle + 1,
                    },
                )
        except BillingError as e:
            logger.error(f"Billing failed for subscription {subscription_uuid}: [{e.code}] {e.message}")
            return Return.err(e.to_error())
        except Exception as e:
            logger.exception(f"Unexpected error billing subscription {subscription_uuid}")
            return Return.err(
                Error(
                    code="BILLING_PROCESSING_FAILED",
                    message=f"Processing failed: {e}",
                    reason=str(e),
                    details={"subscription_uuid": subscription_uuid},
                )
            )

        if not gateway_result.is_success:
            log = logger.warning if gateway_result.is_declined else logger.error
            log(
                f"Billing {gateway_result.status.value} for subscription {subscription_uuid}: "
                f"{gateway_result.message}"
            )
            return Return.ok(
                self._to_result(
                    subscription_uuid, customer_id, gateway_result, expected_cycle, next_billing_at
                )
            )

        billed_at = self.clock()
        new_next_billing_at = calculate_next_billing_date(billed_at, frequency)

        try:
            with measure(context, "store.advance_billing_cycle"):
                advanced = await self.subscription_repo.advance_billing_cycle(
                    subscription_id, expected_cycle, billed_at, new_next_billing_at
                )
                if advanced:
                    await self.uow.commit()
                else:
                    await self.uow.rollback()
        except Exception as e:
            await self.uow.rollback()
            logger.critical(
                f"Subscription {subscription_uuid} charged (transaction "
                f"{gateway_result.transaction_id}) but billing fields were not updated: {e}"
            )
            return Return.err(
                Error(
                    code="BILLING_STATE_UPDATE_FAILED",
                    message="Payment succeeded but the subscription could not be updated",
                    reason=str(e),
                    details={
                        "subscription_uuid": subscription_uuid,
                        "transaction_id": gateway_result.transaction_id,
                    },
                )
            )

        if not advanced:
            logger.warning(
                f"Subscription {subscription_uuid} changed during billing "
                f"(cancelled or already advanced past cycle {expected_cycle}); "
                f"transaction {gateway_result.transaction_id} left billing fields unchanged"
            )
            return Return.ok(
                self._to_result(
                    subscription_uuid, customer_id, gateway_result, expected_cycle, next_billing_at
                )
            )

        logger.info(
            f"Rebilling successful: subscription {subscription_uuid}, customer {customer_id}, "
            f"cycle {expected_cycle + 1}, transaction {gateway_result.transaction_id}"
        )

        return Return.ok(
            self._to_result(
                subscription_uuid, customer_id, gateway_result, expected_cycle + 1, new_next_billing_at
            )
        )

    def _to_result(
        self,
        subscription_uuid: str,
        customer_id: str,
        gateway_result: GatewayResult,
        billing_cycle: int,
        next_billing_at: datetime,
    ) -> BillingResultDTO:
        return BillingResultDTO(
            subscription_uuid=subscription_uuid,
            customer_id=customer_id,
            status=gateway_result.status,
            transaction_id=gateway_result.transaction_id,
            amount=gateway_result.amount,
            currency=gateway_result.currency,
            billing_cycle=billing_cycle,
            next_billing_at=next_billing_at,
            code=gateway_result.code,
            message=gateway_result.message,
        )
