"""ProcessDueBilling Use Case

Bills every active subscription whose next billing date has passed.
"""

import logging
import time
from datetime import datetime
from typing import Callable, List, Optional
from libs.result import Result, Return, Error
from src.app.services.payment_gateway import PaymentGateway, GatewayResultStatus
from src.app.services.request_context import RequestContext, measure
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.subscription_repository import SubscriptionRepository
from .dtos import BillingResultDTO, ProcessDueBillingResultDTO
from .process_subscription_billing import ProcessSubscriptionBilling

logger = logging.getLogger(__name__)


class ProcessDueBilling:
    """
    Use Case: Process due billing

    Business Rules:
    1. Selects active subscriptions with next_billing_at <= as_of, earliest first
    2. Each subscription is billed independently; a decline, error or
       exception never stops the rest of the run
    3. Each subscription is reloaded before billing so a cancellation that
       happened after selection is honoured
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
        self.clock = clock
        self.process_one = ProcessSubscriptionBilling(
            uow=uow,
            subscription_repo=subscription_repo,
            gateway=gateway,
            clock=clock,
        )

    async def execute(
        self,
        as_of: Optional[datetime] = None,
        context: Optional[RequestContext] = None,
    ) -> Result[ProcessDueBillingResultDTO]:
        """
        Execute a due-billing run

        Args:
            as_of: Cut-off timestamp (defaults to now)
            context: Optional request context for step timings

        Returns:
            Result[ProcessDueBillingResultDTO]: Run totals and per-subscription results

        Errors:
            DUE_BILLING_QUERY_FAILED: Due subscriptions could not be selected
        """
        start_time = time.time()
        as_of = as_of or self.clock()

        try:
            with measure(context, "store.get_due_for_billing"):
                due = await self.subscription_repo.get_due_for_billing(as_of)
            # Plain values: per-item commits and rollbacks expire loaded entities
            targets = [(s.id, s.uuid, s.customer_id, s.billing_cycle) for s in due]
        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to select subscriptions due at {as_of.isoformat()}: {e}")
            return Return.err(
                Error(
                    code="DUE_BILLING_QUERY_FAILED",
                    message="Failed to load subscriptions due for billing",
                    reason=str(e),
                )
            )

        logger.info(f"Found {len(targets)} subscriptions due for billing at {as_of.isoformat()}")

        results: List[BillingResultDTO] = []
        for subscription_id, subscription_uuid, customer_id, billing_cycle in targets:
            try:
                subscription = await self.subscription_repo.get_by_id(subscription_id)
                if subscription is None:
                    results.append(
                        self._error_result(
                            subscription_uuid,
                            customer_id,
                            billing_cycle,
                            "SUBSCRIPTION_NOT_FOUND",
                            "Subscription no longer exists",
                        )
                    )
                    continue

                outcome = await self.process_one.execute(subscription, context=context)
                if outcome.is_ok():
                    results.append(outcome.value)
                else:
                    results.append(
                        self._error_result(
                            subscription_uuid,
                            customer_id,
                            billing_cycle,
                            outcome.error.code,
                            outcome.error.message,
                        )
                    )

            except Exception as e:
                await self.uow.rollback()
                logger.error(f"Unexpected error billing subscription {subscription_uuid}: {e}")
                results.append(
                    self._error_result(
                        subscription_uuid,
                        customer_id,
                        billing_cycle,
                        "BILLING_PROCESSING_FAILED",
                        f"Processing failed: {e}",
                    )
                )

        succeeded = sum(1 for r in results if r.status == GatewayResultStatus.SUCCESS)
        declined = sum(1 for r in results if r.status == GatewayResultStatus.DECLINED)
        failed = sum(1 for r in results if r.status == GatewayResultStatus.ERROR)
        execution_time_ms = int((time.time() - start_time) * 1000)

        logger.info(
            f"Due billing complete: {succeeded}/{len(targets)} succeeded, "
            f"{declined} declined, {failed} failed, {execution_time_ms}ms"
        )

        return Return.ok(
            ProcessDueBillingResultDTO(
                as_of=as_of,
                total_due=len(targets),
                succeeded=succeeded,
                declined=declined,
                failed=failed,
                execution_time_ms=execution_time_ms,
                results=results,
            )
        )

    def _error_result(
        self,
        subscription_uuid: str,
        customer_id: str,
        billing_cycle: int,
        code: str,
        message: str,
    ) -> BillingResultDTO:
        return BillingResultDTO(
            subscription_uuid=subscription_uuid,
            customer_id=customer_id,
            status=GatewayResultStatus.ERROR,
            billing_cycle=billing_cycle,
            code=code,
            message=message,
        )
