"""Billing Scheduler Background Worker

Periodically charges every subscription whose next billing date has passed.
Can be run as a standalone script or integrated with a scheduler.
"""

import asyncio
import logging
from datetime import datetime
from typing import Optional
import httpx
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.adapter.repositories.subscription_repository import SqlAlchemySubscriptionRepository
from src.adapter.services.nmi_payment_gateway import create_payment_gateway
from src.adapter.services.performance_monitor import PerformanceMonitor
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.services.payment_gateway import GatewayResultStatus
from src.app.services.request_context import RequestContext
from src.app.use_cases.subscriptions import ProcessDueBilling, ProcessDueBillingResultDTO

logger = logging.getLogger(__name__)


class BillingSchedulerWorker:
    """
    Background worker for recurring subscription billing

    Features:
    - Runs hourly by default
    - One session per run; each subscription commits independently
    - Shares one HTTP client with the gateway across runs
    - Can run once or continuously

    Usage:
        # Run once for everything due now
        worker = BillingSchedulerWorker()
        result = await worker.run_once()

        # Run continuously
        worker = BillingSchedulerWorker()
        await worker.run_forever(interval_seconds=3600)
    """

    def __init__(
        self,
        db_uri: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the worker

        Args:
            db_uri: Database URI (defaults to ApplicationConfig.DB_URI)
            http_client: Gateway HTTP client (created from config if omitted)
        """
        self.db_uri = db_uri or ApplicationConfig.DB_URI

        # Create engine and session factory
        self.engine = create_async_engine(self.db_uri, echo=False, future=True)
        self.async_session_factory = sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
        )

        self.http_client = http_client or httpx.AsyncClient(
            timeout=ApplicationConfig.GATEWAY_TIMEOUT_SECONDS
        )
        self.performance_monitor = PerformanceMonitor()

        logger.info("BillingSchedulerWorker initialized")

    async def run_once(self, as_of: Optional[datetime] = None) -> Optional[ProcessDueBillingResultDTO]:
        """
        Bill every subscription due at as_of

        Args:
            as_of: Cut-off timestamp (defaults to now)

        Returns:
            ProcessDueBillingResultDTO, or None if the scheduler is disabled or the run failed
        """
        if not ApplicationConfig.BILLING_SCHEDULER_ENABLED:
            logger.info("Billing scheduler is disabled, skipping")
            return None

        context = RequestContext(operation="billing_scheduler.run_once")

        async with self.async_session_factory() as session:
            use_case = ProcessDueBilling(
                uow=SqlAlchemyUnitOfWork(session),
                subscription_repo=SqlAlchemySubscriptionRepository(session),
                gateway=create_payment_gateway(session, http_client=self.http_client),
            )

            result = await use_case.execute(as_of=as_of, context=context)

        self.performance_monitor.report(context)

        if result.is_err():
            logger.error(f"Billing run failed: {result.error.message}")
            return None

        summary = result.value
        for item in summary.results:
            if item.status != GatewayResultStatus.SUCCESS:
                logger.warning(
                    f"Subscription {item.subscription_uuid} not billed: "
                    f"{item.status.value} [{item.code}] {item.message}"
                )

        return summary

    async def run_forever(self, interval_seconds: Optional[int] = None):
        """
        Run billing continuously at the configured interval

        Args:
            interval_seconds: Seconds between runs (default: BILLING_SCHEDULER_INTERVAL_SECONDS)
        """
        interval_seconds = interval_seconds or ApplicationConfig.BILLING_SCHEDULER_INTERVAL_SECONDS
        logger.info(f"Starting continuous billing with {interval_seconds}s interval")

        while True:
            try:
                summary = await self.run_once()
                if summary is not None:
                    logger.info(
                        f"Billing cycle complete: {summary.succeeded}/{summary.total_due} succeeded"
                    )
            except Exception as e:
                logger.error(f"Billing cycle failed: {e}")

            await asyncio.sleep(interval_seconds)

    async def shutdown(self):
        """Cleanup resources"""
        await self.http_client.aclose()
        await self.engine.dispose()
        logger.info("BillingSchedulerWorker shutdown complete")


async def main():
    """
    Entry point for running the worker as a standalone script

    Usage:
        # Bill everything due now
        python -m src.worker.billing_scheduler

        # Bill everything due at a given time
        python -m src.worker.billing_scheduler --as-of 2025-03-01T00:00:00

        # Run continuously
        python -m src.worker.billing_scheduler --continuous
    """
    import argparse

    logging.basicConfig(
        level=ApplicationConfig.LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Subscription Billing Scheduler")
    parser.add_argument("--as-of", type=datetime.fromisoformat, help="Billing cut-off (ISO 8601)")
    parser.add_argument(
        "--continuous", action="store_true", help="Run continuously"
    )
    args = parser.parse_args()

    worker = BillingSchedulerWorker()

    try:
        if args.continuous:
            await worker.run_forever()
        else:
            result = await worker.run_once(as_of=args.as_of)
            if result is not None:
                print(f"Billing complete:")
                print(f"  Due subscriptions: {result.total_due}")
                print(f"  Succeeded: {result.succeeded}")
                print(f"  Declined: {result.declined}")
                print(f"  Failed: {result.failed}")
                print(f"  Execution time: {result.execution_time_ms}ms")
    except KeyboardInterrupt:
        logger.info("Received shutdown signal")
    finally:
        await worker.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
