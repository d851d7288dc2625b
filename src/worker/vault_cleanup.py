"""Vault Cleanup Background Worker

Deactivates expired credit cards and hands their default flag to a
remaining payment method.
"""

import asyncio
import logging
from typing import Optional
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.adapter.repositories.payment_vault_repository import SqlAlchemyPaymentVaultRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.use_cases.vault import CleanupExpiredPaymentMethods

logger = logging.getLogger(__name__)


class VaultCleanupWorker:
    """
    Background worker for expired payment-method cleanup

    Usage:
        worker = VaultCleanupWorker()
        await worker.run_once()
        await worker.run_forever(interval_seconds=86400)
    """

    def __init__(self, db_uri: Optional[str] = None):
        self.db_uri = db_uri or ApplicationConfig.DB_URI

        self.engine = create_async_engine(self.db_uri, echo=False, future=True)
        self.async_session_factory = sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
        )

        logger.info("VaultCleanupWorker initialized")

    async def run_once(self) -> int:
        """
        Run cleanup once

        Returns:
            Number of payment methods deactivated
        """
        if not ApplicationConfig.VAULT_CLEANUP_ENABLED:
            logger.info("Vault cleanup is disabled, skipping")
            return 0

        async with self.async_session_factory() as session:
            use_case = CleanupExpiredPaymentMethods(
                uow=SqlAlchemyUnitOfWork(session),
                vault_repo=SqlAlchemyPaymentVaultRepository(session),
            )

            result = await use_case.execute()

            if result.is_err():
                logger.error(f"Cleanup failed: {result.error.message}")
                return 0

            return result.value.deactivated

    async def run_forever(self, interval_seconds: Optional[int] = None):
        """
        Run cleanup continuously at the configured interval

        Args:
            interval_seconds: Seconds between runs (default: VAULT_CLEANUP_INTERVAL_SECONDS)
        """
        interval_seconds = interval_seconds or ApplicationConfig.VAULT_CLEANUP_INTERVAL_SECONDS
        logger.info(f"Starting continuous vault cleanup with {interval_seconds}s interval")

        while True:
            try:
                count = await self.run_once()
                logger.info(f"Cleanup cycle complete. Deactivated {count} payment methods")
            except Exception as e:
                logger.error(f"Cleanup cycle failed: {e}")

            await asyncio.sleep(interval_seconds)

    async def shutdown(self):
        """Cleanup resources"""
        await self.engine.dispose()
        logger.info("VaultCleanupWorker shutdown complete")


async def main():
    """
    Entry point for running the worker as a standalone script

    Usage:
        python -m src.worker.vault_cleanup --once
    """
    import sys

    logging.basicConfig(
        level=ApplicationConfig.LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    worker = VaultCleanupWorker()

    if "--once" in sys.argv:
        count = await worker.run_once()
        print(f"Cleanup complete. Deactivated {count} payment methods.")
        await worker.shutdown()
    else:
        try:
            await worker.run_forever()
        except KeyboardInterrupt:
            logger.info("Received shutdown signal")
        finally:
            await worker.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
