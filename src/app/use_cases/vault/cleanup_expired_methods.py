"""CleanupExpiredPaymentMethods Use Case

Deactivates credit cards whose expiry month has passed.
"""

import logging
import time
from datetime import datetime
from typing import Callable
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.payment_vault_repository import PaymentVaultRepository
from .dtos import CleanupExpiredResultDTO

logger = logging.getLogger(__name__)


class CleanupExpiredPaymentMethods:
    """
    Use Case: Deactivate expired payment methods

    Business Rules:
    1. Selects active credit cards with (expiry_year, expiry_month) before
       the current (year, month)
    2. Each entry is deactivated in its own transaction, with default hand-off
    3. Idempotent: a second run finds nothing to do
    """

    def __init__(
        self,
        uow: UnitOfWork,
        vault_repo: PaymentVaultRepository,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.uow = uow
        self.vault_repo = vault_repo
        self.clock = clock

    async def execute(self) -> Result[CleanupExpiredResultDTO]:
        """
        Errors:
            CLEANUP_QUERY_FAILED: Expired entries could not be selected
        """
        start_time = time.time()
        now = self.clock()

        try:
            expired = await self.vault_repo.get_expired(now.date())
            targets = [entry.uuid for entry in expired]
        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to select expired payment methods: {e}")
            return Return.err(
                Error(
                    code="CLEANUP_QUERY_FAILED",
                    message="Failed to load expired payment methods",
                    reason=str(e),
                )
            )

        deactivated = 0
        failed = 0

        for vault_uuid in targets:
            try:
                entry = await self.vault_repo.get_by_uuid(vault_uuid)
                if entry is None or not entry.is_active:
                    continue

                customer_id = entry.customer_id
                was_default = entry.is_default

                if not await self.vault_repo.deactivate(entry, now):
                    await self.uow.rollback()
                    continue

                if was_default:
                    await self.vault_repo.promote_successor(customer_id, now)

                await self.uow.commit()
                deactivated += 1
                logger.info(f"Deactivated expired payment method {vault_uuid} for customer {customer_id}")

            except Exception as e:
                await self.uow.rollback()
                failed += 1
                logger.error(f"Failed to deactivate expired payment method {vault_uuid}: {e}")

        execution_time_ms = int((time.time() - start_time) * 1000)
        logger.info(
            f"Expired payment method cleanup complete: {deactivated}/{len(targets)} deactivated, "
            f"{failed} failed, {execution_time_ms}ms"
        )

        return Return.ok(
            CleanupExpiredResultDTO(
                expired_found=len(targets),
                deactivated=deactivated,
                failed=failed,
                execution_time_ms=execution_time_ms,
            )
        )
