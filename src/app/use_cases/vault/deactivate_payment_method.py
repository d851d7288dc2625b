"""DeactivatePaymentMethod Use Case

Soft-deletes a vault entry and hands the default to a remaining entry.
"""

import logging
from datetime import datetime
from typing import Callable
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.payment_vault_repository import PaymentVaultRepository

logger = logging.getLogger(__name__)


class DeactivatePaymentMethod:
    """
    Use Case: Deactivate a payment method

    Business Rules:
    1. Missing or already inactive entries return Ok(False)
    2. The row is kept; is_active and is_default are cleared
    3. If the entry was the default, the most recently created remaining
       active entry becomes the default, in the same transaction
    4. Deactivating the only entry leaves the customer without a default
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

    async def execute(self, vault_uuid: str) -> Result[bool]:
        """
        Errors:
            DEACTIVATE_PAYMENT_METHOD_FAILED: Persistence failure
        """
        try:
            entry = await self.vault_repo.get_by_uuid(vault_uuid)
            if entry is None or not entry.is_active:
                logger.warning(f"Payment method {vault_uuid} not found or already inactive")
                return Return.ok(False)

            customer_id = entry.customer_id
            was_default = entry.is_default
            now = self.clock()

            deactivated = await self.vault_repo.deactivate(entry, now)
            if not deactivated:
                await self.uow.rollback()
                logger.warning(f"Payment method {vault_uuid} was deactivated concurrently")
                return Return.ok(False)

            successor_uuid = None
            if was_default:
                successor = await self.vault_repo.promote_successor(customer_id, now)
                successor_uuid = successor.uuid if successor else None

            await self.uow.commit()

            logger.info(
                f"Payment method {vault_uuid} deactivated for customer {customer_id}"
                + (f", default moved to {successor_uuid}" if successor_uuid else "")
            )
            return Return.ok(True)

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to deactivate payment method {vault_uuid}: {e}")
            return Return.err(
                Error(
                    code="DEACTIVATE_PAYMENT_METHOD_FAILED",
                    message="Failed to deactivate payment method",
                    reason=str(e),
                )
            )
