"""SetDefaultPaymentMethod Use Case

Moves a customer's default to another active entry.
"""

import logging
from datetime import datetime
from typing import Callable
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.payment_vault_repository import PaymentVaultRepository

logger = logging.getLogger(__name__)


class SetDefaultPaymentMethod:
    """
    Use Case: Set the default payment method

    Clearing the other defaults and setting the target happen in one
    transaction, so no reader ever sees two defaults for a customer.
    Returns Ok(False) when the entry is missing or inactive.
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
            SET_DEFAULT_FAILED: Persistence failure (e.g. concurrent reassignment)
        """
        try:
            entry = await self.vault_repo.get_by_uuid(vault_uuid)
            if entry is None or not entry.is_active:
                logger.warning(f"Cannot set default: payment method {vault_uuid} missing or inactive")
                return Return.ok(False)

            customer_id = entry.customer_id
            promoted = await self.vault_repo.set_default(entry, self.clock())

            if not promoted:
                await self.uow.rollback()
                logger.warning(f"Payment method {vault_uuid} was deactivated before it could become default")
                return Return.ok(False)

            await self.uow.commit()
            logger.info(f"Payment method {vault_uuid} is now default for customer {customer_id}")
            return Return.ok(True)

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Failed to set default payment method {vault_uuid}: {e}")
            return Return.err(
                Error(
                    code="SET_DEFAULT_FAILED",
                    message="Failed to set default payment method",
                    reason=str(e),
                )
            )
