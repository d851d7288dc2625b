"""Get Vault Statistics Use Case"""

from datetime import datetime
from typing import Callable
from libs.result import Result, Return
from src.app.repositories.payment_vault_repository import PaymentVaultRepository
from .dtos import VaultStatisticsDTO


class GetVaultStatistics:
    """Counts of all, active and expired vault entries"""

    def __init__(
        self,
        vault_repo: PaymentVaultRepository,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.vault_repo = vault_repo
        self.clock = clock

    async def execute(self) -> Result[VaultStatisticsDTO]:
        stats = await self.vault_repo.get_statistics(self.clock().date())
        return Return.ok(
            VaultStatisticsDTO(
                total=stats["total"],
                active=stats["active"],
                expired=stats["expired"],
            )
        )
