"""Get Payment Method Use Case"""

from libs.result import Result, Return
from src.app.repositories.payment_vault_repository import PaymentVaultRepository
from src.domain.exceptions import VaultNotFoundError
from .dtos import PaymentMethodResponseDTO


class GetPaymentMethod:
    """
    Get Payment Method Use Case

    Returns inactive entries too; callers check is_active.
    """

    def __init__(self, vault_repo: PaymentVaultRepository):
        self.vault_repo = vault_repo

    async def execute(self, vault_uuid: str) -> Result[PaymentMethodResponseDTO]:
        """
        Errors:
            VAULT_NOT_FOUND: No entry with this UUID
        """
        entry = await self.vault_repo.get_by_uuid(vault_uuid)
        if entry is None:
            return Return.err(
                VaultNotFoundError(
                    f"Payment method {vault_uuid} not found",
                    context={"vault_id": vault_uuid},
                ).to_error()
            )
        return Return.ok(PaymentMethodResponseDTO.from_entity(entry))
