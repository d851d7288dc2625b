"""List Payment Methods Use Cases

Read-only views of a customer's vault.
"""

from typing import List, Optional
from libs.result import Result, Return
from src.app.repositories.payment_vault_repository import PaymentVaultRepository
from .dtos import PaymentMethodResponseDTO


class ListPaymentMethods:
    """Active payment methods of a customer, default first, then newest first"""

    def __init__(self, vault_repo: PaymentVaultRepository):
        self.vault_repo = vault_repo

    async def execute(self, customer_id: str) -> Result[List[PaymentMethodResponseDTO]]:
        entries = await self.vault_repo.get_active_by_customer(customer_id)
        return Return.ok([PaymentMethodResponseDTO.from_entity(e) for e in entries])


class GetDefaultPaymentMethod:
    """The customer's default payment method, or None"""

    def __init__(self, vault_repo: PaymentVaultRepository):
        self.vault_repo = vault_repo

    async def execute(self, customer_id: str) -> Result[Optional[PaymentMethodResponseDTO]]:
        entry = await self.vault_repo.get_default_by_customer(customer_id)
        if entry is None:
            return Return.ok(None)
        return Return.ok(PaymentMethodResponseDTO.from_entity(entry))
