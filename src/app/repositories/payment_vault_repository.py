"""Payment Vault Repository Interface

Defines the contract for payment vault persistence operations.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Dict, List, Optional
from src.domain.payment_vault import PaymentVaultEntry


class PaymentVaultRepository(ABC):
    """
    Repository interface for PaymentVaultEntry persistence

    Guarantees at most one active default entry per customer.
    """

    @abstractmethod
    async def create(self, entry: PaymentVaultEntry) -> PaymentVaultEntry:
        """
        Persist a new entry, electing it default if the customer has none

        The election is settled by the store: if a concurrent insert for the
        same customer wins the default, this entry is stored as non-default.

        Args:
            entry: PaymentVaultEntry to persist

        Returns:
            Created entry with generated ID and final is_default value
        """
        pass

    @abstractmethod
    async def get_by_uuid(self, entry_uuid: str) -> Optional[PaymentVaultEntry]:
        """
        Retrieve entry by external UUID

        Args:
            entry_uuid: External identifier

        Returns:
            PaymentVaultEntry if found, None otherwise
        """
        pass

    @abstractmethod
    async def get_active_by_customer(self, customer_id: str) -> List[PaymentVaultEntry]:
        """
        Retrieve active entries, default first then newest first

        Args:
            customer_id: Customer identifier

        Returns:
            List of active entries
        """
        pass

    @abstractmethod
    async def get_default_by_customer(self, customer_id: str) -> Optional[PaymentVaultEntry]:
        """
        Retrieve the customer's active default entry

        Args:
            customer_id: Customer identifier

        Returns:
            PaymentVaultEntry if the customer has a default, None otherwise
        """
        pass

    @abstractmethod
    async def get_expired(self, today: date) -> List[PaymentVaultEntry]:
        """
        Retrieve active credit cards whose expiry month is before today's month

        Args:
            today: Reference date

        Returns:
            List of expired active entries
        """
        pass

    @abstractmethod
    async def set_default(self, entry: PaymentVaultEntry, now: datetime) -> bool:
        """
        Make entry the customer's only default

        Clears the flag on every other entry of the customer, then sets it
        on the target, inside the current transaction.

        Args:
            entry: Active entry to promote
            now: Update timestamp

        Returns:
            True if the target was promoted, False if it is no longer active
        """
        pass

    @abstractmethod
    async def deactivate(self, entry: PaymentVaultEntry, now: datetime) -> bool:
        """
        Deactivate an entry through a conditional update

        Clears is_default together with is_active. Callers follow up with
        promote_successor in the same transaction.

        Args:
            entry: Entry to deactivate
            now: Update timestamp

        Returns:
            True if the entry was active and is now deactivated
        """
        pass

    @abstractmethod
    async def promote_successor(
        self, customer_id: str, now: datetime
    ) -> Optional[PaymentVaultEntry]:
        """
        Make the most recently created active entry the default

        No-op if the customer already has a default or no active entries.

        Args:
            customer_id: Customer identifier
            now: Update timestamp

        Returns:
            The promoted entry, or None
        """
        pass

    @abstractmethod
    async def mark_used(self, entry_id: int, used_at: datetime) -> None:
        """
        Stamp last_used_at after a successful charge

        Args:
            entry_id: Entry ID
            used_at: Charge timestamp
        """
        pass

    @abstractmethod
    async def get_statistics(self, today: date) -> Dict[str, int]:
        """
        Count vault entries

        Args:
            today: Reference date for the expired count

        Returns:
            Dict with total, active and expired counts
        """
        pass
