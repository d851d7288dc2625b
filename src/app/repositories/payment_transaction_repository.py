"""Payment Transaction Repository Interface

Defines the contract for payment transaction persistence operations.
"""

from abc import ABC, abstractmethod
from typing import List, Optional
from src.domain.payment_transaction import PaymentTransaction


class PaymentTransactionRepository(ABC):
    """
    Repository interface for PaymentTransaction persistence

    Records are append-only.
    """

    @abstractmethod
    async def create(self, transaction: PaymentTransaction) -> PaymentTransaction:
        """
        Create a new payment transaction record

        Args:
            transaction: PaymentTransaction to persist

        Returns:
            Created PaymentTransaction with generated ID
        """
        pass

    @abstractmethod
    async def get_by_transaction_id(self, transaction_id: str) -> List[PaymentTransaction]:
        """
        Retrieve records for a gateway transaction ID

        Args:
            transaction_id: Gateway transaction identifier

        Returns:
            Matching records (a charge and its refunds share no ID, so usually one)
        """
        pass

    @abstractmethod
    async def list_recent(self, limit: int = 50, offset: int = 0) -> List[PaymentTransaction]:
        """
        Retrieve records newest first

        Args:
            limit: Maximum number of records
            offset: Offset for pagination

        Returns:
            List of PaymentTransaction
        """
        pass
