"""Subscription Repository Interface

Defines the contract for subscription persistence operations.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional
from src.domain.subscription import Subscription


class SubscriptionRepository(ABC):
    """
    Repository interface for Subscription persistence

    State transitions (cancel, advance billing cycle) are single conditional
    updates so they stay correct when a batch run and a request touch the
    same subscription concurrently.
    """

    @abstractmethod
    async def create(self, subscription: Subscription) -> Subscription:
        """
        Create a new subscription

        Args:
            subscription: Subscription entity to persist

        Returns:
            Created Subscription with generated ID
        """
        pass

    @abstractmethod
    async def get_by_id(self, subscription_id: int) -> Optional[Subscription]:
        """
        Retrieve subscription by internal ID

        Args:
            subscription_id: Subscription ID

        Returns:
            Subscription if found, None otherwise
        """
        pass

    @abstractmethod
    async def get_by_uuid(self, subscription_uuid: str) -> Optional[Subscription]:
        """
        Retrieve subscription by external UUID

        Args:
            subscription_uuid: External identifier

        Returns:
            Subscription if found, None otherwise
        """
        pass

    @abstractmethod
    async def get_active_by_customer(self, customer_id: str) -> List[Subscription]:
        """
        Retrieve active subscriptions for a customer, newest first

        Args:
            customer_id: Customer identifier

        Returns:
            List of active subscriptions
        """
        pass

    @abstractmethod
    async def get_due_for_billing(self, as_of: datetime) -> List[Subscription]:
        """
        Retrieve active subscriptions with next_billing_at <= as_of

        Ordered by next_billing_at ascending (longest overdue first).

        Args:
            as_of: Cut-off timestamp

        Returns:
            List of due subscriptions
        """
        pass

    @abstractmethod
    async def cancel(self, subscription_uuid: str, cancelled_at: datetime) -> bool:
        """
        Cancel an active subscription

        Args:
            subscription_uuid: External identifier
            cancelled_at: Cancellation timestamp

        Returns:
            True if an active subscription was cancelled, False otherwise
        """
        pass

    @abstractmethod
    async def advance_billing_cycle(
        self,
        subscription_id: int,
        expected_cycle: int,
        billed_at: datetime,
        next_billing_at: datetime,
    ) -> bool:
        """
        Record a successful charge in one conditional update

        Sets last_billing_at and next_billing_at and increments billing_cycle,
        only if the subscription is still active and still at expected_cycle.

        Args:
            subscription_id: Subscription ID
            expected_cycle: billing_cycle observed before charging
            billed_at: Charge timestamp
            next_billing_at: Recomputed next billing date

        Returns:
            True if the row was advanced, False if it changed concurrently
        """
        pass

    @abstractmethod
    async def get_statistics(self) -> Dict[str, int]:
        """
        Count subscriptions

        Returns:
            Dict with total, active and cancelled counts
        """
        pass
