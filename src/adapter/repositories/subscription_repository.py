"""SQLAlchemy Subscription Repository Implementation

Implements subscription persistence using SQLAlchemy async session.
"""

from datetime import datetime
from typing import Dict, List, Optional
from sqlalchemy import func, update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.subscription_repository import SubscriptionRepository
from src.domain.subscription import Subscription, SubscriptionStatus


class SqlAlchemySubscriptionRepository(SubscriptionRepository):
    """
    SQLAlchemy implementation of SubscriptionRepository

    Features:
    - Conditional UPDATE statements for cancel and billing-cycle advance
    - Due-date range query ordered by next_billing_at
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, subscription: Subscription) -> Subscription:
        """
        Create a new subscription

        Args:
            subscription: Subscription entity to persist

        Returns:
            Created Subscription with generated ID
        """
        self.session.add(subscription)
        await self.session.flush()
        await self.session.refresh(subscription)
        return subscription

    async def get_by_id(self, subscription_id: int) -> Optional[Subscription]:
        statement = (
            select(Subscription)
            .where(Subscription.id == subscription_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    async def get_by_uuid(self, subscription_uuid: str) -> Optional[Subscription]:
        statement = select(Subscription).where(Subscription.uuid == subscription_uuid)
        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    async def get_active_by_customer(self, customer_id: str) -> List[Subscription]:
        statement = (
            select(Subscription)
            .where(Subscription.customer_id == customer_id)
            .where(Subscription.status == SubscriptionStatus.ACTIVE)
            .where(Subscription.cancelled_at.is_(None))
            .order_by(Subscription.created_at.desc(), Subscription.id.desc())
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def get_due_for_billing(self, as_of: datetime) -> List[Subscription]:
        """
        Retrieve active subscriptions due on or before as_of

        Args:
            as_of: Cut-off timestamp

        Returns:
            Due subscriptions, earliest next_billing_at first
        """
        statement = (
            select(Subscription)
            .where(Subscription.status == SubscriptionStatus.ACTIVE)
            .where(Subscription.cancelled_at.is_(None))
            .where(Subscription.next_billing_at <= as_of)
            .order_by(Subscription.next_billing_at.asc(), Subscription.id.asc())
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def cancel(self, subscription_uuid: str, cancelled_at: datetime) -> bool:
        """
        Cancel an active subscription in a single conditional update

        Args:
            subscription_uuid: External identifier
            cancelled_at: Cancellation timestamp

        Returns:
            True if exactly one active subscription was cancelled
        """
        statement = (
            update(Subscription)
            .where(Subscription.uuid == subscription_uuid)
            .where(Subscription.status == SubscriptionStatus.ACTIVE)
            .where(Subscription.cancelled_at.is_(None))
            .values(
                status=SubscriptionStatus.CANCELLED,
                cancelled_at=cancelled_at,
                updated_at=cancelled_at,
            )
        )
        result = await self.session.execute(statement)
        return result.rowcount == 1

    async def advance_billing_cycle(
        self,
        subscription_id: int,
        expected_cycle: int,
        billed_at: datetime,
        next_billing_at: datetime,
    ) -> bool:
        """
        Advance billing fields after a successful charge

        Guarded on status and the observed cycle so a concurrent cancellation
        or a second scheduler run cannot double-advance.

        Returns:
            True if the row was advanced
        """
        statement = (
            update(Subscription)
            .where(Subscription.id == subscription_id)
            .where(Subscription.status == SubscriptionStatus.ACTIVE)
            .where(Subscription.billing_cycle == expected_cycle)
            .values(
                last_billing_at=billed_at,
                next_billing_at=next_billing_at,
                billing_cycle=Subscription.billing_cycle + 1,
                updated_at=billed_at,
            )
        )
        result = await self.session.execute(statement)
        return result.rowcount == 1

    async def get_statistics(self) -> Dict[str, int]:
        total = await self.session.execute(select(func.count(Subscription.id)))

        active = await self.session.execute(
            select(func.count(Subscription.id))
            .where(Subscription.status == SubscriptionStatus.ACTIVE)
            .where(Subscription.cancelled_at.is_(None))
        )

        cancelled = await self.session.execute(
            select(func.count(Subscription.id)).where(Subscription.cancelled_at.is_not(None))
        )

        return {
            "total": int(total.scalar_one()),
            "active": int(active.scalar_one()),
            "cancelled": int(cancelled.scalar_one()),
        }
