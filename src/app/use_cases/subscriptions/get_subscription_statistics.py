"""Get Subscription Statistics Use Case"""

from libs.result import Result, Return
from src.app.repositories.subscription_repository import SubscriptionRepository
from .dtos import SubscriptionStatisticsDTO


class GetSubscriptionStatistics:
    """Counts of all, active and cancelled subscriptions"""

    def __init__(self, subscription_repo: SubscriptionRepository):
        self.subscription_repo = subscription_repo

    async def execute(self) -> Result[SubscriptionStatisticsDTO]:
        stats = await self.subscription_repo.get_statistics()
        return Return.ok(
            SubscriptionStatisticsDTO(
                total=stats["total"],
                active=stats["active"],
                cancelled=stats["cancelled"],
            )
        )
