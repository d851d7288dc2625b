"""List Customer Subscriptions Use Case"""

from typing import List
from libs.result import Result, Return
from src.app.repositories.subscription_repository import SubscriptionRepository
from .dtos import SubscriptionResponseDTO


class ListCustomerSubscriptions:
    """Active subscriptions of a customer, newest first"""

    def __init__(self, subscription_repo: SubscriptionRepository):
        self.subscription_repo = subscription_repo

    async def execute(self, customer_id: str) -> Result[List[SubscriptionResponseDTO]]:
        subscriptions = await self.subscription_repo.get_active_by_customer(customer_id)
        return Return.ok([SubscriptionResponseDTO.from_entity(s) for s in subscriptions])
