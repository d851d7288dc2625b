"""Subscription billing use cases"""
from .create_subscription import CreateSubscription
from .cancel_subscription import CancelSubscription
from .process_subscription_billing import ProcessSubscriptionBilling
from .process_due_billing import ProcessDueBilling
from .get_subscription import GetSubscription
from .list_customer_subscriptions import ListCustomerSubscriptions
from .get_subscription_statistics import GetSubscriptionStatistics
from .dtos import (
    CreateSubscriptionCommandDTO,
    SubscriptionResponseDTO,
    BillingResultDTO,
    ProcessDueBillingResultDTO,
    SubscriptionStatisticsDTO,
)

__all__ = [
    "CreateSubscription",
    "CancelSubscription",
    "ProcessSubscriptionBilling",
    "ProcessDueBilling",
    "GetSubscription",
    "ListCustomerSubscriptions",
    "GetSubscriptionStatistics",
    "CreateSubscriptionCommandDTO",
    "SubscriptionResponseDTO",
    "BillingResultDTO",
    "ProcessDueBillingResultDTO",
    "SubscriptionStatisticsDTO",
]
