from .base import BaseModel, generate_uuid
from .subscription import (
    Subscription,
    SubscriptionStatus,
    BillingFrequency,
    calculate_next_billing_date,
)
from .payment_vault import PaymentVaultEntry, PaymentMethodType, is_card_expired
from .payment_transaction import PaymentTransaction, PaymentStatus

__all__ = [
    "BaseModel",
    "generate_uuid",
    "Subscription",
    "SubscriptionStatus",
    "BillingFrequency",
    "calculate_next_billing_date",
    "PaymentVaultEntry",
    "PaymentMethodType",
    "is_card_expired",
    "PaymentTransaction",
    "PaymentStatus",
]
