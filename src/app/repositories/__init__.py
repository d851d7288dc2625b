from .subscription_repository import SubscriptionRepository
from .payment_vault_repository import PaymentVaultRepository
from .payment_transaction_repository import PaymentTransactionRepository

__all__ = [
    "SubscriptionRepository",
    "PaymentVaultRepository",
    "PaymentTransactionRepository",
]
