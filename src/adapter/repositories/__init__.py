from .subscription_repository import SqlAlchemySubscriptionRepository
from .payment_vault_repository import SqlAlchemyPaymentVaultRepository
from .payment_transaction_repository import SqlAlchemyPaymentTransactionRepository

__all__ = [
    "SqlAlchemySubscriptionRepository",
    "SqlAlchemyPaymentVaultRepository",
    "SqlAlchemyPaymentTransactionRepository",
]
