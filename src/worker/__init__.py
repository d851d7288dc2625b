"""Background workers for billing service"""
from .billing_scheduler import BillingSchedulerWorker
from .vault_cleanup import VaultCleanupWorker

__all__ = ["BillingSchedulerWorker", "VaultCleanupWorker"]
