"""Payment vault use cases"""
from .store_payment_method import StorePaymentMethod
from .list_payment_methods import ListPaymentMethods, GetDefaultPaymentMethod
from .get_payment_method import GetPaymentMethod
from .set_default_payment_method import SetDefaultPaymentMethod
from .deactivate_payment_method import DeactivatePaymentMethod
from .charge_with_vault import ChargeWithVault
from .cleanup_expired_methods import CleanupExpiredPaymentMethods
from .get_vault_statistics import GetVaultStatistics
from .dtos import (
    StorePaymentMethodCommandDTO,
    PaymentMethodResponseDTO,
    ChargeVaultCommandDTO,
    CleanupExpiredResultDTO,
    VaultStatisticsDTO,
)

__all__ = [
    "StorePaymentMethod",
    "ListPaymentMethods",
    "GetDefaultPaymentMethod",
    "GetPaymentMethod",
    "SetDefaultPaymentMethod",
    "DeactivatePaymentMethod",
    "ChargeWithVault",
    "CleanupExpiredPaymentMethods",
    "GetVaultStatistics",
    "StorePaymentMethodCommandDTO",
    "PaymentMethodResponseDTO",
    "ChargeVaultCommandDTO",
    "CleanupExpiredResultDTO",
    "VaultStatisticsDTO",
]
