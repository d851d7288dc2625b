"""Data Transfer Objects for Payment Vault Use Cases

Pydantic models for command inputs and response outputs. Responses never
include the payment-method token.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field
from src.domain.payment_vault import PaymentVaultEntry, PaymentMethodType


class StorePaymentMethodCommandDTO(BaseModel):
    """
    Command DTO for storing a tokenized payment method

    Display fields are optional and stored only when supplied.
    """

    customer_id: str = Field(
        ...,
        description="Customer identifier"
    )

    gateway_customer_id: str = Field(
        ...,
        description="Customer reference in the gateway's vault"
    )

    payment_method_token: str = Field(
        ...,
        description="Opaque gateway token"
    )

    payment_method_type: PaymentMethodType = Field(
        default=PaymentMethodType.CREDIT_CARD,
        description="credit_card, bank_account or digital_wallet"
    )

    last4_digits: Optional[str] = Field(default=None, description="Last four digits")
    card_brand: Optional[str] = Field(default=None, description="Card brand")
    expiry_month: Optional[str] = Field(default=None, description="Expiry month (1-12)")
    expiry_year: Optional[str] = Field(default=None, description="Expiry year (YY or YYYY)")
    billing_name: Optional[str] = Field(default=None, description="Name on the payment method")
    billing_address: Optional[Dict[str, Any]] = Field(default=None, description="Billing address")
    metadata: Optional[Dict[str, Any]] = Field(default=None, description="Opaque metadata")

    class Config:
        json_schema_extra = {
            "example": {
                "customer_id": "cust_4821",
                "gateway_customer_id": "nmi_vault_99812",
                "payment_method_token": "tok_1a2b3c",
                "payment_method_type": "credit_card",
                "last4_digits": "4242",
                "card_brand": "visa",
                "expiry_month": "8",
                "expiry_year": "28"
            }
        }


class PaymentMethodResponseDTO(BaseModel):
    """Response DTO for a vault entry"""

    uuid: str = Field(..., description="External vault entry identifier")
    customer_id: str = Field(..., description="Customer identifier")
    gateway_customer_id: str = Field(..., description="Gateway customer reference")
    payment_method_type: str = Field(..., description="Payment method type")
    last4_digits: Optional[str] = Field(default=None, description="Last four digits")
    card_brand: Optional[str] = Field(default=None, description="Card brand")
    expiry_month: Optional[str] = Field(default=None, description="Expiry month (MM)")
    expiry_year: Optional[str] = Field(default=None, description="Expiry year (YYYY)")
    billing_name: Optional[str] = Field(default=None, description="Name on the payment method")
    is_active: bool = Field(..., description="False once deactivated")
    is_default: bool = Field(..., description="Customer's default payment method")
    is_expired: bool = Field(..., description="Past the last day of the expiry month")
    created_at: datetime = Field(..., description="Creation timestamp")
    last_used_at: Optional[datetime] = Field(default=None, description="Last successful charge")

    @classmethod
    def from_entity(cls, entry: PaymentVaultEntry) -> "PaymentMethodResponseDTO":
        return cls(
            uuid=entry.uuid,
            customer_id=entry.customer_id,
            gateway_customer_id=entry.gateway_customer_id,
            payment_method_type=entry.payment_method_type.value,
            last4_digits=entry.last4_digits,
            card_brand=entry.card_brand,
            expiry_month=entry.expiry_month,
            expiry_year=entry.expiry_year,
            billing_name=entry.billing_name,
            is_active=entry.is_active,
            is_default=entry.is_default,
            is_expired=entry.is_expired(),
            created_at=entry.created_at,
            last_used_at=entry.last_used_at,
        )


class ChargeVaultCommandDTO(BaseModel):
    """Command DTO for charging a vaulted payment method"""

    vault_uuid: str = Field(..., description="Vault entry to charge")
    amount: Decimal = Field(..., description="Charge amount")
    currency: str = Field(default="USD", description="Currency code")
    metadata: Optional[Dict[str, Any]] = Field(default=None, description="Passed to the gateway")

    class Config:
        json_schema_extra = {
            "example": {
                "vault_uuid": "0d5c1b9e-8a7e-4e55-b0b4-6f1f3f1d2c10",
                "amount": "49.00",
                "currency": "USD"
            }
        }


class CleanupExpiredResultDTO(BaseModel):
    """Summary of an expired-method cleanup run"""

    expired_found: int = Field(..., description="Expired active entries selected")
    deactivated: int = Field(..., description="Entries deactivated by this run")
    failed: int = Field(..., description="Entries that could not be deactivated")
    execution_time_ms: int = Field(..., description="Run duration in milliseconds")


class VaultStatisticsDTO(BaseModel):
    """Vault entry counts"""

    total: int = Field(..., description="All entries")
    active: int = Field(..., description="Active entries")
    expired: int = Field(..., description="Active credit cards past expiry")
