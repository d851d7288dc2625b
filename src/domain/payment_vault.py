"""Payment Vault Domain Entity

Stores reusable payment-method tokens per customer. At most one active entry
per customer is the default.
"""

import calendar
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import Boolean, JSON, String, text
from src.domain.base import BaseModel, PrimaryKeyType, generate_uuid


class PaymentMethodType(str, Enum):
    """Kinds of vaulted payment methods"""
    CREDIT_CARD = "credit_card"
    BANK_ACCOUNT = "bank_account"
    DIGITAL_WALLET = "digital_wallet"


def is_card_expired(
    expiry_month: Optional[str], expiry_year: Optional[str], today: date
) -> bool:
    """
    True iff today is past the last calendar day of the expiry month

    Missing or unparseable expiry values are treated as not expired.
    Two-digit years are read as 20YY.
    """
    if not expiry_month or not expiry_year:
        return False
    try:
        month = int(expiry_month)
        year = int(expiry_year)
    except ValueError:
        return False
    if year < 100:
        year += 2000
    if not 1 <= month <= 12:
        return False

    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, last_day) < today


class PaymentVaultEntry(BaseModel, table=True):
    """
    Payment Vault Entry - Tokenized payment method for a customer

    Domain Rules:
    - First active entry for a customer becomes the default
    - At most one active default per customer (partial unique index)
    - A deactivated entry is never the default
    - Deactivation is soft: the row is kept for audit
    """

    __tablename__ = "payment_vault"
    __table_args__ = (
        Index('ix_payment_vault_customer_active', 'customer_id', 'is_active'),
        Index(
            'uq_payment_vault_customer_default',
            'customer_id',
            unique=True,
            postgresql_where=text('is_default AND is_active'),
            sqlite_where=text('is_default = 1 AND is_active = 1'),
        ),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(PrimaryKeyType, primary_key=True, autoincrement=True),
        description="Internal surrogate key (auto-increment)"
    )

    uuid: str = Field(
        default_factory=generate_uuid,
        sa_column=Column(String(36), nullable=False, unique=True),
        description="External-facing identifier"
    )

    customer_id: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="Customer identifier"
    )

    gateway_customer_id: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="Customer reference in the gateway's vault"
    )

    payment_method_token: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="Opaque gateway token for the payment method"
    )

    payment_method_type: PaymentMethodType = Field(
        default=PaymentMethodType.CREDIT_CARD,
        description="Payment method type"
    )

    last4_digits: Optional[str] = Field(
        default=None,
        sa_column=Column(String(4), nullable=True),
        description="Last four digits for display"
    )

    card_brand: Optional[str] = Field(
        default=None,
        sa_column=Column(String(50), nullable=True),
        description="Card brand (visa, mastercard, ...)"
    )

    expiry_month: Optional[str] = Field(
        default=None,
        sa_column=Column(String(2), nullable=True),
        description="Expiry month, zero-padded (01-12)"
    )

    expiry_year: Optional[str] = Field(
        default=None,
        sa_column=Column(String(4), nullable=True),
        description="Expiry year, four digits"
    )

    billing_name: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
        description="Name on the payment method"
    )

    billing_address: Optional[Dict[str, Any]] = Field(
        default=None,
        sa_column=Column(JSON, nullable=True),
        description="Billing address"
    )

    is_active: bool = Field(
        default=True,
        sa_column=Column(Boolean, nullable=False, default=True),
        description="False once deactivated"
    )

    is_default: bool = Field(
        default=False,
        sa_column=Column(Boolean, nullable=False, default=False),
        description="Customer's default payment method"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Entry creation timestamp"
    )

    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Last update timestamp"
    )

    last_used_at: Optional[datetime] = Field(
        default=None,
        description="Last successful charge with this entry"
    )

    metadata_json: Optional[Dict[str, Any]] = Field(
        default=None,
        sa_column=Column("metadata", JSON, nullable=True),
        description="Opaque metadata"
    )

    def is_expired(self, today: Optional[date] = None) -> bool:
        return is_card_expired(
            self.expiry_month, self.expiry_year, today or datetime.utcnow().date()
        )

    def deactivate(self, now: datetime) -> bool:
        """
        Apply the deactivation transition

        Returns:
            True if the entry was the default (a successor should be promoted)
        """
        was_default = self.is_default
        self.is_active = False
        self.is_default = False
        self.updated_at = now
        return was_default

    def mark_used(self, now: datetime) -> None:
        self.last_used_at = now
        self.updated_at = now

    class Config:
        """SQLModel configuration"""
        json_schema_extra = {
            "example": {
                "id": 1,
                "uuid": "0d5c1b9e-8a7e-4e55-b0b4-6f1f3f1d2c10",
                "customer_id": "cust_4821",
                "gateway_customer_id": "nmi_vault_99812",
                "payment_method_token": "tok_1a2b3c",
                "payment_method_type": "credit_card",
                "last4_digits": "4242",
                "card_brand": "visa",
                "expiry_month": "08",
                "expiry_year": "2028",
                "is_active": True,
                "is_default": True,
            }
        }
