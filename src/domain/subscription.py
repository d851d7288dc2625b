"""Subscription Domain Entity

Tracks a customer's recurring charge and its billing-cycle state.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional
from dateutil.relativedelta import relativedelta
from sqlmodel import Field, Column, Index
from sqlalchemy import CheckConstraint, Integer, JSON, Numeric, String
from src.domain.base import BaseModel, PrimaryKeyType, generate_uuid
from src.domain.exceptions import InvalidFrequencyError


class SubscriptionStatus(str, Enum):
    """Subscription status types"""
    ACTIVE = "active"
    CANCELLED = "cancelled"


class BillingFrequency(str, Enum):
    """Supported billing intervals"""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


_INTERVALS = {
    BillingFrequency.DAILY: relativedelta(days=1),
    BillingFrequency.WEEKLY: relativedelta(days=7),
    # relativedelta clamps to the last day of shorter months (Jan 31 -> Feb 28)
    BillingFrequency.MONTHLY: relativedelta(months=1),
    BillingFrequency.YEARLY: relativedelta(years=1),
}


def calculate_next_billing_date(base_date: datetime, frequency: BillingFrequency) -> datetime:
    """
    Add one billing interval to base_date using calendar arithmetic

    Args:
        base_date: Billing base date (last billing date, or creation date)
        frequency: Billing frequency

    Returns:
        Next billing date

    Raises:
        InvalidFrequencyError: frequency is not one of the supported values
    """
    try:
        interval = _INTERVALS[BillingFrequency(frequency)]
    except (ValueError, KeyError) as e:
        raise InvalidFrequencyError(
            f"Unsupported billing frequency: {frequency!r}",
            context={"frequency": str(frequency)},
            cause=e,
        )
    return base_date + interval


class Subscription(BaseModel, table=True):
    """
    Subscription - Recurring charge for a customer

    Domain Rules:
    - Created active with billing_cycle=0 and next_billing_at = created_at + interval
    - cancelled_at is set if and only if status is cancelled
    - billing_cycle increments by exactly 1 per successful charge, never decreases
    - Cancellation is final (no reactivation)
    """

    __tablename__ = "subscriptions"
    __table_args__ = (
        CheckConstraint('billing_cycle >= 0', name='billing_cycle_non_negative'),
        CheckConstraint('amount > 0', name='subscription_amount_positive'),
        Index('ix_subscriptions_customer_id', 'customer_id'),
        Index('ix_subscriptions_status', 'status'),
        Index('ix_subscriptions_next_billing_at', 'next_billing_at'),
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

    amount: Decimal = Field(
        sa_column=Column(Numeric(12, 2), nullable=False),
        description="Charge amount per cycle (precision: 12,2)"
    )

    currency: str = Field(
        default="USD",
        sa_column=Column(String(3), nullable=False),
        description="Currency code (ISO 4217)"
    )

    status: SubscriptionStatus = Field(
        default=SubscriptionStatus.ACTIVE,
        description="Subscription status (active, cancelled)"
    )

    frequency: BillingFrequency = Field(
        description="Billing frequency (daily, weekly, monthly, yearly)"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Subscription creation timestamp"
    )

    next_billing_at: datetime = Field(
        description="When the next charge is due"
    )

    last_billing_at: Optional[datetime] = Field(
        default=None,
        description="Timestamp of the last successful charge"
    )

    cancelled_at: Optional[datetime] = Field(
        default=None,
        description="Cancellation timestamp (set only when cancelled)"
    )

    billing_cycle: int = Field(
        default=0,
        sa_column=Column(Integer, nullable=False, default=0),
        description="Number of successful charges"
    )

    metadata_json: Optional[Dict[str, Any]] = Field(
        default=None,
        sa_column=Column("metadata", JSON, nullable=True),
        description="Opaque customer-supplied metadata"
    )

    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Last update timestamp"
    )

    def is_active(self) -> bool:
        return self.status == SubscriptionStatus.ACTIVE and self.cancelled_at is None

    def billing_base_date(self) -> datetime:
        """Date the next interval is counted from"""
        return self.last_billing_at or self.created_at

    def calculate_next_billing_date(self) -> datetime:
        return calculate_next_billing_date(self.billing_base_date(), self.frequency)

    class Config:
        """SQLModel configuration"""
        json_schema_extra = {
            "example": {
                "id": 1,
                "uuid": "5b1f7f7e-3a52-4a3e-9a43-2f0c7d1e9b11",
                "customer_id": "cust_4821",
                "amount": "29.99",
                "currency": "USD",
                "status": "active",
                "frequency": "monthly",
                "created_at": "2025-01-31T09:00:00Z",
                "next_billing_at": "2025-02-28T09:00:00Z",
                "last_billing_at": None,
                "cancelled_at": None,
                "billing_cycle": 0,
                "metadata_json": {"plan": "pro"},
            }
        }
