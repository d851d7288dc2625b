"""Data Transfer Objects for Subscription Use Cases

Pydantic models for command inputs and response outputs.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field
from src.app.services.payment_gateway import GatewayResultStatus
from src.domain.subscription import Subscription


class CreateSubscriptionCommandDTO(BaseModel):
    """
    Command DTO for creating a subscription

    Values are checked by the use case so that every violated field is
    reported together.
    """

    customer_id: str = Field(
        ...,
        description="Customer identifier (letters, digits, underscore, hyphen; 3-255 chars)"
    )

    amount: Decimal = Field(
        ...,
        description="Charge amount per billing cycle"
    )

    currency: str = Field(
        default="USD",
        description="Currency code (ISO 4217)"
    )

    frequency: str = Field(
        ...,
        description="Billing frequency (daily, weekly, monthly, yearly)"
    )

    metadata: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Opaque metadata stored with the subscription"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "customer_id": "cust_4821",
                "amount": "29.99",
                "currency": "USD",
                "frequency": "monthly",
                "metadata": {"plan": "pro"}
            }
        }


class SubscriptionResponseDTO(BaseModel):
    """Response DTO for a subscription"""

    uuid: str = Field(..., description="External subscription identifier")
    customer_id: str = Field(..., description="Customer identifier")
    amount: Decimal = Field(..., description="Charge amount per cycle")
    currency: str = Field(..., description="Currency code")
    status: str = Field(..., description="active or cancelled")
    frequency: str = Field(..., description="Billing frequency")
    billing_cycle: int = Field(..., description="Number of successful charges")
    created_at: datetime = Field(..., description="Creation timestamp")
    next_billing_at: datetime = Field(..., description="Next due date")
    last_billing_at: Optional[datetime] = Field(default=None, description="Last successful charge")
    cancelled_at: Optional[datetime] = Field(default=None, description="Cancellation timestamp")
    metadata: Optional[Dict[str, Any]] = Field(default=None, description="Opaque metadata")

    @classmethod
    def from_entity(cls, subscription: Subscription) -> "SubscriptionResponseDTO":
        return cls(
            uuid=subscription.uuid,
            customer_id=subscription.customer_id,
            amount=subscription.amount,
            currency=subscription.currency,
            status=subscription.status.value,
            frequency=subscription.frequency.value,
            billing_cycle=subscription.billing_cycle,
            created_at=subscription.created_at,
            next_billing_at=subscription.next_billing_at,
            last_billing_at=subscription.last_billing_at,
            cancelled_at=subscription.cancelled_at,
            metadata=subscription.metadata_json,
        )

    class Config:
        json_schema_extra = {
            "example": {
                "uuid": "5b1f7f7e-3a52-4a3e-9a43-2f0c7d1e9b11",
                "customer_id": "cust_4821",
                "amount": "29.99",
                "currency": "USD",
                "status": "active",
                "frequency": "monthly",
                "billing_cycle": 0,
                "created_at": "2025-01-31T09:00:00Z",
                "next_billing_at": "2025-02-28T09:00:00Z",
                "last_billing_at": None,
                "cancelled_at": None,
                "metadata": {"plan": "pro"}
            }
        }


class BillingResultDTO(BaseModel):
    """
    Outcome of one billing attempt

    status mirrors the gateway trichotomy; code and message carry the
    gateway's (or the scheduler's) reason on declined/error.
    """

    subscription_uuid: str = Field(..., description="Billed subscription")
    customer_id: str = Field(..., description="Customer identifier")
    status: GatewayResultStatus = Field(..., description="success, declined or error")
    transaction_id: Optional[str] = Field(default=None, description="Gateway transaction ID")
    amount: Optional[Decimal] = Field(default=None, description="Charged amount")
    currency: Optional[str] = Field(default=None, description="Currency code")
    billing_cycle: int = Field(..., description="Billing cycle after the attempt")
    next_billing_at: Optional[datetime] = Field(default=None, description="Next due date after the attempt")
    code: Optional[str] = Field(default=None, description="Decline or error code")
    message: Optional[str] = Field(default=None, description="Decline or error message")

    class Config:
        json_schema_extra = {
            "example": {
                "subscription_uuid": "5b1f7f7e-3a52-4a3e-9a43-2f0c7d1e9b11",
                "customer_id": "cust_4821",
                "status": "success",
                "transaction_id": "7412983311",
                "amount": "29.99",
                "currency": "USD",
                "billing_cycle": 1,
                "next_billing_at": "2025-03-31T09:00:00Z"
            }
        }


class ProcessDueBillingResultDTO(BaseModel):
    """Summary of a due-billing run"""

    as_of: datetime = Field(..., description="Cut-off used to select due subscriptions")
    total_due: int = Field(..., description="Subscriptions selected for billing")
    succeeded: int = Field(..., description="Attempts that charged successfully")
    declined: int = Field(..., description="Attempts declined by the processor")
    failed: int = Field(..., description="Attempts that ended in an error")
    execution_time_ms: int = Field(..., description="Run duration in milliseconds")
    results: List[BillingResultDTO] = Field(default_factory=list, description="Per-subscription outcomes")


class SubscriptionStatisticsDTO(BaseModel):
    """Subscription counts"""

    total: int = Field(..., description="All subscriptions")
    active: int = Field(..., description="Active subscriptions")
    cancelled: int = Field(..., description="Cancelled subscriptions")
