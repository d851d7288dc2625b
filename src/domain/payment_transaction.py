"""Payment Transaction Domain Entity

Durable local record of a successful gateway response. Written before a
success is reported to the caller.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import Numeric, String
from src.domain.base import BaseModel, PrimaryKeyType, generate_uuid


class PaymentStatus(str, Enum):
    """Payment status values"""
    APPROVED = "Approved"
    DECLINED = "Declined"
    FAILED = "Failed"
    PENDING = "Pending"
    REFUNDED = "Refunded"
    PARTIALLY_REFUNDED = "Partially Refunded"
    CANCELLED = "Cancelled"

    def is_successful(self) -> bool:
        return self is PaymentStatus.APPROVED

    def is_final(self) -> bool:
        return self in (
            PaymentStatus.APPROVED,
            PaymentStatus.REFUNDED,
            PaymentStatus.CANCELLED,
            PaymentStatus.FAILED,
        )


class PaymentTransaction(BaseModel, table=True):
    """
    Payment Transaction - Append-only record of gateway outcomes

    Domain Rules:
    - One record per successful gateway response
    - Card numbers are never stored, only the masked last four digits
    """

    __tablename__ = "payment_transactions"
    __table_args__ = (
        Index('ix_payment_transactions_transaction_id', 'transaction_id'),
        Index('ix_payment_transactions_created_at', 'created_at'),
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

    transaction_id: str = Field(
        sa_column=Column(String(100), nullable=False),
        description="Gateway transaction identifier"
    )

    amount: Decimal = Field(
        sa_column=Column(Numeric(12, 2), nullable=False),
        description="Amount charged or refunded"
    )

    currency_code: str = Field(
        default="USD",
        sa_column=Column(String(3), nullable=False),
        description="Currency code (ISO 4217)"
    )

    payment_status: PaymentStatus = Field(
        description="Outcome recorded for this transaction"
    )

    last4_digits: Optional[str] = Field(
        default=None,
        sa_column=Column(String(4), nullable=True),
        description="Masked card identifier"
    )

    used_token: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
        description="Three-step token the charge completed with"
    )

    customer_reference: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
        description="Gateway customer reference for vault/rebilling charges"
    )

    original_transaction_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(100), nullable=True),
        description="Refunded transaction (refunds only)"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Record timestamp (immutable)"
    )
