"""Unit tests for Subscription domain entity and billing date arithmetic"""

import pytest
from datetime import datetime
from decimal import Decimal
from src.domain.exceptions import InvalidFrequencyError
from src.domain.subscription import (
    Subscription,
    SubscriptionStatus,
    BillingFrequency,
    calculate_next_billing_date,
)


def make_subscription(**overrides):
    created_at = overrides.pop("created_at", datetime(2025, 1, 31, 9, 0, 0))
    data = {
        "customer_id": "cust_4821",
        "amount": Decimal("29.99"),
        "currency": "USD",
        "frequency": BillingFrequency.MONTHLY,
        "created_at": created_at,
        "next_billing_at": calculate_next_billing_date(created_at, BillingFrequency.MONTHLY),
    }
    data.update(overrides)
    return Subscription(**data)


class TestCalculateNextBillingDate:
    """Test calendar interval arithmetic"""

    @pytest.mark.parametrize(
        "frequency, expected",
        [
            (BillingFrequency.DAILY, datetime(2025, 3, 15, 10, 30)),
            (BillingFrequency.WEEKLY, datetime(2025, 3, 21, 10, 30)),
            (BillingFrequency.MONTHLY, datetime(2025, 4, 14, 10, 30)),
            (BillingFrequency.YEARLY, datetime(2026, 3, 14, 10, 30)),
        ],
    )
    def test_adds_exact_interval(self, frequency, expected):
        """Each frequency adds exactly one calendar interval and keeps the time of day"""
        assert calculate_next_billing_date(datetime(2025, 3, 14, 10, 30), frequency) == expected

    def test_monthly_clamps_to_end_of_shorter_month(self):
        """
        Given: Base date January 31st
        When: One month is added
        Then: Result is February 28th (2025 is not a leap year)
        """
        result = calculate_next_billing_date(datetime(2025, 1, 31), BillingFrequency.MONTHLY)

        assert result == datetime(2025, 2, 28)

    def test_monthly_clamps_to_leap_day(self):
        result = calculate_next_billing_date(datetime(2024, 1, 31), BillingFrequency.MONTHLY)

        assert result == datetime(2024, 2, 29)

    def test_yearly_from_leap_day_lands_on_feb_28(self):
        result = calculate_next_billing_date(datetime(2024, 2, 29), BillingFrequency.YEARLY)

        assert result == datetime(2025, 2, 28)

    def test_accepts_plain_string_frequency(self):
        result = calculate_next_billing_date(datetime(2025, 1, 1), "weekly")

        assert result == datetime(2025, 1, 8)

    def test_unknown_frequency_raises(self):
        """
        Given: A frequency outside the supported set
        When: Next billing date is calculated
        Then: InvalidFrequencyError with code INVALID_FREQUENCY
        """
        with pytest.raises(InvalidFrequencyError) as exc_info:
            calculate_next_billing_date(datetime(2025, 1, 1), "fortnightly")

        assert exc_info.value.code == "INVALID_FREQUENCY"
        assert exc_info.value.context == {"frequency": "fortnightly"}


class TestSubscriptionEntity:
    """Test Subscription entity behaviour"""

    def test_new_subscription_defaults(self):
        subscription = make_subscription()

        assert subscription.status == SubscriptionStatus.ACTIVE
        assert subscription.billing_cycle == 0
        assert subscription.last_billing_at is None
        assert subscription.cancelled_at is None
        assert len(subscription.uuid) == 36
        assert subscription.is_active() is True

    def test_next_billing_at_is_created_at_plus_interval(self):
        subscription = make_subscription()

        assert subscription.next_billing_at == datetime(2025, 2, 28, 9, 0, 0)

    def test_cancelled_subscription_is_not_active(self):
        subscription = make_subscription(
            status=SubscriptionStatus.CANCELLED,
            cancelled_at=datetime(2025, 2, 1),
        )

        assert subscription.is_active() is False

    def test_billing_base_date_prefers_last_billing(self):
        """
        Given: A subscription billed once
        When: The next billing date is derived from the entity
        Then: The interval is counted from last_billing_at, not created_at
        """
        subscription = make_subscription(
            last_billing_at=datetime(2025, 3, 5, 12, 0),
            billing_cycle=1,
        )

        assert subscription.billing_base_date() == datetime(2025, 3, 5, 12, 0)
        assert subscription.calculate_next_billing_date() == datetime(2025, 4, 5, 12, 0)

    def test_billing_base_date_falls_back_to_created_at(self):
        subscription = make_subscription()

        assert subscription.billing_base_date() == subscription.created_at
