"""Test data factories using Faker for generating realistic test data."""
from datetime import datetime, timedelta
from typing import Any
from uuid import uuid4

from faker import Faker

from lumen.models.discount import Discount, DiscountRedemption, DiscountType
from lumen.models.plan import Plan, PlanType
from lumen.models.subscription import Subscription, SubscriptionStatus
from lumen.models.usage_record import UsageRecord

fake = Faker()


class PlanFactory:
    """Factory for creating test plans."""

    @staticmethod
    def create(overrides: dict[str, Any] | None = None) -> Plan:
        """
        Create a plan instance (not added to any session).

        Args:
            overrides: Optional field overrides

        Returns:
            Plan: Unsaved plan
        """
        data = {
            "id": uuid4(),
            "name": f"{fake.word().title()} Fiber {fake.random_int(min=50, max=1000)}",
            "plan_type": fake.random_element([PlanType.FIBERNET, PlanType.BROADBAND_COPPER]),
            "monthly_price": float(fake.random_int(min=399, max=2999)),
            "popularity_rating": None,
            "active": True,
        }
        if overrides:
            data.update(overrides)
        return Plan(**data)


class SubscriptionFactory:
    """Factory for creating test subscriptions."""

    @staticmethod
    def create(overrides: dict[str, Any] | None = None) -> Subscription:
        """
        Create a subscription instance (not added to any session).

        Args:
            overrides: Optional field overrides; plan_id should be supplied

        Returns:
            Subscription: Unsaved subscription
        """
        data = {
            "id": uuid4(),
            "user_id": fake.uuid4(),
            "plan_id": uuid4(),
            "status": SubscriptionStatus.ACTIVE,
            "final_price": 999.0,
            "discount_applied": 0.0,
            "created_at": datetime(2025, 2, 10, 12, 0, 0),
        }
        if overrides:
            data.update(overrides)
        return Subscription(**data)

    @staticmethod
    def create_batch(count: int, overrides: dict[str, Any] | None = None) -> list[Subscription]:
        """Create `count` subscriptions sharing the same overrides."""
        return [SubscriptionFactory.create(overrides) for _ in range(count)]


class UsageRecordFactory:
    """Factory for creating test usage records."""

    @staticmethod
    def create(overrides: dict[str, Any] | None = None) -> UsageRecord:
        """
        Create a usage record instance (not added to any session).

        Args:
            overrides: Optional field overrides

        Returns:
            UsageRecord: Unsaved usage record
        """
        period_start = datetime(2025, 2, 1)
        data = {
            "id": uuid4(),
            "user_id": fake.uuid4(),
            "plan_id": None,
            "period_start": period_start,
            "period_end": period_start + timedelta(days=27),
            "total_used_gb": 50.0,
            "usage_percentage": 50.0,
        }
        if overrides:
            data.update(overrides)
        return UsageRecord(**data)


class DiscountFactory:
    """Factory for creating test discounts."""

    @staticmethod
    def create(overrides: dict[str, Any] | None = None) -> Discount:
        """
        Create a discount instance (not added to any session).

        Args:
            overrides: Optional field overrides

        Returns:
            Discount: Unsaved discount
        """
        data = {
            "id": uuid4(),
            "name": f"{fake.word().title()} Offer",
            "code": fake.unique.bothify(text="LQ####").upper(),
            "discount_type": DiscountType.PERCENTAGE,
            "value": 10.0,
            "active": True,
        }
        if overrides:
            data.update(overrides)
        return Discount(**data)


class DiscountRedemptionFactory:
    """Factory for creating test discount redemptions."""

    @staticmethod
    def create(overrides: dict[str, Any] | None = None) -> DiscountRedemption:
        """
        Create a redemption instance (not added to any session).

        Args:
            overrides: Optional field overrides; discount_id should be supplied

        Returns:
            DiscountRedemption: Unsaved redemption
        """
        data = {
            "id": uuid4(),
            "discount_id": uuid4(),
            "user_id": fake.uuid4(),
            "subscription_id": None,
            "used_at": datetime(2025, 2, 12, 9, 0, 0),
            "discount_amount": 100.0,
        }
        if overrides:
            data.update(overrides)
        return DiscountRedemption(**data)
