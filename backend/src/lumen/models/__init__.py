"""SQLAlchemy ORM models for the analytics service."""
# Import all models here to ensure they are registered with the metadata

from lumen.models.base import Base
from lumen.models.plan import Plan, PlanType
from lumen.models.subscription import Subscription, SubscriptionStatus
from lumen.models.usage_record import UsageRecord
from lumen.models.discount import Discount, DiscountRedemption, DiscountType
from lumen.models.analytics_report import AnalyticsReport, ReportType, Granularity, GeneratedBy

__all__ = [
    "Base",
    "Plan",
    "PlanType",
    "Subscription",
    "SubscriptionStatus",
    "UsageRecord",
    "Discount",
    "DiscountRedemption",
    "DiscountType",
    "AnalyticsReport",
    "ReportType",
    "Granularity",
    "GeneratedBy",
]
