"""Pydantic schemas for AnalyticsReport documents."""
from datetime import datetime
from typing import Optional
from uuid import UUID
import enum

from pydantic import BaseModel, Field

from lumen.models.analytics_report import GeneratedBy, Granularity, ReportType


class InsightCategory(enum.Enum):
    """Broad class of an insight."""

    TREND = "trend"
    ANOMALY = "anomaly"
    OPPORTUNITY = "opportunity"
    RISK = "risk"
    RECOMMENDATION = "recommendation"


class InsightKind(enum.Enum):
    """Stable identifier of the rule that produced an insight."""

    HIGH_CHURN = "high_churn"
    GROWTH_MOMENTUM = "growth_momentum"
    PLAN_CONCENTRATION = "plan_concentration"


class Level(enum.Enum):
    """high/medium/low scale shared by impact, priority and effort."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class RecommendationType(enum.Enum):
    """Area of the business a recommendation targets."""

    PLAN_OPTIMIZATION = "plan_optimization"
    PRICING_STRATEGY = "pricing_strategy"
    MARKETING_CAMPAIGN = "marketing_campaign"
    USER_RETENTION = "user_retention"
    FEATURE_ENHANCEMENT = "feature_enhancement"


# Report data payloads

class SubscriptionMetrics(BaseModel):
    """Subscription counts and rates over the report period."""

    total_subscriptions: int = 0
    new_subscriptions: int = 0
    cancelled_subscriptions: int = 0
    upgrades: int = 0
    downgrades: int = 0
    renewals: int = 0
    churn_rate: float = Field(default=0, description="Churn rate (%)")
    growth_rate: float = Field(default=0, description="Growth rate (%)")


class PlanPerformance(BaseModel):
    """Performance of a single plan within the period."""

    plan_id: UUID
    plan_name: str
    subscription_count: int = 0
    revenue: float = 0
    average_price: float = 0
    average_usage: float = 0
    satisfaction_score: float = 0
    churn_rate: float = 0


class RevenuePeriod(BaseModel):
    """Revenue for one calendar month."""

    year: int
    month: int
    revenue: float = 0
    subscriptions: int = 0
    discount_impact: float = 0


class RevenueByPlan(BaseModel):
    """Revenue attributed to one plan."""

    plan_id: UUID
    plan_name: str
    revenue: float = 0
    subscriptions: int = 0


class RevenueMetrics(BaseModel):
    """Revenue totals and breakdowns."""

    total_revenue: float = 0
    recurring_revenue: float = 0
    average_revenue_per_user: float = 0
    discount_impact: float = 0
    projected_revenue: float = 0
    by_period: list[RevenuePeriod] = Field(default_factory=list)
    by_plan: list[RevenueByPlan] = Field(default_factory=list)


class DevicePreference(BaseModel):
    """Share of users on one device type."""

    device: str
    percentage: float = 0


class ContentPreference(BaseModel):
    """Share of users favouring one content category."""

    category: str
    percentage: float = 0


class UserBehavior(BaseModel):
    """User engagement aggregates."""

    average_session_duration: float = 0
    most_active_hours: list[str] = Field(default_factory=list)
    device_preferences: list[DevicePreference] = Field(default_factory=list)
    content_preferences: list[ContentPreference] = Field(default_factory=list)


class UsageBucket(BaseModel):
    """Users falling into one usage range."""

    range: str = Field(..., description='e.g. "Low Usage (0-30%)"')
    user_count: int = 0
    percentage: float = 0


class PlanUsage(BaseModel):
    """Usage aggregated per plan."""

    plan_id: Optional[UUID] = None
    plan_name: Optional[str] = None
    total_users: int = 0
    average_usage: float = 0
    total_usage: float = 0
    peak_usage: float = 0


class UsagePatterns(BaseModel):
    """Data usage distribution."""

    average_monthly_usage: float = Field(default=0, description="Average GB used per record")
    peak_usage_periods: list[str] = Field(default_factory=list)
    low_usage_periods: list[str] = Field(default_factory=list)
    usage_distribution: list[UsageBucket] = Field(default_factory=list)
    plan_breakdown: list[PlanUsage] = Field(default_factory=list)


class ReportData(BaseModel):
    """Report payload; only the section matching the report type is populated."""

    subscription_metrics: SubscriptionMetrics = Field(default_factory=SubscriptionMetrics)
    plan_performance: list[PlanPerformance] = Field(default_factory=list)
    revenue_metrics: RevenueMetrics = Field(default_factory=RevenueMetrics)
    user_behavior: UserBehavior = Field(default_factory=UserBehavior)
    usage_patterns: UsagePatterns = Field(default_factory=UsagePatterns)


# Derived content

class Insight(BaseModel):
    """A derived fact about the report data."""

    kind: Optional[InsightKind] = Field(default=None, description="Rule that produced the insight, if any")
    category: InsightCategory
    title: str
    description: str
    impact: Level
    confidence: int = Field(..., ge=0, le=100)
    action_items: list[str] = Field(default_factory=list)


class Recommendation(BaseModel):
    """An action suggested by one or more insights."""

    type: RecommendationType
    title: str
    description: str
    expected_impact: str
    priority: Level
    estimated_roi: float = Field(..., description="Estimated return on investment (%)")
    implementation_effort: Level


# Report envelope

class ReportPeriod(BaseModel):
    """Time window summarised by a report."""

    start_date: datetime
    end_date: datetime
    granularity: Granularity = Granularity.MONTHLY


class DataQuality(BaseModel):
    """Self-assessed quality of the report inputs (0-100)."""

    completeness: int = Field(default=100, ge=0, le=100)
    accuracy: int = Field(default=100, ge=0, le=100)


class ReportMetadata(BaseModel):
    """Provenance of a report."""

    generated_by: GeneratedBy = GeneratedBy.SYSTEM
    version: str = "1.0"
    last_updated: datetime = Field(default_factory=datetime.utcnow)
    data_quality: DataQuality = Field(default_factory=DataQuality)


class AnalyticsReportBase(BaseModel):
    """Base analytics report schema with common fields."""

    type: ReportType
    period: ReportPeriod
    data: ReportData = Field(default_factory=ReportData)
    insights: list[Insight] = Field(default_factory=list)
    recommendations: list[Recommendation] = Field(default_factory=list)
    metadata: ReportMetadata = Field(default_factory=ReportMetadata)


class AnalyticsReportCreate(AnalyticsReportBase):
    """Report built in memory and not yet persisted."""

    pass


class AnalyticsReport(AnalyticsReportBase):
    """Schema for returning a persisted report."""

    id: UUID
    created_at: datetime


class AnalyticsReportSummary(BaseModel):
    """Report listing entry without insights and recommendations."""

    id: UUID
    type: ReportType
    period: ReportPeriod
    data: ReportData
    metadata: ReportMetadata
    created_at: datetime
