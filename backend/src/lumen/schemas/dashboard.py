"""Pydantic schemas for the analytics dashboard."""
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from lumen.models.analytics_report import Granularity


class DashboardSummary(BaseModel):
    """Headline subscription numbers for the window."""

    total_subscriptions: int = 0
    active_subscriptions: int = 0
    cancelled_subscriptions: int = 0
    total_revenue: float = 0
    churn_rate: float = Field(default=0, description="Cancelled / total subscriptions (%)")


class TopPlan(BaseModel):
    """A plan ranked by subscriptions created in the window."""

    plan_id: UUID
    plan_name: str
    subscription_count: int
    revenue: float


class MonthlyTrend(BaseModel):
    """Subscriptions created in one calendar month."""

    year: int
    month: int
    new_subscriptions: int
    revenue: float
    cancelled: int


class AnalyticsDashboard(BaseModel):
    """Schema for analytics dashboard data."""

    summary: DashboardSummary
    top_plans: list[TopPlan]
    monthly_trends: list[MonthlyTrend]
    start_date: datetime
    end_date: datetime
    granularity: Granularity
