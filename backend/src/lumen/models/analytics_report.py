"""
Analytics report model for persisted reporting snapshots.

Each row is one run of an aggregation over a time window:
- Subscription trends (grand totals over the window)
- Plan performance (per-plan ranking)
- Revenue analytics
- Usage patterns

Rows are append-only. Re-running analytics inserts a new row instead of
updating an old one, so the table doubles as the report history.
"""

from sqlalchemy import Column, DateTime, Enum as SQLEnum, Index, String
import enum

from lumen.models.base import Base, JSONType, enum_values


class ReportType(enum.Enum):
    """Which aggregation produced the report."""

    SUBSCRIPTION_TRENDS = "subscription_trends"
    PLAN_PERFORMANCE = "plan_performance"
    USER_BEHAVIOR = "user_behavior"
    REVENUE_ANALYTICS = "revenue_analytics"
    USAGE_PATTERNS = "usage_patterns"


class Granularity(enum.Enum):
    """Bucket size the report period was summarised at."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class GeneratedBy(enum.Enum):
    """Origin of the report."""

    SYSTEM = "system"
    AI_ENGINE = "ai_engine"
    MANUAL = "manual"


class AnalyticsReport(Base):
    """
    Persisted analytics report.

    data, insights and recommendations are stored as JSON documents shaped
    by the schemas in lumen.schemas.analytics_report.
    """

    __tablename__ = "analytics_reports"

    report_type = Column(SQLEnum(ReportType, values_callable=enum_values), nullable=False)

    # Window the metrics summarise
    period_start = Column(DateTime, nullable=False)
    period_end = Column(DateTime, nullable=False, index=True)
    granularity = Column(
        SQLEnum(Granularity, values_callable=enum_values), nullable=False, default=Granularity.MONTHLY
    )

    # Report body
    data = Column(JSONType, nullable=False, default=dict)
    insights = Column(JSONType, nullable=False, default=list)
    recommendations = Column(JSONType, nullable=False, default=list)

    # Report metadata
    generated_by = Column(
        SQLEnum(GeneratedBy, values_callable=enum_values),
        nullable=False,
        default=GeneratedBy.SYSTEM,
        index=True,
    )
    version = Column(String(20), nullable=False, default="1.0")
    data_quality = Column(JSONType, nullable=False, default=dict)

    __table_args__ = (
        Index("ix_analytics_reports_type_period_start", report_type, period_start.desc()),
    )

    def __repr__(self) -> str:
        return (
            f"<AnalyticsReport("
            f"type={self.report_type.value}, "
            f"period={self.period_start}..{self.period_end}, "
            f"generated_by={self.generated_by.value}"
            f")>"
        )
