"""Pydantic schemas for API request/response validation."""

from lumen.schemas.analytics_report import (
    AnalyticsReport,
    AnalyticsReportCreate,
    AnalyticsReportSummary,
    Insight,
    InsightCategory,
    InsightKind,
    Level,
    PlanPerformance,
    Recommendation,
    RecommendationType,
    ReportData,
    ReportMetadata,
    ReportPeriod,
    SubscriptionMetrics,
)
from lumen.schemas.error import ErrorCode, ErrorDetail, ErrorResponse

__all__ = [
    # Analytics reports
    "AnalyticsReport",
    "AnalyticsReportCreate",
    "AnalyticsReportSummary",
    "Insight",
    "InsightCategory",
    "InsightKind",
    "Level",
    "PlanPerformance",
    "Recommendation",
    "RecommendationType",
    "ReportData",
    "ReportMetadata",
    "ReportPeriod",
    "SubscriptionMetrics",
    # Errors
    "ErrorCode",
    "ErrorDetail",
    "ErrorResponse",
]
