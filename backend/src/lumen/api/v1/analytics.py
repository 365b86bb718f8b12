"""
Analytics API endpoints for subscription reporting.

Provides endpoints for:
- GET /v1/analytics/dashboard - Live subscription summary
- GET /v1/analytics/subscription-trends - Subscription trends report
- GET /v1/analytics/plan-performance - Plan performance report
- GET /v1/analytics/usage-patterns - Usage patterns report
- GET /v1/analytics/revenue - Revenue analytics report
- GET /v1/analytics/discount-performance - Discount redemptions per discount
- GET /v1/analytics/insights - Insights for the latest report of a type
- GET /v1/analytics/history - Previously generated reports

Report endpoints store every generated report as a new snapshot.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from lumen.api.deps import get_db, parse_date, resolve_window
from lumen.models.analytics_report import Granularity, ReportType
from lumen.schemas.analytics_report import AnalyticsReport, AnalyticsReportSummary
from lumen.schemas.dashboard import AnalyticsDashboard
from lumen.schemas.discount import DiscountAnalytics
from lumen.schemas.error import ErrorCode
from lumen.services.analytics_service import AnalyticsService
from lumen.utils.periods import dashboard_window

logger = structlog.get_logger(__name__)

router = APIRouter()

START_DATE_QUERY = Query(None, description="Window start (YYYY-MM-DD)")
END_DATE_QUERY = Query(None, description="Window end (YYYY-MM-DD). Defaults to now.")


@router.get(
    "/analytics/dashboard",
    response_model=AnalyticsDashboard,
    summary="Get dashboard summary",
    description="""
    Live subscription summary for the admin dashboard.

    With explicit `start_date` and `end_date` the window is taken as given.
    Otherwise `period` selects a window ending now: the last day, the last
    week, or the current month, quarter or year.
    """
)
async def get_dashboard(
    period: Granularity = Query(Granularity.MONTHLY, description="Default window when no dates are given"),
    start_date: Optional[str] = START_DATE_QUERY,
    end_date: Optional[str] = END_DATE_QUERY,
    db: AsyncSession = Depends(get_db)
) -> AnalyticsDashboard:
    """Get the dashboard summary for a window."""
    if start_date and end_date:
        start, end = resolve_window(start_date, end_date, default_days=30)
    else:
        # A lone date is checked but does not change the window
        if start_date:
            parse_date(start_date, "start_date")
        if end_date:
            parse_date(end_date, "end_date")
        start, end = dashboard_window(period)

    analytics_service = AnalyticsService(db)
    return await analytics_service.get_dashboard(start, end, granularity=period)


@router.get(
    "/analytics/subscription-trends",
    response_model=AnalyticsReport,
    summary="Generate subscription trends report",
    description="""
    Count subscriptions created in the window, grouped by calendar month.

    The stored report keeps the totals across the whole window:
    total, new (currently active) and cancelled subscriptions.

    **Default window:** last 90 days
    """
)
async def get_subscription_trends(
    start_date: Optional[str] = START_DATE_QUERY,
    end_date: Optional[str] = END_DATE_QUERY,
    db: AsyncSession = Depends(get_db)
) -> AnalyticsReport:
    """Generate and store a subscription trends report."""
    start, end = resolve_window(start_date, end_date, default_days=90)

    analytics_service = AnalyticsService(db)
    report = await analytics_service.generate_subscription_trends(start, end)
    return await analytics_service.save_report(report)


@router.get(
    "/analytics/plan-performance",
    response_model=AnalyticsReport,
    summary="Generate plan performance report",
    description="""
    Rank plans by active subscriptions created in the window, with revenue
    and average price per plan.

    **Default window:** last 30 days
    """
)
async def get_plan_performance(
    start_date: Optional[str] = START_DATE_QUERY,
    end_date: Optional[str] = END_DATE_QUERY,
    db: AsyncSession = Depends(get_db)
) -> AnalyticsReport:
    """Generate and store a plan performance report."""
    start, end = resolve_window(start_date, end_date, default_days=30)

    analytics_service = AnalyticsService(db)
    report = await analytics_service.generate_plan_performance(start, end)
    return await analytics_service.save_report(report)


@router.get(
    "/analytics/usage-patterns",
    response_model=AnalyticsReport,
    summary="Generate usage patterns report",
    description="""
    Data usage distribution for billing periods inside the window, with a
    per-plan breakdown.

    **Default window:** last 30 days
    """
)
async def get_usage_patterns(
    start_date: Optional[str] = START_DATE_QUERY,
    end_date: Optional[str] = END_DATE_QUERY,
    db: AsyncSession = Depends(get_db)
) -> AnalyticsReport:
    """Generate and store a usage patterns report."""
    start, end = resolve_window(start_date, end_date, default_days=30)

    analytics_service = AnalyticsService(db)
    report = await analytics_service.generate_usage_patterns(start, end)
    return await analytics_service.save_report(report)


@router.get(
    "/analytics/revenue",
    response_model=AnalyticsReport,
    summary="Generate revenue analytics report",
    description="""
    Revenue of subscriptions created in the window, by month and by plan.

    **Default window:** last 90 days
    """
)
async def get_revenue_analytics(
    start_date: Optional[str] = START_DATE_QUERY,
    end_date: Optional[str] = END_DATE_QUERY,
    granularity: Granularity = Query(Granularity.MONTHLY, description="Granularity recorded on the report"),
    db: AsyncSession = Depends(get_db)
) -> AnalyticsReport:
    """Generate and store a revenue analytics report."""
    start, end = resolve_window(start_date, end_date, default_days=90)

    analytics_service = AnalyticsService(db)
    report = await analytics_service.generate_revenue_analytics(start, end, granularity=granularity)
    return await analytics_service.save_report(report)


@router.get(
    "/analytics/discount-performance",
    response_model=DiscountAnalytics,
    summary="Get discount performance",
    description="""
    Discounts ranked by redemptions made in the window, with the total and
    average amount taken off. Not stored.

    **Default window:** last 30 days
    """
)
async def get_discount_performance(
    start_date: Optional[str] = START_DATE_QUERY,
    end_date: Optional[str] = END_DATE_QUERY,
    db: AsyncSession = Depends(get_db)
) -> DiscountAnalytics:
    """Get discount performance for a window."""
    start, end = resolve_window(start_date, end_date, default_days=30)

    analytics_service = AnalyticsService(db)
    return await analytics_service.get_discount_performance(start, end)


@router.get(
    "/analytics/insights",
    response_model=AnalyticsReport,
    summary="Generate insights and recommendations",
    description="""
    Run the insight and recommendation rules over the latest stored report
    of the given type. The result is stored as a new report generated by
    `ai_engine`; the source report is not modified.
    """
)
async def get_insights(
    report_type: ReportType = Query(
        ReportType.SUBSCRIPTION_TRENDS,
        alias="type",
        description="Report type to analyse"
    ),
    db: AsyncSession = Depends(get_db)
) -> AnalyticsReport:
    """Generate insights for the latest report of a type."""
    analytics_service = AnalyticsService(db)
    report = await analytics_service.refresh_insights(report_type)

    if report is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "code": ErrorCode.REPORT_NOT_FOUND,
                "message": "No analytics data found. Generate analytics first.",
            },
        )

    logger.info(
        "insights_endpoint_called",
        report_type=report_type.value,
        insight_count=len(report.insights),
        recommendation_count=len(report.recommendations)
    )

    return report


@router.get(
    "/analytics/history",
    response_model=list[AnalyticsReportSummary],
    summary="List stored reports",
    description="Stored reports, newest first, without insights and recommendations."
)
async def get_history(
    report_type: Optional[ReportType] = Query(None, alias="type", description="Filter by report type"),
    limit: int = Query(10, ge=1, le=100, description="Maximum number of reports (1-100)"),
    db: AsyncSession = Depends(get_db)
) -> list[AnalyticsReportSummary]:
    """List previously generated reports."""
    analytics_service = AnalyticsService(db)
    return await analytics_service.get_report_history(report_type=report_type, limit=limit)
