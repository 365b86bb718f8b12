"""
Background worker for scheduled analytics reports.

Builds a report, runs the insight and recommendation rules over it and
stores it:
- Subscription trends: daily, last 90 days
- Plan performance: daily, last 30 days
- Revenue analytics: weekly, last 90 days
- Usage patterns: weekly, last 30 days

Usage (with ARQ):
    arq lumen.workers.analytics.WorkerSettings
"""

from datetime import datetime
from typing import Awaitable, Callable, Dict, Tuple

import structlog
from arq import cron
from arq.connections import RedisSettings

from lumen.config import settings
from lumen.database import get_async_session
from lumen.models.analytics_report import ReportType
from lumen.schemas.analytics_report import AnalyticsReportCreate
from lumen.services.analytics_service import AnalyticsService
from lumen.services.insight_engine import generate_insights, generate_recommendations
from lumen.utils.periods import trailing_window

logger = structlog.get_logger(__name__)

ReportBuilder = Callable[[AnalyticsService, datetime, datetime], Awaitable[AnalyticsReportCreate]]

# Report type -> (AnalyticsService builder, window in days)
SCHEDULED_REPORTS: Dict[ReportType, Tuple[ReportBuilder, int]] = {
    ReportType.SUBSCRIPTION_TRENDS: (AnalyticsService.generate_subscription_trends, 90),
    ReportType.PLAN_PERFORMANCE: (AnalyticsService.generate_plan_performance, 30),
    ReportType.REVENUE_ANALYTICS: (AnalyticsService.generate_revenue_analytics, 90),
    ReportType.USAGE_PATTERNS: (AnalyticsService.generate_usage_patterns, 30),
}


async def build_and_store_report(ctx: dict, report_type: ReportType) -> dict:
    """
    Build one report with insights and recommendations and store it.

    Failures are logged and reported in the result so that one failing
    report does not stop the others.

    Args:
        ctx: ARQ context (contains job info)
        report_type: Report to build; must be in SCHEDULED_REPORTS

    Returns:
        Dict with the job outcome
    """
    build_report, days = SCHEDULED_REPORTS[report_type]
    start_date, end_date = trailing_window(days)

    logger.info(
        "analytics_worker_started",
        report_type=report_type.value,
        job_id=ctx.get("job_id")
    )

    try:
        async with get_async_session() as db:
            analytics_service = AnalyticsService(db)

            report = await build_report(analytics_service, start_date, end_date)
            generate_insights(report)
            generate_recommendations(report)

            stored = await analytics_service.save_report(report)

        logger.info(
            "analytics_worker_completed",
            report_type=report_type.value,
            report_id=str(stored.id),
            insight_count=len(stored.insights)
        )

        return {
            "report_type": report_type.value,
            "report_id": str(stored.id),
            "insight_count": len(stored.insights),
            "recommendation_count": len(stored.recommendations),
            "status": "success"
        }

    except Exception as e:
        logger.exception("analytics_worker_failed", report_type=report_type.value, error=str(e))
        return {
            "report_type": report_type.value,
            "status": "failed",
            "error": str(e)
        }


async def build_subscription_trends(ctx: dict) -> dict:
    return await build_and_store_report(ctx, ReportType.SUBSCRIPTION_TRENDS)


async def build_plan_performance(ctx: dict) -> dict:
    return await build_and_store_report(ctx, ReportType.PLAN_PERFORMANCE)


async def build_revenue_analytics(ctx: dict) -> dict:
    return await build_and_store_report(ctx, ReportType.REVENUE_ANALYTICS)


async def build_usage_patterns(ctx: dict) -> dict:
    return await build_and_store_report(ctx, ReportType.USAGE_PATTERNS)


async def build_all_reports(ctx: dict) -> dict:
    """
    Build every scheduled report in one job.

    Useful for manual triggering or initial setup.

    Args:
        ctx: ARQ context

    Returns:
        Dict with per-report results and a summary
    """
    logger.info("building_all_reports")

    results = {
        "started_at": datetime.utcnow().isoformat(),
        "reports": {}
    }

    for report_type in SCHEDULED_REPORTS:
        results["reports"][report_type.value] = await build_and_store_report(ctx, report_type)

    results["completed_at"] = datetime.utcnow().isoformat()

    successes = sum(1 for r in results["reports"].values() if r["status"] == "success")
    failures = len(results["reports"]) - successes

    results["summary"] = {
        "total_reports": len(results["reports"]),
        "successful": successes,
        "failed": failures
    }

    logger.info("all_reports_completed", successful=successes, failed=failures)

    return results


class WorkerSettings:
    """
    ARQ worker settings for scheduled analytics reports.

    Schedule (UTC):
    - Subscription trends: daily at 01:00
    - Plan performance: daily at 01:30
    - Revenue analytics: Mondays at 02:00
    - Usage patterns: Mondays at 02:30
    """

    functions = [
        build_subscription_trends,
        build_plan_performance,
        build_revenue_analytics,
        build_usage_patterns,
        build_all_reports,
    ]

    cron_jobs = [
        cron(build_subscription_trends, hour={1}, minute={0}, timeout=600),
        cron(build_plan_performance, hour={1}, minute={30}, timeout=600),
        cron(build_revenue_analytics, weekday={0}, hour={2}, minute={0}, timeout=600),
        cron(build_usage_patterns, weekday={0}, hour={2}, minute={30}, timeout=600),
    ]

    redis_settings = RedisSettings.from_dsn(str(settings.arq_redis_url))

    # Job retention
    keep_result = 86400  # Keep results for 24 hours

    max_jobs = 10
    job_timeout = 600
