"""
Analytics service building subscription reports.

Report builders (each returns an unpersisted AnalyticsReportCreate):
- Subscription trends: counts grouped by calendar month, reduced to totals
- Plan performance: active subscriptions ranked per plan
- Revenue analytics: revenue by month and by plan
- Usage patterns: data usage distribution

The dashboard and discount performance summaries are computed live and not
stored.

Also persists reports as append-only snapshots and reads them back.

The builders do not validate their inputs; callers ensure
start_date <= end_date. Database errors propagate unchanged.
"""

from datetime import datetime
from typing import List, Optional

import structlog
from sqlalchemy import case, extract, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from lumen.config import settings
from lumen.metrics import report_generation_seconds, reports_generated_total, reports_saved_total
from lumen.models.analytics_report import AnalyticsReport as AnalyticsReportRecord
from lumen.models.analytics_report import GeneratedBy, Granularity, ReportType
from lumen.models.discount import Discount, DiscountRedemption
from lumen.models.plan import Plan
from lumen.models.subscription import Subscription, SubscriptionStatus
from lumen.models.usage_record import UsageRecord
from lumen.schemas.analytics_report import (
    AnalyticsReport,
    AnalyticsReportBase,
    AnalyticsReportCreate,
    AnalyticsReportSummary,
    PlanPerformance,
    PlanUsage,
    ReportData,
    ReportMetadata,
    ReportPeriod,
    RevenueByPlan,
    RevenueMetrics,
    RevenuePeriod,
    SubscriptionMetrics,
    UsageBucket,
    UsagePatterns,
)
from lumen.schemas.dashboard import AnalyticsDashboard, DashboardSummary, MonthlyTrend, TopPlan
from lumen.schemas.discount import DiscountAnalytics, DiscountPerformance
from lumen.services.insight_engine import generate_insights, generate_recommendations
from lumen.tracing import get_tracer

logger = structlog.get_logger(__name__)
tracer = get_tracer(__name__)

# Share of revenue assumed to recur until billing history is available
RECURRING_REVENUE_RATIO = 0.8

HIGH_USAGE_PERCENTAGE = 80
LOW_USAGE_PERCENTAGE = 30

DASHBOARD_TOP_PLANS = 5


def _percentage(part: float, whole: float) -> float:
    if not whole:
        return 0.0
    return part * 100 / whole


class AnalyticsService:
    """
    Service for building, storing and retrieving analytics reports.

    Invoked per request by the API and on a schedule by workers/analytics.py.
    """

    def __init__(self, db: AsyncSession):
        """
        Initialize analytics service.

        Args:
            db: Async database session
        """
        self.db = db

    def _new_report(
        self,
        report_type: ReportType,
        start_date: datetime,
        end_date: datetime,
        data: ReportData,
        granularity: Granularity = Granularity.MONTHLY,
    ) -> AnalyticsReportCreate:
        reports_generated_total.labels(report_type=report_type.value).inc()
        return AnalyticsReportCreate(
            type=report_type,
            period=ReportPeriod(start_date=start_date, end_date=end_date, granularity=granularity),
            data=data,
            metadata=ReportMetadata(generated_by=GeneratedBy.SYSTEM, version=settings.report_version),
        )

    async def generate_subscription_trends(
        self,
        start_date: datetime,
        end_date: datetime
    ) -> AnalyticsReportCreate:
        """
        Build a subscription trends report.

        Subscriptions created within [start_date, end_date] are grouped by
        calendar month of creation. Only the totals across all months are
        kept in the report.

        Args:
            start_date: Window start (inclusive)
            end_date: Window end (inclusive)

        Returns:
            Unpersisted report of type subscription_trends
        """
        logger.info(
            "generating_subscription_trends",
            start_date=start_date.isoformat(),
            end_date=end_date.isoformat()
        )

        year = extract("year", Subscription.created_at).label("year")
        month = extract("month", Subscription.created_at).label("month")

        stmt = (
            select(
                year,
                month,
                func.count(Subscription.id).label("total_subscriptions"),
                func.sum(
                    case((Subscription.status == SubscriptionStatus.ACTIVE, 1), else_=0)
                ).label("new_subscriptions"),
                func.sum(
                    case((Subscription.status == SubscriptionStatus.CANCELLED, 1), else_=0)
                ).label("cancelled_subscriptions"),
            )
            .where(
                Subscription.created_at >= start_date,
                Subscription.created_at <= end_date
            )
            .group_by(year, month)
            .order_by(year, month)
        )

        with tracer.start_as_current_span("analytics.subscription_trends"), \
                report_generation_seconds.labels(report_type=ReportType.SUBSCRIPTION_TRENDS.value).time():
            result = await self.db.execute(stmt)
            months = result.all()

        # Per-month rows are reduced to grand totals
        metrics = SubscriptionMetrics(
            total_subscriptions=sum(int(row.total_subscriptions or 0) for row in months),
            new_subscriptions=sum(int(row.new_subscriptions or 0) for row in months),
            cancelled_subscriptions=sum(int(row.cancelled_subscriptions or 0) for row in months),
        )

        logger.info(
            "subscription_trends_generated",
            month_count=len(months),
            total_subscriptions=metrics.total_subscriptions,
            new_subscriptions=metrics.new_subscriptions,
            cancelled_subscriptions=metrics.cancelled_subscriptions
        )

        return self._new_report(
            ReportType.SUBSCRIPTION_TRENDS,
            start_date,
            end_date,
            ReportData(subscription_metrics=metrics),
        )

    async def generate_plan_performance(
        self,
        start_date: datetime,
        end_date: datetime
    ) -> AnalyticsReportCreate:
        """
        Build a plan performance report.

        Active subscriptions created in the window are grouped per plan and
        ranked by count, highest first. Subscriptions whose plan row is
        missing are dropped. average_usage and churn_rate are not computed
        and stay 0.

        Args:
            start_date: Window start (inclusive)
            end_date: Window end (inclusive)

        Returns:
            Unpersisted report of type plan_performance
        """
        logger.info(
            "generating_plan_performance",
            start_date=start_date.isoformat(),
            end_date=end_date.isoformat()
        )

        subscription_count = func.count(Subscription.id).label("subscription_count")

        stmt = (
            select(
                Plan.id.label("plan_id"),
                Plan.name.label("plan_name"),
                Plan.popularity_rating,
                subscription_count,
                func.avg(Subscription.final_price).label("average_price"),
                func.sum(Subscription.final_price).label("total_revenue"),
            )
            .select_from(Subscription)
            .join(Plan, Subscription.plan_id == Plan.id)
            .where(
                Subscription.created_at >= start_date,
                Subscription.created_at <= end_date,
                Subscription.status == SubscriptionStatus.ACTIVE
            )
            .group_by(Plan.id, Plan.name, Plan.popularity_rating)
            .order_by(subscription_count.desc(), Plan.name)
        )

        with tracer.start_as_current_span("analytics.plan_performance"), \
                report_generation_seconds.labels(report_type=ReportType.PLAN_PERFORMANCE.value).time():
            result = await self.db.execute(stmt)
            rows = result.all()

        plan_performance = [
            PlanPerformance(
                plan_id=row.plan_id,
                plan_name=row.plan_name,
                subscription_count=int(row.subscription_count),
                revenue=float(row.total_revenue or 0),
                average_price=float(row.average_price or 0),
                average_usage=0,  # Needs a usage history join
                satisfaction_score=float(row.popularity_rating or 0),
                churn_rate=0,  # Needs historical churn per plan
            )
            for row in rows
        ]

        logger.info("plan_performance_generated", plan_count=len(plan_performance))

        return self._new_report(
            ReportType.PLAN_PERFORMANCE,
            start_date,
            end_date,
            ReportData(plan_performance=plan_performance),
        )

    async def generate_revenue_analytics(
        self,
        start_date: datetime,
        end_date: datetime,
        granularity: Granularity = Granularity.MONTHLY
    ) -> AnalyticsReportCreate:
        """
        Build a revenue analytics report.

        Revenue of subscriptions created in the window, in any status, broken
        down by calendar month and by plan. Recurring revenue is estimated as
        a fixed share of total revenue.

        Args:
            start_date: Window start (inclusive)
            end_date: Window end (inclusive)
            granularity: Granularity recorded on the report period

        Returns:
            Unpersisted report of type revenue_analytics
        """
        logger.info(
            "generating_revenue_analytics",
            start_date=start_date.isoformat(),
            end_date=end_date.isoformat()
        )

        in_window = (
            Subscription.created_at >= start_date,
            Subscription.created_at <= end_date,
        )

        year = extract("year", Subscription.created_at).label("year")
        month = extract("month", Subscription.created_at).label("month")

        stmt_period = (
            select(
                year,
                month,
                func.sum(Subscription.final_price).label("revenue"),
                func.count(Subscription.id).label("subscriptions"),
                func.sum(Subscription.discount_applied).label("discount_impact"),
            )
            .where(*in_window)
            .group_by(year, month)
            .order_by(year, month)
        )

        revenue = func.sum(Subscription.final_price).label("revenue")
        stmt_plan = (
            select(
                Plan.id.label("plan_id"),
                Plan.name.label("plan_name"),
                revenue,
                func.count(Subscription.id).label("subscriptions"),
            )
            .select_from(Subscription)
            .join(Plan, Subscription.plan_id == Plan.id)
            .where(*in_window)
            .group_by(Plan.id, Plan.name)
            .order_by(revenue.desc(), Plan.name)
        )

        with tracer.start_as_current_span("analytics.revenue_analytics"), \
                report_generation_seconds.labels(report_type=ReportType.REVENUE_ANALYTICS.value).time():
            period_rows = (await self.db.execute(stmt_period)).all()
            plan_rows = (await self.db.execute(stmt_plan)).all()

        by_period = [
            RevenuePeriod(
                year=int(row.year),
                month=int(row.month),
                revenue=float(row.revenue or 0),
                subscriptions=int(row.subscriptions),
                discount_impact=float(row.discount_impact or 0),
            )
            for row in period_rows
        ]
        by_plan = [
            RevenueByPlan(
                plan_id=row.plan_id,
                plan_name=row.plan_name,
                revenue=float(row.revenue or 0),
                subscriptions=int(row.subscriptions),
            )
            for row in plan_rows
        ]

        total_revenue = sum(p.revenue for p in by_period)
        total_subscriptions = sum(p.subscriptions for p in by_period)

        metrics = RevenueMetrics(
            total_revenue=total_revenue,
            recurring_revenue=total_revenue * RECURRING_REVENUE_RATIO,
            average_revenue_per_user=total_revenue / total_subscriptions if total_subscriptions else 0,
            discount_impact=sum(p.discount_impact for p in by_period),
            by_period=by_period,
            by_plan=by_plan,
        )

        logger.info(
            "revenue_analytics_generated",
            total_revenue=metrics.total_revenue,
            total_subscriptions=total_subscriptions,
            plan_count=len(by_plan)
        )

        return self._new_report(
            ReportType.REVENUE_ANALYTICS,
            start_date,
            end_date,
            ReportData(revenue_metrics=metrics),
            granularity=granularity,
        )

    async def generate_usage_patterns(
        self,
        start_date: datetime,
        end_date: datetime
    ) -> AnalyticsReportCreate:
        """
        Build a usage patterns report.

        Considers usage records whose billing period lies entirely inside the
        window. Users above 80% of quota count as high usage, below 30% as
        low usage.

        Args:
            start_date: Window start (inclusive)
            end_date: Window end (inclusive)

        Returns:
            Unpersisted report of type usage_patterns
        """
        logger.info(
            "generating_usage_patterns",
            start_date=start_date.isoformat(),
            end_date=end_date.isoformat()
        )

        in_window = (
            UsageRecord.period_start >= start_date,
            UsageRecord.period_end <= end_date,
        )

        stmt_totals = (
            select(
                func.avg(UsageRecord.total_used_gb).label("average_usage"),
                func.count(UsageRecord.id).label("total_users"),
                func.sum(
                    case((UsageRecord.usage_percentage > HIGH_USAGE_PERCENTAGE, 1), else_=0)
                ).label("high_usage_users"),
                func.sum(
                    case((UsageRecord.usage_percentage < LOW_USAGE_PERCENTAGE, 1), else_=0)
                ).label("low_usage_users"),
            )
            .where(*in_window)
        )

        total_users_col = func.count(UsageRecord.id).label("total_users")
        stmt_plans = (
            select(
                UsageRecord.plan_id,
                Plan.name.label("plan_name"),
                total_users_col,
                func.avg(UsageRecord.total_used_gb).label("average_usage"),
                func.sum(UsageRecord.total_used_gb).label("total_usage"),
                func.max(UsageRecord.total_used_gb).label("peak_usage"),
            )
            .select_from(UsageRecord)
            .outerjoin(Plan, UsageRecord.plan_id == Plan.id)
            .where(*in_window)
            .group_by(UsageRecord.plan_id, Plan.name)
            .order_by(total_users_col.desc())
        )

        with tracer.start_as_current_span("analytics.usage_patterns"), \
                report_generation_seconds.labels(report_type=ReportType.USAGE_PATTERNS.value).time():
            totals = (await self.db.execute(stmt_totals)).one()
            plan_rows = (await self.db.execute(stmt_plans)).all()

        total_users = int(totals.total_users or 0)
        low_users = int(totals.low_usage_users or 0)
        high_users = int(totals.high_usage_users or 0)

        patterns = UsagePatterns(
            average_monthly_usage=float(totals.average_usage or 0),
            usage_distribution=[
                UsageBucket(
                    range=f"Low Usage (0-{LOW_USAGE_PERCENTAGE}%)",
                    user_count=low_users,
                    percentage=_percentage(low_users, total_users),
                ),
                UsageBucket(
                    range=f"High Usage ({HIGH_USAGE_PERCENTAGE}%+)",
                    user_count=high_users,
                    percentage=_percentage(high_users, total_users),
                ),
            ],
            plan_breakdown=[
                PlanUsage(
                    plan_id=row.plan_id,
                    plan_name=row.plan_name,
                    total_users=int(row.total_users),
                    average_usage=float(row.average_usage or 0),
                    total_usage=float(row.total_usage or 0),
                    peak_usage=float(row.peak_usage or 0),
                )
                for row in plan_rows
            ],
        )

        logger.info(
            "usage_patterns_generated",
            total_users=total_users,
            high_usage_users=high_users,
            low_usage_users=low_users
        )

        return self._new_report(
            ReportType.USAGE_PATTERNS,
            start_date,
            end_date,
            ReportData(usage_patterns=patterns),
        )

    async def get_dashboard(
        self,
        start_date: datetime,
        end_date: datetime,
        granularity: Granularity = Granularity.MONTHLY
    ) -> AnalyticsDashboard:
        """
        Summarise subscriptions created in the window for the dashboard.

        Not persisted.

        Args:
            start_date: Window start (inclusive)
            end_date: Window end (inclusive)
            granularity: Granularity echoed back to the caller

        Returns:
            AnalyticsDashboard with summary, top plans and monthly trends
        """
        in_window = (
            Subscription.created_at >= start_date,
            Subscription.created_at <= end_date,
        )

        stmt_summary = (
            select(
                func.count(Subscription.id).label("total"),
                func.sum(case((Subscription.status == SubscriptionStatus.ACTIVE, 1), else_=0)).label("active"),
                func.sum(case((Subscription.status == SubscriptionStatus.CANCELLED, 1), else_=0)).label("cancelled"),
                func.sum(Subscription.final_price).label("revenue"),
            )
            .where(*in_window)
        )

        subscription_count = func.count(Subscription.id).label("subscription_count")
        stmt_top = (
            select(
                Plan.id.label("plan_id"),
                Plan.name.label("plan_name"),
                subscription_count,
                func.sum(Subscription.final_price).label("revenue"),
            )
            .select_from(Subscription)
            .join(Plan, Subscription.plan_id == Plan.id)
            .where(*in_window)
            .group_by(Plan.id, Plan.name)
            .order_by(subscription_count.desc(), Plan.name)
            .limit(DASHBOARD_TOP_PLANS)
        )

        year = extract("year", Subscription.created_at).label("year")
        month = extract("month", Subscription.created_at).label("month")
        stmt_trends = (
            select(
                year,
                month,
                func.count(Subscription.id).label("new_subscriptions"),
                func.sum(Subscription.final_price).label("revenue"),
                func.sum(case((Subscription.status == SubscriptionStatus.CANCELLED, 1), else_=0)).label("cancelled"),
            )
            .where(*in_window)
            .group_by(year, month)
            .order_by(year, month)
        )

        summary_row = (await self.db.execute(stmt_summary)).one()
        top_rows = (await self.db.execute(stmt_top)).all()
        trend_rows = (await self.db.execute(stmt_trends)).all()

        total = int(summary_row.total or 0)
        cancelled = int(summary_row.cancelled or 0)

        summary = DashboardSummary(
            total_subscriptions=total,
            active_subscriptions=int(summary_row.active or 0),
            cancelled_subscriptions=cancelled,
            total_revenue=float(summary_row.revenue or 0),
            churn_rate=_percentage(cancelled, total),
        )

        logger.info(
            "dashboard_generated",
            total_subscriptions=total,
            churn_rate=summary.churn_rate,
            granularity=granularity.value
        )

        return AnalyticsDashboard(
            summary=summary,
            top_plans=[
                TopPlan(
                    plan_id=row.plan_id,
                    plan_name=row.plan_name,
                    subscription_count=int(row.subscription_count),
                    revenue=float(row.revenue or 0),
                )
                for row in top_rows
            ],
            monthly_trends=[
                MonthlyTrend(
                    year=int(row.year),
                    month=int(row.month),
                    new_subscriptions=int(row.new_subscriptions),
                    revenue=float(row.revenue or 0),
                    cancelled=int(row.cancelled or 0),
                )
                for row in trend_rows
            ],
            start_date=start_date,
            end_date=end_date,
            granularity=granularity,
        )

    async def get_discount_performance(
        self,
        start_date: datetime,
        end_date: datetime
    ) -> DiscountAnalytics:
        """
        Rank discounts by redemptions made within the window.

        Redemptions whose discount row is missing are dropped. Not persisted.

        Args:
            start_date: Window start (inclusive)
            end_date: Window end (inclusive)

        Returns:
            DiscountAnalytics ordered by redemption count, highest first
        """
        total_usage = func.count(DiscountRedemption.id).label("total_usage")

        stmt = (
            select(
                Discount.id.label("discount_id"),
                Discount.name.label("discount_name"),
                Discount.code,
                total_usage,
                func.sum(DiscountRedemption.discount_amount).label("total_discount_amount"),
                func.avg(DiscountRedemption.discount_amount).label("average_discount_amount"),
            )
            .select_from(DiscountRedemption)
            .join(Discount, DiscountRedemption.discount_id == Discount.id)
            .where(
                DiscountRedemption.used_at >= start_date,
                DiscountRedemption.used_at <= end_date
            )
            .group_by(Discount.id, Discount.name, Discount.code)
            .order_by(total_usage.desc(), Discount.name)
        )

        with tracer.start_as_current_span("analytics.discount_performance"):
            rows = (await self.db.execute(stmt)).all()

        discounts = [
            DiscountPerformance(
                discount_id=row.discount_id,
                discount_name=row.discount_name,
                code=row.code,
                total_usage=int(row.total_usage),
                total_discount_amount=float(row.total_discount_amount or 0),
                average_discount_amount=float(row.average_discount_amount or 0),
            )
            for row in rows
        ]

        logger.info(
            "discount_performance_generated",
            discount_count=len(discounts),
            redemption_count=sum(d.total_usage for d in discounts)
        )

        return DiscountAnalytics(start_date=start_date, end_date=end_date, discounts=discounts)

    async def save_report(self, report: AnalyticsReportBase) -> AnalyticsReport:
        """
        Persist a report as a new snapshot row.

        Existing rows are never updated.

        Args:
            report: Report built by one of the generate_* methods

        Returns:
            The stored report, with id and created_at
        """
        record = AnalyticsReportRecord(
            report_type=report.type,
            period_start=report.period.start_date,
            period_end=report.period.end_date,
            granularity=report.period.granularity,
            data=report.data.model_dump(mode="json"),
            insights=[insight.model_dump(mode="json") for insight in report.insights],
            recommendations=[rec.model_dump(mode="json") for rec in report.recommendations],
            generated_by=report.metadata.generated_by,
            version=report.metadata.version,
            data_quality=report.metadata.data_quality.model_dump(mode="json"),
            updated_at=report.metadata.last_updated,
        )

        self.db.add(record)
        await self.db.commit()
        await self.db.refresh(record)

        reports_saved_total.labels(
            report_type=report.type.value,
            generated_by=report.metadata.generated_by.value
        ).inc()

        logger.info(
            "analytics_report_saved",
            report_id=str(record.id),
            report_type=report.type.value,
            insight_count=len(report.insights),
            recommendation_count=len(report.recommendations)
        )

        return self._to_schema(record)

    async def get_latest_report(self, report_type: ReportType) -> Optional[AnalyticsReport]:
        """
        Get the most recently stored report of a type.

        Args:
            report_type: Report type to look up

        Returns:
            The report, or None if none has been stored yet
        """
        stmt = (
            select(AnalyticsReportRecord)
            .where(AnalyticsReportRecord.report_type == report_type)
            .order_by(AnalyticsReportRecord.created_at.desc())
            .limit(1)
        )

        result = await self.db.execute(stmt)
        record = result.scalars().first()
        return self._to_schema(record) if record is not None else None

    async def get_report_history(
        self,
        report_type: Optional[ReportType] = None,
        limit: int = 10
    ) -> List[AnalyticsReportSummary]:
        """
        List stored reports, newest first, without insights or recommendations.

        Args:
            report_type: Restrict to one report type (all types if None)
            limit: Maximum number of reports

        Returns:
            Report summaries ordered by creation time descending
        """
        stmt = select(AnalyticsReportRecord)
        if report_type is not None:
            stmt = stmt.where(AnalyticsReportRecord.report_type == report_type)
        stmt = stmt.order_by(AnalyticsReportRecord.created_at.desc()).limit(limit)

        result = await self.db.execute(stmt)

        summaries = []
        for record in result.scalars().all():
            report = self._to_schema(record)
            summaries.append(
                AnalyticsReportSummary(**report.model_dump(exclude={"insights", "recommendations"}))
            )
        return summaries

    async def refresh_insights(self, report_type: ReportType) -> Optional[AnalyticsReport]:
        """
        Run the rule engine over the latest report of a type.

        The stored report is left untouched; a copy carrying the new insights
        and recommendations is stored as a new report generated by the
        ai_engine.

        Args:
            report_type: Report type whose latest snapshot is analysed

        Returns:
            The newly stored report, or None if no report of that type exists
        """
        latest = await self.get_latest_report(report_type)
        if latest is None:
            logger.info("insights_skipped_no_report", report_type=report_type.value)
            return None

        report = AnalyticsReportCreate(
            type=latest.type,
            period=latest.period.model_copy(),
            data=latest.data.model_copy(deep=True),
            metadata=ReportMetadata(
                generated_by=GeneratedBy.AI_ENGINE,
                version=settings.report_version,
                data_quality=latest.metadata.data_quality.model_copy(),
            ),
        )

        generate_insights(report)
        generate_recommendations(report)

        logger.info(
            "insights_refreshed",
            report_type=report_type.value,
            source_report_id=str(latest.id)
        )

        return await self.save_report(report)

    @staticmethod
    def _to_schema(record: AnalyticsReportRecord) -> AnalyticsReport:
        return AnalyticsReport(
            id=record.id,
            created_at=record.created_at,
            type=record.report_type,
            period=ReportPeriod(
                start_date=record.period_start,
                end_date=record.period_end,
                granularity=record.granularity,
            ),
            data=record.data or {},
            insights=record.insights or [],
            recommendations=record.recommendations or [],
            metadata=ReportMetadata(
                generated_by=record.generated_by,
                version=record.version,
                last_updated=record.updated_at,
                data_quality=record.data_quality or {},
            ),
        )
