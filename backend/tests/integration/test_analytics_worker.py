"""Integration tests for the scheduled report worker."""
from contextlib import asynccontextmanager
from datetime import datetime, timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from lumen.models.analytics_report import GeneratedBy, ReportType
from lumen.services.analytics_service import AnalyticsService
from lumen.workers import analytics as worker
from tests.utils.factories import PlanFactory, SubscriptionFactory


@pytest.fixture
def worker_session(monkeypatch: pytest.MonkeyPatch, db_session: AsyncSession) -> AsyncSession:
    """Route the worker's sessions to the test database."""

    @asynccontextmanager
    async def session_override():
        yield db_session

    monkeypatch.setattr(worker, "get_async_session", session_override)
    return db_session


@pytest.mark.asyncio
async def test_build_plan_performance_job(worker_session: AsyncSession) -> None:
    """Test that the job stores a report over the trailing window."""
    plan = PlanFactory.create({"name": "Fiber 150"})
    worker_session.add(plan)
    worker_session.add_all(
        SubscriptionFactory.create_batch(
            3, {"plan_id": plan.id, "created_at": datetime.utcnow() - timedelta(days=1)}
        )
    )
    await worker_session.commit()

    result = await worker.build_plan_performance({"job_id": "job-1"})

    assert result["status"] == "success"
    assert result["report_type"] == "plan_performance"
    # A single plan holds every subscription
    assert result["insight_count"] == 1
    assert result["recommendation_count"] == 0

    stored = await AnalyticsService(worker_session).get_latest_report(ReportType.PLAN_PERFORMANCE)
    assert str(stored.id) == result["report_id"]
    assert stored.metadata.generated_by == GeneratedBy.SYSTEM
    assert stored.data.plan_performance[0].subscription_count == 3
    assert stored.insights[0].title == "Over-dependence on Single Plan"


@pytest.mark.asyncio
async def test_build_all_reports(worker_session: AsyncSession) -> None:
    """Test that every scheduled report is built once."""
    result = await worker.build_all_reports({})

    assert set(result["reports"]) == {t.value for t in worker.SCHEDULED_REPORTS}
    assert result["summary"] == {"total_reports": 4, "successful": 4, "failed": 0}

    history = await AnalyticsService(worker_session).get_report_history()
    assert len(history) == 4


@pytest.mark.asyncio
async def test_failed_report_is_reported(
    monkeypatch: pytest.MonkeyPatch, worker_session: AsyncSession
) -> None:
    """Test that a failing builder is logged and returned, not raised."""

    async def broken(self, start_date, end_date):
        raise RuntimeError("aggregation failed")

    monkeypatch.setitem(worker.SCHEDULED_REPORTS, ReportType.USAGE_PATTERNS, (broken, 30))

    result = await worker.build_all_reports({})

    assert result["reports"]["usage_patterns"] == {
        "report_type": "usage_patterns",
        "status": "failed",
        "error": "aggregation failed",
    }
    assert result["summary"]["successful"] == 3
    assert result["summary"]["failed"] == 1


def test_scheduled_reports_use_service_builders() -> None:
    """Test that every scheduled report maps to the matching service builder."""
    assert worker.SCHEDULED_REPORTS == {
        ReportType.SUBSCRIPTION_TRENDS: (AnalyticsService.generate_subscription_trends, 90),
        ReportType.PLAN_PERFORMANCE: (AnalyticsService.generate_plan_performance, 30),
        ReportType.REVENUE_ANALYTICS: (AnalyticsService.generate_revenue_analytics, 90),
        ReportType.USAGE_PATTERNS: (AnalyticsService.generate_usage_patterns, 30),
    }
