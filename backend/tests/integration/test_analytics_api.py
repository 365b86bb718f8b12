"""Integration tests for the analytics HTTP endpoints."""
import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from tests.utils.factories import (
    DiscountFactory,
    DiscountRedemptionFactory,
    PlanFactory,
    SubscriptionFactory,
)


@pytest.mark.asyncio
async def test_subscription_trends_endpoint_stores_report(async_client: AsyncClient) -> None:
    """Test that generating trends returns and stores a report."""
    response = await async_client.get(
        "/v1/analytics/subscription-trends",
        params={"start_date": "2025-01-01", "end_date": "2025-03-31"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["type"] == "subscription_trends"
    assert body["period"]["start_date"] == "2025-01-01T00:00:00"
    assert body["period"]["end_date"].startswith("2025-03-31T23:59:59")
    assert body["metadata"]["generated_by"] == "system"
    assert body["insights"] == []
    assert "id" in body

    history = await async_client.get("/v1/analytics/history")
    assert history.status_code == 200
    assert [h["id"] for h in history.json()] == [body["id"]]
    assert "insights" not in history.json()[0]


@pytest.mark.asyncio
async def test_plan_performance_endpoint(async_client: AsyncClient, db_session: AsyncSession) -> None:
    """Test the plan performance report over HTTP."""
    plan = PlanFactory.create({"name": "Fiber 1G"})
    db_session.add(plan)
    db_session.add_all(SubscriptionFactory.create_batch(2, {"plan_id": plan.id}))
    await db_session.commit()

    response = await async_client.get(
        "/v1/analytics/plan-performance",
        params={"start_date": "2025-02-01", "end_date": "2025-02-28"},
    )

    assert response.status_code == 200
    plans = response.json()["data"]["plan_performance"]
    assert len(plans) == 1
    assert plans[0]["plan_name"] == "Fiber 1G"
    assert plans[0]["subscription_count"] == 2


@pytest.mark.asyncio
async def test_revenue_and_usage_endpoints(async_client: AsyncClient) -> None:
    """Test the revenue and usage reports with default windows."""
    revenue = await async_client.get("/v1/analytics/revenue", params={"granularity": "quarterly"})
    usage = await async_client.get("/v1/analytics/usage-patterns")

    assert revenue.status_code == 200
    assert revenue.json()["type"] == "revenue_analytics"
    assert revenue.json()["period"]["granularity"] == "quarterly"
    assert usage.status_code == 200
    assert usage.json()["type"] == "usage_patterns"

    history = await async_client.get("/v1/analytics/history", params={"type": "usage_patterns"})
    assert [h["type"] for h in history.json()] == ["usage_patterns"]


@pytest.mark.asyncio
async def test_dashboard_endpoint(async_client: AsyncClient) -> None:
    """Test the dashboard echoes its granularity and does not store a report."""
    response = await async_client.get("/v1/analytics/dashboard", params={"period": "weekly"})

    assert response.status_code == 200
    body = response.json()
    assert body["granularity"] == "weekly"
    assert body["summary"]["total_subscriptions"] == 0
    assert body["summary"]["churn_rate"] == 0

    history = await async_client.get("/v1/analytics/history")
    assert history.json() == []


@pytest.mark.asyncio
async def test_invalid_date_returns_400(async_client: AsyncClient) -> None:
    """Test that a malformed date is rejected."""
    response = await async_client.get(
        "/v1/analytics/subscription-trends", params={"start_date": "2025-13-01"}
    )

    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "invalid_date"


@pytest.mark.asyncio
async def test_inverted_date_range_returns_400(async_client: AsyncClient) -> None:
    """Test that start_date after end_date is rejected and nothing is stored."""
    response = await async_client.get(
        "/v1/analytics/revenue",
        params={"start_date": "2025-03-01", "end_date": "2025-01-01"},
    )

    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "invalid_date_range"

    history = await async_client.get("/v1/analytics/history")
    assert history.json() == []


@pytest.mark.asyncio
async def test_insights_without_report_returns_404(async_client: AsyncClient) -> None:
    """Test that insights need a stored report of the requested type."""
    response = await async_client.get("/v1/analytics/insights", params={"type": "plan_performance"})

    assert response.status_code == 404
    detail = response.json()["detail"]
    assert detail["code"] == "report_not_found"
    assert detail["message"] == "No analytics data found. Generate analytics first."


@pytest.mark.asyncio
async def test_insights_store_ai_engine_report(async_client: AsyncClient) -> None:
    """Test that insights are returned as a new ai_engine report."""
    generated = await async_client.get("/v1/analytics/subscription-trends")
    assert generated.status_code == 200

    response = await async_client.get("/v1/analytics/insights")

    assert response.status_code == 200
    body = response.json()
    assert body["type"] == "subscription_trends"
    assert body["metadata"]["generated_by"] == "ai_engine"
    assert body["id"] != generated.json()["id"]
    assert body["insights"] == []
    assert body["recommendations"] == []

    history = await async_client.get("/v1/analytics/history", params={"type": "subscription_trends"})
    assert len(history.json()) == 2


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "limit,code",
    [("0", "value_too_small"), ("101", "value_too_large")],
)
async def test_history_limit_bounds(async_client: AsyncClient, limit: str, code: str) -> None:
    """Test that history limit outside 1-100 is a validation error."""
    response = await async_client.get("/v1/analytics/history", params={"limit": limit})

    assert response.status_code == 422
    body = response.json()
    assert body["error"] == "ValidationError"
    assert body["details"][0]["code"] == code
    assert body["request_id"].startswith("req_")


@pytest.mark.asyncio
async def test_unknown_report_type_is_rejected(async_client: AsyncClient) -> None:
    """Test that an unknown report type is a validation error."""
    response = await async_client.get("/v1/analytics/insights", params={"type": "weather"})

    assert response.status_code == 422
    assert response.json()["details"][0]["code"] == "invalid_enum_value"


@pytest.mark.asyncio
async def test_request_id_is_echoed(async_client: AsyncClient) -> None:
    """Test that a caller-supplied request id comes back on the response."""
    response = await async_client.get("/health", headers={"X-Request-ID": "req_fromcaller1"})

    assert response.status_code == 200
    assert response.headers["X-Request-ID"] == "req_fromcaller1"


@pytest.mark.asyncio
async def test_health_endpoints(async_client: AsyncClient) -> None:
    """Test liveness and readiness probes."""
    live = await async_client.get("/health")
    ready = await async_client.get("/health/ready")

    assert live.status_code == 200
    assert live.json()["status"] == "healthy"
    assert ready.status_code == 200
    assert ready.json()["checks"]["database"] == "connected"


@pytest.mark.asyncio
async def test_discount_performance_endpoint(async_client: AsyncClient, db_session: AsyncSession) -> None:
    """Test discount performance over an explicit window."""
    discount = DiscountFactory.create({"name": "Welcome Offer"})
    db_session.add(discount)
    db_session.add_all(
        [
            DiscountRedemptionFactory.create({"discount_id": discount.id, "discount_amount": 80.0}),
            DiscountRedemptionFactory.create({"discount_id": discount.id, "discount_amount": 120.0}),
        ]
    )
    await db_session.commit()

    response = await async_client.get(
        "/v1/analytics/discount-performance",
        params={"start_date": "2025-02-01", "end_date": "2025-02-28"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["start_date"] == "2025-02-01T00:00:00"
    assert len(body["discounts"]) == 1
    assert body["discounts"][0]["discount_name"] == "Welcome Offer"
    assert body["discounts"][0]["total_usage"] == 2
    assert body["discounts"][0]["total_discount_amount"] == pytest.approx(200.0)
    assert body["discounts"][0]["average_discount_amount"] == pytest.approx(100.0)


@pytest.mark.asyncio
async def test_discount_performance_default_window(async_client: AsyncClient) -> None:
    """Test the default 30 day window and date validation."""
    response = await async_client.get("/v1/analytics/discount-performance")

    assert response.status_code == 200
    body = response.json()
    assert body["discounts"] == []

    invalid = await async_client.get(
        "/v1/analytics/discount-performance", params={"end_date": "2025-02-30"}
    )
    assert invalid.status_code == 400
    assert invalid.json()["detail"]["code"] == "invalid_date"


@pytest.mark.asyncio
@pytest.mark.parametrize("field", ["start_date", "end_date"])
async def test_dashboard_rejects_malformed_lone_date(async_client: AsyncClient, field: str) -> None:
    """Test that a single malformed dashboard date is rejected."""
    response = await async_client.get("/v1/analytics/dashboard", params={field: "01/02/2025"})

    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "invalid_date"


@pytest.mark.asyncio
async def test_dashboard_lone_valid_date_keeps_period_window(async_client: AsyncClient) -> None:
    """Test that a single well-formed date falls back to the period window."""
    response = await async_client.get(
        "/v1/analytics/dashboard", params={"period": "yearly", "start_date": "2020-01-01"}
    )

    assert response.status_code == 200
    body = response.json()
    assert body["granularity"] == "yearly"
    assert body["start_date"].endswith("-01-01T00:00:00")
    assert not body["start_date"].startswith("2020-")
