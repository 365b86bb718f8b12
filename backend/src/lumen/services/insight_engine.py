"""
Rule engine deriving insights and recommendations from analytics reports.

Two passes over a single in-memory report:
- generate_insights: threshold rules over report.data
- generate_recommendations: maps each insight to a recommendation by its
  InsightKind tag; must run after generate_insights

Thresholds and the emitted values are fixed constants, not derived from the
data's own variance.
"""

from typing import Callable, Dict, List

import structlog

from lumen.metrics import insights_emitted_total, recommendations_emitted_total
from lumen.schemas.analytics_report import (
    AnalyticsReportBase,
    Insight,
    InsightCategory,
    InsightKind,
    Level,
    Recommendation,
    RecommendationType,
)

logger = structlog.get_logger(__name__)

CHURN_RATE_THRESHOLD = 10  # percent
GROWTH_RATE_THRESHOLD = 20  # percent
TOP_PLAN_SHARE_THRESHOLD = 60  # percent of all subscriptions in the report


def _high_churn_insight(churn_rate: float) -> Insight:
    return Insight(
        kind=InsightKind.HIGH_CHURN,
        category=InsightCategory.RISK,
        title="High Churn Rate Detected",
        description=(
            f"Churn rate of {churn_rate}% is above the healthy threshold of {CHURN_RATE_THRESHOLD}%"
        ),
        impact=Level.HIGH,
        confidence=85,
        action_items=[
            "Analyze cancellation reasons",
            "Implement retention campaigns",
            "Review plan pricing",
        ],
    )


def _growth_momentum_insight(growth_rate: float) -> Insight:
    return Insight(
        kind=InsightKind.GROWTH_MOMENTUM,
        category=InsightCategory.OPPORTUNITY,
        title="Strong Growth Momentum",
        description=f"Growth rate of {growth_rate}% indicates strong market demand",
        impact=Level.HIGH,
        confidence=90,
        action_items=[
            "Scale infrastructure",
            "Expand marketing budget",
            "Consider new plan tiers",
        ],
    )


def _plan_concentration_insight(plan_name: str, share: float) -> Insight:
    return Insight(
        kind=InsightKind.PLAN_CONCENTRATION,
        category=InsightCategory.RISK,
        title="Over-dependence on Single Plan",
        description=f"{plan_name} accounts for {share:.1f}% of subscriptions",
        impact=Level.MEDIUM,
        confidence=80,
        action_items=[
            "Diversify plan portfolio",
            "Promote alternative plans",
            "Analyze customer needs",
        ],
    )


def generate_insights(report: AnalyticsReportBase) -> List[Insight]:
    """
    Evaluate every insight rule against the report data.

    All rules run; each one that fires appends one insight. Replaces
    report.insights with the result.

    Args:
        report: Report whose data has already been aggregated

    Returns:
        The new list of insights (also stored on the report)
    """
    insights: List[Insight] = []
    metrics = report.data.subscription_metrics

    if metrics.churn_rate > CHURN_RATE_THRESHOLD:
        insights.append(_high_churn_insight(metrics.churn_rate))

    if metrics.growth_rate > GROWTH_RATE_THRESHOLD:
        insights.append(_growth_momentum_insight(metrics.growth_rate))

    plans = report.data.plan_performance
    if plans:
        top_plan = plans[0]
        total_subscriptions = sum(plan.subscription_count for plan in plans)
        # All-zero counts carry no concentration signal
        if total_subscriptions > 0:
            top_plan_share = top_plan.subscription_count * 100 / total_subscriptions
            if top_plan_share > TOP_PLAN_SHARE_THRESHOLD:
                insights.append(_plan_concentration_insight(top_plan.plan_name, top_plan_share))

    for insight in insights:
        insights_emitted_total.labels(category=insight.category.value).inc()

    logger.info(
        "insights_generated",
        report_type=report.type.value,
        insight_count=len(insights),
        kinds=[insight.kind.value for insight in insights],
    )

    report.insights = insights
    return insights


def _churn_reduction_program() -> Recommendation:
    return Recommendation(
        type=RecommendationType.USER_RETENTION,
        title="Implement Churn Reduction Program",
        description="Launch targeted retention campaigns for at-risk customers",
        expected_impact="Reduce churn by 3-5%",
        priority=Level.HIGH,
        estimated_roi=150,
        implementation_effort=Level.MEDIUM,
    )


def _accelerate_acquisition() -> Recommendation:
    return Recommendation(
        type=RecommendationType.MARKETING_CAMPAIGN,
        title="Accelerate Customer Acquisition",
        description="Increase marketing spend to capitalize on growth momentum",
        expected_impact="Increase new subscriptions by 25%",
        priority=Level.HIGH,
        estimated_roi=200,
        implementation_effort=Level.LOW,
    )


# Insight kinds without an entry produce no recommendation
RECOMMENDATION_RULES: Dict[InsightKind, Callable[[], Recommendation]] = {
    InsightKind.HIGH_CHURN: _churn_reduction_program,
    InsightKind.GROWTH_MOMENTUM: _accelerate_acquisition,
}


def generate_recommendations(report: AnalyticsReportBase) -> List[Recommendation]:
    """
    Derive recommendations from the report's insights.

    Each insight is matched on its kind tag; untagged insights and kinds
    without a rule are skipped. Replaces report.recommendations.

    Args:
        report: Report on which generate_insights has already run

    Returns:
        The new list of recommendations (also stored on the report)
    """
    recommendations: List[Recommendation] = []

    for insight in report.insights:
        build = RECOMMENDATION_RULES.get(insight.kind)
        if build is None:
            continue
        recommendation = build()
        recommendations.append(recommendation)
        recommendations_emitted_total.labels(type=recommendation.type.value).inc()

    logger.info(
        "recommendations_generated",
        report_type=report.type.value,
        insight_count=len(report.insights),
        recommendation_count=len(recommendations),
    )

    report.recommendations = recommendations
    return recommendations
