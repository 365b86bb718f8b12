"""Business metrics for Prometheus monitoring."""
from prometheus_client import Counter, Histogram

# Report metrics
reports_generated_total = Counter(
    "analytics_reports_generated_total",
    "Total analytics reports built",
    labelnames=["report_type"],
)

reports_saved_total = Counter(
    "analytics_reports_saved_total",
    "Total analytics reports persisted",
    labelnames=["report_type", "generated_by"],
)

report_generation_seconds = Histogram(
    "analytics_report_generation_seconds",
    "Time spent running a report aggregation",
    labelnames=["report_type"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

# Rule engine metrics
insights_emitted_total = Counter(
    "analytics_insights_emitted_total",
    "Insights produced by the rule engine",
    labelnames=["category"],  # risk, opportunity, ...
)

recommendations_emitted_total = Counter(
    "analytics_recommendations_emitted_total",
    "Recommendations derived from insights",
    labelnames=["type"],
)
