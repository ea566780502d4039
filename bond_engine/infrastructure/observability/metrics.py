"""Prometheus metrics for plan generation, installment transitions and the recommendation service"""

from prometheus_client import Counter, Histogram

# Plan metrics
plans_generated_counter = Counter(
    "bond_plans_generated_total",
    "Payment plans generated or restructured",
)

installments_generated_counter = Counter(
    "bond_installments_generated_total",
    "Installments created by plan generation",
)

# Ledger metrics
installment_transition_counter = Counter(
    "bond_installment_transitions_total",
    "Installment status transitions",
    ["status"],  # paid | failed | cancelled
)

transition_conflict_counter = Counter(
    "bond_transition_conflicts_total",
    "Status changes rejected because the installment was no longer pending",
)

manual_payments_counter = Counter(
    "bond_manual_payments_total",
    "Manual ledger entries recorded",
    ["status"],  # paid | pending
)

# Recommendation service metrics
recommendation_failures_counter = Counter(
    "bond_recommendation_failures_total",
    "Recommendation lookups that fell back to no recommendation",
    ["reason"],  # timeout | http_error | invalid_response
)

recommendation_latency_histogram = Histogram(
    "bond_recommendation_latency_seconds",
    "Recommendation service response time",
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)


def record_plan(installment_count: int) -> None:
    """Record one generated plan and its installment count"""
    plans_generated_counter.inc()
    installments_generated_counter.inc(installment_count)


def record_transition(status: str) -> None:
    installment_transition_counter.labels(status=status).inc()


def record_manual_payment(status: str) -> None:
    manual_payments_counter.labels(status=status).inc()
