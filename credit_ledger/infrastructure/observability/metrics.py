"""Prometheus metrics for ledger mutations, delinquency and credit risk"""

from prometheus_client import Counter, Histogram

# Ledger metrics
payments_counter = Counter(
    "ledger_payments_total",
    "Payments recorded",
    ["status"],  # paid | late | pending
)

disbursements_counter = Counter(
    "ledger_disbursements_total",
    "Loans disbursed",
)

transaction_failures_counter = Counter(
    "ledger_transaction_failures_total",
    "Ledger transactions rolled back",
    ["operation"],  # payment | disbursement
)

# Delinquency metrics
penalties_counter = Counter(
    "ledger_penalties_applied_total",
    "Daily delinquency penalties added to loan balances",
)

collections_counter = Counter(
    "ledger_collections_cases_total",
    "Loans forwarded to collections",
)

notifications_counter = Counter(
    "ledger_notifications_created_total",
    "Notifications written by the delinquency sweep",
)

sweep_duration_histogram = Histogram(
    "ledger_sweep_duration_seconds",
    "Delinquency sweep run time",
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

# Credit risk metrics
credit_score_band_counter = Counter(
    "ledger_credit_score_refresh_total",
    "Credit score refreshes by resulting band",
    ["band"],  # poor | fair | good | excellent
)

eligibility_counter = Counter(
    "ledger_eligibility_decisions_total",
    "Eligibility decisions",
    ["status"],  # eligible | manual_review | ineligible
)

# Webhook metrics
webhook_latency_histogram = Histogram(
    "webhook_latency_seconds",
    "Collections webhook response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

webhook_failure_counter = Counter(
    "webhook_failures_total",
    "Failed webhook deliveries",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_credit_score(score: int) -> None:
    """Bucket refreshed scores for distribution analysis"""
    if score < 580:
        band = "poor"
    elif score < 670:
        band = "fair"
    elif score < 740:
        band = "good"
    else:
        band = "excellent"

    credit_score_band_counter.labels(band=band).inc()
