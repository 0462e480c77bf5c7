"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Ticket metrics
ticket_purchases = Counter(
    'ticket_purchases_total',
    'Total ticket purchase attempts',
    ['status']  # success, sold_out, error
)

ticket_purchase_latency = Histogram(
    'ticket_purchase_latency_seconds',
    'Ticket purchase latency',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

ticket_code_retries = Counter(
    'ticket_code_retries_total',
    'Ticket purchases retried after a ticket code collision'
)

# Moderation metrics
event_submissions = Counter(
    'event_submissions_total',
    'Event submissions',
    ['outcome']  # published, pending
)

moderation_decisions = Counter(
    'moderation_decisions_total',
    'Moderation decisions applied',
    ['decision']  # approved, rejected, conflict
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss
)


def metrics_endpoint() -> Response:
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_purchase(status: str):
    """Record purchase attempt. Status: success, sold_out, error"""
    ticket_purchases.labels(status=status).inc()


def record_submission(outcome: str):
    event_submissions.labels(outcome=outcome).inc()


def record_decision(decision: str):
    moderation_decisions.labels(decision=decision).inc()


def record_cache_operation(operation: str, hit: bool):
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
