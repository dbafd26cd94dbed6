"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at the /metrics endpoint.
"""

from fastapi import Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

# Booking creation
booking_attempts = Counter(
    'reservation_booking_attempts_total',
    'Total booking creation attempts',
    ['status']  # success, conflict, rejected, error
)

booking_latency = Histogram(
    'reservation_booking_latency_seconds',
    'Booking creation latency, lock wait included',
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5]
)

room_lock_wait = Histogram(
    'reservation_room_lock_wait_seconds',
    'Time spent waiting for the per-room lock',
    ['strategy'],
    buckets=[0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0]
)

# Payment ledger
payments_recorded = Counter(
    'reservation_payments_recorded_total',
    'Payments appended to the ledger',
    ['method', 'payment_type']
)

payment_failures = Counter(
    'reservation_payment_failures_total',
    'Initial payments that could not be written during booking creation'
)

# Lifecycle
status_transitions = Counter(
    'reservation_status_transitions_total',
    'Booking status transitions',
    ['from_status', 'to_status']
)

# Availability cache
cache_operations = Counter(
    'reservation_cache_operations_total',
    'Availability cache operations',
    ['operation', 'result']  # get/set, hit/miss
)


def metrics_endpoint() -> Response:
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_booking_attempt(status: str):
    """Record booking attempt. Status: success, conflict, rejected, error"""
    booking_attempts.labels(status=status).inc()


def record_payment(method: str, payment_type: str):
    payments_recorded.labels(method=method, payment_type=payment_type).inc()


def record_transition(from_status: str, to_status: str):
    status_transitions.labels(from_status=from_status, to_status=to_status).inc()


def record_cache_operation(operation: str, hit: bool):
    """Record cache operation."""
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
