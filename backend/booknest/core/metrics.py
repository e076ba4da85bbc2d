"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Reservation lifecycle
reservation_transitions = Counter(
    'booknest_reservation_transitions_total',
    'Reservation lifecycle transitions',
    ['transition']  # created, cancelled, confirmed, refused, admin_cancelled
)

reservation_rejections = Counter(
    'booknest_reservation_rejections_total',
    'Reservation requests rejected by a business rule',
    ['reason']  # not_published, past_event, insufficient_seats, duplicate
)

# Seat counter movements
seat_adjustments = Counter(
    'booknest_seat_adjustments_total',
    'Seats debited from or credited to event counters',
    ['direction']  # debit, credit
)

# Optimistic-lock retries on capacity edits
event_update_retries = Counter(
    'booknest_event_update_retries_total',
    'Event capacity updates retried after a version conflict'
)

# Cache
cache_operations = Counter(
    'booknest_cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set/invalidate, hit/miss/ok/error
)

# HTTP
request_latency = Histogram(
    'booknest_request_latency_seconds',
    'Request latency by method and status class',
    ['method', 'status_class'],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5]
)


def metrics_endpoint() -> Response:
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_transition(transition: str):
    reservation_transitions.labels(transition=transition).inc()


def record_rejection(reason: str):
    reservation_rejections.labels(reason=reason).inc()


def record_seats(direction: str, seats: int):
    """Direction: debit or credit."""
    seat_adjustments.labels(direction=direction).inc(seats)


def record_cache_operation(operation: str, result: str):
    cache_operations.labels(operation=operation, result=result).inc()


def record_request(method: str, status_code: int, duration_seconds: float):
    request_latency.labels(method=method, status_class=f"{status_code // 100}xx").observe(duration_seconds)
