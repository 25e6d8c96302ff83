"""
Prometheus metrics for search and booking.
Exposed at /metrics.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Booking metrics
booking_attempts = Counter(
    'bus_booking_attempts_total',
    'Total booking attempts',
    ['outcome']  # confirmed, validation, not_found, insufficient_seats, persistence
)

booking_latency = Histogram(
    'bus_booking_latency_seconds',
    'Booking request latency',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

seats_reserved = Counter(
    'bus_seats_reserved_total',
    'Seats committed to confirmed bookings'
)

ledger_compensations = Counter(
    'bus_ledger_compensations_total',
    'Reservations released because the booking could not be stored',
    ['reason']  # error, cancelled
)

# Search metrics
search_requests = Counter(
    'bus_search_requests_total',
    'Trip searches',
    ['result']  # hit, empty, error
)

search_latency = Histogram(
    'bus_search_latency_seconds',
    'Trip search latency',
    buckets=[0.0005, 0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25]
)

# Catalog metrics
trips_created = Counter(
    'bus_trips_created_total',
    'Trips inserted through the admin seed interface'
)

# Cache metrics
cache_operations = Counter(
    'bus_cache_operations_total',
    'Route cache operations',
    ['operation', 'result']  # get/set/invalidate, hit/miss/error
)


def metrics_endpoint() -> Response:
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_booking_attempt(outcome: str):
    """Record a booking attempt by outcome kind."""
    booking_attempts.labels(outcome=outcome).inc()


def record_compensation(reason: str):
    ledger_compensations.labels(reason=reason).inc()


def record_search(result: str):
    search_requests.labels(result=result).inc()


def record_cache_operation(operation: str, result: str):
    cache_operations.labels(operation=operation, result=result).inc()
