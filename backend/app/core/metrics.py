"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, Gauge, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Reservation metrics
reservation_initiations = Counter(
    'reservation_initiations_total',
    'Checkout sessions requested',
    ['result']  # created, not_found, not_active, sold_out, error
)

reservation_confirmations = Counter(
    'reservation_confirmations_total',
    'Reservation confirmation outcomes',
    ['outcome']  # paid, already_paid, failed, unsettled, not_found
)

confirmation_latency = Histogram(
    'reservation_confirmation_latency_seconds',
    'Confirmation latency including the gateway round trip',
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0]
)

# Payment gateway metrics
gateway_errors = Counter(
    'payment_gateway_errors_total',
    'Payment gateway call failures',
    ['operation']  # create_session, retrieve_session
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss
)

redis_connection_errors = Counter(
    'redis_connection_errors_total',
    'Redis connection errors'
)

# Realtime metrics
realtime_broadcasts = Counter(
    'realtime_broadcasts_total',
    'Realtime messages broadcast',
    ['type', 'transport']  # inventory-changed/catalog-changed, local/redis
)

realtime_connections = Gauge(
    'realtime_connections',
    'Currently connected WebSocket clients in this process'
)


def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )

# Convenience functions for instrumentation
def record_initiation(result: str):
    """Record a reservation initiation. Result: created, not_found, not_active, sold_out, error"""
    reservation_initiations.labels(result=result).inc()

def record_confirmation(outcome: str):
    """Record a confirmation outcome."""
    reservation_confirmations.labels(outcome=outcome).inc()

def record_gateway_error(operation: str):
    gateway_errors.labels(operation=operation).inc()

def record_cache_operation(operation: str, hit: bool):
    """Record cache operation."""
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()

def record_broadcast(message_type: str, transport: str):
    realtime_broadcasts.labels(type=message_type, transport=transport).inc()
