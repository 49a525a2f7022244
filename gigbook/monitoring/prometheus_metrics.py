"""
Prometheus metrics for the booking engine.

Service timings come from the @measure_operation decorator; domain counters
track the booking lifecycle (offers, selections, cancellations) and
notification delivery.
"""

from threading import Lock
from typing import Optional, cast

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Custom registry to avoid conflicts with default process metrics
REGISTRY = CollectorRegistry()

service_operation_duration_seconds = Histogram(
    "gigbook_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

service_operations_total = Counter(
    "gigbook_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "gigbook_errors_total",
    "Total number of errors",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

booking_transitions_total = Counter(
    "gigbook_booking_transitions_total",
    "Booking lifecycle transitions by kind",
    ["transition"],  # offer_created | offer_selected | request_accepted | event_started | ...
    registry=REGISTRY,
)

availability_checks_total = Counter(
    "gigbook_availability_checks_total",
    "Availability checks by outcome",
    ["outcome"],  # available | conflict | error
    registry=REGISTRY,
)

cancellation_penalties_total = Counter(
    "gigbook_cancellation_penalties_total",
    "Cancellations by penalty tier",
    ["tier"],
    registry=REGISTRY,
)

notifications_total = Counter(
    "gigbook_notifications_total",
    "Notification emit attempts by event type and outcome",
    ["event_type", "status"],  # sent | failed
    registry=REGISTRY,
)


class PrometheusMetrics:
    """Records engine metrics and renders them in exposition format."""

    _cache_lock: Lock = Lock()
    _cache_payload: Optional[bytes] = None

    @staticmethod
    def record_service_operation(
        service: str,
        operation: str,
        duration: float,
        status: str = "success",
        error_type: Optional[str] = None,
    ) -> None:
        """
        Record service operation metrics from @measure_operation decorator.

        Args:
            service: Service name (e.g., 'OfferService')
            operation: Operation/method name (e.g., 'select_offer')
            duration: Operation duration in seconds
            status: Operation status ('success' or 'error')
            error_type: Type of error if status is 'error'
        """
        service_operation_duration_seconds.labels(service=service, operation=operation).observe(
            duration
        )
        service_operations_total.labels(service=service, operation=operation, status=status).inc()

        if status == "error" and error_type:
            errors_total.labels(service=service, operation=operation, error_type=error_type).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def inc_booking_transition(transition: str) -> None:
        booking_transitions_total.labels(transition=transition).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def inc_availability_check(outcome: str) -> None:
        availability_checks_total.labels(outcome=outcome).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def inc_cancellation_penalty(tier: str) -> None:
        cancellation_penalties_total.labels(tier=tier).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def record_notification(event_type: str, status: str) -> None:
        notifications_total.labels(event_type=event_type, status=status).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def get_metrics() -> bytes:
        """Generate Prometheus metrics in exposition format."""
        with PrometheusMetrics._cache_lock:
            if PrometheusMetrics._cache_payload is None:
                PrometheusMetrics._cache_payload = cast(bytes, generate_latest(REGISTRY))
            return PrometheusMetrics._cache_payload

    @staticmethod
    def _invalidate_cache() -> None:
        with PrometheusMetrics._cache_lock:
            PrometheusMetrics._cache_payload = None


# Singleton instance
prometheus_metrics = PrometheusMetrics()
