"""
Prometheus metrics module for staybook.

Service timings are fed by ``BaseService.measure_operation``; booking
conflicts are counted by where they were detected so the share of races
caught only by the database constraint stays visible.
"""

from typing import Optional, cast

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Create a custom registry to avoid conflicts with default metrics
REGISTRY = CollectorRegistry()

service_operation_duration_seconds = Histogram(
    "staybook_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

service_operations_total = Counter(
    "staybook_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "staybook_errors_total",
    "Total number of errors by type",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

booking_conflicts_total = Counter(
    "staybook_booking_conflicts_total",
    "Booking overlap rejections by detection point",
    ["source"],
    registry=REGISTRY,
)

transaction_rollbacks_total = Counter(
    "staybook_transaction_rollbacks_total",
    "Service transactions rolled back",
    ["operation", "reason"],
    registry=REGISTRY,
)


class PrometheusMetrics:
    """Manages Prometheus metrics collection and exposure."""

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
            service: Service name (e.g., 'BookingService')
            operation: Operation/method name (e.g., 'create_booking')
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

    @staticmethod
    def record_booking_conflict(source: str) -> None:
        """Count an overlap rejection ('fast_path', 'constraint' or 'batch')."""
        booking_conflicts_total.labels(source=source).inc()

    @staticmethod
    def record_rollback(operation: str, reason: str) -> None:
        transaction_rollbacks_total.labels(operation=operation, reason=reason).inc()

    @staticmethod
    def get_metrics() -> bytes:
        """Generate Prometheus metrics in exposition format."""
        return cast(bytes, generate_latest(REGISTRY))

    @staticmethod
    def get_content_type() -> str:
        """Get the content type for Prometheus metrics."""
        return cast(str, CONTENT_TYPE_LATEST)


# Global instance
prometheus_metrics = PrometheusMetrics()
