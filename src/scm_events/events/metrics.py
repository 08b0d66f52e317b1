"""Prometheus metrics for head-event processing.

Metrics are exposed at the `/metrics` endpoint in Prometheus format.

Metrics Defined:
- scm_events_notifications_received_total: Notifications handed to the dispatcher
- scm_events_notifications_dropped_total: Notifications dropped before scheduling
- scm_events_notifications_scheduled_total: Head events scheduled for delivery
- scm_events_deliveries_total: Head events delivered to a navigator or source
- scm_events_heads_resolved_total: Heads resolved and reported to sources
- scm_events_listener_failures_total: Listener callbacks that raised
- scm_events_delivery_lag_seconds: Time from receipt to delivery
"""

from typing import Optional

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)


# Covers the configured debounce delay plus scheduling jitter
DEFAULT_LAG_BUCKETS = (
    0.1,
    0.5,
    1.0,
    2.5,
    5.0,
    10.0,
    30.0,
    60.0,
    300.0,
)


class EventMetrics:
    """Container for all head-event Prometheus metrics.

    Supports custom registries so tests can observe metrics in isolation.

    Attributes:
        registry: The Prometheus registry for these metrics.
        notifications_received_total: Counter, labels: kind.
        notifications_dropped_total: Counter, labels: kind, reason.
        notifications_scheduled_total: Counter, labels: kind, change_type.
        deliveries_total: Counter, labels: kind, target.
        heads_resolved_total: Counter, labels: head_kind.
        listener_failures_total: Counter, labels: listener.
        delivery_lag_seconds: Histogram, labels: kind.

    Example:
        >>> metrics = EventMetrics(registry=CollectorRegistry())
        >>> metrics.record_received("push")
        >>> metrics.record_dropped("push", reason="decode")
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        """Initialize head-event metrics.

        Args:
            registry: Optional Prometheus registry. If None, uses the
                      default REGISTRY. Pass a custom registry for testing.
        """
        self.registry = registry or REGISTRY

        self.notifications_received_total = Counter(
            "scm_events_notifications_received_total",
            "Total number of webhook notifications received",
            labelnames=["kind"],
            registry=self.registry,
        )

        # reason is one of: decode, repository_url, error
        self.notifications_dropped_total = Counter(
            "scm_events_notifications_dropped_total",
            "Total number of notifications dropped before scheduling",
            labelnames=["kind", "reason"],
            registry=self.registry,
        )

        self.notifications_scheduled_total = Counter(
            "scm_events_notifications_scheduled_total",
            "Total number of head events scheduled for delayed delivery",
            labelnames=["kind", "change_type"],
            registry=self.registry,
        )

        # target is one of: navigator, source
        self.deliveries_total = Counter(
            "scm_events_deliveries_total",
            "Total number of head events delivered to a matching configuration",
            labelnames=["kind", "target"],
            registry=self.registry,
        )

        self.heads_resolved_total = Counter(
            "scm_events_heads_resolved_total",
            "Total number of heads reported to sources",
            labelnames=["head_kind"],
            registry=self.registry,
        )

        self.listener_failures_total = Counter(
            "scm_events_listener_failures_total",
            "Total number of listener callbacks that raised",
            labelnames=["listener"],
            registry=self.registry,
        )

        self.delivery_lag_seconds = Histogram(
            "scm_events_delivery_lag_seconds",
            "Seconds between notification receipt and delivery",
            labelnames=["kind"],
            buckets=DEFAULT_LAG_BUCKETS,
            registry=self.registry,
        )

    def record_received(self, kind: str) -> None:
        self.notifications_received_total.labels(kind=kind).inc()

    def record_dropped(self, kind: str, reason: str) -> None:
        self.notifications_dropped_total.labels(kind=kind, reason=reason).inc()

    def record_scheduled(self, kind: str, change_type: str) -> None:
        self.notifications_scheduled_total.labels(
            kind=kind,
            change_type=change_type,
        ).inc()

    def record_delivery(self, kind: str, target: str) -> None:
        self.deliveries_total.labels(kind=kind, target=target).inc()

    def record_heads(self, head_kind: str, count: int = 1) -> None:
        self.heads_resolved_total.labels(head_kind=head_kind).inc(count)

    def record_listener_failure(self, listener: str) -> None:
        self.listener_failures_total.labels(listener=listener).inc()

    def record_delivery_lag(self, kind: str, lag_seconds: float) -> None:
        """Record receipt-to-delivery lag. Negative lags are clamped to 0."""
        self.delivery_lag_seconds.labels(kind=kind).observe(max(0.0, lag_seconds))


# Global metrics instance for the default registry
_default_metrics: Optional[EventMetrics] = None


def get_metrics(registry: Optional[CollectorRegistry] = None) -> EventMetrics:
    """Get or create the head-event metrics instance.

    Args:
        registry: Optional Prometheus registry. If None, returns the
                  global metrics instance for the default registry.

    Returns:
        EventMetrics: The metrics instance.
    """
    global _default_metrics

    if registry is not None:
        # Custom registry requested, create new instance
        return EventMetrics(registry=registry)

    if _default_metrics is None:
        _default_metrics = EventMetrics()

    return _default_metrics


def generate_metrics_output(registry: Optional[CollectorRegistry] = None) -> bytes:
    """Generate Prometheus metrics output for the /metrics endpoint.

    Args:
        registry: Optional Prometheus registry. If None, uses the
                  default REGISTRY.

    Returns:
        bytes: Prometheus metrics in text format.
    """
    target_registry = registry or REGISTRY
    return generate_latest(target_registry)
