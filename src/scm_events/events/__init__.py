"""Head events, their consumers and their metrics.

Event Models:
- HeadEvent: A notification accepted for delayed, per-source resolution
- ChangeType: Whether heads were created, updated or removed

Listeners:
- HeadEventListener: Abstract base class for consumers
- LoggingHeadEventListener: Logs deliveries as structured log entries
- CompositeHeadEventListener: Delivers to multiple listeners
- NullHeadEventListener: Discards deliveries (for testing)

Metrics:
- EventMetrics: Container for all Prometheus metrics
- get_metrics: Get or create the metrics instance
- generate_metrics_output: Generate Prometheus format output for /metrics
"""

from src.scm_events.events.listener import (
    CompositeHeadEventListener,
    HeadEventListener,
    LoggingHeadEventListener,
    NullHeadEventListener,
)
from src.scm_events.events.metrics import (
    EventMetrics,
    generate_metrics_output,
    get_metrics,
)
from src.scm_events.events.models import ChangeType, HeadEvent, change_type_for

__all__ = [
    # Event models
    "ChangeType",
    "HeadEvent",
    "change_type_for",
    # Listeners
    "HeadEventListener",
    "LoggingHeadEventListener",
    "CompositeHeadEventListener",
    "NullHeadEventListener",
    # Metrics
    "EventMetrics",
    "get_metrics",
    "generate_metrics_output",
]
