"""GitHub webhook notifications for head-event processing.

This module decodes ``create``, ``delete`` and ``push`` deliveries into
typed payloads. Signature validation happens upstream, before deliveries
reach this service; payload contents are still treated as untrusted.
"""

from .models import (
    CreatePayload,
    DeletePayload,
    EventKind,
    EventPayload,
    Notification,
    PushPayload,
    RepositoryPayload,
)
from .parser import decode_payload, parse_event_kind

__all__ = [
    "CreatePayload",
    "DeletePayload",
    "EventKind",
    "EventPayload",
    "Notification",
    "PushPayload",
    "RepositoryPayload",
    "decode_payload",
    "parse_event_kind",
]
