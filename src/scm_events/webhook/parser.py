"""Decoding of raw webhook payloads into typed event payloads.

Decoding failures are expected for malformed or hostile deliveries. They
are logged with the event kind, origin and raw payload for later
inspection and reported as None, never raised.
"""

import logging
from typing import Dict, Optional, Type

from pydantic import BaseModel, ValidationError

from src.scm_events.webhook.models import (
    CreatePayload,
    DeletePayload,
    EventKind,
    EventPayload,
    Notification,
    PushPayload,
)

logger = logging.getLogger(__name__)


PAYLOAD_MODELS: Dict[EventKind, Type[BaseModel]] = {
    EventKind.CREATE: CreatePayload,
    EventKind.DELETE: DeletePayload,
    EventKind.PUSH: PushPayload,
}


def parse_event_kind(value: Optional[str]) -> Optional[EventKind]:
    """Map an ``X-GitHub-Event`` header value to an EventKind.

    Returns:
        The EventKind, or None for event types that cannot move a head
        (``ping``, ``issues``, ...).
    """
    if not isinstance(value, str):
        return None
    try:
        return EventKind(value.strip().lower())
    except ValueError:
        return None


def decode_payload(notification: Notification) -> Optional[EventPayload]:
    """Decode a notification's raw payload into its typed payload model.

    Args:
        notification: The received notification.

    Returns:
        The decoded payload, or None if the body is not valid JSON or does
        not have the structure expected for ``notification.kind``.
    """
    model = PAYLOAD_MODELS[notification.kind]
    try:
        return model.model_validate_json(notification.raw_payload)
    except ValidationError as e:
        logger.warning(
            "Could not parse %s event from %s with payload: %r",
            notification.kind.value,
            notification.origin,
            notification.raw_payload,
            exc_info=e,
            extra={
                "event_kind": notification.kind.value,
                "origin": notification.origin,
                "error_count": e.error_count(),
            },
        )
        return None
