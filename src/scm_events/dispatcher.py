"""Notification dispatcher connecting decoding, scheduling and delivery.

Receives notifications from the transport layer and drives them through:
decode → repository identity → head event → delayed delivery → per
configuration matching and head resolution → listeners.

Every notification is handled in isolation. A malformed or hostile
notification is logged and dropped; it never raises into the transport
layer and never affects any other notification.
"""

import logging
from datetime import datetime, timezone
from typing import Mapping, Optional

from src.scm_events.events.listener import HeadEventListener
from src.scm_events.events.metrics import EventMetrics, get_metrics
from src.scm_events.events.models import HeadEvent, change_type_for
from src.scm_events.heads.matching import (
    DEFAULT_API_HOST_ALIASES,
    RepositoryIdentity,
    parse_repository_url,
)
from src.scm_events.scheduler.debounce import AsyncioDelayScheduler, DelayScheduler
from src.scm_events.sources.models import SourceRegistry
from src.scm_events.webhook.models import Notification
from src.scm_events.webhook.parser import decode_payload

logger = logging.getLogger(__name__)

DEFAULT_EVENT_DELAY_SECONDS = 5


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class NotificationDispatcher:
    """Turns notifications into delayed head events for registered configs.

    Accepts all collaborators via constructor injection. When no scheduler
    is given, an AsyncioDelayScheduler delivering to ``deliver`` is used.

    Attributes:
        registry: Source and navigator configurations, read at delivery time.
        listener: Consumer of delivered head events.
        scheduler: Delayed delivery port.
        delay_seconds: Delay applied to every head event.
        host_aliases: API host to repository host mapping.
        metrics: Prometheus metrics.
    """

    def __init__(
        self,
        registry: SourceRegistry,
        listener: HeadEventListener,
        scheduler: Optional[DelayScheduler] = None,
        delay_seconds: int = DEFAULT_EVENT_DELAY_SECONDS,
        host_aliases: Mapping[str, str] = DEFAULT_API_HOST_ALIASES,
        metrics: Optional[EventMetrics] = None,
    ):
        if delay_seconds < 0:
            raise ValueError(f"delay_seconds must be >= 0, got {delay_seconds}")
        self.registry = registry
        self.listener = listener
        self.scheduler = scheduler or AsyncioDelayScheduler(self.deliver)
        self.delay_seconds = delay_seconds
        self.host_aliases = dict(host_aliases)
        self.metrics = metrics or get_metrics()

    def dispatch(self, notification: Notification) -> Optional[HeadEvent]:
        """Accept a notification and schedule its head event.

        Args:
            notification: The received notification.

        Returns:
            The scheduled HeadEvent, or None if the notification was dropped.
        """
        kind = notification.kind.value
        self.metrics.record_received(kind)

        try:
            event = self._build_event(notification)
            if event is None:
                return None
            self.scheduler.schedule(event, self.delay_seconds)
        except Exception as e:
            logger.exception(
                "Unexpected error dispatching %s event from %s: %s",
                kind,
                notification.origin,
                e,
            )
            self.metrics.record_dropped(kind, reason="error")
            return None

        self.metrics.record_scheduled(kind, event.change_type.value)
        logger.info(
            "Scheduled %s for delivery in %ss",
            event.description(),
            self.delay_seconds,
            extra=event.to_log_dict(),
        )
        return event

    def _build_event(self, notification: Notification) -> Optional[HeadEvent]:
        kind = notification.kind.value
        payload = decode_payload(notification)
        if payload is None:
            self.metrics.record_dropped(kind, reason="decode")
            return None

        repository = payload.repository
        repo_url = repository.web_url
        logger.debug(
            "Received %s for %s from %s",
            kind,
            repo_url,
            notification.origin,
        )

        host = parse_repository_url(repo_url)
        if host is None:
            logger.warning(
                "Malformed repository URL %r in %s event from %s",
                repo_url,
                kind,
                notification.origin,
            )
            self.metrics.record_dropped(kind, reason="repository_url")
            return None

        identity = RepositoryIdentity(
            host=host,
            owner=repository.owner_name or "",
            name=repository.name or "",
        )
        return HeadEvent(
            change_type=change_type_for(payload),
            timestamp=_as_utc(notification.received_at),
            origin=notification.origin,
            identity=identity,
            payload=payload,
            host_aliases=self.host_aliases,
        )

    async def deliver(self, event: HeadEvent) -> int:
        """Deliver a due head event to every matching configuration.

        Matching is re-checked against the registry as it is now, so a
        configuration removed since scheduling no longer receives the
        event. Sources only receive the event when at least one head
        survives resolution.

        Args:
            event: The head event to deliver.

        Returns:
            Number of navigators and sources the event was delivered to.
        """
        kind = event.kind.value
        lag = (datetime.now(timezone.utc) - event.timestamp).total_seconds()
        self.metrics.record_delivery_lag(kind, lag)

        delivered = 0

        for navigator in self.registry.navigators():
            if not event.is_match(navigator):
                continue
            try:
                await self.listener.on_navigator_event(event, navigator)
            except Exception as e:
                self._listener_failed(event, e)
                continue
            self.metrics.record_delivery(kind, target="navigator")
            delivered += 1

        for source in self.registry.sources():
            if not event.is_match(source):
                continue
            try:
                heads = event.heads(source)
            except Exception as e:
                logger.exception(
                    "Failed to resolve heads of %s for %s: %s",
                    event.description(),
                    source.full_name,
                    e,
                )
                continue
            if not heads:
                logger.debug(
                    "No heads of %s for %s",
                    event.description(),
                    source.full_name,
                )
                continue

            for head in heads:
                self.metrics.record_heads(head.kind.value)
            try:
                await self.listener.on_source_event(event, source, heads)
            except Exception as e:
                self._listener_failed(event, e)
                continue
            self.metrics.record_delivery(kind, target="source")
            delivered += 1

        if delivered == 0:
            logger.debug("%s matched no configuration", event.description())
        return delivered

    def _listener_failed(self, event: HeadEvent, error: Exception) -> None:
        listener_name = type(self.listener).__name__
        logger.error(
            "Listener %s failed for %s: %s",
            listener_name,
            event.description(),
            str(error),
            extra={
                "listener_type": listener_name,
                "error": str(error),
                **event.to_log_dict(),
            },
        )
        self.metrics.record_listener_failure(listener_name)

    async def close(self) -> None:
        """Stop the scheduler, cancelling deliveries that have not fired."""
        await self.scheduler.close()
