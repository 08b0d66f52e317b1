"""Consumers of delivered head events.

A HeadEventListener is the boundary to the re-scan trigger: it is told
which navigators and sources a head event matched, and for sources, which
heads were resolved. Implementations should treat every reported head as
idempotent and apply last-write-wins per head identity, since no ordering
is guaranteed between notifications.

- LoggingHeadEventListener: Logs deliveries as structured log entries
- CompositeHeadEventListener: Fans out to several listeners
- NullHeadEventListener: Discards deliveries (for testing)
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional

from src.scm_events.events.models import HeadEvent
from src.scm_events.heads.resolver import HeadMap
from src.scm_events.sources.models import NavigatorConfiguration, SourceConfiguration


logger = logging.getLogger(__name__)


class HeadEventListener(ABC):
    """Abstract base class for head event consumers.

    Implementations should be:
    - Async-safe: callbacks run on the event loop
    - Fault-tolerant: a raising listener is logged and skipped, it never
      affects other listeners or other events
    """

    @abstractmethod
    async def on_source_event(
        self,
        event: HeadEvent,
        source: SourceConfiguration,
        heads: HeadMap,
    ) -> None:
        """Handle heads resolved for a matching source.

        Args:
            event: The delivered head event.
            source: The source the heads were resolved for.
            heads: Non-empty mapping of head to revision marker.
        """
        pass

    async def on_navigator_event(
        self,
        event: HeadEvent,
        navigator: NavigatorConfiguration,
    ) -> None:
        """Handle an event for a navigator watching the repository's owner.

        The default implementation does nothing.
        """
        pass


class LoggingHeadEventListener(HeadEventListener):
    """Listener that writes deliveries as structured log entries."""

    def __init__(self, logger_name: Optional[str] = None):
        """Initialize the logging listener.

        Args:
            logger_name: Optional logger name. If not provided, uses
                         the module logger.
        """
        self._logger = (
            logging.getLogger(logger_name)
            if logger_name
            else logger
        )

    async def on_source_event(
        self,
        event: HeadEvent,
        source: SourceConfiguration,
        heads: HeadMap,
    ) -> None:
        self._logger.info(
            "%s: %d head(s) for %s",
            event.description_for(source),
            len(heads),
            source.full_name,
            extra={
                **event.to_log_dict(),
                "heads": sorted(head.name for head in heads),
            },
        )

    async def on_navigator_event(
        self,
        event: HeadEvent,
        navigator: NavigatorConfiguration,
    ) -> None:
        self._logger.info(
            "%s (navigator %s)",
            event.description_for(navigator),
            navigator.repo_owner,
            extra=event.to_log_dict(),
        )


class CompositeHeadEventListener(HeadEventListener):
    """Listener that delegates to multiple child listeners.

    Each child is called independently; failures are logged and do not
    prevent delivery to the remaining children.
    """

    def __init__(self, listeners: Optional[List[HeadEventListener]] = None):
        self._listeners: List[HeadEventListener] = listeners or []

    def add_listener(self, listener: HeadEventListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: HeadEventListener) -> bool:
        """Remove a child listener.

        Returns:
            True if the listener was found and removed, False otherwise.
        """
        try:
            self._listeners.remove(listener)
            return True
        except ValueError:
            return False

    @property
    def listeners(self) -> List[HeadEventListener]:
        return list(self._listeners)

    async def on_source_event(
        self,
        event: HeadEvent,
        source: SourceConfiguration,
        heads: HeadMap,
    ) -> None:
        for listener in self._listeners:
            try:
                await listener.on_source_event(event, source, heads)
            except Exception as e:
                logger.error(
                    "Listener %s failed for %s: %s",
                    type(listener).__name__,
                    source.full_name,
                    str(e),
                    extra={
                        "listener_type": type(listener).__name__,
                        "error": str(e),
                        **event.to_log_dict(),
                    },
                )

    async def on_navigator_event(
        self,
        event: HeadEvent,
        navigator: NavigatorConfiguration,
    ) -> None:
        for listener in self._listeners:
            try:
                await listener.on_navigator_event(event, navigator)
            except Exception as e:
                logger.error(
                    "Listener %s failed for navigator %s: %s",
                    type(listener).__name__,
                    navigator.repo_owner,
                    str(e),
                    extra={
                        "listener_type": type(listener).__name__,
                        "error": str(e),
                        **event.to_log_dict(),
                    },
                )


class NullHeadEventListener(HeadEventListener):
    """Listener that discards all deliveries."""

    async def on_source_event(
        self,
        event: HeadEvent,
        source: SourceConfiguration,
        heads: HeadMap,
    ) -> None:
        pass
