"""Delayed delivery of head events.

Webhook traffic arrives in bursts: a single ``git push`` of a new branch
produces both a ``create`` and a ``push`` notification within milliseconds.
Delivering every head event after a short delay gives the consumer a chance
to see the burst settle before it re-scans. The scheduler itself never
deduplicates; consumers must tolerate repeated events for the same head.

The scheduler is a port injected into the dispatcher so tests can replace
it with a deterministic implementation.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional, Set

from src.scm_events.events.models import HeadEvent


logger = logging.getLogger(__name__)


DeliveryCallback = Callable[[HeadEvent], Awaitable[None]]


class DelayScheduler(ABC):
    """Abstract base class for delayed head event delivery."""

    @abstractmethod
    def schedule(self, event: HeadEvent, delay_seconds: float) -> None:
        """Deliver ``event`` no earlier than ``delay_seconds`` from now.

        Args:
            event: The head event to deliver.
            delay_seconds: Minimum delay before delivery (>= 0).

        Raises:
            ValueError: If ``delay_seconds`` is negative.
        """
        pass

    async def close(self) -> None:
        """Stop the scheduler and release resources.

        The default implementation does nothing.
        """
        pass


def _check_delay(delay_seconds: float) -> None:
    if delay_seconds < 0:
        raise ValueError(f"delay_seconds must be >= 0, got {delay_seconds}")


class _PendingDelivery:
    __slots__ = ("event", "handle")

    def __init__(self, event: HeadEvent):
        self.event = event
        self.handle: Optional[asyncio.TimerHandle] = None


class AsyncioDelayScheduler(DelayScheduler):
    """Scheduler backed by the asyncio event loop's timers.

    Each scheduled event arms a ``loop.call_later`` timer. When the timer
    fires, delivery is started as a separate task, so a slow or failing
    delivery never holds up other timers.

    ``schedule`` must be called from the thread running the event loop.

    Attributes:
        pending_count: Number of armed timers that have not fired yet.
    """

    def __init__(
        self,
        deliver: DeliveryCallback,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        """Initialize the scheduler.

        Args:
            deliver: Coroutine function called with each due event.
            loop: Event loop to use. Defaults to the running loop at the
                  time of each ``schedule`` call.
        """
        self._deliver = deliver
        self._loop = loop
        self._pending: Set[_PendingDelivery] = set()
        self._tasks: Set["asyncio.Task[None]"] = set()
        self._closed = False

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def schedule(self, event: HeadEvent, delay_seconds: float) -> None:
        _check_delay(delay_seconds)
        if self._closed:
            logger.warning(
                "Scheduler closed, dropping %s event for %s",
                event.kind.value,
                event.identity.full_name,
            )
            return

        loop = self._loop or asyncio.get_running_loop()
        pending = _PendingDelivery(event)
        pending.handle = loop.call_later(delay_seconds, self._fire, loop, pending)
        self._pending.add(pending)

        logger.debug(
            "Scheduled %s event for %s in %ss",
            event.kind.value,
            event.identity.full_name,
            delay_seconds,
        )

    def _fire(self, loop: asyncio.AbstractEventLoop, pending: _PendingDelivery) -> None:
        self._pending.discard(pending)
        task = loop.create_task(self._run(pending.event))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self, event: HeadEvent) -> None:
        try:
            await self._deliver(event)
        except Exception:
            logger.exception(
                "Delivery of %s event for %s failed",
                event.kind.value,
                event.identity.full_name,
                extra=event.to_log_dict(),
            )

    async def close(self) -> None:
        """Cancel armed timers and wait for in-flight deliveries."""
        self._closed = True
        for pending in list(self._pending):
            if pending.handle is not None:
                pending.handle.cancel()
        dropped = len(self._pending)
        self._pending.clear()
        if dropped:
            logger.info("Cancelled %d pending head event deliveries", dropped)

        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
