"""Delayed (debounced) delivery of head events."""

from src.scm_events.scheduler.debounce import (
    AsyncioDelayScheduler,
    DelayScheduler,
    DeliveryCallback,
)

__all__ = [
    "AsyncioDelayScheduler",
    "DelayScheduler",
    "DeliveryCallback",
]
