"""Registered sources and navigators that receive head events."""

from src.scm_events.sources.models import (
    DEFAULT_API_URI,
    InMemorySourceRegistry,
    NavigatorConfiguration,
    SourceConfiguration,
    SourceRegistry,
)

__all__ = [
    "DEFAULT_API_URI",
    "InMemorySourceRegistry",
    "NavigatorConfiguration",
    "SourceConfiguration",
    "SourceRegistry",
]
