"""Head-event service configuration using pydantic-settings.

This module defines the EventSettings class that reads configuration from
environment variables with the SCM_EVENTS_ prefix. Complex values (source
and navigator lists, host aliases) are given as JSON, e.g.:

    SCM_EVENTS_SOURCES='[{"repo_owner": "acme", "repository": "widgets",
                          "want_tags": true, "excludes": "wip-*"}]'
"""

import re
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.scm_events.heads.matching import DEFAULT_API_HOST_ALIASES
from src.scm_events.heads.prefilter import (
    HeadPrefilter,
    RegexHeadPrefilter,
    WildcardHeadPrefilter,
)
from src.scm_events.sources.models import (
    DEFAULT_API_URI,
    NavigatorConfiguration,
    SourceConfiguration,
)


class SourceSettings(BaseModel):
    """Declarative form of a SourceConfiguration.

    The prefilter chain is built in a fixed order: wildcard filter first
    (only when it narrows anything), then the regex filter if set.
    """

    repo_owner: str = Field(..., min_length=1)
    repository: str = Field(..., min_length=1)
    api_uri: Optional[str] = DEFAULT_API_URI
    want_branches: bool = True
    want_tags: bool = False
    includes: str = "*"
    excludes: str = ""
    head_regex: Optional[str] = None

    @field_validator("head_regex")
    @classmethod
    def validate_head_regex(cls, v: Optional[str]) -> Optional[str]:
        """Validate that the head regex compiles."""
        if v is not None:
            try:
                re.compile(v)
            except re.error as e:
                raise ValueError(f"head_regex is not a valid pattern: {e}") from e
        return v

    def to_source(self) -> SourceConfiguration:
        prefilters: List[HeadPrefilter] = []
        if self.includes.split() != ["*"] or self.excludes.strip():
            prefilters.append(
                WildcardHeadPrefilter(includes=self.includes, excludes=self.excludes)
            )
        if self.head_regex is not None:
            prefilters.append(RegexHeadPrefilter(self.head_regex))
        return SourceConfiguration(
            repo_owner=self.repo_owner,
            repository=self.repository,
            api_uri=self.api_uri,
            want_branches=self.want_branches,
            want_tags=self.want_tags,
            prefilters=tuple(prefilters),
        )


class NavigatorSettings(BaseModel):
    """Declarative form of a NavigatorConfiguration."""

    repo_owner: str = Field(..., min_length=1)
    api_uri: Optional[str] = DEFAULT_API_URI

    def to_navigator(self) -> NavigatorConfiguration:
        return NavigatorConfiguration(repo_owner=self.repo_owner, api_uri=self.api_uri)


class EventSettings(BaseSettings):
    """Head-event service configuration from environment variables.

    All environment variables are prefixed with SCM_EVENTS_
    (e.g., SCM_EVENTS_EVENT_DELAY_SECONDS).
    """

    model_config = SettingsConfigDict(
        env_prefix="SCM_EVENTS_",
        case_sensitive=False,
    )

    # -------------------------------------------------------------------------
    # Event Processing
    # -------------------------------------------------------------------------
    # Delay before a head event is delivered, to let webhook bursts settle
    event_delay_seconds: int = 5

    # API host -> repository host, for matching sources to notifications
    api_host_aliases: Dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_API_HOST_ALIASES),
    )

    # -------------------------------------------------------------------------
    # Watched Repositories
    # -------------------------------------------------------------------------
    sources: List[SourceSettings] = Field(default_factory=list)

    navigators: List[NavigatorSettings] = Field(default_factory=list)

    # -------------------------------------------------------------------------
    # Server Configuration
    # -------------------------------------------------------------------------
    log_level: str = "INFO"

    # "text" for human-readable lines, "json" for one JSON object per record
    log_format: str = "text"

    # Host address to bind the server to
    host: str = "0.0.0.0"

    # Port number for the server
    port: int = 8080

    # -------------------------------------------------------------------------
    # Validators
    # -------------------------------------------------------------------------
    @field_validator("event_delay_seconds")
    @classmethod
    def validate_event_delay(cls, v: int) -> int:
        """Validate that the delay is not negative."""
        if v < 0:
            raise ValueError("event_delay_seconds must be at least 0")
        return v

    @field_validator("api_host_aliases")
    @classmethod
    def validate_host_aliases(cls, v: Dict[str, str]) -> Dict[str, str]:
        """Normalize alias hosts to lower case."""
        return {key.lower(): value.lower() for key, value in v.items()}

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that the log level is a standard logging level name."""
        level = v.strip().upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"log_level must be a logging level name, got {v!r}")
        return level

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate that the log format is text or json."""
        fmt = v.strip().lower()
        if fmt not in ("text", "json"):
            raise ValueError(f"log_format must be 'text' or 'json', got {v!r}")
        return fmt

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Validate that port is in valid range."""
        if not 1 <= v <= 65535:
            raise ValueError("port must be between 1 and 65535")
        return v


def get_settings() -> EventSettings:
    """Create and return EventSettings instance.

    Returns:
        EventSettings: Configured settings instance.

    Raises:
        pydantic.ValidationError: If values are missing or invalid.
    """
    return EventSettings()
