"""Binding notifications to registered sources and navigators.

A notification names its repository twice: the ``html_url`` (from which the
host is taken) and the ``owner``/``name`` fields. A source is the intended
recipient when all three agree, case-insensitively, with its configuration.
The source side names its host indirectly through its API endpoint, so the
API host is resolved to the public host first (``api.github.com`` is
``github.com``; a GitHub Enterprise ``https://ghe.example.com/api/v3`` is
``ghe.example.com``).
"""

import logging
import re
from typing import Mapping, Optional
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict

from src.scm_events.sources.models import NavigatorConfiguration, SourceConfiguration

logger = logging.getLogger(__name__)

REPOSITORY_URL_PATTERN = re.compile(r"https?://([^/]+)/([^/]+)/([^/]+)")

DEFAULT_HOST = "github.com"

DEFAULT_API_HOST_ALIASES: Mapping[str, str] = {"api.github.com": "github.com"}


class RepositoryIdentity(BaseModel):
    """Host, owner and name of the repository a notification refers to."""

    model_config = ConfigDict(frozen=True)

    host: str
    owner: str
    name: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"


def parse_repository_url(url: Optional[str]) -> Optional[str]:
    """Extract the host from a ``scheme://host/owner/name`` repository URL.

    Returns:
        The host, or None when the URL does not have the expected shape.
    """
    if not isinstance(url, str):
        return None
    matcher = REPOSITORY_URL_PATTERN.fullmatch(url)
    if matcher is None:
        logger.debug("%s does not match expected repository name pattern", url)
        return None
    return matcher.group(1)


def hostname_from_api_uri(
    api_uri: Optional[str],
    aliases: Mapping[str, str] = DEFAULT_API_HOST_ALIASES,
) -> str:
    """Resolve the canonical repository host for an API endpoint."""
    if not api_uri:
        return DEFAULT_HOST
    host = urlsplit(api_uri).hostname
    if not host:
        return DEFAULT_HOST
    host = host.lower()
    for api_host, repository_host in aliases.items():
        if api_host.lower() == host:
            return repository_host.lower()
    return host


def matches(
    identity: RepositoryIdentity,
    source: SourceConfiguration,
    aliases: Mapping[str, str] = DEFAULT_API_HOST_ALIASES,
) -> bool:
    """Check whether ``source`` watches the repository in ``identity``.

    Host, owner and name must all be equal ignoring case. No globbing.
    """
    return (
        identity.host.lower() == hostname_from_api_uri(source.api_uri, aliases)
        and identity.owner.lower() == source.repo_owner.lower()
        and identity.name.lower() == source.repository.lower()
    )


def matches_navigator(
    identity: RepositoryIdentity,
    navigator: NavigatorConfiguration,
) -> bool:
    """Owner-level check used before a specific source is known."""
    return identity.owner.lower() == navigator.repo_owner.lower()
