"""Registered source and navigator configurations.

Sources watch a single repository; navigators watch every repository of an
owner. Both are read-only inputs to head resolution: storing and editing
them belongs to the configuration layer, which exposes them through the
SourceRegistry protocol.
"""

from dataclasses import dataclass
from typing import List, Optional, Protocol, Tuple, runtime_checkable

from src.scm_events.heads.prefilter import HeadPrefilter

DEFAULT_API_URI = "https://api.github.com"


@dataclass(frozen=True)
class SourceConfiguration:
    """A repository being watched for head changes.

    Attributes:
        repo_owner: Owner (user or organization) of the repository.
        repository: Repository name without owner prefix.
        api_uri: API endpoint of the GitHub instance hosting the repository.
        want_branches: Whether branch heads are reported to this source.
        want_tags: Whether tag heads are reported to this source.
        prefilters: Ordered prefilter chain consulted for every candidate.
    """

    repo_owner: str
    repository: str
    api_uri: Optional[str] = DEFAULT_API_URI
    want_branches: bool = True
    want_tags: bool = False
    prefilters: Tuple[HeadPrefilter, ...] = ()

    @property
    def full_name(self) -> str:
        return f"{self.repo_owner}/{self.repository}"


@dataclass(frozen=True)
class NavigatorConfiguration:
    """An owner-level watch covering all repositories of ``repo_owner``."""

    repo_owner: str
    api_uri: Optional[str] = DEFAULT_API_URI


@runtime_checkable
class SourceRegistry(Protocol):
    """Read access to the currently registered configurations.

    Implementations are queried at delivery time, so a configuration that
    is removed before a scheduled notification fires no longer receives it.
    """

    def sources(self) -> List[SourceConfiguration]:
        ...

    def navigators(self) -> List[NavigatorConfiguration]:
        ...


class InMemorySourceRegistry:
    """Minimal in-memory registry for local development and tests."""

    def __init__(
        self,
        sources: Optional[List[SourceConfiguration]] = None,
        navigators: Optional[List[NavigatorConfiguration]] = None,
    ):
        self._sources: List[SourceConfiguration] = list(sources or [])
        self._navigators: List[NavigatorConfiguration] = list(navigators or [])

    def add_source(self, source: SourceConfiguration) -> None:
        self._sources.append(source)

    def remove_source(self, source: SourceConfiguration) -> bool:
        """Remove a source.

        Returns:
            True if the source was registered, False otherwise.
        """
        try:
            self._sources.remove(source)
            return True
        except ValueError:
            return False

    def add_navigator(self, navigator: NavigatorConfiguration) -> None:
        self._navigators.append(navigator)

    def sources(self) -> List[SourceConfiguration]:
        return list(self._sources)

    def navigators(self) -> List[NavigatorConfiguration]:
        return list(self._navigators)
