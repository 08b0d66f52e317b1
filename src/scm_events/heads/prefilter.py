"""Head prefilters.

A prefilter is an externally supplied rule that can veto a candidate head
before it is reported for a particular source. Filtering is
source-relative, so the same notification may expose a head to one
source and hide it from another.

Prefilters implement a single method, ``is_excluded(source, head)``. The
chain is a pure disjunction: a head is excluded as soon as any prefilter
excludes it.
"""

import fnmatch
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Protocol, Tuple, runtime_checkable

from src.scm_events.heads.models import ChangeHead

if TYPE_CHECKING:
    from src.scm_events.sources.models import SourceConfiguration


@runtime_checkable
class HeadPrefilter(Protocol):
    """Protocol for rules that can exclude a head for a source."""

    def is_excluded(self, source: "SourceConfiguration", head: ChangeHead) -> bool:
        """Return True if ``head`` must not be reported to ``source``."""
        ...


def excluded(
    head: ChangeHead,
    source: "SourceConfiguration",
    chain: Iterable[HeadPrefilter],
) -> bool:
    """Check a candidate head against an ordered prefilter chain.

    Args:
        head: The candidate head.
        source: The source the head would be delivered to.
        chain: Prefilters in evaluation order.

    Returns:
        True if at least one prefilter excludes the head. An empty chain
        excludes nothing.
    """
    return any(prefilter.is_excluded(source, head) for prefilter in chain)


def _split_patterns(patterns: str) -> Tuple[str, ...]:
    return tuple(p for p in patterns.split() if p)


@dataclass(frozen=True)
class WildcardHeadPrefilter:
    """Include/exclude head names by space separated glob patterns.

    A head is excluded unless it matches at least one include pattern, and
    is excluded whenever it matches an exclude pattern. Matching is case
    sensitive, as git ref names are.

    Attributes:
        includes: Space separated patterns, e.g. ``"main release-*"``.
        excludes: Space separated patterns, e.g. ``"wip-*"``.
    """

    includes: str = "*"
    excludes: str = ""

    def is_excluded(self, source: "SourceConfiguration", head: ChangeHead) -> bool:
        name = head.name
        included = any(
            fnmatch.fnmatchcase(name, pattern)
            for pattern in _split_patterns(self.includes)
        )
        if not included:
            return True
        return any(
            fnmatch.fnmatchcase(name, pattern)
            for pattern in _split_patterns(self.excludes)
        )


@dataclass(frozen=True)
class RegexHeadPrefilter:
    """Exclude heads whose name does not fully match a regular expression."""

    pattern: str

    def __post_init__(self) -> None:
        # Fail on construction rather than on the first event.
        re.compile(self.pattern)

    def is_excluded(self, source: "SourceConfiguration", head: ChangeHead) -> bool:
        return re.fullmatch(self.pattern, head.name) is None
