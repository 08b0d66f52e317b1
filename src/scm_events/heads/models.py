"""Head and revision models for event-sourced change detection.

This module defines the value types produced by head resolution:
- RefKind: Whether a ref names a branch or a tag
- RefDescriptor: A classified ref (kind + short name)
- BranchHead / TagHead: The change heads reported to consumers
- Unresolved / ShaPinned: Revision markers pinning a head (or not)

All models are frozen so heads can be used as mapping keys. Consumers
treat every reported head as a hint: the authoritative commit (and, for
tags, the authoritative timestamp) is re-derived on a full fetch.
"""

from datetime import datetime
from enum import Enum
from typing import Tuple, Union

from pydantic import BaseModel, ConfigDict, Field


class RefKind(str, Enum):
    """Kinds of git refs that can be reported as change heads.

    Attributes:
        BRANCH: A ref under refs/heads/ (or an unprefixed branch name).
        TAG: A ref under refs/tags/.
    """

    BRANCH = "branch"
    TAG = "tag"


class RefDescriptor(BaseModel):
    """A raw ref string split into its kind and short name."""

    model_config = ConfigDict(frozen=True)

    kind: RefKind
    name: str


class BranchHead(BaseModel):
    """A branch head. Branch identity is purely its name.

    Attributes:
        name: The branch name without the refs/heads/ prefix.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Branch name")

    @property
    def kind(self) -> RefKind:
        return RefKind.BRANCH

    @property
    def key(self) -> Tuple[RefKind, str]:
        """Head identity used for last-write-wins bookkeeping."""
        return (self.kind, self.name)


class TagHead(BaseModel):
    """A tag head carrying an approximate creation timestamp.

    The timestamp comes from the notification's receipt time, never from
    the tagged commit. For annotated tags the real creation time cannot be
    recovered from a webhook payload, so event-sourced tag heads are always
    flagged as approximate and consumers must re-derive the timestamp when
    they fetch the tag.

    Attributes:
        name: The tag name without the refs/tags/ prefix.
        timestamp: Receipt time of the notification that reported the tag.
        approximate: True when the timestamp is a hint rather than the
                     authoritative tag time.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Tag name")
    timestamp: datetime = Field(..., description="Approximate tag timestamp")
    approximate: bool = Field(
        default=True,
        description="Whether the timestamp is only a hint",
    )

    @property
    def kind(self) -> RefKind:
        return RefKind.TAG

    @property
    def key(self) -> Tuple[RefKind, str]:
        """Head identity used for last-write-wins bookkeeping."""
        return (self.kind, self.name)


ChangeHead = Union[BranchHead, TagHead]


class Unresolved(BaseModel):
    """Revision marker for a head whose commit is not known.

    Create and delete notifications carry no commit id, so the head is
    reported by identity only.
    """

    model_config = ConfigDict(frozen=True)

    head: Union[BranchHead, TagHead]


class ShaPinned(BaseModel):
    """Revision marker pinning a head to the commit reported by a push."""

    model_config = ConfigDict(frozen=True)

    head: Union[BranchHead, TagHead]
    sha: str = Field(..., description="40 character hex commit id")


RevisionMarker = Union[Unresolved, ShaPinned]
