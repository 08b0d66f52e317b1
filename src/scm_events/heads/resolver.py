"""Head resolution for create, delete and push events.

Each event kind maps its payload to at most one (head, revision) pair for a
given source. Resolution is a pure function of the payload, the repository
identity, the receipt timestamp and the source configuration: nothing is
cached, so the same notification can expose a head to one source and hide
it from another.

Every handler first applies the same checks, returning an empty mapping
when any of them fails:
1. the source watches the notification's repository;
2. the repository name in the payload is well formed;
3. the owner name in the payload is well formed.

Ref disambiguation differs per event kind:
- create: trusts the ``ref_type`` reported by GitHub. A missing or unknown
  ref type produces nothing.
- delete / push: only the ``refs/tags/`` prefix marks a tag; any other ref,
  including one with no recognised prefix, is a branch. This is the
  opposite of create's behaviour for unknown refs and is intentional.
"""

import logging
from datetime import datetime
from typing import Dict, Mapping, Optional

from src.scm_events.heads.matching import (
    DEFAULT_API_HOST_ALIASES,
    RepositoryIdentity,
    matches,
)
from src.scm_events.heads.models import (
    BranchHead,
    ChangeHead,
    RefKind,
    RevisionMarker,
    ShaPinned,
    TagHead,
    Unresolved,
)
from src.scm_events.heads.prefilter import excluded
from src.scm_events.heads.refs import classify_ref, strip_ref_prefix
from src.scm_events.heads.validation import (
    is_valid_commit_hash,
    is_valid_repo_name,
    is_valid_user_name,
)
from src.scm_events.sources.models import SourceConfiguration
from src.scm_events.webhook.models import (
    CreatePayload,
    DeletePayload,
    EventPayload,
    PushPayload,
)

logger = logging.getLogger(__name__)

HeadMap = Dict[ChangeHead, RevisionMarker]

BRANCH_REF_TYPE = "branch"
TAG_REF_TYPE = "tag"


def resolve_heads(
    payload: EventPayload,
    identity: RepositoryIdentity,
    timestamp: datetime,
    source: SourceConfiguration,
    aliases: Mapping[str, str] = DEFAULT_API_HOST_ALIASES,
) -> HeadMap:
    """Resolve the heads a notification reports to ``source``.

    Args:
        payload: Decoded create, delete or push payload.
        identity: Repository identity derived from the payload.
        timestamp: Receipt time, used as the approximate tag timestamp.
        source: The source the heads would be delivered to.
        aliases: API host to repository host mapping.

    Returns:
        Mapping from head to revision marker; empty when nothing applies.
    """
    if not _passes_preamble(payload, identity, source, aliases):
        return {}

    if isinstance(payload, CreatePayload):
        return _resolve_create(payload, timestamp, source)
    if isinstance(payload, DeletePayload):
        return _resolve_delete(payload, timestamp, source)
    if isinstance(payload, PushPayload):
        return _resolve_push(payload, timestamp, source)

    logger.warning("Unsupported payload type: %s", type(payload).__name__)
    return {}


def _passes_preamble(
    payload: EventPayload,
    identity: RepositoryIdentity,
    source: SourceConfiguration,
    aliases: Mapping[str, str],
) -> bool:
    if not matches(identity, source, aliases):
        return False
    if not is_valid_repo_name(payload.repository.name):
        # fake repository name
        logger.debug("Rejected repository name %r", payload.repository.name)
        return False
    if not is_valid_user_name(payload.repository.owner_name):
        # fake owner name
        logger.debug("Rejected owner name %r", payload.repository.owner_name)
        return False
    return True


def _single(
    head: ChangeHead,
    marker: RevisionMarker,
    source: SourceConfiguration,
) -> HeadMap:
    if excluded(head, source, source.prefilters):
        logger.debug(
            "Prefilters excluded %s head %s for %s",
            head.kind.value,
            head.name,
            source.full_name,
        )
        return {}
    return {head: marker}


def _make_head(kind: RefKind, name: str, timestamp: datetime) -> Optional[ChangeHead]:
    if not name:
        return None
    if kind == RefKind.TAG:
        return TagHead(name=name, timestamp=timestamp)
    return BranchHead(name=name)


def _wanted(head: ChangeHead, source: SourceConfiguration) -> bool:
    if isinstance(head, TagHead):
        return source.want_tags
    return source.want_branches


def _resolve_create(
    payload: CreatePayload,
    timestamp: datetime,
    source: SourceConfiguration,
) -> HeadMap:
    ref = payload.ref
    logger.debug("Handling create event for ref %s", ref)

    if payload.ref_type == BRANCH_REF_TYPE:
        kind = RefKind.BRANCH
    elif payload.ref_type == TAG_REF_TYPE:
        kind = RefKind.TAG
    else:
        logger.debug(
            "Create event for ref %s has unknown ref type %r",
            ref,
            payload.ref_type,
        )
        return {}

    head = _make_head(kind, strip_ref_prefix(ref, kind), timestamp)
    if head is None or not _wanted(head, source):
        return {}
    logger.debug("Mapped %s head %s for ref %s", kind.value, head.name, ref)
    return _single(head, Unresolved(head=head), source)


def _resolve_delete(
    payload: DeletePayload,
    timestamp: datetime,
    source: SourceConfiguration,
) -> HeadMap:
    descriptor = classify_ref(payload.ref)
    head = _make_head(descriptor.kind, descriptor.name, timestamp)
    if head is None or not _wanted(head, source):
        return {}
    return _single(head, Unresolved(head=head), source)


def _resolve_push(
    payload: PushPayload,
    timestamp: datetime,
    source: SourceConfiguration,
) -> HeadMap:
    sha = payload.head_sha
    if not is_valid_commit_hash(sha):
        # fake head sha1
        logger.debug("Rejected head commit %r", sha)
        return {}

    # The push payload only has the head commit's time, which is wrong for
    # annotated tags, so tags carry the receipt time flagged as approximate.
    descriptor = classify_ref(payload.ref)
    head = _make_head(descriptor.kind, descriptor.name, timestamp)
    if head is None or not _wanted(head, source):
        return {}
    return _single(head, ShaPinned(head=head, sha=sha), source)
