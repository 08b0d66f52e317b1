"""Change heads and the rules that derive them from webhook payloads.

- models: BranchHead / TagHead and the Unresolved / ShaPinned markers
- validation: format checks for payload-supplied names and commit ids
- refs: classification of raw ref strings
- prefilter: source-relative head exclusion rules
- matching: binding a notification to sources and navigators
- resolver: per-event head resolution

Only the dependency-free modules are re-exported here; import matching and
resolver from their modules.
"""

from src.scm_events.heads.models import (
    BranchHead,
    ChangeHead,
    RefDescriptor,
    RefKind,
    RevisionMarker,
    ShaPinned,
    TagHead,
    Unresolved,
)
from src.scm_events.heads.prefilter import (
    HeadPrefilter,
    RegexHeadPrefilter,
    WildcardHeadPrefilter,
    excluded,
)
from src.scm_events.heads.refs import classify_ref, strip_ref_prefix
from src.scm_events.heads.validation import (
    is_valid_commit_hash,
    is_valid_repo_name,
    is_valid_user_name,
)

__all__ = [
    # Models
    "BranchHead",
    "ChangeHead",
    "RefDescriptor",
    "RefKind",
    "RevisionMarker",
    "ShaPinned",
    "TagHead",
    "Unresolved",
    # Prefilters
    "HeadPrefilter",
    "RegexHeadPrefilter",
    "WildcardHeadPrefilter",
    "excluded",
    # Refs and validation
    "classify_ref",
    "strip_ref_prefix",
    "is_valid_commit_hash",
    "is_valid_repo_name",
    "is_valid_user_name",
]
