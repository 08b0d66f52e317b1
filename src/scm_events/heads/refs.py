"""Ref string classification.

GitHub reports refs either fully qualified (``refs/heads/main``,
``refs/tags/v1.0``) or, for create events, as a short name accompanied by
an explicit ``ref_type``. These helpers turn either form into a
RefDescriptor without looking at the event type.
"""

from typing import Optional

from src.scm_events.heads.models import RefDescriptor, RefKind

R_HEADS = "refs/heads/"
R_TAGS = "refs/tags/"

_PREFIXES = {
    RefKind.BRANCH: R_HEADS,
    RefKind.TAG: R_TAGS,
}


def classify_ref(ref: str, explicit_kind: Optional[RefKind] = None) -> RefDescriptor:
    """Classify a raw ref string into a branch or tag descriptor.

    A well-known prefix always wins. Without one, the explicit kind is used
    when the caller has it; otherwise the ref is treated as a branch.

    Args:
        ref: Raw ref string from the payload.
        explicit_kind: Kind reported alongside the ref, if any.

    Returns:
        RefDescriptor with the prefix removed from the name.
    """
    if ref.startswith(R_HEADS):
        return RefDescriptor(kind=RefKind.BRANCH, name=ref[len(R_HEADS):])
    if ref.startswith(R_TAGS):
        return RefDescriptor(kind=RefKind.TAG, name=ref[len(R_TAGS):])
    if explicit_kind is not None:
        return RefDescriptor(kind=explicit_kind, name=ref)
    return RefDescriptor(kind=RefKind.BRANCH, name=ref)


def strip_ref_prefix(ref: str, kind: RefKind) -> str:
    """Remove the prefix belonging to ``kind`` from ``ref``, if present.

    Only the prefix for the given kind is stripped, so a tag ref passed
    with ``RefKind.BRANCH`` keeps its full name.
    """
    prefix = _PREFIXES[kind]
    if ref.startswith(prefix):
        return ref[len(prefix):]
    return ref
