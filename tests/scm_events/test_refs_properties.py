"""Property-based tests for identity validation and ref classification.

This module contains property-based tests using Hypothesis to verify that
the identity validators accept exactly the well-formed names and commit ids
and that ref classification is driven by the ref prefix.

Testing Configuration:
- Library: Hypothesis (Python)
- Minimum iterations: 100 per property test
"""

from hypothesis import assume, given, settings, strategies as st

from src.scm_events.heads import (
    RefKind,
    classify_ref,
    is_valid_commit_hash,
    is_valid_repo_name,
    is_valid_user_name,
    strip_ref_prefix,
)
from src.scm_events.heads.refs import R_HEADS, R_TAGS


# =============================================================================
# Hypothesis Strategies
# =============================================================================


HEX_CHARS = "0123456789abcdefABCDEF"


@st.composite
def valid_github_username(draw: st.DrawFn) -> str:
    """Generate a valid GitHub username.

    GitHub usernames:
    - Can contain alphanumeric characters and hyphens
    - Cannot start or end with a hyphen
    - Cannot have consecutive hyphens
    - Are 1-39 characters long
    """
    return draw(
        st.text(
            alphabet=st.sampled_from(
                "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789-"
            ),
            min_size=1,
            max_size=39,
        ).filter(
            lambda x: (
                not x.startswith("-")
                and not x.endswith("-")
                and "--" not in x
            )
        )
    )


@st.composite
def valid_repo_name(draw: st.DrawFn) -> str:
    """Generate a repository name from the permitted character set."""
    return draw(
        st.text(
            alphabet=st.sampled_from(
                "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789-_."
            ),
            min_size=1,
            max_size=100,
        )
    )


@st.composite
def valid_commit_hash(draw: st.DrawFn) -> str:
    """Generate a 40 character hex commit id in mixed case."""
    return draw(
        st.text(alphabet=st.sampled_from(HEX_CHARS), min_size=40, max_size=40)
    )


@st.composite
def ref_short_name(draw: st.DrawFn) -> str:
    """Generate a plausible branch or tag short name (may contain slashes)."""
    segment = st.text(
        alphabet=st.sampled_from(
            "abcdefghijklmnopqrstuvwxyz0123456789-_."
        ),
        min_size=1,
        max_size=20,
    )
    parts = draw(st.lists(segment, min_size=1, max_size=3))
    return "/".join(parts)


@st.composite
def unprefixed_ref(draw: st.DrawFn) -> str:
    """Generate a ref that carries neither the heads nor the tags prefix."""
    ref = draw(st.text(min_size=0, max_size=50))
    assume(not ref.startswith(R_HEADS) and not ref.startswith(R_TAGS))
    return ref


# =============================================================================
# Identity Validation
# =============================================================================


class TestIdentityValidation:
    """Well-formed names and commit ids are accepted, others rejected."""

    @settings(max_examples=100)
    @given(name=valid_repo_name())
    def test_valid_repo_names_accepted(self, name: str):
        assert is_valid_repo_name(name)

    @settings(max_examples=100)
    @given(
        name=valid_repo_name(),
        bad=st.sampled_from(["/", " ", "?", "#", "%", "\n", "..\\"]),
    )
    def test_repo_names_with_foreign_characters_rejected(self, name: str, bad: str):
        assert not is_valid_repo_name(name + bad)

    @settings(max_examples=100)
    @given(name=valid_github_username())
    def test_valid_user_names_accepted(self, name: str):
        assert is_valid_user_name(name)

    @settings(max_examples=100)
    @given(name=valid_github_username())
    def test_user_names_with_edge_hyphen_rejected(self, name: str):
        assert not is_valid_user_name("-" + name)
        assert not is_valid_user_name(name + "-")

    def test_user_name_length_limit(self):
        assert is_valid_user_name("a" * 39)
        assert not is_valid_user_name("a" * 40)

    def test_user_name_double_hyphen_rejected(self):
        assert not is_valid_user_name("acme--corp")

    @settings(max_examples=100)
    @given(sha=valid_commit_hash())
    def test_valid_commit_hashes_accepted(self, sha: str):
        assert is_valid_commit_hash(sha)

    @settings(max_examples=100)
    @given(sha=valid_commit_hash(), cut=st.integers(min_value=1, max_value=39))
    def test_truncated_commit_hashes_rejected(self, sha: str, cut: int):
        assert not is_valid_commit_hash(sha[:cut])

    def test_not_a_sha_rejected(self):
        assert not is_valid_commit_hash("not-a-sha")
        assert not is_valid_commit_hash("g" * 40)
        assert not is_valid_commit_hash("a" * 41)

    def test_missing_values_rejected(self):
        for check in (is_valid_repo_name, is_valid_user_name, is_valid_commit_hash):
            assert not check(None)
            assert not check("")
            assert not check(42)


# =============================================================================
# Ref Classification
# =============================================================================


class TestRefClassification:
    """Ref prefixes determine the head kind; a missing prefix falls back."""

    @settings(max_examples=100)
    @given(name=ref_short_name())
    def test_branch_refs_classify_as_branch(self, name: str):
        descriptor = classify_ref(R_HEADS + name)

        assert descriptor.kind == RefKind.BRANCH
        assert descriptor.name == name

    @settings(max_examples=100)
    @given(name=ref_short_name())
    def test_tag_refs_classify_as_tag(self, name: str):
        descriptor = classify_ref(R_TAGS + name)

        assert descriptor.kind == RefKind.TAG
        assert descriptor.name == name

    @settings(max_examples=100)
    @given(name=ref_short_name(), kind=st.sampled_from(list(RefKind)))
    def test_prefix_wins_over_explicit_kind(self, name: str, kind: RefKind):
        assert classify_ref(R_TAGS + name, kind).kind == RefKind.TAG
        assert classify_ref(R_HEADS + name, kind).kind == RefKind.BRANCH

    @settings(max_examples=100)
    @given(ref=unprefixed_ref())
    def test_unprefixed_ref_defaults_to_branch(self, ref: str):
        descriptor = classify_ref(ref)

        assert descriptor.kind == RefKind.BRANCH
        assert descriptor.name == ref

    @settings(max_examples=100)
    @given(ref=unprefixed_ref(), kind=st.sampled_from(list(RefKind)))
    def test_unprefixed_ref_uses_explicit_kind(self, ref: str, kind: RefKind):
        descriptor = classify_ref(ref, kind)

        assert descriptor.kind == kind
        assert descriptor.name == ref


class TestStripRefPrefix:
    """Only the prefix belonging to the given kind is removed."""

    def test_strips_matching_prefix(self):
        assert strip_ref_prefix("refs/heads/main", RefKind.BRANCH) == "main"
        assert strip_ref_prefix("refs/tags/v1.0", RefKind.TAG) == "v1.0"

    def test_keeps_other_kinds_prefix(self):
        assert strip_ref_prefix("refs/tags/v1.0", RefKind.BRANCH) == "refs/tags/v1.0"
        assert strip_ref_prefix("refs/heads/main", RefKind.TAG) == "refs/heads/main"

    @settings(max_examples=100)
    @given(name=ref_short_name(), kind=st.sampled_from(list(RefKind)))
    def test_short_names_unchanged(self, name: str, kind: RefKind):
        assume(not name.startswith("refs/"))
        assert strip_ref_prefix(name, kind) == name
