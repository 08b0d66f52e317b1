"""Format checks for identifiers taken from webhook payloads.

Webhook payload contents are attacker-influenced: the transport only
guarantees that a delivery came from a configured origin, not that the
strings inside it are well formed. Every payload-derived repository name,
account name and commit id is checked here before it is trusted.
"""

import re
from typing import Any

VALID_REPO_NAME = re.compile(r"^[0-9A-Za-z._-]+$")

# 1-39 characters, alphanumerics separated by single hyphens.
VALID_USER_NAME = re.compile(r"^(?=.{1,39}$)[A-Za-z0-9](?:-?[A-Za-z0-9])*$")

VALID_COMMIT_HASH = re.compile(r"^[a-fA-F0-9]{40}$")


def _matches(pattern: "re.Pattern[str]", value: Any) -> bool:
    if not isinstance(value, str) or not value:
        return False
    return pattern.fullmatch(value) is not None


def is_valid_repo_name(value: Any) -> bool:
    """Check a repository name against GitHub's permitted characters."""
    return _matches(VALID_REPO_NAME, value)


def is_valid_user_name(value: Any) -> bool:
    """Check a user or organization login against GitHub's account grammar."""
    return _matches(VALID_USER_NAME, value)


def is_valid_commit_hash(value: Any) -> bool:
    """Check that a value looks like a full SHA-1 commit id."""
    return _matches(VALID_COMMIT_HASH, value)
