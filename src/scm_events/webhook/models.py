"""GitHub webhook notification and payload models.

This module defines the inbound side of head-event processing:
- EventKind: The GitHub event types handled (create, delete, push)
- Notification: A received webhook delivery, as handed over by transport
- CreatePayload / DeletePayload / PushPayload: Decoded payload shapes

Only the fields needed for head resolution are modelled; everything else
in the GitHub payload is ignored. Field values are NOT trusted here:
decoding only checks structure, and format validation of names and commit
ids happens during resolution (see heads/validation.py).

GitHub Webhook Payload Structure (push event, abridged):
{
  "ref": "refs/heads/main",
  "after": "6dcb09b5b57875f334f61aebed695e2e4193db5e",
  "created": false,
  "deleted": false,
  "repository": {
    "name": "widgets",
    "html_url": "https://github.com/acme/widgets",
    "owner": {"login": "acme", "name": "acme"}
  }
}
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class EventKind(str, Enum):
    """GitHub event types that can move a head.

    Values match the ``X-GitHub-Event`` header.

    Attributes:
        CREATE: A branch or tag was created.
        DELETE: A branch or tag was deleted.
        PUSH: Commits were pushed to a ref (also sent on create/delete).
    """

    CREATE = "create"
    DELETE = "delete"
    PUSH = "push"


class Notification(BaseModel):
    """A webhook delivery as received by the transport layer.

    Attributes:
        kind: The GitHub event type.
        origin: Opaque description of where the delivery came from. Used in
                log and description text only, never for authorization.
        received_at: When the delivery was received (UTC).
        raw_payload: The undecoded request body.
    """

    model_config = ConfigDict(frozen=True)

    kind: EventKind
    origin: str = Field(default="unknown")
    received_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
    raw_payload: bytes


class OwnerPayload(BaseModel):
    """Repository owner. Push payloads use ``name``, others ``login``."""

    model_config = ConfigDict(frozen=True)

    login: Optional[str] = None
    name: Optional[str] = None

    @property
    def owner_name(self) -> Optional[str]:
        return self.login or self.name


class RepositoryPayload(BaseModel):
    """The ``repository`` object embedded in every handled event."""

    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    html_url: Optional[str] = None
    url: Optional[str] = None
    owner: OwnerPayload = Field(default_factory=OwnerPayload)

    @property
    def web_url(self) -> Optional[str]:
        return self.html_url or self.url

    @property
    def owner_name(self) -> Optional[str]:
        return self.owner.owner_name


class CreatePayload(BaseModel):
    """Payload of a ``create`` event.

    ``ref`` is usually the short name and ``ref_type`` says whether it is a
    ``branch`` or a ``tag``.
    """

    model_config = ConfigDict(frozen=True)

    ref: str
    ref_type: Optional[str] = None
    repository: RepositoryPayload


class DeletePayload(BaseModel):
    """Payload of a ``delete`` event. Delete events carry no usable ref type."""

    model_config = ConfigDict(frozen=True)

    ref: str
    repository: RepositoryPayload


class PushPayload(BaseModel):
    """Payload of a ``push`` event."""

    model_config = ConfigDict(frozen=True)

    ref: str
    after: Optional[str] = None
    head: Optional[str] = None
    created: bool = False
    deleted: bool = False
    repository: RepositoryPayload

    @property
    def head_sha(self) -> Optional[str]:
        """Commit id the ref points at after the push."""
        return self.after or self.head


EventPayload = Union[CreatePayload, DeletePayload, PushPayload]
