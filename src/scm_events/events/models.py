"""Head events handed from the dispatcher to consumers.

A HeadEvent is built once per accepted notification and scheduled for
delayed delivery. It does not hold resolved heads: heads are resolved per
source at delivery time (``heads(source)``), because prefilters and
branch/tag discovery settings differ between sources.

The description methods produce human-readable text for audit logging
only; nothing in head resolution depends on them.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Mapping, Union

from src.scm_events.heads.matching import (
    DEFAULT_API_HOST_ALIASES,
    RepositoryIdentity,
    matches,
    matches_navigator,
)
from src.scm_events.heads.refs import R_HEADS, R_TAGS
from src.scm_events.heads.resolver import (
    BRANCH_REF_TYPE,
    TAG_REF_TYPE,
    HeadMap,
    resolve_heads,
)
from src.scm_events.sources.models import NavigatorConfiguration, SourceConfiguration
from src.scm_events.webhook.models import (
    CreatePayload,
    DeletePayload,
    EventKind,
    EventPayload,
)


class ChangeType(str, Enum):
    """How the reported heads changed.

    Attributes:
        CREATED: The head was created (create event, or push with created).
        UPDATED: The head moved (plain push).
        REMOVED: The head was deleted (delete event, or push with deleted).
    """

    CREATED = "created"
    UPDATED = "updated"
    REMOVED = "removed"


def change_type_for(payload: EventPayload) -> ChangeType:
    """Select the change type for a decoded payload."""
    if isinstance(payload, CreatePayload):
        return ChangeType.CREATED
    if isinstance(payload, DeletePayload):
        return ChangeType.REMOVED
    if payload.created:
        return ChangeType.CREATED
    if payload.deleted:
        return ChangeType.REMOVED
    return ChangeType.UPDATED


Scope = Union[NavigatorConfiguration, SourceConfiguration]


@dataclass(frozen=True)
class HeadEvent:
    """A notification accepted for delayed delivery.

    Attributes:
        change_type: Whether heads were created, updated or removed.
        timestamp: Receipt time of the notification.
        origin: Where the notification came from (description text only).
        identity: Repository the notification refers to.
        payload: The decoded create, delete or push payload.
        host_aliases: API host to repository host mapping used for matching.
    """

    change_type: ChangeType
    timestamp: datetime
    origin: str
    identity: RepositoryIdentity
    payload: EventPayload
    host_aliases: Mapping[str, str] = field(
        default_factory=lambda: dict(DEFAULT_API_HOST_ALIASES),
        compare=False,
    )

    @property
    def kind(self) -> EventKind:
        if isinstance(self.payload, CreatePayload):
            return EventKind.CREATE
        if isinstance(self.payload, DeletePayload):
            return EventKind.DELETE
        return EventKind.PUSH

    @property
    def source_name(self) -> str:
        """Name of the repository, as a navigator would name its source."""
        return self.identity.name

    def is_match(self, scope: Scope) -> bool:
        """Check whether a navigator or source should receive this event.

        Cheap routing check; does not resolve heads.
        """
        if isinstance(scope, NavigatorConfiguration):
            return matches_navigator(self.identity, scope)
        return matches(self.identity, scope, self.host_aliases)

    def heads(self, source: SourceConfiguration) -> HeadMap:
        """Resolve the heads this event reports to ``source``."""
        return resolve_heads(
            self.payload,
            self.identity,
            self.timestamp,
            source,
            self.host_aliases,
        )

    def description(self) -> str:
        return self._describe(f" in repository {self.identity.full_name}")

    def description_for(self, scope: Scope) -> str:
        """Describe the event relative to a navigator or a source."""
        if isinstance(self.payload, CreatePayload):
            return self.description()
        if isinstance(scope, NavigatorConfiguration):
            return self._describe(f" in repository {self.identity.name}")
        return self._describe("")

    def _describe(self, where: str) -> str:
        payload = self.payload
        if isinstance(payload, CreatePayload):
            # Labels are swapped relative to ref_type.
            # TODO: confirm with audit-log consumers before un-swapping them.
            if payload.ref_type == BRANCH_REF_TYPE:
                return f"Create event for tag {payload.ref}{where}"
            if payload.ref_type == TAG_REF_TYPE:
                return f"Create event for branch {payload.ref}{where}"
            return (
                f"Create event for {payload.ref}, with unknown ref type "
                f"{payload.ref_type}{where}"
            )

        verb = "Delete" if isinstance(payload, DeletePayload) else "Push"
        ref = payload.ref
        if ref.startswith(R_TAGS):
            return f"{verb} event for tag {ref[len(R_TAGS):]}{where}"
        if ref.startswith(R_HEADS):
            ref = ref[len(R_HEADS):]
        return f"{verb} event to branch {ref}{where}"

    def to_log_dict(self) -> Dict[str, Any]:
        """Flat dictionary of event fields for structured logging."""
        return {
            "event_kind": self.kind.value,
            "change_type": self.change_type.value,
            "repository": self.identity.full_name,
            "host": self.identity.host,
            "origin": self.origin,
            "timestamp": self.timestamp.isoformat(),
        }
