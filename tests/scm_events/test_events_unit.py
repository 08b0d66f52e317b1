"""Unit tests for head events and listeners.

Covers change type selection, routing predicates, per-scope description
texts and the fan-out behaviour of the composite listener.
"""

import asyncio
import logging
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from src.scm_events.events import (
    ChangeType,
    CompositeHeadEventListener,
    HeadEvent,
    LoggingHeadEventListener,
    NullHeadEventListener,
    change_type_for,
)
from src.scm_events.heads import BranchHead, ShaPinned
from src.scm_events.heads.matching import RepositoryIdentity
from src.scm_events.sources import NavigatorConfiguration, SourceConfiguration
from src.scm_events.webhook import (
    CreatePayload,
    DeletePayload,
    EventKind,
    PushPayload,
    RepositoryPayload,
)


def run_async(coro):
    return asyncio.run(coro)


RECEIVED_AT = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)
HEAD_SHA = "c" * 40

SOURCE = SourceConfiguration(repo_owner="acme", repository="widgets")
NAVIGATOR = NavigatorConfiguration(repo_owner="acme")


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


def _make_repository() -> RepositoryPayload:
    return RepositoryPayload.model_validate(
        {
            "name": "widgets",
            "html_url": "https://github.com/acme/widgets",
            "owner": {"login": "acme"},
        }
    )


def _make_event(payload, change_type=None) -> HeadEvent:
    return HeadEvent(
        change_type=change_type or change_type_for(payload),
        timestamp=RECEIVED_AT,
        origin="192.0.2.10",
        identity=RepositoryIdentity(host="github.com", owner="acme", name="widgets"),
        payload=payload,
    )


def _push(ref: str = "refs/heads/main", **kwargs) -> PushPayload:
    return PushPayload(ref=ref, after=HEAD_SHA, repository=_make_repository(), **kwargs)


def _create(ref: str, ref_type) -> CreatePayload:
    return CreatePayload(ref=ref, ref_type=ref_type, repository=_make_repository())


def _delete(ref: str) -> DeletePayload:
    return DeletePayload(ref=ref, repository=_make_repository())


# ---------------------------------------------------------------------------
# Change type and routing
# ---------------------------------------------------------------------------


class TestChangeType:
    def test_create_and_delete(self):
        assert change_type_for(_create("main", "branch")) == ChangeType.CREATED
        assert change_type_for(_delete("main")) == ChangeType.REMOVED

    @pytest.mark.parametrize(
        "created, deleted, expected",
        [
            (False, False, ChangeType.UPDATED),
            (True, False, ChangeType.CREATED),
            (False, True, ChangeType.REMOVED),
        ],
    )
    def test_push_flags(self, created, deleted, expected):
        assert change_type_for(_push(created=created, deleted=deleted)) == expected


class TestRouting:
    def test_kind(self):
        assert _make_event(_create("main", "branch")).kind == EventKind.CREATE
        assert _make_event(_delete("main")).kind == EventKind.DELETE
        assert _make_event(_push()).kind == EventKind.PUSH

    def test_is_match_source(self):
        event = _make_event(_push())

        assert event.is_match(SOURCE)
        assert not event.is_match(SourceConfiguration(repo_owner="acme", repository="gadgets"))

    def test_is_match_navigator(self):
        event = _make_event(_push())

        assert event.is_match(NAVIGATOR)
        assert not event.is_match(NavigatorConfiguration(repo_owner="other"))

    def test_source_name(self):
        assert _make_event(_push()).source_name == "widgets"

    def test_heads_resolved_per_source(self):
        event = _make_event(_push())

        head = BranchHead(name="main")
        assert event.heads(SOURCE) == {head: ShaPinned(head=head, sha=HEAD_SHA)}
        assert event.heads(SourceConfiguration(repo_owner="acme", repository="gadgets")) == {}

    def test_host_aliases_not_part_of_equality(self):
        payload = _push()
        first = _make_event(payload)
        second = HeadEvent(
            change_type=first.change_type,
            timestamp=first.timestamp,
            origin=first.origin,
            identity=first.identity,
            payload=payload,
            host_aliases={"api.example.com": "example.com"},
        )

        assert first == second

    @pytest.mark.parametrize(
        "payload",
        [_push(), _create("v1.0", "tag"), _delete("refs/heads/old")],
        ids=["push", "create", "delete"],
    )
    def test_events_are_hashable(self, payload):
        first = _make_event(payload)
        duplicate = _make_event(payload.model_copy())

        assert {first, duplicate} == {first}


# ---------------------------------------------------------------------------
# Descriptions
# ---------------------------------------------------------------------------


class TestDescriptions:
    def test_push_branch(self):
        event = _make_event(_push("refs/heads/main"))

        assert event.description() == "Push event to branch main in repository acme/widgets"
        assert event.description_for(NAVIGATOR) == "Push event to branch main in repository widgets"
        assert event.description_for(SOURCE) == "Push event to branch main"

    def test_push_tag(self):
        event = _make_event(_push("refs/tags/v1.0"))

        assert event.description() == "Push event for tag v1.0 in repository acme/widgets"

    def test_delete_unprefixed_is_branch(self):
        event = _make_event(_delete("old"))

        assert event.description_for(SOURCE) == "Delete event to branch old"

    def test_create_labels_are_swapped(self):
        branch = _make_event(_create("feature", "branch"))
        tag = _make_event(_create("v1.0", "tag"))

        assert branch.description() == "Create event for tag feature in repository acme/widgets"
        assert tag.description() == "Create event for branch v1.0 in repository acme/widgets"

    def test_create_same_text_for_every_scope(self):
        event = _make_event(_create("feature", "branch"))

        assert event.description_for(SOURCE) == event.description()
        assert event.description_for(NAVIGATOR) == event.description()

    def test_create_unknown_ref_type(self):
        event = _make_event(_create("thing", "repository"))

        assert event.description() == (
            "Create event for thing, with unknown ref type repository "
            "in repository acme/widgets"
        )

    def test_to_log_dict(self):
        log_dict = _make_event(_push(created=True)).to_log_dict()

        assert log_dict["event_kind"] == "push"
        assert log_dict["change_type"] == "created"
        assert log_dict["repository"] == "acme/widgets"
        assert log_dict["timestamp"] == RECEIVED_AT.isoformat()


# ---------------------------------------------------------------------------
# Listeners
# ---------------------------------------------------------------------------


class TestListeners:
    def test_logging_listener_logs_heads(self, caplog):
        event = _make_event(_push())
        listener = LoggingHeadEventListener(logger_name="test.heads")

        with caplog.at_level(logging.INFO, logger="test.heads"):
            run_async(listener.on_source_event(event, SOURCE, event.heads(SOURCE)))
            run_async(listener.on_navigator_event(event, NAVIGATOR))

        messages = [record.getMessage() for record in caplog.records]
        assert messages == [
            "Push event to branch main: 1 head(s) for acme/widgets",
            "Push event to branch main in repository widgets (navigator acme)",
        ]
        assert caplog.records[0].heads == ["main"]

    def test_composite_continues_after_failure(self):
        event = _make_event(_push())
        heads = event.heads(SOURCE)
        failing = AsyncMock(spec=NullHeadEventListener)
        failing.on_source_event.side_effect = RuntimeError("boom")
        failing.on_navigator_event.side_effect = RuntimeError("boom")
        healthy = AsyncMock(spec=NullHeadEventListener)

        composite = CompositeHeadEventListener([failing, healthy])
        run_async(composite.on_source_event(event, SOURCE, heads))
        run_async(composite.on_navigator_event(event, NAVIGATOR))

        healthy.on_source_event.assert_awaited_once_with(event, SOURCE, heads)
        healthy.on_navigator_event.assert_awaited_once_with(event, NAVIGATOR)

    def test_composite_add_remove(self):
        listener = NullHeadEventListener()
        composite = CompositeHeadEventListener()

        composite.add_listener(listener)
        assert composite.listeners == [listener]
        assert composite.remove_listener(listener)
        assert not composite.remove_listener(listener)
        assert composite.listeners == []

    def test_null_listener_accepts_everything(self):
        event = _make_event(_push())
        listener = NullHeadEventListener()

        run_async(listener.on_source_event(event, SOURCE, {}))
        run_async(listener.on_navigator_event(event, NAVIGATOR))
