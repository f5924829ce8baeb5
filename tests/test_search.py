"""Tests for event search and filtering."""

from datetime import date, datetime, timedelta, timezone

import pytest

from trail.events import (
    Command,
    DirectoryChange,
    Event,
    Note,
    ProjectDetected,
    SessionStart,
)
from trail.search import MAX_RESULTS, EventFilter, search_events, text_matches
from trail.timeparse import local_date

NOW = datetime(2025, 1, 25, 12, 0, 0, tzinfo=timezone.utc)


def make_event(
    kind,
    *,
    timestamp: datetime = NOW,
    project: str | None = None,
    cwd: str | None = "/home/test/project",
) -> Event:
    """Helper to create an event with sensible defaults."""
    return Event(timestamp=timestamp, event_type=kind, cwd=cwd, project=project)


@pytest.fixture
def events() -> list[Event]:
    return [
        make_event(Command(cmd="git status"), project="api"),
        make_event(Command(cmd="GIT commit -m wip"), project="web"),
        make_event(Note(text="Ask about git hooks"), project="api"),
        make_event(ProjectDetected(name="git-tools")),
        make_event(DirectoryChange(from_="/git", to="/home/git")),
        make_event(SessionStart(), cwd="/git"),
        make_event(Command(cmd="make test"), project="api"),
    ]


class TestTextMatch:
    """Which kinds carry searchable text."""

    def test_case_insensitive(self, events):
        upper = search_events(events, "GIT", now=NOW)
        lower = search_events(events, "git", now=NOW)
        assert upper.total == lower.total == 4
        assert upper.shown == lower.shown

    def test_only_text_kinds_match(self, events):
        result = search_events(events, "git", now=NOW)
        kinds = {type(e.event_type) for e in result.shown}
        assert kinds == {Command, Note, ProjectDetected}

    def test_directory_change_never_matches(self):
        event = make_event(DirectoryChange(from_="/a/git", to="/b/git"))
        assert not text_matches(event, "git")

    def test_empty_query_matches_all_text_events(self, events):
        assert search_events(events, "", now=NOW).total == 5

    def test_idempotent(self, events):
        first = search_events(events, "git", now=NOW)
        second = search_events(events, "git", now=NOW)
        assert first == second

    def test_no_results_is_not_an_error(self, events):
        result = search_events(events, "kubectl", now=NOW)
        assert result.total == 0
        assert result.shown == []

    def test_preserves_log_order(self, events):
        result = search_events(events, "git", now=NOW)
        assert result.shown == [events[0], events[1], events[2], events[3]]


class TestPredicates:
    """Project and date predicates combine with the text match."""

    def test_project_filter(self, events):
        result = search_events(events, "git", project="api", now=NOW)
        assert result.total == 2
        assert all(e.project == "api" for e in result.shown)

    def test_unknown_project_is_empty(self, events):
        result = search_events(events, "git", project="nope", now=NOW)
        assert result.total == 0

    @pytest.mark.parametrize("project", ["api", "web", "missing", ""])
    def test_project_filter_excludes_others(self, events, project):
        result = search_events(events, "", project=project, now=NOW)
        assert all(e.project == project for e in result.shown)

    def test_today_filter(self):
        old = NOW - timedelta(days=3)
        events = [
            make_event(Command(cmd="git log"), timestamp=old),
            make_event(Command(cmd="git diff"), timestamp=NOW),
        ]
        result = search_events(events, "git", today=True, now=NOW)
        assert [e.event_type.cmd for e in result.shown] == ["git diff"]

    def test_date_filter_uses_local_date(self):
        earlier = NOW - timedelta(days=2)
        events = [
            make_event(Command(cmd="git log"), timestamp=earlier),
            make_event(Command(cmd="git diff"), timestamp=NOW),
        ]
        result = search_events(events, "git", on_date=local_date(earlier), now=NOW)
        assert [e.event_type.cmd for e in result.shown] == ["git log"]

    def test_all_predicates_must_pass(self):
        events = [
            make_event(Command(cmd="git log"), project="api"),
            make_event(Command(cmd="git log"), project="web"),
        ]
        result = search_events(
            events, "git", today=True, project="web", on_date=local_date(NOW), now=NOW
        )
        assert result.total == 1
        assert result.shown[0].project == "web"

    def test_today_and_other_date_is_empty(self):
        events = [make_event(Command(cmd="git log"))]
        other = local_date(NOW) - timedelta(days=1)
        result = search_events(events, "git", today=True, on_date=other, now=NOW)
        assert result.total == 0


class TestResultCap:
    """Display is capped but the count is not."""

    def test_shown_capped_at_fifty(self):
        events = [
            make_event(Command(cmd=f"echo {i}"), timestamp=NOW + timedelta(seconds=i))
            for i in range(120)
        ]
        result = search_events(events, "echo", now=NOW)
        assert result.total == 120
        assert len(result.shown) == MAX_RESULTS == 50
        assert result.truncated
        assert result.shown[0].event_type.cmd == "echo 0"

    def test_under_cap_not_truncated(self, events):
        assert not search_events(events, "git", now=NOW).truncated


class TestEventFilter:
    """Date range filtering used by stats and timeline."""

    def test_range_inclusive(self):
        base = datetime(2025, 1, 10, 12, 0, 0, tzinfo=timezone.utc)
        events = [make_event(SessionStart(), timestamp=base + timedelta(days=i)) for i in range(5)]
        days = [local_date(e.timestamp) for e in events]
        kept = EventFilter(start_date=days[1], end_date=days[3]).apply(events)
        assert kept == events[1:4]

    def test_empty_filter_keeps_everything(self, events):
        assert EventFilter().apply(events) == events

    def test_on_date(self):
        event = make_event(SessionStart())
        assert EventFilter(on_date=local_date(NOW)).matches(event)
        assert not EventFilter(on_date=date(1999, 1, 1)).matches(event)
