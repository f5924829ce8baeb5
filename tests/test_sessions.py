"""Tests for session grouping, idle detection and session state."""

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from pydantic import ValidationError

from trail.events import Command, Event, SessionEnd, SessionStart
from trail.sessions import (
    SessionState,
    SessionStore,
    generate_session_id,
    group_sessions,
    is_idle,
)

T = datetime(2025, 1, 25, 10, 0, 0, tzinfo=timezone.utc)
NOW = datetime(2025, 1, 25, 12, 0, 0, tzinfo=timezone.utc)


def make_event(minutes: int, session_id: str | None) -> Event:
    """Helper to create a command event offset from T."""
    return Event(
        timestamp=T + timedelta(minutes=minutes),
        event_type=Command(cmd="ls"),
        session_id=session_id,
    )


class TestGroupSessions:
    """Partitioning events by session id."""

    def test_single_session_span(self):
        events = [make_event(0, "s1"), make_event(5, "s1"), make_event(12, "s1")]
        sessions = group_sessions(events)
        assert len(sessions) == 1
        assert sessions[0].session_id == "s1"
        assert sessions[0].duration == timedelta(minutes=12)
        assert sessions[0].event_count == 3
        assert sessions[0].start == T
        assert sessions[0].end == T + timedelta(minutes=12)

    def test_events_without_session_excluded(self):
        events = [make_event(0, None), make_event(1, "s1"), make_event(2, None)]
        sessions = group_sessions(events)
        assert [s.session_id for s in sessions] == ["s1"]
        assert sessions[0].event_count == 1

    def test_no_sessions(self):
        assert group_sessions([make_event(0, None)]) == []
        assert group_sessions([]) == []

    def test_interleaved_sessions_in_first_seen_order(self):
        events = [
            make_event(0, "b"),
            make_event(1, "a"),
            make_event(2, "b"),
            make_event(10, "a"),
        ]
        sessions = group_sessions(events)
        assert [s.session_id for s in sessions] == ["b", "a"]
        assert sessions[0].duration == timedelta(minutes=2)
        assert sessions[1].duration == timedelta(minutes=9)

    def test_span_follows_input_order(self):
        """Grouping does not re-sort; first and last are positional."""
        events = [make_event(10, "s1"), make_event(0, "s1")]
        session = group_sessions(events)[0]
        assert session.start == T + timedelta(minutes=10)
        assert session.end == T

    def test_session_markers_are_ordinary_members(self):
        events = [
            Event(timestamp=T, event_type=SessionStart(), session_id="s1"),
            make_event(3, "s1"),
            Event(timestamp=T + timedelta(minutes=7), event_type=SessionEnd(), session_id="s1"),
        ]
        session = group_sessions(events)[0]
        assert session.event_count == 3
        assert session.duration == timedelta(minutes=7)


class TestIsIdle:
    """Strict comparison against the timeout."""

    def test_idle_past_timeout(self):
        assert is_idle(NOW - timedelta(minutes=15), 10, NOW)

    def test_active_within_timeout(self):
        assert not is_idle(NOW - timedelta(minutes=5), 10, NOW)

    def test_boundary_is_active(self):
        assert not is_idle(NOW - timedelta(minutes=10), 10, NOW)

    def test_zero_timeout(self):
        assert not is_idle(NOW, 0, NOW)
        assert is_idle(NOW - timedelta(seconds=1), 0, NOW)


class TestSessionId:
    def test_derived_from_seconds(self):
        assert generate_session_id(T) == f"session_{int(T.timestamp())}"

    def test_same_second_same_id(self):
        assert generate_session_id(T) == generate_session_id(T + timedelta(milliseconds=500))


class TestSessionStore:
    """Persisted current-session state."""

    def test_load_missing_is_none(self, tmp_path: Path):
        assert SessionStore(tmp_path / "state.json").load() is None

    def test_current_session_created_lazily(self, tmp_path: Path):
        store = SessionStore(tmp_path / "state.json")
        session_id = store.current_session_id(T)
        assert session_id == generate_session_id(T)

        state = store.load()
        assert state == SessionState(
            current_session_id=session_id,
            session_start=T,
            last_activity=T,
        )

    def test_current_session_reused(self, tmp_path: Path):
        store = SessionStore(tmp_path / "state.json")
        first = store.current_session_id(T)
        second = store.current_session_id(T + timedelta(hours=5))
        assert first == second

    def test_touch_refreshes_last_activity(self, tmp_path: Path):
        store = SessionStore(tmp_path / "state.json")
        store.current_session_id(T)
        store.touch(NOW)
        state = store.load()
        assert state.last_activity == NOW
        assert state.session_start == T

    def test_touch_without_session_is_noop(self, tmp_path: Path):
        store = SessionStore(tmp_path / "state.json")
        store.touch(NOW)
        assert not store.path.exists()

    def test_check_idle(self, tmp_path: Path):
        store = SessionStore(tmp_path / "state.json")
        store.current_session_id(NOW - timedelta(minutes=15))
        assert store.check_idle(10, NOW)
        assert not store.check_idle(20, NOW)

    def test_check_idle_without_state(self, tmp_path: Path):
        assert not SessionStore(tmp_path / "state.json").check_idle(10, NOW)

    def test_naive_state_timestamps_read_as_utc(self, tmp_path: Path):
        """A state file without offsets still compares against aware times."""
        path = tmp_path / "state.json"
        path.write_text(json.dumps({
            "current_session_id": "session_1",
            "session_start": "2025-01-25T11:45:00",
            "last_activity": "2025-01-25T11:45:00",
        }))
        store = SessionStore(path)
        state = store.load()
        assert state.last_activity == NOW - timedelta(minutes=15)
        assert state.session_start.utcoffset() == timedelta(0)
        assert store.check_idle(10, NOW)
        assert not store.check_idle(20, NOW)

    def test_state_file_is_single_json_object(self, tmp_path: Path):
        store = SessionStore(tmp_path / "state.json")
        store.current_session_id(T)
        data = json.loads(store.path.read_text())
        assert set(data) == {"current_session_id", "session_start", "last_activity"}

    def test_malformed_state_propagates(self, tmp_path: Path):
        path = tmp_path / "state.json"
        path.write_text("{not json")
        with pytest.raises(ValidationError):
            SessionStore(path).load()
