"""Session state, session grouping and idle detection."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path

from pydantic import BaseModel, field_validator

from trail.events import Event, as_utc

logger = logging.getLogger(__name__)


class SessionState(BaseModel):
    """The single current session, persisted between invocations.

    Only tracks the id stamped onto new events; ending a session is recorded
    by logging a SessionEnd event, not here.
    """

    current_session_id: str
    session_start: datetime
    last_activity: datetime

    @field_validator("session_start", "last_activity")
    @classmethod
    def _normalize_utc(cls, value: datetime) -> datetime:
        return as_utc(value)


@dataclass
class SessionSummary:
    """Span of one session as seen in the timeline."""

    session_id: str
    start: datetime
    end: datetime
    event_count: int

    @property
    def duration(self) -> timedelta:
        return self.end - self.start


def generate_session_id(now: datetime) -> str:
    """Session id derived from the current second."""
    return f"session_{int(now.timestamp())}"


def is_idle(last_activity: datetime, timeout_minutes: int, now: datetime) -> bool:
    """True iff more than ``timeout_minutes`` have passed since last activity."""
    return now - last_activity > timedelta(minutes=timeout_minutes)


def group_sessions(events: Iterable[Event]) -> list[SessionSummary]:
    """Group events by session id, in order of first appearance.

    Events must be supplied in log order; spans are taken from the first and
    last event of each group without re-sorting. Events without a session id
    are left out.
    """
    groups: dict[str, list[Event]] = {}
    for event in events:
        if event.session_id is None:
            continue
        groups.setdefault(event.session_id, []).append(event)

    return [
        SessionSummary(
            session_id=session_id,
            start=group[0].timestamp,
            end=group[-1].timestamp,
            event_count=len(group),
        )
        for session_id, group in groups.items()
    ]


class SessionStore:
    """JSON file holding the current SessionState.

    Read-modify-write is not locked; concurrent writers may lose an update.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def load(self) -> SessionState | None:
        """Load the state, or None if no session exists yet.

        Raises:
            OSError: If the file cannot be read.
            pydantic.ValidationError: If the file is not a valid state.
        """
        if not self.path.exists():
            return None
        return SessionState.model_validate_json(self.path.read_text(encoding="utf-8"))

    def save(self, state: SessionState) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(state.model_dump_json(indent=2), encoding="utf-8")

    def current_session_id(self, now: datetime | None = None) -> str:
        """Return the current session id, starting a session if none exists."""
        state = self.load()
        if state is not None:
            return state.current_session_id

        if now is None:
            now = datetime.now(timezone.utc)
        state = SessionState(
            current_session_id=generate_session_id(now),
            session_start=now,
            last_activity=now,
        )
        self.save(state)
        logger.debug("Started session %s", state.current_session_id)
        return state.current_session_id

    def touch(self, now: datetime | None = None) -> None:
        """Refresh last_activity of the current session, if there is one."""
        state = self.load()
        if state is None:
            return
        if now is None:
            now = datetime.now(timezone.utc)
        state.last_activity = now
        self.save(state)

    def check_idle(self, timeout_minutes: int, now: datetime | None = None) -> bool:
        """Idle check against the persisted state; never idle without one."""
        state = self.load()
        if state is None:
            return False
        if now is None:
            now = datetime.now(timezone.utc)
        return is_idle(state.last_activity, timeout_minutes, now)
