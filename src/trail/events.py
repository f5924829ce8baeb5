"""Event model for the activity timeline."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Other writers emit nanosecond precision; datetime only holds microseconds.
_EXCESS_FRACTION = re.compile(r"(\.\d{6})\d+")


def as_utc(value: datetime) -> datetime:
    """Normalize to UTC, reading naive values as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Command(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["command"] = "command"
    cmd: str


class DirectoryChange(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: Literal["directory_change"] = "directory_change"
    from_: str = Field(alias="from")
    to: str


class SessionStart(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["session_start"] = "session_start"


class SessionEnd(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["session_end"] = "session_end"


class IdleStart(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["idle_start"] = "idle_start"


class IdleEnd(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["idle_end"] = "idle_end"


class Note(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["note"] = "note"
    text: str


class ProjectDetected(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["project_detected"] = "project_detected"
    name: str


EventKind = Annotated[
    Union[
        Command,
        DirectoryChange,
        SessionStart,
        SessionEnd,
        IdleStart,
        IdleEnd,
        Note,
        ProjectDetected,
    ],
    Field(discriminator="type"),
]


class Event(BaseModel):
    """One immutable activity record.

    Serialized as a single JSON object per line, with the kind nested under
    ``event_type`` and tagged by its ``type`` field.
    """

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    event_type: EventKind
    cwd: str | None = None
    project: str | None = None
    session_id: str | None = None

    @field_validator("timestamp", mode="before")
    @classmethod
    def _trim_fraction(cls, value: object) -> object:
        if isinstance(value, str):
            return _EXCESS_FRACTION.sub(r"\1", value)
        return value

    @field_validator("timestamp")
    @classmethod
    def _normalize_utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    @classmethod
    def create(
        cls,
        kind: EventKind,
        *,
        now: datetime | None = None,
        cwd: str | None = None,
        project: str | None = None,
        session_id: str | None = None,
    ) -> Event:
        """Create an event stamped with the current (or given) instant."""
        if now is None:
            now = datetime.now(timezone.utc)
        return cls(
            timestamp=now,
            event_type=kind,
            cwd=cwd,
            project=project,
            session_id=session_id,
        )


def kind_name(kind: EventKind) -> str:
    """Short display name for an event kind."""
    if isinstance(kind, Command):
        return "command"
    elif isinstance(kind, DirectoryChange):
        return "cd"
    elif isinstance(kind, SessionStart):
        return "session_start"
    elif isinstance(kind, SessionEnd):
        return "session_end"
    elif isinstance(kind, IdleStart):
        return "idle_start"
    elif isinstance(kind, IdleEnd):
        return "idle_end"
    elif isinstance(kind, Note):
        return "note"
    elif isinstance(kind, ProjectDetected):
        return "project"
    raise TypeError(f"Unhandled event kind: {kind!r}")


def event_text(kind: EventKind) -> str | None:
    """Return the free text carried by an event kind, if any.

    Only commands, notes and project detections carry searchable text.
    """
    if isinstance(kind, Command):
        return kind.cmd
    elif isinstance(kind, Note):
        return kind.text
    elif isinstance(kind, ProjectDetected):
        return kind.name
    elif isinstance(kind, (DirectoryChange, SessionStart, SessionEnd, IdleStart, IdleEnd)):
        return None
    raise TypeError(f"Unhandled event kind: {kind!r}")
