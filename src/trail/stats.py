"""Activity counts by project and by command."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field

from trail.events import Command, Event


def command_name(cmd: str) -> str:
    """First whitespace-delimited token of a command line."""
    parts = cmd.split()
    return parts[0] if parts else cmd


def project_counts(events: Iterable[Event]) -> Counter[str]:
    """Number of events tagged with each project.

    This counts activity, not elapsed time.
    """
    return Counter(e.project for e in events if e.project is not None)


def command_counts(events: Iterable[Event]) -> Counter[str]:
    """Invocations per command name (``git status`` counts toward ``git``)."""
    return Counter(
        command_name(e.event_type.cmd)
        for e in events
        if isinstance(e.event_type, Command)
    )


def rank(counts: Counter[str], limit: int | None = None) -> list[tuple[str, int]]:
    """Sort by count descending; ties keep first-seen order."""
    return counts.most_common(limit)


@dataclass
class ProjectActivity:
    name: str
    count: int = 0
    last_cwd: str | None = None


def project_activity(events: Iterable[Event]) -> list[ProjectActivity]:
    """Per-project activity counts with the last seen directory, busiest first."""
    projects: dict[str, ProjectActivity] = {}
    for event in events:
        if event.project is None:
            continue
        activity = projects.setdefault(event.project, ProjectActivity(event.project))
        activity.count += 1
        if event.cwd:
            activity.last_cwd = event.cwd
    return sorted(projects.values(), key=lambda p: -p.count)


@dataclass
class DaySummary:
    event_count: int = 0
    command_count: int = 0
    projects: Counter[str] = field(default_factory=Counter)


def summarize(events: Iterable[Event]) -> DaySummary:
    """Totals used by the daily summary."""
    summary = DaySummary()
    for event in events:
        summary.event_count += 1
        if isinstance(event.event_type, Command):
            summary.command_count += 1
        if event.project is not None:
            summary.projects[event.project] += 1
    return summary


def last_project_event(events: list[Event]) -> Event | None:
    """Most recent event carrying both a project and a cwd."""
    for event in reversed(events):
        if event.project is not None and event.cwd is not None:
            return event
    return None


def last_command(events: list[Event]) -> str | None:
    """Most recent command line in the log."""
    for event in reversed(events):
        if isinstance(event.event_type, Command):
            return event.event_type.cmd
    return None
