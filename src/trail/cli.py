"""CLI entry point for trail."""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Callable
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Any, NoReturn

import click
from pydantic import ValidationError

from trail.config import CONFIG_FILENAME, DEFAULT_DATA_DIR, STATE_FILENAME, TIMELINE_FILENAME, Config
from trail.errors import StaleLocationError, TimeParseError
from trail.events import (
    Command,
    DirectoryChange,
    Event,
    EventKind,
    IdleEnd,
    IdleStart,
    Note,
    ProjectDetected,
    SessionEnd,
    SessionStart,
)
from trail.locator import locate
from trail.projects import DEFAULT_PROJECTS_PATH, ProjectMapper
from trail.search import EventFilter, search_events
from trail.sessions import SessionStore, group_sessions
from trail.stats import (
    command_counts,
    last_command,
    last_project_event,
    project_activity,
    project_counts,
    rank,
    summarize,
)
from trail.timeline import Timeline
from trail.timeparse import local_date, parse_date, resolve_time


def format_duration(delta: timedelta) -> str:
    """Format a duration as 'Xd Yh', 'Xh Ym' or 'Ym'.

    Args:
        delta: Duration to format. Negative durations render as '0m'.

    Returns:
        Formatted duration string.
    """
    total_minutes = max(0, int(delta.total_seconds() // 60))
    days, rem_minutes = divmod(total_minutes, 24 * 60)
    hours, minutes = divmod(rem_minutes, 60)
    if days > 0:
        return f"{days}d {hours}h"
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def format_local_time(instant: datetime) -> str:
    """Render an instant as local 'YYYY-MM-DD HH:MM:SS'."""
    return instant.astimezone().strftime("%Y-%m-%d %H:%M:%S")


def describe_match(kind: EventKind) -> str:
    """Short description of a search hit."""
    if isinstance(kind, Command):
        return f"ran {click.style(kind.cmd, fg='yellow')}"
    elif isinstance(kind, Note):
        return f"note: {click.style(kind.text, fg='green')}"
    elif isinstance(kind, ProjectDetected):
        return f"entered project {click.style(kind.name, fg='cyan')}"
    elif isinstance(kind, DirectoryChange):
        return f"cd {kind.to}"
    elif isinstance(kind, (SessionStart, SessionEnd, IdleStart, IdleEnd)):
        return kind.type.replace("_", " ")
    raise TypeError(f"Unhandled event kind: {kind!r}")


def describe_timeline(kind: EventKind) -> str:
    """Icon and text for a timeline entry."""
    if isinstance(kind, Command):
        return f"⚡ {click.style(kind.cmd, fg='yellow')}"
    elif isinstance(kind, DirectoryChange):
        return f"📁 cd {click.style(kind.to, fg='blue')}"
    elif isinstance(kind, SessionStart):
        return f"🟢 {click.style('Session started', fg='green')}"
    elif isinstance(kind, SessionEnd):
        return f"🔴 {click.style('Session ended', fg='red')}"
    elif isinstance(kind, IdleStart):
        return f"💤 {click.style('Idle', dim=True)}"
    elif isinstance(kind, IdleEnd):
        return f"⚡ {click.style('Active', fg='green')}"
    elif isinstance(kind, Note):
        return f"📝 {click.style(kind.text, fg='green')}"
    elif isinstance(kind, ProjectDetected):
        return f"📂 Entered {click.style(kind.name, fg='cyan')}"
    raise TypeError(f"Unhandled event kind: {kind!r}")


def format_entry(event: Event, description: str) -> str:
    time_str = click.style(format_local_time(event.timestamp), dim=True)
    project_tag = f"[{click.style(event.project, fg='cyan')}]" if event.project else ""
    return f"{time_str} {project_tag} {description}"


def data_dir_option(f: Callable[..., Any]) -> Callable[..., Any]:
    return click.option(
        "--data-dir",
        type=click.Path(file_okay=False, path_type=Path),
        default=DEFAULT_DATA_DIR,
        envvar="TRAIL_HOME",
        show_default=True,
        help="Directory holding config, timeline and session state",
    )(f)


def projects_file_option(f: Callable[..., Any]) -> Callable[..., Any]:
    return click.option(
        "--projects-file",
        type=click.Path(dir_okay=False, path_type=Path),
        default=DEFAULT_PROJECTS_PATH,
        envvar="TRAIL_PROJECTS_FILE",
        help="Project alias file ({projects: {alias: path}})",
    )(f)


def _fail(message: str) -> NoReturn:
    click.echo(message, err=True)
    sys.exit(1)


def _load_config(data_dir: Path) -> Config:
    path = data_dir / CONFIG_FILENAME
    try:
        return Config.load(path)
    except (OSError, ValidationError) as e:
        _fail(f"Error: failed to load config {path}: {e}")


def _load_events(data_dir: Path) -> list[Event] | None:
    """Read the full timeline, or None (with a message) when nothing is recorded."""
    timeline = Timeline(data_dir / TIMELINE_FILENAME)
    if not timeline.exists():
        click.echo("No activity history found.")
        return None
    try:
        return timeline.load()
    except OSError as e:
        _fail(f"Error: failed to read timeline {timeline.path}: {e}")


def _parse_date_option(value: str | None) -> date | None:
    if value is None:
        return None
    try:
        return parse_date(value)
    except TimeParseError as e:
        _fail(str(e))


def _record(
    data_dir: Path,
    kind: EventKind,
    *,
    cwd: str | None,
    project: str | None,
) -> Event:
    """Stamp an event with the current session, append it and refresh activity."""
    store = SessionStore(data_dir / STATE_FILENAME)
    now = datetime.now(timezone.utc)
    try:
        session_id = store.current_session_id(now)
        event = Event.create(kind, now=now, cwd=cwd, project=project, session_id=session_id)
        Timeline(data_dir / TIMELINE_FILENAME).append(event)
        store.touch(now)
    except (OSError, ValidationError) as e:
        _fail(f"Error: failed to record event: {e}")
    return event


def _resolve_project(config: Config, projects_file: Path, cwd: str | None) -> str | None:
    if cwd is None or not config.enable_project_integration:
        return None
    mapper = ProjectMapper.load(projects_file)
    if mapper is None:
        return None
    return mapper.resolve_project(cwd)


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="opstrail")
@click.option("-v", "--verbose", is_flag=True, help="Log debug output to stderr")
def main(verbose: bool) -> None:
    """Terminal activity time-machine."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )


@main.command("log")
@click.option("--cmd", help="Command that was executed")
@click.option("--cwd", help="Current working directory (default: process cwd)")
@click.option("--project", help="Project name, if already known")
@click.option("--from-dir", help="Previous directory; records a directory change to --cwd")
@click.option("--session-start", is_flag=True, help="Mark session start")
@click.option("--session-end", is_flag=True, help="Mark session end")
@click.option("--idle-start", is_flag=True, help="Mark idle start")
@click.option("--idle-end", is_flag=True, help="Mark idle end")
@data_dir_option
@projects_file_option
def log_command(
    cmd: str | None,
    cwd: str | None,
    project: str | None,
    from_dir: str | None,
    session_start: bool,
    session_end: bool,
    idle_start: bool,
    idle_end: bool,
    data_dir: Path,
    projects_file: Path,
) -> None:
    """Log an event (used by shell integration).

    Example:
        trail log --cmd "git status" --cwd "$PWD"
        trail log --session-start
    """
    config = _load_config(data_dir)
    if cwd is None:
        cwd = os.getcwd()

    kind: EventKind
    if session_start:
        kind = SessionStart()
    elif session_end:
        kind = SessionEnd()
    elif idle_start:
        kind = IdleStart()
    elif idle_end:
        kind = IdleEnd()
    elif from_dir is not None:
        kind = DirectoryChange(from_=from_dir, to=cwd)
    elif cmd is not None:
        kind = Command(cmd=cmd)
    else:
        return

    if project is None:
        project = _resolve_project(config, projects_file, cwd)

    _record(data_dir, kind, cwd=cwd, project=project)


@main.command("note")
@click.argument("text")
@data_dir_option
@projects_file_option
def note_command(text: str, data_dir: Path, projects_file: Path) -> None:
    """Add a note to your timeline."""
    config = _load_config(data_dir)
    cwd = os.getcwd()
    project = _resolve_project(config, projects_file, cwd)
    _record(data_dir, Note(text=text), cwd=cwd, project=project)
    click.echo(f"Note added: {text}")


@main.command("back")
@click.argument("when")
@data_dir_option
def back_command(when: str, data_dir: Path) -> None:
    """Time-travel to a previous location.

    WHEN is one of: now, today, yesterday, last-session, or an offset such
    as 30m, 2h, 3d, 1w. Prints the directory so the shell can cd into it.
    """
    try:
        target = resolve_time(when)
    except TimeParseError as e:
        _fail(str(e))

    events = _load_events(data_dir)
    if events is None:
        return

    try:
        cwd = locate(events, target)
    except StaleLocationError as e:
        _fail(
            "No recent activity found for that time "
            f"(closest match was {format_duration(e.staleness)} ago)"
        )

    if cwd is None:
        click.echo("No activity found before that time.", err=True)
        return
    click.echo(cwd)


@main.command("search")
@click.argument("query")
@click.option("--today", is_flag=True, help="Limit to today")
@click.option("--project", help="Limit to a project")
@click.option("--date", "date_str", help="Limit to a date (YYYY-MM-DD)")
@data_dir_option
def search_command(
    query: str,
    today: bool,
    project: str | None,
    date_str: str | None,
    data_dir: Path,
) -> None:
    """Search through activity history."""
    on_date = _parse_date_option(date_str)
    events = _load_events(data_dir)
    if events is None:
        return

    result = search_events(events, query, today=today, project=project, on_date=on_date)
    if result.total == 0:
        click.echo(f"No results found for '{query}'")
        return

    click.echo(f"Found {result.total} results:")
    click.echo()
    for event in result.shown:
        click.echo(format_entry(event, describe_match(event.event_type)))
    if result.truncated:
        click.echo()
        click.echo(click.style(f"... {result.total - len(result.shown)} more not shown", dim=True))


@main.command("stats")
@click.option("--from", "from_str", help="Start date (YYYY-MM-DD, inclusive)")
@click.option("--to", "to_str", help="End date (YYYY-MM-DD, inclusive)")
@click.option("--week", is_flag=True, help="Last 7 days")
@click.option("--month", is_flag=True, help="Last 30 days")
@data_dir_option
def stats_command(
    from_str: str | None,
    to_str: str | None,
    week: bool,
    month: bool,
    data_dir: Path,
) -> None:
    """Show activity statistics."""
    start_date = _parse_date_option(from_str)
    end_date = _parse_date_option(to_str)
    today = local_date(datetime.now(timezone.utc))
    if week:
        start_date = today - timedelta(days=6)
    elif month:
        start_date = today - timedelta(days=29)

    events = _load_events(data_dir)
    if events is None:
        return
    events = EventFilter(start_date=start_date, end_date=end_date).apply(events)

    click.echo(click.style("Activity Statistics", bold=True, fg="cyan"))
    click.echo()

    click.echo(click.style("Most Active Projects:", bold=True))
    for i, (project, count) in enumerate(rank(project_counts(events), 5), 1):
        click.echo(f"  {i}. {click.style(project, fg='yellow')} ({count} activities)")
    click.echo()

    click.echo(click.style("Most Used Commands:", bold=True))
    for i, (name, count) in enumerate(rank(command_counts(events), 10), 1):
        click.echo(f"  {i}. {click.style(name, fg='green')} ({count})")


@main.command("timeline")
@click.option("--today", is_flag=True, help="Show timeline for today")
@click.option("--yesterday", is_flag=True, help="Show timeline for yesterday")
@click.option("--date", "date_str", help="Show timeline for a date (YYYY-MM-DD)")
@click.option("-n", "--limit", type=int, default=50, show_default=True, help="Number of entries")
@data_dir_option
def timeline_command(
    today: bool,
    yesterday: bool,
    date_str: str | None,
    limit: int,
    data_dir: Path,
) -> None:
    """Show activity timeline, most recent first."""
    on_date = None
    current = local_date(datetime.now(timezone.utc))
    if today:
        on_date = current
    elif yesterday:
        on_date = current - timedelta(days=1)
    elif date_str is not None:
        on_date = _parse_date_option(date_str)

    events = _load_events(data_dir)
    if events is None:
        return
    events = EventFilter(on_date=on_date).apply(events)

    if not events:
        click.echo("No activity found for the specified period.")
        return

    click.echo(click.style("Activity Timeline", bold=True, fg="cyan"))
    click.echo()
    for event in list(reversed(events))[:limit]:
        click.echo(format_entry(event, describe_timeline(event.event_type)))


@main.command("resume")
@data_dir_option
def resume_command(data_dir: Path) -> None:
    """Resume where you left off."""
    config = _load_config(data_dir)
    events = _load_events(data_dir)
    if events is None:
        return

    event = last_project_event(events)
    if event is None or event.cwd is None:
        click.echo("No previous session found.")
        return

    click.echo(click.style("Last Active Session:", bold=True, fg="cyan"))
    click.echo()
    click.echo(f"  Project: {click.style(event.project or '', fg='yellow')}")
    click.echo(f"  Path: {click.style(event.cwd, fg='blue')}")
    click.echo(f"  Time: {click.style(format_local_time(event.timestamp), dim=True)}")
    cmd = last_command(events)
    if cmd is not None:
        click.echo(f"  Last command: {click.style(cmd, fg='green')}")
    click.echo()

    if config.auto_cd_on_resume:
        # Last line is consumed by the shell hook.
        click.echo(event.cwd)
    else:
        click.echo(f"To resume: {click.style(f'cd {event.cwd}', fg='cyan')}")
        click.echo()
        click.echo(click.style(f"Tip: Enable auto_cd_on_resume in {data_dir / CONFIG_FILENAME}", dim=True))


@main.command("today")
@data_dir_option
def today_command(data_dir: Path) -> None:
    """Show today's activity summary."""
    timeline = Timeline(data_dir / TIMELINE_FILENAME)
    today = local_date(datetime.now(timezone.utc))
    try:
        events = EventFilter(on_date=today).apply(timeline)
    except OSError as e:
        _fail(f"Error: failed to read timeline {timeline.path}: {e}")

    if not events:
        click.echo("No activity recorded today.")
        return

    summary = summarize(events)
    click.echo(click.style("Today's Summary", bold=True, fg="cyan"))
    click.echo()
    click.echo(f"  Events: {click.style(str(summary.event_count), fg='yellow')}")
    click.echo(f"  Commands: {click.style(str(summary.command_count), fg='green')}")
    click.echo(f"  Projects: {click.style(str(len(summary.projects)), fg='cyan')}")

    if summary.projects:
        click.echo()
        click.echo(click.style("  Active Projects:", bold=True))
        for project, count in rank(summary.projects):
            click.echo(f"    • {click.style(project, fg='yellow')} ({count} activities)")


@main.command("sessions")
@data_dir_option
def sessions_command(data_dir: Path) -> None:
    """List all sessions."""
    timeline = Timeline(data_dir / TIMELINE_FILENAME)
    if not timeline.exists():
        click.echo("No sessions recorded yet.")
        return
    try:
        sessions = group_sessions(timeline)
    except OSError as e:
        _fail(f"Error: failed to read timeline {timeline.path}: {e}")

    if not sessions:
        click.echo("No sessions recorded yet.")
        return

    click.echo("Sessions:")
    for session in sessions:
        start = session.start.astimezone()
        end = session.end.astimezone()
        minutes = int(session.duration.total_seconds() // 60)
        click.echo(
            f"  {start.strftime('%Y-%m-%d %H:%M')} - {end.strftime('%H:%M')} "
            f"({session.event_count} events, {minutes} minutes)"
        )


@main.command("projects")
@data_dir_option
@projects_file_option
def projects_command(data_dir: Path, projects_file: Path) -> None:
    """Show project activity."""
    events = _load_events(data_dir)
    if events is None:
        return

    click.echo(click.style("Project Activity", bold=True, fg="cyan"))
    click.echo()

    activity = project_activity(events)
    if activity:
        for project in activity:
            click.echo(f"  {click.style(project.name, fg='yellow', bold=True)} ({project.count} activities)")
            click.echo(f"    {click.style(project.last_cwd or '', dim=True)}")
            click.echo()
        return

    click.echo("No projects tracked yet.")
    mapper = ProjectMapper.load(projects_file)
    if mapper is not None and mapper.projects:
        click.echo()
        click.echo(click.style("Available projects:", dim=True))
        for alias, path in mapper.projects.items():
            click.echo(f"  • {click.style(alias, fg='yellow')} → {click.style(path, dim=True)}")


@main.command("idle")
@data_dir_option
def idle_command(data_dir: Path) -> None:
    """Print 'idle' or 'active' based on time since the last logged event."""
    config = _load_config(data_dir)
    store = SessionStore(data_dir / STATE_FILENAME)
    try:
        idle = store.check_idle(config.idle_timeout_minutes)
    except (OSError, ValidationError) as e:
        _fail(f"Error: failed to read session state {store.path}: {e}")
    click.echo("idle" if idle else "active")


if __name__ == "__main__":
    main()
