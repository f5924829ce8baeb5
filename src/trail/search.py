"""Filtering and text search over the event timeline."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime, timezone

from trail.events import Event, event_text
from trail.timeparse import local_date

MAX_RESULTS = 50


@dataclass(frozen=True)
class EventFilter:
    """Conjunction of optional predicates over events.

    Dates are compared in the local timezone.
    """

    on_date: date | None = None
    project: str | None = None
    start_date: date | None = None
    end_date: date | None = None

    def matches(self, event: Event) -> bool:
        day = local_date(event.timestamp)
        if self.on_date is not None and day != self.on_date:
            return False
        if self.start_date is not None and day < self.start_date:
            return False
        if self.end_date is not None and day > self.end_date:
            return False
        if self.project is not None and event.project != self.project:
            return False
        return True

    def apply(self, events: Iterable[Event]) -> list[Event]:
        return [e for e in events if self.matches(e)]


@dataclass
class SearchResult:
    """Matched events with a bounded prefix for display."""

    query: str
    total: int = 0
    shown: list[Event] = field(default_factory=list)

    @property
    def truncated(self) -> bool:
        return self.total > len(self.shown)


def text_matches(event: Event, query: str) -> bool:
    """Case-insensitive substring match against an event's free text."""
    text = event_text(event.event_type)
    if text is None:
        return False
    return query.lower() in text.lower()


def search_events(
    events: Iterable[Event],
    query: str,
    *,
    today: bool = False,
    project: str | None = None,
    on_date: date | None = None,
    limit: int = MAX_RESULTS,
    now: datetime | None = None,
) -> SearchResult:
    """Search event text, keeping only events that pass every predicate.

    Args:
        events: Events in log order.
        query: Substring to look for, case-insensitive.
        today: Keep only events from the current local date.
        project: Keep only events tagged with this project.
        on_date: Keep only events from this local date.
        limit: Maximum number of events kept for display.
        now: Current time for testing (defaults to UTC now).

    Returns:
        SearchResult with the full match count and the first ``limit`` matches.
    """
    filters = [EventFilter(project=project, on_date=on_date)]
    if today:
        if now is None:
            now = datetime.now(timezone.utc)
        filters.append(EventFilter(on_date=local_date(now)))

    result = SearchResult(query=query)
    for event in events:
        if not all(f.matches(event) for f in filters):
            continue
        if not text_matches(event, query):
            continue
        result.total += 1
        if len(result.shown) < limit:
            result.shown.append(event)
    return result
