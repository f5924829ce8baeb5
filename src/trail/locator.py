"""Find where the user was working at a past instant."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timedelta

from trail.errors import StaleLocationError
from trail.events import Event

MAX_STALENESS = timedelta(hours=24)


def closest_before(events: Iterable[Event], target: datetime) -> Event | None:
    """Return the latest event with a cwd at or before ``target``.

    Order of ``events`` does not matter. Ties on timestamp resolve to the
    first one seen.
    """
    best: Event | None = None
    for event in events:
        if not event.cwd or event.timestamp > target:
            continue
        if best is None or event.timestamp > best.timestamp:
            best = event
    return best


def locate(
    events: Iterable[Event],
    target: datetime,
    *,
    max_staleness: timedelta = MAX_STALENESS,
) -> str | None:
    """Return the working directory in effect at ``target``.

    A directory is assumed to persist until changed, so the closest
    at-or-before event wins.

    Returns:
        The matched cwd, or None when nothing was recorded before ``target``.

    Raises:
        StaleLocationError: If the match is older than ``max_staleness``.
    """
    match = closest_before(events, target)
    if match is None or match.cwd is None:
        return None

    staleness = target - match.timestamp
    if staleness > max_staleness:
        raise StaleLocationError(match.cwd, staleness)
    return match.cwd
