"""Resolve human time expressions to absolute UTC instants."""

from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta, timezone

from trail.errors import InvalidDateFormat, InvalidTimeFormat, UnrecognizedTimeExpression

UNITS = {
    "m": timedelta(minutes=1),
    "h": timedelta(hours=1),
    "d": timedelta(days=1),
    "w": timedelta(weeks=1),
}

# "last-session" is a fixed lookback, not derived from recorded sessions.
LAST_SESSION_LOOKBACK = timedelta(hours=1)

_INTEGER = re.compile(r"[+-]?\d+")


def local_midnight(day: date) -> datetime:
    """Return local midnight of ``day`` as a UTC instant."""
    return datetime.combine(day, time()).astimezone().astimezone(timezone.utc)


def local_date(instant: datetime) -> date:
    """Calendar date of an instant in the local timezone."""
    return instant.astimezone().date()


def resolve_time(expression: str, *, now: datetime | None = None) -> datetime:
    """Translate a relative time expression into an absolute instant.

    Recognized forms (case-sensitive): ``now``, ``today``, ``yesterday``,
    ``last-session`` and ``<N>m``/``<N>h``/``<N>d``/``<N>w``.

    Args:
        expression: The expression to resolve.
        now: Current instant for testing (defaults to UTC now).

    Returns:
        A timezone-aware UTC datetime.

    Raises:
        UnrecognizedTimeExpression: If the expression matches no known form.
        InvalidTimeFormat: If the numeric prefix of an offset is not an integer.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    now = now.astimezone(timezone.utc)

    if expression == "now":
        return now
    if expression == "today":
        return local_midnight(local_date(now))
    if expression == "yesterday":
        return local_midnight(local_date(now) - timedelta(days=1))
    if expression == "last-session":
        return now - LAST_SESSION_LOOKBACK

    unit = UNITS.get(expression[-1:])
    if unit is None:
        raise UnrecognizedTimeExpression(expression)

    prefix = expression[:-1]
    if not _INTEGER.fullmatch(prefix):
        raise InvalidTimeFormat(expression)
    try:
        return now - int(prefix) * unit
    except OverflowError:
        raise InvalidTimeFormat(expression) from None


def parse_date(value: str) -> date:
    """Parse a YYYY-MM-DD calendar date.

    Raises:
        InvalidDateFormat: If the value is not a valid date.
    """
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise InvalidDateFormat(value) from None
