"""Append-only JSONL timeline of activity events."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

from pydantic import ValidationError

from trail.events import Event

logger = logging.getLogger(__name__)


def parse_event_line(line: str) -> Event | None:
    """Parse one timeline line. Malformed lines yield None, never an error."""
    stripped = line.strip()
    if not stripped:
        return None
    try:
        return Event.model_validate_json(stripped)
    except ValidationError:
        return None


def format_event_line(event: Event) -> str:
    """Serialize an event to exactly one line (no trailing newline)."""
    return event.model_dump_json(by_alias=True)


class Timeline:
    """Line-delimited JSON event log.

    Iterating reads the file lazily and may be repeated; each pass re-opens
    the file. A missing file is an empty timeline.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def __iter__(self) -> Iterator[Event]:
        if not self.path.exists():
            return
        # Undecodable bytes become U+FFFD rather than aborting the read.
        with self.path.open(encoding="utf-8", errors="replace") as f:
            for line_number, line in enumerate(f, 1):
                event = parse_event_line(line)
                if event is None:
                    if line.strip():
                        logger.debug("Skipping malformed line %d of %s", line_number, self.path)
                    continue
                yield event

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> list[Event]:
        """Read the whole timeline into memory in log order."""
        return list(self)

    def append(self, event: Event) -> None:
        """Append one event as a single line."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as f:
            f.write(format_event_line(event) + "\n")
