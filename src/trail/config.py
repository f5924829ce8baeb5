"""User configuration and data file locations."""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import BaseModel

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = Path.home() / ".opstrail"

CONFIG_FILENAME = "config.json"
TIMELINE_FILENAME = "timeline.jsonl"
STATE_FILENAME = "state.json"


class Config(BaseModel):
    """Settings read once per invocation."""

    idle_timeout_minutes: int = 10
    enable_project_integration: bool = True
    auto_cd_on_resume: bool = False

    @classmethod
    def load(cls, path: Path) -> Config:
        """Load config from ``path``, writing defaults if the file is absent.

        Raises:
            OSError: If the file cannot be read or written.
            pydantic.ValidationError: If the file is not a valid config.
        """
        if path.exists():
            return cls.model_validate_json(path.read_text(encoding="utf-8"))

        config = cls()
        config.save(path)
        logger.debug("Wrote default config to %s", path)
        return config

    def save(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.model_dump_json(indent=2), encoding="utf-8")
