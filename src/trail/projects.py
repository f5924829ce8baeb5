"""Resolve working directories to project aliases."""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_PROJECTS_PATH = Path.home() / ".projwarp.json"


def _normalize(path: str) -> str:
    return path.replace("\\", "/")


class ProjectMapper(BaseModel):
    """Alias -> absolute path mapping, in file order."""

    projects: dict[str, str] = {}

    @classmethod
    def load(cls, path: Path = DEFAULT_PROJECTS_PATH) -> ProjectMapper | None:
        """Load the mapping file, or None if it is missing or unusable."""
        if not path.exists():
            return None
        try:
            return cls.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            logger.warning("Ignoring project file %s: %s", path, e)
            return None

    def resolve_project(self, path: str) -> str | None:
        """Return the alias for ``path``.

        An exact match wins; otherwise the first alias whose path is a string
        prefix of ``path``.
        """
        target = _normalize(path)
        for alias, project_path in self.projects.items():
            if target == _normalize(project_path):
                return alias
        for alias, project_path in self.projects.items():
            if target.startswith(_normalize(project_path)):
                return alias
        return None

    def project_path(self, alias: str) -> str | None:
        return self.projects.get(alias)
