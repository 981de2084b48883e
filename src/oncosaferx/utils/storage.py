"""
Key/value JSON blob storage.

One file per key under a directory, holding exactly ``json.dumps(value)``.
There is no schema versioning: a blob that no longer parses is reported as
missing and left for the next ``set`` to overwrite.
"""

import json
import logging
from pathlib import Path
from typing import Any

from oncosaferx.config import get_settings

logger = logging.getLogger(__name__)


class JsonStorage:
    """Persist small JSON values (selections, counters, teams) by key."""

    def __init__(self, directory: Path | None = None):
        self.directory = directory if directory is not None else get_settings().storage_dir

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str, default: Any = None) -> Any:
        path = self._path(key)
        if not path.exists():
            return default
        try:
            return json.loads(path.read_text())
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.warning("Ignoring unreadable storage blob %s", key)
            return default

    def set(self, key: str, value: Any) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        self._path(key).write_text(json.dumps(value))

    def remove(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)

    def __contains__(self, key: str) -> bool:
        return self._path(key).exists()
