"""
Local snapshot cache -- one fixed key on the client device.

The snapshot is a JSON file named after the key inside the cache
directory. Reads always heal through merge_with_defaults and never
raise on bad content; writes replace the whole snapshot atomically.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from ..defaults import default_app_data
from ..models import AppData
from ..schema import merge_with_defaults

logger = logging.getLogger("creatorpage.sync.cache")

STORAGE_KEY = "creatorpage_data"


class LocalCache:
    """Synchronous, write-through snapshot storage.

    Args:
        cache_dir: Directory holding the snapshot file.
        key: Storage key; the file is ``<key>.json``.
    """

    def __init__(self, cache_dir: Path, key: str = STORAGE_KEY) -> None:
        self.cache_dir = Path(cache_dir)
        self.key = key

    @property
    def path(self) -> Path:
        return self.cache_dir / f"{self.key}.json"

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> AppData:
        """Return the cached snapshot healed with defaults, or the defaults."""
        if not self.path.exists():
            return default_app_data()
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            logger.warning("Local cache unreadable, using defaults: %s", exc)
            return default_app_data()
        return merge_with_defaults(raw)

    def save(self, data: AppData) -> None:
        """Overwrite the snapshot with ``data``."""
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        tmp_path = self.cache_dir / f".{self.key}.json.tmp"
        tmp_path.write_text(
            json.dumps(data.to_wire(), indent=2, ensure_ascii=False),
            encoding="utf-8",
        )
        tmp_path.replace(self.path)
        logger.debug("Local cache written: %s", self.path)

    def clear(self) -> None:
        """Remove the snapshot."""
        self.path.unlink(missing_ok=True)
        logger.debug("Local cache cleared: %s", self.path)
