# Area: Shared
"""
party_rounds._shared.local_cache — Client-scoped caches
=======================================================

Key/value caches for state that belongs to one client only, such as
the answer a player typed this round. Nothing here is shared between
clients or treated as authoritative.
"""

import json
import logging
from pathlib import Path
from typing import Dict, Optional

from ..collaborators import LocalCache

logger = logging.getLogger("party_rounds.local_cache")


class MemoryCache(LocalCache):
    """Cache that lives as long as the process."""

    def __init__(self) -> None:
        self._values: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value


class JsonFileCache(LocalCache):
    """
    Cache persisted to a JSON file so it survives restarts.

    A missing or unreadable file reads as an empty cache.
    """

    def __init__(self, path: str):
        self.path = Path(path)

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable cache {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
