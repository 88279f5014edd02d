"""
Device-scoped local store.

A single JSON file of namespaced string keys, in the spirit of browser
localStorage. The entries blob is stored under LOCAL_STORAGE_KEY as a
serialized `{"entries": {...}}` document; markers are stored as "true".
"""
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from companion.config import settings

logger = logging.getLogger(__name__)


class LocalStore:
    def __init__(self, path: Optional[str] = None):
        self.path = Path(os.path.expanduser(path or settings.LOCAL_STORE_PATH))

    # --- raw key/value access ---

    def _read_all(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Local store %s is unreadable, treating as empty: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Local store %s has an unexpected shape, treating as empty", self.path)
            return {}
        return data

    def _write_all(self, data: dict) -> None:
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".store-", suffix=".json")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False)
            os.replace(tmp_name, self.path)
        except (OSError, TypeError, ValueError) as e:
            logger.warning("Could not write local store %s: %s", self.path, e)
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)

    def get_item(self, key: str) -> Optional[str]:
        value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def remove_item(self, key: str) -> None:
        data = self._read_all()
        if key in data:
            del data[key]
            self._write_all(data)

    # --- entries blob ---

    def load_entries(self) -> dict:
        """Raw (unmigrated) entries keyed by date; {} when missing or corrupt."""
        raw = self.get_item(settings.LOCAL_STORAGE_KEY)
        if not raw:
            return {}
        try:
            parsed = json.loads(raw)
        except ValueError as e:
            logger.warning("Local entries blob is corrupt, starting empty: %s", e)
            return {}
        entries = parsed.get("entries") if isinstance(parsed, dict) else None
        return entries if isinstance(entries, dict) else {}

    def save_entries(self, entries: dict) -> None:
        self.set_item(settings.LOCAL_STORAGE_KEY, json.dumps({"entries": entries}, ensure_ascii=False))

    # --- markers ---

    def is_migrated(self) -> bool:
        return self.get_item(settings.MIGRATED_KEY) == "true"

    def mark_migrated(self) -> None:
        self.set_item(settings.MIGRATED_KEY, "true")

    def is_tour_done(self) -> bool:
        return self.get_item(settings.TOUR_DONE_KEY) == "true"

    def mark_tour_done(self) -> None:
        self.set_item(settings.TOUR_DONE_KEY, "true")
