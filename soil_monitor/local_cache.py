"""
Local key-value cache persisted as a JSON file.

Keeps the last-known readings list, the last weather lookup and the user's
weather location so the UI has something to show offline and across restarts.
No expiry and no eviction: a key lives until it is overwritten or deleted.
"""

import json
import logging
from pathlib import Path

from soil_monitor.config import CACHE_KEY_READINGS, CACHE_PATH
from soil_monitor.models import Reading

log = logging.getLogger(__name__)


class LocalCache:
    def __init__(self, path: Path | str = CACHE_PATH):
        self.path = Path(path)

    def _load(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            log.warning("Ignoring unreadable cache file %s: %s", self.path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        tmp.replace(self.path)

    def get(self, key: str, default=None):
        return self._load().get(key, default)

    def set(self, key: str, value) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def delete(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)

    # --- Readings helpers -----------------------------------------------------
    def save_readings(self, readings: list[Reading]) -> None:
        self.set(CACHE_KEY_READINGS, [r.to_dict() for r in readings])

    def load_readings(self) -> list[Reading]:
        raw = self.get(CACHE_KEY_READINGS, [])
        readings = []
        for item in raw:
            try:
                readings.append(Reading.from_dict(item))
            except (TypeError, ValueError) as exc:
                log.warning("Skipping malformed cached reading: %s", exc)
        return readings
