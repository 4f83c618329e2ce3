"""JSON file settings store — reads the settings document from disk."""

import asyncio
import json
from pathlib import Path

from ordering.checkout.errors import ConfigUnavailable
from ordering.delivery.settings_store.port import SettingsStorePort


class JsonFileSettingsStore(SettingsStorePort):
    """Settings store backed by a JSON file.

    A missing file means "no document stored"; an unreadable or malformed
    file means the store is unavailable.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def _read(self) -> dict | None:
        if not self.path.exists():
            return None
        try:
            document = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise ConfigUnavailable(f"Cannot read settings from {self.path}: {exc}") from exc
        if not isinstance(document, dict):
            raise ConfigUnavailable(f"Settings in {self.path} must be a JSON object")
        return document

    async def fetch(self) -> dict | None:
        return await asyncio.to_thread(self._read)
