"""Settings access helpers for JSON-based configuration."""

from __future__ import annotations

from dataclasses import dataclass
import json
from pathlib import Path
from typing import Any

from loguru import logger

DEFAULT_STORAGE_DIR = str(Path.home() / "AppData" / "Local" / "Lumina" / "storage")


class JsonSettings:
    """Lightweight JSON settings reader with dotted-key access."""

    def __init__(self, settings_path: str | Path) -> None:
        self._path = Path(settings_path)
        if not self._path.exists():
            raise FileNotFoundError(f"settings.json not found: {self._path}")
        with self._path.open("r", encoding="utf-8") as f:
            self._data = json.load(f)

    def get(self, key: str, default: Any | None = None) -> Any:
        """Return value for dotted `key`, or `default` if not present."""
        parts = key.split(".")
        node: Any = self._data
        for part in parts:
            if isinstance(node, dict) and part in node:
                node = node[part]
            else:
                return default
        return node


@dataclass(frozen=True)
class FeedSettings:
    """Typed view of the settings the feed engine needs."""

    storage_dir: str = DEFAULT_STORAGE_DIR
    storage_slot: str = "lumina_photos"
    storage_quota_bytes: int = 5 * 1024 * 1024
    page_size: int = 9
    reveal_delay_ms: int = 3000
    busy_tab_ms: int = 800
    busy_upsert_ms: int = 500
    geo_high_accuracy: bool = False
    geo_timeout_ms: int = 5000
    geo_maximum_age_ms: int = 60000


def _int_setting(settings: Any, key: str, default: int, minimum: int = 0) -> int:
    raw = settings.get(key, default)
    try:
        value = int(raw if raw is not None else default)
    except (ValueError, TypeError):
        logger.warning("Invalid integer for {}: {!r}, using {}", key, raw, default)
        return default
    if value < minimum:
        logger.warning("Setting {}={} below minimum {}, using {}", key, value, minimum, default)
        return default
    return value


def load_feed_settings(settings: Any | None) -> FeedSettings:
    """Build `FeedSettings` from a `JsonSettings`-like object (or defaults when None)."""
    defaults = FeedSettings()
    if settings is None:
        return defaults
    storage_dir = settings.get("storage.dir", defaults.storage_dir)
    slot = settings.get("storage.slot", defaults.storage_slot)
    high_accuracy = settings.get("geolocation.high_accuracy", defaults.geo_high_accuracy)
    if not isinstance(storage_dir, str) or not storage_dir:
        storage_dir = defaults.storage_dir
    if not isinstance(slot, str) or not slot:
        slot = defaults.storage_slot
    if not isinstance(high_accuracy, bool):
        high_accuracy = defaults.geo_high_accuracy
    return FeedSettings(
        storage_dir=storage_dir,
        storage_slot=slot,
        storage_quota_bytes=_int_setting(
            settings, "storage.quota_bytes", defaults.storage_quota_bytes
        ),
        page_size=_int_setting(settings, "feed.page_size", defaults.page_size, minimum=1),
        reveal_delay_ms=_int_setting(settings, "feed.reveal_delay_ms", defaults.reveal_delay_ms),
        busy_tab_ms=_int_setting(settings, "feed.busy_tab_ms", defaults.busy_tab_ms),
        busy_upsert_ms=_int_setting(settings, "feed.busy_upsert_ms", defaults.busy_upsert_ms),
        geo_high_accuracy=high_accuracy,
        geo_timeout_ms=_int_setting(
            settings, "geolocation.timeout_ms", defaults.geo_timeout_ms, minimum=1
        ),
        geo_maximum_age_ms=_int_setting(
            settings, "geolocation.maximum_age_ms", defaults.geo_maximum_age_ms
        ),
    )
