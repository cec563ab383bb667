"""
Settings manager for Pixel Studio
Handles saving and loading user preferences
"""

import copy
import json
import os
from pathlib import Path
from typing import Any, Optional, Union

from .pixel_studio_constants import (
    AUTOSAVE_DEBOUNCE_MS,
    AUTOSAVE_POLL_INTERVAL_MS,
    AUTOSAVE_SAVE_TIMEOUT_MS,
    BRUSH_SIZE_DEFAULT,
    BRUSH_SIZE_MAX,
    BRUSH_SIZE_MIN,
    DEFAULT_DRAW_COLOR,
    ZOOM_DEFAULT,
    ZOOM_MAX,
    ZOOM_MIN,
)
from .pixel_studio_utils import debug_log, is_valid_hex_color

DEFAULT_SETTINGS: dict[str, Any] = {
    "editor": {
        "default_zoom": ZOOM_DEFAULT,
        "default_brush_size": BRUSH_SIZE_DEFAULT,
        "default_color": DEFAULT_DRAW_COLOR,
    },
    "autosave": {
        "poll_interval_ms": AUTOSAVE_POLL_INTERVAL_MS,
        "debounce_ms": AUTOSAVE_DEBOUNCE_MS,
        "save_timeout_ms": AUTOSAVE_SAVE_TIMEOUT_MS,
    },
    "storage": {"path": ""},
    "recent_artworks": [],
    "log_level": "INFO",
    "preferences": {"max_recent_artworks": 10},
}


class SettingsManager:
    """Manages application settings with persistence"""

    def __init__(
        self,
        app_name: str = "pixel_studio",
        settings_dir: Optional[Union[str, Path]] = None,
    ):
        self.app_name = app_name
        self.settings_dir = Path(settings_dir) if settings_dir else self._get_settings_dir()
        self.settings_dir.mkdir(parents=True, exist_ok=True)
        self.settings_file = self.settings_dir / "settings.json"
        self.settings = self._load_settings()

    def _get_settings_dir(self) -> Path:
        """Get the appropriate settings directory for the platform"""
        if os.name == "nt":  # Windows
            base = Path(os.environ.get("APPDATA", os.path.expanduser("~")))
            return base / self.app_name
        return Path(os.path.expanduser("~")) / f".{self.app_name}"

    def _load_settings(self) -> dict[str, Any]:
        """Load settings from file, layered over the defaults"""
        settings = self._get_default_settings()
        if self.settings_file.exists():
            try:
                with open(self.settings_file) as f:
                    stored = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                # If file is corrupted, start fresh
                debug_log("SETTINGS", f"Ignoring unreadable settings: {e}", "WARNING")
                return settings
            if isinstance(stored, dict):
                _merge(settings, stored)
        return settings

    def _get_default_settings(self) -> dict[str, Any]:
        """Get default settings"""
        return copy.deepcopy(DEFAULT_SETTINGS)

    def save_settings(self) -> None:
        """Save current settings to file"""
        try:
            with open(self.settings_file, "w") as f:
                json.dump(self.settings, f, indent=2)
        except OSError as e:
            debug_log("SETTINGS", f"Could not save settings: {e}", "WARNING")

    def get(self, key: str, default: Any = None) -> Any:
        """Get a setting value by dotted key"""
        value = self.settings
        for k in key.split("."):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value

    def set(self, key: str, value: Any) -> None:
        """Set a setting value by dotted key"""
        keys = key.split(".")
        target = self.settings
        for k in keys[:-1]:
            if not isinstance(target.get(k), dict):
                target[k] = {}
            target = target[k]
        target[keys[-1]] = value
        self.save_settings()

    def add_recent_artwork(self, artwork_id: str) -> None:
        """Move an artwork to the front of the recent list"""
        recent = [a for a in self.get_recent_artworks() if a != artwork_id]
        recent.insert(0, artwork_id)
        max_recent = self._get_int("preferences.max_recent_artworks", 10, 1)
        self.settings["recent_artworks"] = recent[:max_recent]
        self.save_settings()

    def remove_recent_artwork(self, artwork_id: str) -> None:
        """Forget a deleted artwork"""
        recent = self.get_recent_artworks()
        if artwork_id in recent:
            recent.remove(artwork_id)
            self.settings["recent_artworks"] = recent
            self.save_settings()

    def get_recent_artworks(self) -> list[str]:
        recent = self.settings.get("recent_artworks", [])
        if not isinstance(recent, list):
            return []
        return [a for a in recent if isinstance(a, str)]

    def get_autosave_timing(self) -> dict[str, int]:
        """Poll interval, debounce and save timeout in milliseconds"""
        return {
            "poll_interval_ms": self._get_int(
                "autosave.poll_interval_ms", AUTOSAVE_POLL_INTERVAL_MS, 1
            ),
            "debounce_ms": self._get_int("autosave.debounce_ms", AUTOSAVE_DEBOUNCE_MS, 0),
            "save_timeout_ms": self._get_int(
                "autosave.save_timeout_ms", AUTOSAVE_SAVE_TIMEOUT_MS, 1
            ),
        }

    def get_editor_defaults(self) -> dict[str, Any]:
        """Starting color, brush size and zoom, with bad values replaced"""
        color = self.get("editor.default_color", DEFAULT_DRAW_COLOR)
        if not is_valid_hex_color(color):
            debug_log("SETTINGS", f"Ignoring invalid default color {color!r}", "WARNING")
            color = DEFAULT_DRAW_COLOR
        return {
            "color": color,
            "brush_size": self._get_int(
                "editor.default_brush_size", BRUSH_SIZE_DEFAULT, BRUSH_SIZE_MIN, BRUSH_SIZE_MAX
            ),
            "zoom": self._get_int("editor.default_zoom", ZOOM_DEFAULT, ZOOM_MIN, ZOOM_MAX),
        }

    def _get_int(
        self, key: str, default: int, minimum: int, maximum: Optional[int] = None
    ) -> int:
        """Integer setting clamped to range; non-numbers fall back to the default"""
        value = self.get(key, default)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            debug_log("SETTINGS", f"Ignoring invalid {key}: {value!r}", "WARNING")
            return default
        value = max(minimum, int(value))
        if maximum is not None:
            value = min(maximum, value)
        return value

    def get_storage_path(self) -> Path:
        """JSON store location, next to the settings file unless configured"""
        configured = self.get("storage.path")
        if configured:
            return Path(configured)
        return self.settings_dir / "artworks.json"

    def reset_settings(self) -> None:
        """Reset all settings to defaults"""
        self.settings = self._get_default_settings()
        self.save_settings()


def _merge(target: dict[str, Any], overrides: dict[str, Any]) -> None:
    """Recursively overlay stored values on the defaults"""
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _merge(target[key], value)
        else:
            target[key] = value


# Singleton instance
_settings_instance = None


def get_settings() -> SettingsManager:
    """Get the singleton settings instance"""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = SettingsManager()
    return _settings_instance
