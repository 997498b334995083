"""Persistent JSON config helpers.

Stores the watched folder, hidden-file preference, and the item limit.
All access is defensive: malformed or missing config falls back safely.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, replace
from pathlib import Path

from loguru import logger
from platformdirs import user_config_dir

APP_NAME = "shlf"
CONFIG_FILENAME = "config.json"
DEFAULT_CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME
CONFIG_PATH = DEFAULT_CONFIG_PATH

DEFAULT_WATCHED_FOLDER = "~/Desktop"
DEFAULT_MAX_ITEMS = 50


@dataclass(frozen=True)
class ShlfConfig:
    """Read-only settings handed to the view at construction."""

    watched_folder: str = DEFAULT_WATCHED_FOLDER
    show_hidden_files: bool = False
    max_items: int = DEFAULT_MAX_ITEMS

    def __post_init__(self) -> None:
        if isinstance(self.max_items, bool) or not isinstance(self.max_items, int) or self.max_items <= 0:
            raise ValueError("max_items must be a positive integer")

    @property
    def resolved_folder(self) -> Path:
        """Watched folder with ``~`` expanded."""
        return Path(self.watched_folder).expanduser()

    def with_overrides(
        self,
        *,
        watched_folder: str | None = None,
        show_hidden_files: bool | None = None,
        max_items: int | None = None,
    ) -> "ShlfConfig":
        """Return a copy with any non-``None`` overrides applied."""
        changes: dict[str, object] = {}
        if watched_folder is not None:
            changes["watched_folder"] = watched_folder
        if show_hidden_files is not None:
            changes["show_hidden_files"] = show_hidden_files
        if max_items is not None:
            changes["max_items"] = max_items
        return replace(self, **changes)


def _config_from_data(data: dict[str, object]) -> ShlfConfig:
    """Build config from decoded JSON, keeping defaults for invalid fields."""
    default = ShlfConfig()

    folder = data.get("watchedFolder")
    if not isinstance(folder, str) or not folder.strip():
        folder = default.watched_folder

    show_hidden = data.get("showHiddenFiles")
    if not isinstance(show_hidden, bool):
        show_hidden = default.show_hidden_files

    max_items = data.get("maxItems")
    if isinstance(max_items, bool) or not isinstance(max_items, int) or max_items <= 0:
        max_items = default.max_items

    return ShlfConfig(watched_folder=folder, show_hidden_files=show_hidden, max_items=max_items)


def config_to_data(config: ShlfConfig) -> dict[str, object]:
    return {
        "maxItems": config.max_items,
        "showHiddenFiles": config.show_hidden_files,
        "watchedFolder": config.watched_folder,
    }


def load_config() -> ShlfConfig:
    """Load the persisted config.

    A missing file is created with defaults. An unreadable or malformed file,
    or one whose top level is not a JSON object, yields defaults untouched.
    """
    if not CONFIG_PATH.exists():
        config = ShlfConfig()
        save_config(config)
        return config
    try:
        data = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
    except Exception as exc:
        logger.warning("Ignoring unreadable config {}: {}", CONFIG_PATH, exc)
        return ShlfConfig()
    if not isinstance(data, dict):
        return ShlfConfig()
    return _config_from_data(data)


def save_config(config: ShlfConfig) -> None:
    """Persist config as pretty-printed JSON.

    Any filesystem/serialization error is ignored to keep runtime behavior
    non-fatal when config cannot be written.
    """
    try:
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(config_to_data(config), indent=2, sort_keys=True)
        CONFIG_PATH.write_text(payload + "\n", encoding="utf-8")
    except Exception as exc:
        logger.debug("Could not save config {}: {}", CONFIG_PATH, exc)


__all__ = [
    "APP_NAME",
    "CONFIG_PATH",
    "ShlfConfig",
    "config_to_data",
    "load_config",
    "save_config",
]
