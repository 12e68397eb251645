"""
Helper utilities for the start page.

Provides:
- Settings loading (TOML merged over defaults)
- XDG data/config directory lookup
- Logging setup
"""

import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import toml
from loguru import logger

DEFAULT_SETTINGS = {
    "storage": {
        "data_dir": "",
        "database": "startpage.db",
        "local_storage": "local_storage.json",
    },
    "bookmarks": {
        "reorder": "position",
    },
    "engines": {
        "default": ["searxng"],
    },
    "logging": {
        "level": "INFO",
    },
}


def _xdg_dir(env_var: str, fallback: str) -> Path:
    base = os.environ.get(env_var)
    return Path(base) if base else Path.home() / fallback


def settings_path() -> Path:
    """Default settings file: $XDG_CONFIG_HOME/startpage/settings.toml."""
    return _xdg_dir("XDG_CONFIG_HOME", ".config") / "startpage" / "settings.toml"


def data_dir(settings: Dict[str, Any]) -> Path:
    """
    Directory holding the database and local storage file.

    Uses storage.data_dir when set, else $XDG_DATA_HOME/startpage.
    """
    configured = settings["storage"]["data_dir"]
    if configured:
        return Path(configured).expanduser()
    return _xdg_dir("XDG_DATA_HOME", ".local/share") / "startpage"


def load_settings(path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load settings from a TOML file.

    Args:
        path: Settings file; defaults to settings_path()

    Returns:
        Dictionary containing settings with defaults applied

    Example settings.toml:
        [bookmarks]
        reorder = "rewrite"

        [engines]
        default = ["searxng", "youtube"]
    """
    path = Path(path) if path is not None else settings_path()

    if not path.exists():
        logger.info(f"Settings file not found at {path}, using defaults")
        return _deep_merge(DEFAULT_SETTINGS, {})

    try:
        loaded = toml.load(path)
    except (OSError, toml.TomlDecodeError):
        logger.warning(f"Could not load settings from {path}, using defaults")
        return _deep_merge(DEFAULT_SETTINGS, {})

    return _deep_merge(DEFAULT_SETTINGS, loaded)


def _deep_merge(base: Dict, override: Dict) -> Dict:
    """
    Deep merge two dictionaries.

    Args:
        base: Base dictionary with defaults
        override: Dictionary with overrides

    Returns:
        Merged dictionary (override takes precedence); base is not mutated
    """
    result = {}
    for key, value in base.items():
        result[key] = _deep_merge(value, {}) if isinstance(value, dict) else value

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def setup_logging(level: str = "INFO") -> None:
    """Replace loguru's default sink with a stderr sink at `level`."""
    logger.remove()
    logger.add(sys.stderr, level=level.upper())
