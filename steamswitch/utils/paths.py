"""steamswitch file path constants and utilities."""

import os
from pathlib import Path


GAMES_CACHE_FILE = "games_cache.json"
LOG_DIR_NAME = "logs"

# Overrides the platform default data directory
DATA_DIR_ENV = "STEAMSWITCH_DATA_DIR"


def get_data_dir() -> Path:
    """Get the steamswitch data directory.

    Honours STEAMSWITCH_DATA_DIR, otherwise %APPDATA%/SimpleSteamSwitcher on
    Windows (shared with existing installs) or ~/.local/share/steamswitch.
    """
    override = os.environ.get(DATA_DIR_ENV)
    if override:
        return Path(override).expanduser()

    appdata = os.environ.get("APPDATA")
    if appdata:
        return Path(appdata) / "SimpleSteamSwitcher"

    return Path.home() / ".local" / "share" / "steamswitch"


def get_games_cache_path() -> Path:
    """Get path to the owned games cache file."""
    return get_data_dir() / GAMES_CACHE_FILE


def get_log_dir() -> Path:
    """Get the directory daily log files are written to."""
    return get_data_dir() / LOG_DIR_NAME

