"""
Locations of per-user data and settings directories.

Setting ``AUDIOFLAGS_HOME`` puts both under one directory, which keeps
portable installs and test runs away from the user's real settings.
"""
import os
import sys
from pathlib import Path

APP_NAME = "AudioFlags"
HOME_ENV = "AUDIOFLAGS_HOME"


def _platform_dir(kind: str) -> Path:
    """Get the per-user base directory for "data" or "config" files."""
    home = Path.home()
    if os.name == 'nt':
        # Settings live next to the data on Windows
        return Path(os.environ.get('APPDATA', str(home)))
    if sys.platform == 'darwin':
        if kind == "config":
            return home / "Library" / "Preferences"
        return home / "Library" / "Application Support"
    if kind == "config":
        return Path(os.environ.get('XDG_CONFIG_HOME', str(home / ".config")))
    return Path(os.environ.get('XDG_DATA_HOME', str(home / ".local" / "share")))


def _app_dir(kind: str, app_name: str) -> Path:
    override = os.environ.get(HOME_ENV)
    if override:
        path = Path(override) / kind
    elif os.name == 'nt' and kind == "config":
        path = _platform_dir(kind) / app_name / "config"
    else:
        path = _platform_dir(kind) / app_name

    path.mkdir(parents=True, exist_ok=True)
    return path


def get_app_data_dir(app_name: str = APP_NAME) -> Path:
    """Get (and create) the directory that holds flag records."""
    return _app_dir("data", app_name)


def get_config_dir(app_name: str = APP_NAME) -> Path:
    """Get (and create) the directory that holds settings.json."""
    return _app_dir("config", app_name)
