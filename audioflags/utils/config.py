"""
User settings stored as JSON in the config directory.
"""
import json
import logging
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Optional

from audioflags.core.flags.reconciler import ReconcilePolicy
from .resource_loader import get_app_data_dir, get_config_dir

logger = logging.getLogger(__name__)

SETTINGS_FILE = "settings.json"
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass
class AppConfig:
    """Application settings."""
    storage_dir: str = ""  # empty means <app data dir>/flags
    reconcile_policy: str = ReconcilePolicy.REPAIR.value
    sound_cues: bool = False
    preview_tones: bool = True
    flag_highlight_color: str = "#3a3f5c"
    search_highlight_color: str = "#7a5c00"
    log_level: str = "INFO"

    def resolved_storage_dir(self) -> str:
        """Get the flag storage directory, falling back to the app data dir."""
        if self.storage_dir:
            return os.path.expanduser(self.storage_dir)
        return str(get_app_data_dir() / "flags")

    @property
    def policy(self) -> ReconcilePolicy:
        return ReconcilePolicy(self.reconcile_policy)


def _validated(config: AppConfig) -> AppConfig:
    defaults = AppConfig()
    for f in fields(AppConfig):
        value = getattr(config, f.name)
        if not isinstance(value, type(getattr(defaults, f.name))):
            logger.warning("Ignoring setting %s=%r: wrong type", f.name, value)
            setattr(config, f.name, getattr(defaults, f.name))

    if config.reconcile_policy not in {p.value for p in ReconcilePolicy}:
        logger.warning("Unknown reconcile_policy %r, using %s",
                       config.reconcile_policy, defaults.reconcile_policy)
        config.reconcile_policy = defaults.reconcile_policy

    if config.log_level.upper() not in _LOG_LEVELS:
        logger.warning("Unknown log_level %r, using %s", config.log_level, defaults.log_level)
        config.log_level = defaults.log_level
    config.log_level = config.log_level.upper()
    return config


def load_config(path: Optional[Path] = None) -> AppConfig:
    """
    Load settings, falling back to defaults for anything missing or invalid.

    Args:
        path: Settings file to read (defaults to the config directory)

    Returns:
        Loaded settings
    """
    if path is None:
        path = get_config_dir() / SETTINGS_FILE

    if not os.path.exists(path):
        return AppConfig()

    try:
        with open(path, 'r') as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError("settings must be a JSON object")
    except (OSError, ValueError) as e:
        logger.warning("Failed to read settings from %s: %s", path, e)
        return AppConfig()

    known = {f.name for f in fields(AppConfig)}
    unknown = set(data) - known
    if unknown:
        logger.warning("Ignoring unknown settings: %s", ", ".join(sorted(unknown)))

    return _validated(AppConfig(**{k: v for k, v in data.items() if k in known}))


def save_config(config: AppConfig, path: Optional[Path] = None) -> None:
    """
    Write settings back to disk.

    Raises:
        OSError: If the file cannot be written
    """
    if path is None:
        path = get_config_dir() / SETTINGS_FILE

    with open(path, 'w') as f:
        json.dump(asdict(config), f, indent=2)
