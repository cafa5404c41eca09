"""
Utility functions and helpers.
"""
from .resource_loader import (
    get_app_data_dir,
    get_config_dir
)

from .config import (
    AppConfig,
    load_config,
    save_config
)

__all__ = [
    # Resource management
    'get_app_data_dir',
    'get_config_dir',

    # Settings
    'AppConfig',
    'load_config',
    'save_config'
]
