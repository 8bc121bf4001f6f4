"""
Configuration models and loading.

This module provides the Pydantic model for claude-code-sync credentials and
sync flags, loaded from environment variables or the user config file.
"""

from .loader import (
    clear_config,
    get_config_dir,
    get_config_path,
    get_xdg_config_home,
    load_config,
    save_config,
)
from .env import load_layered_env
from .models import (
    SETTABLE_KEYS,
    ConfigError,
    SyncConfig,
    apply_setting,
    mask_api_key,
    normalize_convex_url,
)

__all__ = [
    # Models
    "ConfigError",
    "SETTABLE_KEYS",
    "SyncConfig",
    "apply_setting",
    "mask_api_key",
    "normalize_convex_url",
    # Loader functions
    "clear_config",
    "get_config_dir",
    "get_config_path",
    "get_xdg_config_home",
    "load_config",
    "load_layered_env",
    "save_config",
]
