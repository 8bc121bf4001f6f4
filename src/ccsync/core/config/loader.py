"""
Configuration loading.

Implements the configuration precedence chain:
    env vars (CLAUDE_SYNC_*) > user config file > not configured

Environment variables only take effect when both the URL and the API key are
present; otherwise the config file is used as a whole.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .models import SyncConfig, normalize_convex_url

logger = logging.getLogger(__name__)

APP_DIR_NAME = "claude-code-sync"


def get_xdg_config_home() -> Path:
    """
    Get XDG config home directory.

    Returns:
        Path to config directory (defaults to ~/.config)
    """
    if xdg_home := os.environ.get("XDG_CONFIG_HOME"):
        return Path(xdg_home)
    return Path.home() / ".config"


def get_config_dir() -> Path:
    """
    Get the claude-code-sync directory holding config and session state.

    Returns:
        Path to ~/.config/claude-code-sync (or XDG equivalent)
    """
    return get_xdg_config_home() / APP_DIR_NAME


def get_config_path() -> Path:
    """
    Get path to the credentials file.

    Returns:
        Path to ~/.config/claude-code-sync/config.json
    """
    return get_config_dir() / "config.json"


def _env_flag(name: str, default: bool) -> bool:
    """Read a boolean env var; default-true flags are only disabled by 'false'."""
    raw = os.environ.get(name)
    if raw is None:
        return default
    if default:
        return raw.lower() != "false"
    return raw.lower() == "true"


def load_env_config() -> SyncConfig | None:
    """
    Build configuration from CLAUDE_SYNC_* environment variables.

    Supported env vars:
        CLAUDE_SYNC_CONVEX_URL - collector URL (required)
        CLAUDE_SYNC_API_KEY - API key (required)
        CLAUDE_SYNC_AUTO_SYNC - "false" disables hook syncing
        CLAUDE_SYNC_TOOL_CALLS - "false" disables tool call messages
        CLAUDE_SYNC_THINKING - "true" enables thinking text
        CLAUDE_SYNC_TIMEOUT - HTTP timeout in seconds

    Returns:
        SyncConfig, or None when URL or key is missing
    """
    url = os.environ.get("CLAUDE_SYNC_CONVEX_URL")
    key = os.environ.get("CLAUDE_SYNC_API_KEY")
    if not url or not key:
        return None

    data: dict[str, Any] = {
        "convexUrl": normalize_convex_url(url),
        "apiKey": key,
        "autoSync": _env_flag("CLAUDE_SYNC_AUTO_SYNC", True),
        "syncToolCalls": _env_flag("CLAUDE_SYNC_TOOL_CALLS", True),
        "syncThinking": _env_flag("CLAUDE_SYNC_THINKING", False),
    }

    if timeout_str := os.environ.get("CLAUDE_SYNC_TIMEOUT"):
        try:
            data["timeout"] = float(timeout_str)
        except ValueError:
            logger.warning(f"Invalid CLAUDE_SYNC_TIMEOUT value '{timeout_str}', ignoring")

    try:
        return SyncConfig.model_validate(data)
    except ValidationError as e:
        logger.warning(f"Invalid CLAUDE_SYNC_* environment configuration: {e}")
        return None


def load_json_file(path: Path) -> dict[str, Any] | None:
    """
    Load a JSON file, returning None if it doesn't exist or is invalid.

    Args:
        path: Path to JSON file

    Returns:
        Parsed JSON as dict, or None if file doesn't exist or can't be parsed
    """
    if not path.exists():
        return None

    try:
        with path.open(encoding="utf-8") as f:
            data = json.load(f)
            if isinstance(data, dict):
                return data
            return None
    except (json.JSONDecodeError, UnicodeDecodeError, OSError) as e:
        logger.warning(f"Failed to parse config at {path}: {e}")
        return None


def load_config() -> SyncConfig | None:
    """
    Load configuration.

    Configuration precedence (highest to lowest):
        1. Environment variables (CLAUDE_SYNC_*)
        2. User config (~/.config/claude-code-sync/config.json)

    Returns:
        Validated SyncConfig, or None if not configured

    Example:
        >>> config = load_config()
        >>> config.sync_tool_calls if config else None
        True
    """
    if env_config := load_env_config():
        return env_config

    config_path = get_config_path()
    data = load_json_file(config_path)
    if data is None:
        return None

    try:
        config = SyncConfig.model_validate(data)
    except ValidationError as e:
        logger.warning(f"Invalid config at {config_path}: {e}")
        return None

    return config.model_copy(update={"convex_url": config.site_url})


def save_config(config: SyncConfig) -> Path:
    """
    Write configuration to the user config file.

    Args:
        config: Configuration to persist

    Returns:
        Path that was written

    Raises:
        OSError: If the file cannot be written
    """
    config_path = get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with config_path.open("w", encoding="utf-8") as f:
        json.dump(config.to_file_dict(), f, indent=2)
        f.write("\n")
    # Credentials file: owner read/write only
    try:
        config_path.chmod(0o600)
    except OSError:
        logger.debug(f"Could not restrict permissions on {config_path}")
    return config_path


def clear_config() -> bool:
    """
    Remove the user config file.

    Returns:
        True if a file was removed, False if none existed
    """
    config_path = get_config_path()
    if not config_path.exists():
        return False
    config_path.unlink()
    return True
