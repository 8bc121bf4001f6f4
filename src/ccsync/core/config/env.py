"""
.env file support for CLAUDE_SYNC_* settings.

Values are layered, highest first:
    process environment > project .env.local > project .env > user .env

The user file lives at ~/.config/claude-code-sync/.env. Only CLAUDE_SYNC_*
keys are taken from any file, so a project's unrelated .env entries never
leak into the hook process.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from pathlib import Path

from dotenv import dotenv_values

from .loader import get_config_dir

logger = logging.getLogger(__name__)

ENV_PREFIX = "CLAUDE_SYNC_"


def read_sync_env(path: Path) -> dict[str, str]:
    """
    Read CLAUDE_SYNC_* assignments from one .env file.

    Args:
        path: .env file (a missing or unreadable file reads as empty)

    Returns:
        Key/value pairs with a value, in file order
    """
    if not path.is_file():
        return {}
    try:
        values = dotenv_values(path)
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"Ignoring unreadable env file {path}: {e}")
        return {}
    return {
        key: value
        for key, value in values.items()
        if key.startswith(ENV_PREFIX) and value is not None
    }


def load_layered_env(
    *,
    project_dir: Path | None = None,
    user_env_paths: Iterable[Path] | None = None,
    project_env_paths: Iterable[Path] | None = None,
) -> dict[str, str]:
    """
    Apply .env values to os.environ without touching variables already set.

    Args:
        project_dir: Directory holding the project .env files (defaults to cwd)
        user_env_paths: Override for the user-level files
        project_env_paths: Override for the project-level files

    Returns:
        The variables that were set
    """
    base = project_dir or Path.cwd()
    user_files = user_env_paths or [get_config_dir() / ".env"]
    project_files = project_env_paths or [base / ".env", base / ".env.local"]

    merged: dict[str, str] = {}
    for path in [*user_files, *project_files]:
        merged.update(read_sync_env(Path(path)))

    applied = {key: value for key, value in merged.items() if key not in os.environ}
    os.environ.update(applied)
    return applied
