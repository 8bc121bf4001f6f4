"""
Hook registration for Claude Code.

Registers ``claude-code-sync hook <Event>`` commands in the user's
~/.claude/settings.json. Other settings are preserved. An existing ``hooks``
section that does not already contain these commands is left alone unless
``force`` is given, in which case only the events this tool handles are
replaced.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

HOOK_COMMAND = "claude-code-sync hook"

HOOK_EVENTS = [
    "SessionStart",
    "SessionEnd",
    "UserPromptSubmit",
    "PostToolUse",
    "Stop",
]

# Events whose hook entries take a tool matcher
_MATCHER_EVENTS = {"PostToolUse", "Stop"}


def get_claude_settings_path() -> Path:
    """
    Get path to the user-level Claude Code settings file.

    Returns:
        Path to ~/.claude/settings.json
    """
    return Path.home() / ".claude" / "settings.json"


def build_hook_entry(event: str) -> dict[str, Any]:
    """Build the settings.json entry that runs this tool for one event."""
    entry: dict[str, Any] = {
        "hooks": [
            {
                "type": "command",
                "command": f"{HOOK_COMMAND} {event}",
            }
        ],
    }
    if event in _MATCHER_EVENTS:
        entry = {"matcher": "*", **entry}
    return entry


def build_hooks_config() -> dict[str, Any]:
    """Full ``hooks`` section for every handled event."""
    return {"hooks": {event: [build_hook_entry(event)] for event in HOOK_EVENTS}}


class HookIssue(BaseModel):
    """Represents a problem found while installing or checking hooks."""

    severity: str = Field(description="Issue severity: error, warning, info")
    message: str = Field(description="Human-readable issue description")
    hook_name: str | None = Field(default=None, description="Hook event if applicable")


class HookInstallResult(BaseModel):
    """Result of hook installation operation."""

    success: bool = Field(description="Whether installation succeeded")
    hooks_installed: list[str] = Field(
        default_factory=list, description="Hook events written to settings"
    )
    issues: list[HookIssue] = Field(default_factory=list, description="Issues encountered")
    settings_file: str | None = Field(default=None, description="Settings file path")
    conflict: bool = Field(
        default=False,
        description="Existing hooks were found and left untouched (use force)",
    )
    message: str | None = Field(default=None, description="Summary message")


def _read_settings(settings_file: Path, issues: list[HookIssue]) -> dict[str, Any]:
    if not settings_file.exists():
        return {}
    try:
        with settings_file.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        issues.append(
            HookIssue(
                severity="warning",
                message=f"Could not parse existing settings.json, a new one will be written: {e}",
            )
        )
        return {}
    if not isinstance(data, dict):
        issues.append(
            HookIssue(severity="warning", message="settings.json is not a JSON object, replacing")
        )
        return {}
    return data


def _has_our_hook(entries: Any, event: str) -> bool:
    if not isinstance(entries, list):
        return False
    command = f"{HOOK_COMMAND} {event}"
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        for hook in entry.get("hooks") or []:
            if isinstance(hook, dict) and hook.get("command") == command:
                return True
    return False


def missing_hooks(settings_path: Path | None = None) -> list[str]:
    """
    List handled events that have no hook command registered.

    Args:
        settings_path: Settings file (defaults to ~/.claude/settings.json)

    Returns:
        Event names without a ``claude-code-sync hook`` command (all of
        them when the file is missing or unreadable)
    """
    settings_file = settings_path or get_claude_settings_path()
    settings = _read_settings(settings_file, [])
    hooks = settings.get("hooks")
    if not isinstance(hooks, dict):
        return list(HOOK_EVENTS)
    return [event for event in HOOK_EVENTS if not _has_our_hook(hooks.get(event), event)]


def hooks_configured(settings_path: Path | None = None) -> bool:
    """Check that every handled event is registered."""
    return not missing_hooks(settings_path)


def install_hooks(settings_path: Path | None = None, force: bool = False) -> HookInstallResult:
    """
    Register hook commands in Claude Code settings.

    Args:
        settings_path: Settings file (defaults to ~/.claude/settings.json)
        force: Replace existing entries for the handled events

    Returns:
        HookInstallResult. ``conflict`` is set when a foreign ``hooks``
        section exists and force was not given; nothing is written then.

    Example:
        >>> result = install_hooks()
        >>> if result.success:
        ...     print(f"Installed {len(result.hooks_installed)} hooks")
    """
    settings_file = settings_path or get_claude_settings_path()
    issues: list[HookIssue] = []
    settings = _read_settings(settings_file, issues)

    existing_hooks = settings.get("hooks")
    if not isinstance(existing_hooks, dict):
        existing_hooks = {}

    pending = [e for e in HOOK_EVENTS if not _has_our_hook(existing_hooks.get(e), e)]
    if not pending and not force:
        return HookInstallResult(
            success=True,
            issues=issues,
            settings_file=str(settings_file),
            message="All hooks already configured",
        )

    if existing_hooks and not force:
        return HookInstallResult(
            success=False,
            issues=issues,
            settings_file=str(settings_file),
            conflict=True,
            message="Existing hooks configuration found",
        )

    hooks_config = dict(existing_hooks)
    events = HOOK_EVENTS if force else pending
    for event in events:
        hooks_config[event] = [build_hook_entry(event)]

    updated_settings = {**settings, "hooks": hooks_config}

    try:
        settings_file.parent.mkdir(parents=True, exist_ok=True)
        with settings_file.open("w", encoding="utf-8") as f:
            json.dump(updated_settings, f, indent=2)
            f.write("\n")
        logger.info(f"Wrote updated settings to {settings_file}")
    except OSError as e:
        issues.append(HookIssue(severity="error", message=f"Failed to write settings.json: {e}"))
        return HookInstallResult(
            success=False,
            issues=issues,
            settings_file=str(settings_file),
            message="Failed to write settings file",
        )

    return HookInstallResult(
        success=True,
        hooks_installed=list(events),
        issues=issues,
        settings_file=str(settings_file),
        message=f"Installed {len(events)} hooks",
    )
