"""
Claude Code hook integration: the per-event runner and settings.json installer.
"""

from ccsync.core.hooks.installer import (
    HOOK_EVENTS,
    HookInstallResult,
    HookIssue,
    build_hooks_config,
    get_claude_settings_path,
    hooks_configured,
    install_hooks,
    missing_hooks,
)
from ccsync.core.hooks.runner import main, run_hook

__all__ = [
    "HOOK_EVENTS",
    "HookInstallResult",
    "HookIssue",
    "build_hooks_config",
    "get_claude_settings_path",
    "hooks_configured",
    "install_hooks",
    "main",
    "missing_hooks",
    "run_hook",
]
