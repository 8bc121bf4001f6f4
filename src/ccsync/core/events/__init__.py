"""
Typed Claude Code hook events.

Example:
    >>> from ccsync.core.events import parse_hook_event
    >>> event = parse_hook_event("UserPromptSubmit", {"session_id": "abc", "prompt": "fix bug"})
    >>> event.prompt
    'fix bug'
"""

from ccsync.core.events.models import (
    BaseHookEvent,
    HookEvent,
    HookEventKind,
    IgnoredEvent,
    PostToolUseEvent,
    SessionEndEvent,
    SessionStartEvent,
    StopEvent,
    UserPromptSubmitEvent,
    parse_hook_event,
)

__all__ = [
    "BaseHookEvent",
    "HookEvent",
    "HookEventKind",
    "IgnoredEvent",
    "PostToolUseEvent",
    "SessionEndEvent",
    "SessionStartEvent",
    "StopEvent",
    "UserPromptSubmitEvent",
    "parse_hook_event",
]
