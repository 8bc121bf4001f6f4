"""
Hook event models.

Claude Code runs each registered hook command with a JSON payload on stdin.
The hook event name comes from the command line (``claude-code-sync hook
Stop``); the payload carries ``session_id`` plus event-specific fields. Older
releases sent camelCase keys (``sessionId``, ``tokenUsage``, ...), which are
accepted as aliases.

Events form a closed set. Anything that cannot be turned into one of the five
known kinds becomes an IgnoredEvent, which the reconciler treats as a no-op.
"""

from __future__ import annotations

import json
import logging
from enum import Enum
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from ccsync.core.state.models import TokenTotals

logger = logging.getLogger(__name__)


class HookEventKind(str, Enum):
    """Hook events the engine understands."""

    SESSION_START = "SessionStart"
    USER_PROMPT_SUBMIT = "UserPromptSubmit"
    POST_TOOL_USE = "PostToolUse"
    STOP = "Stop"
    SESSION_END = "SessionEnd"


class BaseHookEvent(BaseModel):
    """Fields common to every hook payload."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    session_id: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("session_id", "sessionId"),
    )
    transcript_path: str | None = None
    cwd: str | None = None
    permission_mode: str | None = Field(
        default=None,
        validation_alias=AliasChoices("permission_mode", "permissionMode"),
    )


class SessionStartEvent(BaseHookEvent):
    """A session started, resumed, or was cleared/compacted."""

    kind: Literal[HookEventKind.SESSION_START] = HookEventKind.SESSION_START
    model: str | None = None
    source: str | None = Field(default=None, description="startup, resume, clear or compact")
    legacy_start_type: str | None = Field(default=None, validation_alias="startType")
    thinking_enabled: bool | None = Field(
        default=None,
        validation_alias=AliasChoices("thinking_enabled", "thinkingEnabled"),
    )
    mcp_servers: list[str] | None = Field(
        default=None,
        validation_alias=AliasChoices("mcp_servers", "mcpServers"),
    )

    @property
    def start_type(self) -> str | None:
        """How the session began, with ``startup`` reported as ``new``."""
        if self.source == "startup":
            return "new"
        return self.source or self.legacy_start_type


class UserPromptSubmitEvent(BaseHookEvent):
    """The user submitted a prompt."""

    kind: Literal[HookEventKind.USER_PROMPT_SUBMIT] = HookEventKind.USER_PROMPT_SUBMIT
    prompt: str = ""
    timestamp: str | None = None


class PostToolUseEvent(BaseHookEvent):
    """A tool call finished."""

    kind: Literal[HookEventKind.POST_TOOL_USE] = HookEventKind.POST_TOOL_USE
    tool_name: str | None = Field(
        default=None,
        validation_alias=AliasChoices("tool_name", "toolName"),
    )
    tool_use_id: str | None = None
    tool_input: dict[str, Any] | None = Field(
        default=None,
        validation_alias=AliasChoices("tool_input", "args"),
    )
    tool_result: dict[str, Any] | None = None
    tool_response: Any = None
    legacy_result: str | None = Field(default=None, validation_alias="result")
    duration_ms: int | None = Field(
        default=None,
        validation_alias=AliasChoices("duration_ms", "durationMs"),
    )

    @property
    def result_text(self) -> str | None:
        """
        Tool output as text.

        Prefers ``tool_result.output`` then ``tool_result.error``, then the
        legacy ``result`` string, then ``tool_response`` (JSON-encoded when it
        is not already a string).
        """
        if self.tool_result:
            for key in ("output", "error"):
                value = self.tool_result.get(key)
                if value:
                    return value if isinstance(value, str) else json.dumps(value, default=str)
        if self.legacy_result:
            return self.legacy_result
        if self.tool_response is None or self.tool_response == "":
            return None
        if isinstance(self.tool_response, str):
            return self.tool_response
        return json.dumps(self.tool_response, default=str)


class StopEvent(BaseHookEvent):
    """The assistant finished responding."""

    kind: Literal[HookEventKind.STOP] = HookEventKind.STOP
    stop_hook_active: bool = False
    token_usage: TokenTotals | None = Field(
        default=None,
        validation_alias=AliasChoices("token_usage", "tokenUsage"),
    )
    response: str | None = None
    model: str | None = None
    duration_ms: int | None = Field(
        default=None,
        validation_alias=AliasChoices("duration_ms", "durationMs"),
    )


class SessionEndEvent(BaseHookEvent):
    """The session ended."""

    kind: Literal[HookEventKind.SESSION_END] = HookEventKind.SESSION_END
    reason: str | None = Field(
        default=None,
        validation_alias=AliasChoices("reason", "endReason"),
    )
    message_count: int | None = Field(
        default=None,
        validation_alias=AliasChoices("message_count", "messageCount"),
    )
    tool_call_count: int | None = Field(
        default=None,
        validation_alias=AliasChoices("tool_call_count", "toolCallCount"),
    )
    total_token_usage: TokenTotals | None = Field(
        default=None,
        validation_alias=AliasChoices("total_token_usage", "totalTokenUsage"),
    )
    cost_estimate: float | None = Field(
        default=None,
        validation_alias=AliasChoices("cost_estimate", "costEstimate"),
    )


class IgnoredEvent(BaseModel):
    """An event the engine does not act on (unknown kind or unusable payload)."""

    event_name: str
    reason: str
    session_id: str | None = None


HookEvent = (
    SessionStartEvent
    | UserPromptSubmitEvent
    | PostToolUseEvent
    | StopEvent
    | SessionEndEvent
    | IgnoredEvent
)

_EVENT_TYPES: dict[str, type[BaseHookEvent]] = {
    HookEventKind.SESSION_START.value: SessionStartEvent,
    HookEventKind.USER_PROMPT_SUBMIT.value: UserPromptSubmitEvent,
    HookEventKind.POST_TOOL_USE.value: PostToolUseEvent,
    HookEventKind.STOP.value: StopEvent,
    HookEventKind.SESSION_END.value: SessionEndEvent,
}


def parse_hook_event(event_name: str, payload: Any) -> HookEvent:
    """
    Build a typed event from a hook name and its raw JSON payload.

    Never raises: unknown event names, non-object payloads, payloads without
    a session id and payloads that fail validation all produce an IgnoredEvent.

    Args:
        event_name: Hook event name (e.g. "Stop")
        payload: Decoded stdin JSON

    Returns:
        One of the five event models, or IgnoredEvent

    Example:
        >>> event = parse_hook_event("Stop", {"session_id": "abc", "transcript_path": "/t.jsonl"})
        >>> event.kind
        <HookEventKind.STOP: 'Stop'>
    """
    event_type = _EVENT_TYPES.get(event_name)
    if event_type is None:
        return IgnoredEvent(event_name=event_name, reason="unknown event")

    if not isinstance(payload, dict):
        return IgnoredEvent(event_name=event_name, reason="payload is not an object")

    session_id = payload.get("session_id") or payload.get("sessionId")
    if not session_id or not isinstance(session_id, str):
        return IgnoredEvent(event_name=event_name, reason="missing session id")

    try:
        return event_type.model_validate(payload)
    except ValidationError as e:
        logger.warning(f"Invalid {event_name} payload for session {session_id}: {e}")
        return IgnoredEvent(
            event_name=event_name,
            reason="invalid payload",
            session_id=session_id,
        )
