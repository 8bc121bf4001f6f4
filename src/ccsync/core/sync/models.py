"""
Normalized sync records.

SessionRecord and MessageRecord are what the reconciler forwards to the
collector. Each carries only the fields known at the time it is built; the
payload transformation drops everything unset, so the collector applies them
as partial updates keyed by the external id.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import PurePath
from typing import Any, Literal

from pydantic import BaseModel, Field

from ccsync.core.state.models import TokenTotals

SOURCE = "claude-code"


def _parse_iso(value: str) -> datetime | None:
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


class SessionRecord(BaseModel):
    """
    Session-level fields for the /sync/session endpoint.

    Example:
        >>> SessionRecord(session_id="s1", title="fix bug").to_payload()
        {'externalId': 's1', 'source': 'claude-code', 'title': 'fix bug'}
    """

    session_id: str = Field(..., description="Claude Code session id")
    source: str = Field(default=SOURCE)
    title: str | None = None
    project_path: str | None = None
    project_name: str | None = None
    cwd: str | None = None
    model: str | None = None
    start_type: str | None = Field(default=None, description="new, resume, clear or compact")
    end_reason: str | None = None
    thinking_enabled: bool | None = None
    permission_mode: str | None = None
    mcp_servers: list[str] | None = None
    message_count: int | None = Field(default=None, ge=0)
    tool_call_count: int | None = Field(default=None, ge=0)
    token_usage: TokenTotals | None = None
    cost_estimate: float | None = Field(default=None, ge=0.0)
    started_at: str | None = None
    ended_at: str | None = None

    @property
    def duration_ms(self) -> int | None:
        """Milliseconds between started_at and ended_at, when both parse."""
        if not self.started_at or not self.ended_at:
            return None
        start = _parse_iso(self.started_at)
        end = _parse_iso(self.ended_at)
        if start is None or end is None:
            return None
        try:
            return int((end - start).total_seconds() * 1000)
        except TypeError:
            # naive vs aware timestamps
            return None

    def to_payload(self) -> dict[str, Any]:
        """Build the partial-update body for the collector."""
        payload: dict[str, Any] = {
            "externalId": self.session_id,
            "source": self.source,
        }

        if self.title is not None:
            payload["title"] = self.title
        project_path = self.project_path or self.cwd
        if project_path:
            payload["projectPath"] = project_path
        project_name = self.project_name or (PurePath(project_path).name if project_path else None)
        if project_name:
            payload["projectName"] = project_name
        if self.model:
            payload["model"] = self.model
        if self.token_usage is not None:
            payload["promptTokens"] = self.token_usage.input
            payload["completionTokens"] = self.token_usage.output
        if self.cost_estimate is not None:
            payload["cost"] = self.cost_estimate
        if self.message_count is not None:
            payload["messageCount"] = self.message_count
        if self.tool_call_count is not None:
            payload["toolCallCount"] = self.tool_call_count
        if self.end_reason:
            payload["endReason"] = self.end_reason
        if self.permission_mode:
            payload["permissionMode"] = self.permission_mode
        if self.start_type:
            payload["startType"] = self.start_type
        if self.thinking_enabled is not None:
            payload["thinkingEnabled"] = self.thinking_enabled
        if self.mcp_servers:
            payload["mcpServers"] = list(self.mcp_servers)
        if self.started_at:
            payload["startedAt"] = self.started_at
        if self.ended_at:
            payload["endedAt"] = self.ended_at

        duration = self.duration_ms
        if duration is not None:
            payload["durationMs"] = duration

        return payload


class MessageRecord(BaseModel):
    """
    Message-level fields for the /sync/message endpoint.

    Tool calls are sent as ``parts``: a tool-call part with name and args,
    followed by a tool-result part when there is a result.
    """

    session_id: str
    message_id: str
    source: str = Field(default=SOURCE)
    role: Literal["user", "assistant", "system"]
    content: str | None = None
    thinking_content: str | None = None
    tool_name: str | None = None
    tool_args: dict[str, Any] | None = None
    tool_result: str | None = None
    duration_ms: int | None = Field(default=None, ge=0)
    token_count: int | None = Field(default=None, ge=0)
    timestamp: str | None = None
    model: str | None = None

    def to_payload(self) -> dict[str, Any]:
        """Build the partial-update body for the collector."""
        payload: dict[str, Any] = {
            "sessionExternalId": self.session_id,
            "externalId": self.message_id,
            "role": self.role,
            "source": self.source,
        }

        if self.content:
            payload["textContent"] = self.content
        elif self.tool_result and not self.tool_name:
            payload["textContent"] = self.tool_result

        if self.thinking_content:
            payload["thinkingContent"] = self.thinking_content
        if self.duration_ms is not None:
            payload["durationMs"] = self.duration_ms
        if self.token_count is not None:
            payload["promptTokens"] = self.token_count
        if self.model:
            payload["model"] = self.model
        if self.timestamp:
            payload["timestamp"] = self.timestamp

        if self.tool_name:
            parts: list[dict[str, Any]] = [
                {
                    "type": "tool-call",
                    "content": {"toolName": self.tool_name, "args": self.tool_args},
                }
            ]
            if self.tool_result:
                parts.append({"type": "tool-result", "content": self.tool_result})
            payload["parts"] = parts

        return payload


SyncRecord = SessionRecord | MessageRecord
