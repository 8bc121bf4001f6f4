"""
Session accumulator model.

One SessionAccumulator per Claude Code session holds the running totals that
must survive between hook invocations. Each hook is a separate process, so
everything here round-trips through JSON.

On-disk keys are camelCase. Unknown keys are kept on the model and written
back unchanged so that newer or older releases sharing the state file don't
lose each other's fields.
"""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, PrivateAttr


class TokenTotals(BaseModel):
    """Input/output token totals for a session."""

    input: int = Field(default=0, ge=0, description="Input-class tokens (cache included)")
    output: int = Field(default=0, ge=0, description="Output tokens")

    def is_empty(self) -> bool:
        """True when both totals are zero."""
        return self.input == 0 and self.output == 0


class SessionAccumulator(BaseModel):
    """
    Persisted running state for one session.

    Fields are optional: an accumulator loaded for a session the store has
    never seen is simply empty, and every consumer treats absent values as
    zero or unset.

    Example:
        >>> acc = SessionAccumulator.model_validate(
        ...     {"messageCount": 2, "syncedEntryIds": ["a", "b"], "gitBranch": "main"}
        ... )
        >>> acc.is_synced("a")
        True
        >>> acc.to_record()["gitBranch"]
        'main'
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    model: str | None = Field(default=None, description="Model from SessionStart")
    first_prompt: str | None = Field(
        default=None,
        alias="firstPrompt",
        description="First user prompt (source of the title)",
    )
    token_usage: TokenTotals | None = Field(
        default=None,
        alias="tokenUsage",
        description="Latest token totals",
    )
    message_count: int | None = Field(
        default=None,
        ge=0,
        alias="messageCount",
        description="Messages observed so far",
    )
    synced_entry_ids: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("syncedEntryIds", "syncedMessageUuids"),
        serialization_alias="syncedEntryIds",
        description="Transcript entry ids already forwarded, in forwarding order",
    )
    tool_call_count: int | None = Field(
        default=None,
        ge=0,
        alias="toolCallCount",
        description="Tool calls observed so far",
    )
    cost_estimate: float | None = Field(
        default=None,
        ge=0.0,
        alias="costEstimate",
        description="Cost in USD computed from the last transcript parse",
    )
    started_at: str | None = Field(
        default=None,
        alias="startedAt",
        description="ISO-8601 time of SessionStart",
    )
    project_path: str | None = Field(
        default=None,
        alias="projectPath",
        description="Working directory at SessionStart",
    )

    _synced: set[str] = PrivateAttr(default_factory=set)

    def model_post_init(self, __context: Any) -> None:
        # Drop duplicates while keeping first-seen order
        ordered = list(dict.fromkeys(self.synced_entry_ids))
        self.synced_entry_ids = ordered
        self._synced = set(ordered)

    def is_synced(self, entry_id: str) -> bool:
        """Check whether a transcript entry id was already forwarded."""
        return entry_id in self._synced

    def mark_synced(self, entry_id: str) -> bool:
        """
        Record a transcript entry id as forwarded.

        Returns:
            True if the id was new, False if it was already recorded
        """
        if entry_id in self._synced:
            return False
        self._synced.add(entry_id)
        self.synced_entry_ids.append(entry_id)
        return True

    def increment_messages(self, by: int = 1) -> int:
        """Add to the message count and return the new value."""
        self.message_count = (self.message_count or 0) + by
        return self.message_count

    def increment_tool_calls(self, by: int = 1) -> int:
        """Add to the tool call count and return the new value."""
        self.tool_call_count = (self.tool_call_count or 0) + by
        return self.tool_call_count

    def to_record(self) -> dict[str, Any]:
        """Serialize for the state file (camelCase, unset fields omitted)."""
        data = self.model_dump(by_alias=True, exclude_none=True)
        if not self.synced_entry_ids:
            data.pop("syncedEntryIds", None)
        return data
