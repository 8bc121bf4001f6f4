"""
Session reconciler.

Turns one hook event into updates of the session accumulator and a list of
records for the collector. Each event is handled by its own method:

    SessionStart       reset the accumulator, forward session metadata
    UserPromptSubmit   remember the first prompt (title), forward the prompt
    PostToolUse        count the tool call, forward it
    Stop               read new assistant turns and usage from the transcript
    SessionEnd         forward final totals, delete the accumulator

The accumulator is saved to the store before anything is forwarded, so a
collector failure never loses local bookkeeping. Forwarding is sequential and
a CollectorError from the sink propagates to the caller.

Accumulation is exactly-once: assistant turns are tracked by transcript entry
id in ``syncedEntryIds``, so replaying a Stop forwards nothing new and adds
nothing to ``messageCount``. Delivery is not: a record whose send failed is
not retried.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

from ccsync.core.events.models import (
    HookEvent,
    IgnoredEvent,
    PostToolUseEvent,
    SessionEndEvent,
    SessionStartEvent,
    StopEvent,
    UserPromptSubmitEvent,
)
from ccsync.core.pricing import calculate_cost
from ccsync.core.reconcile.title import generate_title
from ccsync.core.state.models import SessionAccumulator, TokenTotals
from ccsync.core.state.store import SessionStateStore
from ccsync.core.sync.models import MessageRecord, SessionRecord, SyncRecord
from ccsync.core.transcript.parser import parse_transcript, summarize_transcript

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    """Current time in UTC."""
    return datetime.now(timezone.utc)


def _iso(moment: datetime) -> str:
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _epoch_ms(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


class RecordSink(Protocol):
    """Destination for forwarded records (CollectorClient in production)."""

    async def sync_session(self, session: SessionRecord) -> None: ...

    async def sync_message(self, message: MessageRecord) -> None: ...


@dataclass
class ReconcileResult:
    """
    Outcome of handling one event.

    Attributes:
        event_name: Hook event name
        session_id: Session the event belonged to (None if ignored without one)
        records: Records forwarded, in forwarding order
        ignored: True when the event was a no-op
    """

    event_name: str
    session_id: str | None = None
    records: list[SyncRecord] = field(default_factory=list)
    ignored: bool = False

    @property
    def sessions(self) -> list[SessionRecord]:
        """Forwarded session records."""
        return [r for r in self.records if isinstance(r, SessionRecord)]

    @property
    def messages(self) -> list[MessageRecord]:
        """Forwarded message records."""
        return [r for r in self.records if isinstance(r, MessageRecord)]


class SessionReconciler:
    """
    Apply hook events to session state and forward the resulting records.

    Example:
        >>> reconciler = SessionReconciler(MemorySessionStateStore(), client)
        >>> result = await reconciler.handle(parse_hook_event("Stop", payload))
        >>> len(result.messages)
        1
    """

    def __init__(
        self,
        store: SessionStateStore,
        sink: RecordSink,
        *,
        sync_tool_calls: bool = True,
        sync_thinking: bool = False,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """
        Initialize SessionReconciler.

        Args:
            store: Session state store (not flushed here)
            sink: Where records are forwarded
            sync_tool_calls: Forward PostToolUse events
            sync_thinking: Include thinking text on assistant messages
            clock: Source of the current time
        """
        self.store = store
        self.sink = sink
        self.sync_tool_calls = sync_tool_calls
        self.sync_thinking = sync_thinking
        self.clock = clock

    async def handle(self, event: HookEvent) -> ReconcileResult:
        """
        Reconcile one event.

        Args:
            event: Parsed hook event

        Returns:
            ReconcileResult listing what was forwarded

        Raises:
            CollectorError: If the sink fails (state is already saved)
        """
        match event:
            case SessionStartEvent():
                result = self._on_session_start(event)
            case UserPromptSubmitEvent():
                result = self._on_user_prompt(event)
            case PostToolUseEvent():
                result = self._on_tool_use(event)
            case StopEvent():
                result = self._on_stop(event)
            case SessionEndEvent():
                result = self._on_session_end(event)
            case IgnoredEvent():
                logger.debug(f"Ignoring {event.event_name} event: {event.reason}")
                return ReconcileResult(
                    event_name=event.event_name,
                    session_id=event.session_id,
                    ignored=True,
                )
            case _:
                raise TypeError(f"Unsupported event type: {type(event).__name__}")

        await self._forward(result.records)

        if isinstance(event, SessionEndEvent):
            # Only after the final record went out
            self.store.delete(event.session_id)
        return result

    async def _forward(self, records: list[SyncRecord]) -> None:
        for record in records:
            if isinstance(record, SessionRecord):
                await self.sink.sync_session(record)
            else:
                await self.sink.sync_message(record)

    def _on_session_start(self, event: SessionStartEvent) -> ReconcileResult:
        now = _iso(self.clock())
        previous = self.store.load(event.session_id)

        # Fields this version doesn't know about survive the reset
        record = dict(previous.model_extra or {})
        record.update(
            {
                "model": event.model,
                "tokenUsage": {"input": 0, "output": 0},
                "messageCount": 0,
                "startedAt": now,
                "projectPath": event.cwd,
            }
        )
        accumulator = SessionAccumulator.model_validate(record)
        self.store.save(event.session_id, accumulator)

        session = SessionRecord(
            session_id=event.session_id,
            cwd=event.cwd,
            project_path=event.cwd,
            model=event.model,
            permission_mode=event.permission_mode,
            start_type=event.start_type,
            thinking_enabled=event.thinking_enabled,
            mcp_servers=event.mcp_servers,
            started_at=now,
        )
        return ReconcileResult(
            event_name=event.kind.value,
            session_id=event.session_id,
            records=[session],
        )

    def _on_user_prompt(self, event: UserPromptSubmitEvent) -> ReconcileResult:
        moment = self.clock()
        accumulator = self.store.load(event.session_id)

        records: list[SyncRecord] = []
        if not accumulator.first_prompt and event.prompt:
            accumulator.first_prompt = event.prompt
            records.append(
                SessionRecord(
                    session_id=event.session_id,
                    title=generate_title(event.prompt),
                )
            )

        accumulator.increment_messages()
        self.store.save(event.session_id, accumulator)

        records.append(
            MessageRecord(
                session_id=event.session_id,
                message_id=f"{event.session_id}-user-{_epoch_ms(moment)}",
                role="user",
                content=event.prompt,
                timestamp=event.timestamp or _iso(moment),
            )
        )
        return ReconcileResult(
            event_name=event.kind.value,
            session_id=event.session_id,
            records=records,
        )

    def _on_tool_use(self, event: PostToolUseEvent) -> ReconcileResult:
        if not self.sync_tool_calls:
            return ReconcileResult(
                event_name=event.kind.value,
                session_id=event.session_id,
                ignored=True,
            )

        moment = self.clock()
        accumulator = self.store.load(event.session_id)
        accumulator.increment_messages()
        accumulator.increment_tool_calls()
        self.store.save(event.session_id, accumulator)

        message = MessageRecord(
            session_id=event.session_id,
            message_id=event.tool_use_id or f"{event.session_id}-tool-{_epoch_ms(moment)}",
            role="assistant",
            tool_name=event.tool_name,
            tool_args=event.tool_input,
            tool_result=event.result_text,
            duration_ms=event.duration_ms,
            timestamp=_iso(moment),
        )
        return ReconcileResult(
            event_name=event.kind.value,
            session_id=event.session_id,
            records=[message],
        )

    def _on_stop(self, event: StopEvent) -> ReconcileResult:
        moment = self.clock()
        accumulator = self.store.load(event.session_id)

        if event.transcript_path:
            messages = self._collect_transcript(event, accumulator)
        else:
            messages = self._collect_legacy_stop(event, accumulator, moment)

        self.store.save(event.session_id, accumulator)

        session = SessionRecord(
            session_id=event.session_id,
            model=accumulator.model,
            token_usage=accumulator.token_usage,
            message_count=accumulator.message_count,
            tool_call_count=accumulator.tool_call_count,
            cost_estimate=accumulator.cost_estimate,
        )
        return ReconcileResult(
            event_name=event.kind.value,
            session_id=event.session_id,
            records=[*messages, session],
        )

    def _collect_transcript(
        self,
        event: StopEvent,
        accumulator: SessionAccumulator,
    ) -> list[SyncRecord]:
        """Fold the transcript into the accumulator and build new messages."""
        parsed = parse_transcript(Path(event.transcript_path or ""))

        if not parsed.usage.is_empty():
            # Transcript totals are cumulative, so they replace
            accumulator.token_usage = TokenTotals(
                input=parsed.usage.input_total,
                output=parsed.usage.output_total,
            )
            accumulator.cost_estimate = calculate_cost(
                parsed.model or accumulator.model,
                parsed.usage,
            )
        if not accumulator.model and parsed.model:
            accumulator.model = parsed.model
        if parsed.tool_call_count > (accumulator.tool_call_count or 0):
            accumulator.tool_call_count = parsed.tool_call_count

        messages: list[SyncRecord] = []
        for turn in parsed.turns:
            # The transcript is append-only, so a line number is a stable id
            message_id = turn.uuid or f"{event.session_id}-assistant-line-{turn.line}"
            if not accumulator.mark_synced(message_id):
                continue

            accumulator.increment_messages()
            messages.append(
                MessageRecord(
                    session_id=event.session_id,
                    message_id=message_id,
                    role="assistant",
                    content=turn.text,
                    thinking_content=turn.thinking if self.sync_thinking else None,
                    model=turn.model,
                    timestamp=turn.timestamp,
                )
            )

        logger.debug(
            f"Stop for {event.session_id}: {len(parsed.turns)} turns, {len(messages)} new"
        )
        return messages

    def _collect_legacy_stop(
        self,
        event: StopEvent,
        accumulator: SessionAccumulator,
        moment: datetime,
    ) -> list[SyncRecord]:
        """Handle a Stop payload without a transcript (per-event deltas)."""
        if event.token_usage is not None:
            current = accumulator.token_usage or TokenTotals()
            accumulator.token_usage = TokenTotals(
                input=current.input + event.token_usage.input,
                output=current.output + event.token_usage.output,
            )

        if not event.response:
            return []

        accumulator.increment_messages()
        return [
            MessageRecord(
                session_id=event.session_id,
                message_id=f"{event.session_id}-assistant-{_epoch_ms(moment)}",
                role="assistant",
                content=event.response,
                model=event.model or accumulator.model,
                duration_ms=event.duration_ms,
                timestamp=_iso(moment),
            )
        ]

    def _on_session_end(self, event: SessionEndEvent) -> ReconcileResult:
        now = _iso(self.clock())
        accumulator = self.store.load(event.session_id)

        title = generate_title(accumulator.first_prompt) if accumulator.first_prompt else None
        project_path = accumulator.project_path or event.cwd
        model = accumulator.model
        if event.transcript_path and not (title and project_path and model):
            # No local state for this session (e.g. hooks installed mid-session)
            stats = summarize_transcript(Path(event.transcript_path))
            title = title or (generate_title(stats.title) if stats.title else None)
            project_path = project_path or stats.cwd
            model = model or stats.model

        # Counts reported by Claude Code win over local ones
        session = SessionRecord(
            session_id=event.session_id,
            title=title,
            project_path=project_path,
            model=model,
            end_reason=event.reason,
            message_count=event.message_count or accumulator.message_count,
            tool_call_count=event.tool_call_count or accumulator.tool_call_count,
            token_usage=event.total_token_usage or accumulator.token_usage,
            cost_estimate=(
                event.cost_estimate
                if event.cost_estimate is not None
                else accumulator.cost_estimate
            ),
            started_at=accumulator.started_at,
            ended_at=now,
        )

        return ReconcileResult(
            event_name=event.kind.value,
            session_id=event.session_id,
            records=[session],
        )
