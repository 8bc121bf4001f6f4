"""
Data containers produced by the transcript parser.

These are plain dataclasses (the parser runs on every Stop hook and never
needs validation of its own output).
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class UsageBreakdown:
    """Token counters split by billing class.

    Attributes:
        input: Uncached input tokens (``input_tokens``)
        output: Output tokens (``output_tokens``)
        cache_write: Prompt-cache write tokens (``cache_creation_input_tokens``)
        cache_read: Prompt-cache read tokens (``cache_read_input_tokens``)
    """

    input: int = 0
    output: int = 0
    cache_write: int = 0
    cache_read: int = 0

    @property
    def input_total(self) -> int:
        """Input-class tokens, cache reads and writes included."""
        return self.input + self.cache_read + self.cache_write

    @property
    def output_total(self) -> int:
        """Output-class tokens."""
        return self.output

    def is_empty(self) -> bool:
        """True when no tokens were recorded at all."""
        return self.input_total == 0 and self.output_total == 0

    def add_usage_block(self, usage: dict[str, object]) -> None:
        """Accumulate one ``message.usage`` block from a transcript line."""
        self.input += _count(usage.get("input_tokens"))
        self.output += _count(usage.get("output_tokens"))
        self.cache_write += _count(usage.get("cache_creation_input_tokens"))
        self.cache_read += _count(usage.get("cache_read_input_tokens"))


def _count(value: object) -> int:
    # Counters are sometimes null or missing in older transcripts
    if isinstance(value, bool) or not isinstance(value, int):
        return 0
    return max(value, 0)


@dataclass
class AssistantTurn:
    """One assistant reply recovered from the transcript.

    Attributes:
        uuid: Transcript entry id ("" when the entry had none)
        text: Display text (all ``text`` parts joined by a blank line)
        timestamp: ISO-8601 timestamp of the entry
        model: Model that produced the reply, if recorded
        thinking: Thinking text, if the reply had ``thinking`` parts
        line: 1-based line number of the entry in the transcript file
    """

    uuid: str
    text: str
    timestamp: str
    model: str | None = None
    thinking: str | None = None
    line: int = 0


@dataclass
class ParsedTranscript:
    """Assistant turns in file order plus aggregate counters.

    Attributes:
        turns: Assistant turns that carry display text
        usage: Token usage summed over unique assistant entries
        model: First model seen on any assistant entry
        tool_call_count: Number of ``tool_use`` parts in assistant entries
    """

    turns: list[AssistantTurn] = field(default_factory=list)
    usage: UsageBreakdown = field(default_factory=UsageBreakdown)
    model: str | None = None
    tool_call_count: int = 0


@dataclass
class TranscriptStats:
    """Session-level metadata from a secondary pass over the transcript.

    Attributes:
        model: First assistant model in the transcript
        title: First ``slug`` hint in the transcript
        cwd: First working directory recorded
        message_count: Number of user entries
        tool_call_count: Number of ``tool_use`` parts in assistant entries
        usage: Raw token counters across assistant entries
    """

    model: str | None = None
    title: str | None = None
    cwd: str | None = None
    message_count: int = 0
    tool_call_count: int = 0
    usage: UsageBreakdown = field(default_factory=UsageBreakdown)
