"""
Transcript parsing for Claude Code session logs.

Recovers assistant replies, token usage and session metadata from the JSONL
transcript whose path Claude Code passes to hooks.
"""

from ccsync.core.transcript.models import (
    AssistantTurn,
    ParsedTranscript,
    TranscriptStats,
    UsageBreakdown,
)
from ccsync.core.transcript.parser import (
    iter_assistant_turns,
    iter_transcript_entries,
    parse_transcript,
    summarize_transcript,
)

__all__ = [
    "AssistantTurn",
    "ParsedTranscript",
    "TranscriptStats",
    "UsageBreakdown",
    "iter_assistant_turns",
    "iter_transcript_entries",
    "parse_transcript",
    "summarize_transcript",
]
