"""
Transcript parser for recovering assistant replies and token usage.

Claude Code passes the transcript path in hook payloads. The transcript is an
append-only JSONL file: one entry per line, tagged with a ``type``. Assistant
entries carry the reply content and the API usage block:

    {
        "type": "assistant",
        "uuid": "5f0c2b1e-...",
        "timestamp": "2026-01-28T10:30:15.123Z",
        "message": {
            "model": "claude-sonnet-4-20250514",
            "content": [
                {"type": "thinking", "thinking": "..."},
                {"type": "text", "text": "Fixed the bug in parser.py"},
                {"type": "tool_use", "id": "toolu_01", "name": "Edit", "input": {}}
            ],
            "usage": {
                "input_tokens": 12,
                "output_tokens": 892,
                "cache_creation_input_tokens": 1500,
                "cache_read_input_tokens": 8234
            }
        }
    }

The file may be read while Claude Code is still appending to it, so the last
line can be truncated. Every line is decoded independently and bad lines are
skipped without affecting the rest of the file.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from ccsync.core.transcript.models import (
    AssistantTurn,
    ParsedTranscript,
    TranscriptStats,
)

logger = logging.getLogger(__name__)


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def iter_transcript_entries(transcript_path: Path | str) -> Iterator[dict[str, Any]]:
    """
    Lazily yield decoded transcript entries in file order.

    Blank lines, lines that are not valid UTF-8, lines that are not valid JSON
    and JSON values that are not objects are skipped.

    Args:
        transcript_path: Path to transcript JSONL file

    Yields:
        One dict per well-formed line. Nothing when the file is missing or
        unreadable.
    """
    for _, entry in _iter_numbered_entries(transcript_path):
        yield entry


def _iter_numbered_entries(transcript_path: Path | str) -> Iterator[tuple[int, dict[str, Any]]]:
    """Yield (line number, entry) for well-formed lines, numbering from 1."""
    path = Path(transcript_path)
    if not path.exists():
        logger.debug(f"Transcript not found: {path}")
        return

    try:
        f = path.open("rb")
    except OSError as e:
        logger.warning(f"Could not open transcript {path}: {e}")
        return

    with f:
        try:
            for lineno, raw in enumerate(f, start=1):
                try:
                    line = raw.decode("utf-8").strip()
                except UnicodeDecodeError:
                    logger.debug(f"Skipping undecodable transcript line {lineno}")
                    continue
                if not line:
                    continue
                try:
                    entry = json.loads(line)
                except json.JSONDecodeError:
                    # Malformed or partially written line
                    logger.debug(f"Skipping malformed transcript line {lineno}")
                    continue
                if isinstance(entry, dict):
                    yield lineno, entry
        except OSError as e:
            logger.warning(f"Error reading transcript {path}: {e}")


def _content_parts(message: dict[str, Any]) -> list[dict[str, Any]]:
    content = message.get("content")
    if not isinstance(content, list):
        return []
    return [part for part in content if isinstance(part, dict)]


def _count_tool_uses(message: dict[str, Any]) -> int:
    return sum(1 for part in _content_parts(message) if part.get("type") == "tool_use")


def _assistant_message(entry: dict[str, Any]) -> dict[str, Any] | None:
    if entry.get("type") != "assistant":
        return None
    message = entry.get("message")
    return message if isinstance(message, dict) else None


def _entry_uuid(entry: dict[str, Any]) -> str:
    # Non-string ids are treated as absent
    uuid = entry.get("uuid")
    return uuid if isinstance(uuid, str) else ""


def _extract_turn(
    lineno: int,
    entry: dict[str, Any],
    message: dict[str, Any],
) -> AssistantTurn | None:
    texts: list[str] = []
    thoughts: list[str] = []
    for part in _content_parts(message):
        kind = part.get("type")
        if kind == "text" and isinstance(part.get("text"), str) and part["text"]:
            texts.append(part["text"])
        elif kind == "thinking" and isinstance(part.get("thinking"), str) and part["thinking"]:
            thoughts.append(part["thinking"])

    if not texts:
        return None

    model = message.get("model")
    timestamp = entry.get("timestamp")
    return AssistantTurn(
        uuid=_entry_uuid(entry),
        text="\n\n".join(texts),
        timestamp=timestamp if isinstance(timestamp, str) and timestamp else _utc_now_iso(),
        model=model if isinstance(model, str) and model else None,
        thinking="\n\n".join(thoughts) if thoughts else None,
        line=lineno,
    )


def _iter_unique_assistant_entries(
    transcript_path: Path | str,
) -> Iterator[tuple[int, dict[str, Any], dict[str, Any]]]:
    """Yield (line number, entry, message) for assistant entries, skipping repeated uuids."""
    seen: set[str] = set()
    for lineno, entry in _iter_numbered_entries(transcript_path):
        message = _assistant_message(entry)
        if message is None:
            continue
        uuid = _entry_uuid(entry)
        if uuid:
            if uuid in seen:
                continue
            seen.add(uuid)
        yield lineno, entry, message


def iter_assistant_turns(transcript_path: Path | str) -> Iterator[AssistantTurn]:
    """
    Lazily yield assistant turns with display text, in file order.

    Entries whose uuid already appeared earlier in the file are skipped.
    Entries with no ``text`` part (e.g. pure tool calls) yield nothing.

    Args:
        transcript_path: Path to transcript JSONL file

    Yields:
        AssistantTurn per assistant entry that carries text
    """
    for lineno, entry, message in _iter_unique_assistant_entries(transcript_path):
        turn = _extract_turn(lineno, entry, message)
        if turn is not None:
            yield turn


def parse_transcript(transcript_path: Path | str) -> ParsedTranscript:
    """
    Parse a transcript into assistant turns and aggregate token usage.

    Usage is summed over every unique assistant entry, including entries that
    contribute no text. A missing file produces an empty result.

    Args:
        transcript_path: Path to transcript JSONL file

    Returns:
        ParsedTranscript with turns in file order and summed usage

    Examples:
        >>> parsed = parse_transcript(Path("session.jsonl"))
        >>> [turn.uuid for turn in parsed.turns]
        ['a1', 'a2']
        >>> parsed.usage.input_total, parsed.usage.output_total
        (10150, 50)
    """
    result = ParsedTranscript()

    for lineno, entry, message in _iter_unique_assistant_entries(transcript_path):
        turn = _extract_turn(lineno, entry, message)
        if turn is not None:
            result.turns.append(turn)

        model = message.get("model")
        if not result.model and isinstance(model, str) and model:
            result.model = model

        usage = message.get("usage")
        if isinstance(usage, dict):
            result.usage.add_usage_block(usage)

        result.tool_call_count += _count_tool_uses(message)

    return result


def summarize_transcript(transcript_path: Path | str) -> TranscriptStats:
    """
    Collect session-level metadata from a transcript.

    This is a secondary pass that looks at every entry type: user entries are
    counted, ``slug`` and ``cwd`` give title and project hints, and
    ``tool_use`` parts of assistant entries are counted as tool calls.

    Args:
        transcript_path: Path to transcript JSONL file

    Returns:
        TranscriptStats (all zero/None for a missing file)
    """
    stats = TranscriptStats()
    seen: set[str] = set()

    for entry in iter_transcript_entries(transcript_path):
        if not stats.cwd and isinstance(entry.get("cwd"), str) and entry["cwd"]:
            stats.cwd = entry["cwd"]
        if not stats.title and isinstance(entry.get("slug"), str) and entry["slug"]:
            stats.title = entry["slug"]

        if entry.get("type") == "user":
            stats.message_count += 1
            continue

        message = _assistant_message(entry)
        if message is None:
            continue

        uuid = _entry_uuid(entry)
        if uuid:
            if uuid in seen:
                continue
            seen.add(uuid)

        model = message.get("model")
        if not stats.model and isinstance(model, str) and model:
            stats.model = model

        usage = message.get("usage")
        if isinstance(usage, dict):
            stats.usage.add_usage_block(usage)

        stats.tool_call_count += _count_tool_uses(message)

    return stats
