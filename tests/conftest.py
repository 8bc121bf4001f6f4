"""
Pytest configuration and shared fixtures.

Every test runs with HOME, XDG_CONFIG_HOME and the working directory pointed
at a temp directory, and without any CLAUDE_SYNC_* variables, so nothing
touches the real ~/.config or ~/.claude.
"""

import json
from pathlib import Path
from typing import Any

import pytest

from ccsync.core.config.models import SyncConfig
from ccsync.core.sync.client import CollectorError
from ccsync.core.sync.models import MessageRecord, SessionRecord

ENV_VARS = [
    "CLAUDE_SYNC_CONVEX_URL",
    "CLAUDE_SYNC_API_KEY",
    "CLAUDE_SYNC_AUTO_SYNC",
    "CLAUDE_SYNC_TOOL_CALLS",
    "CLAUDE_SYNC_THINKING",
    "CLAUDE_SYNC_TIMEOUT",
    "CLAUDE_SYNC_DEBUG",
]


# ==============================================================================
# Environment Isolation
# ==============================================================================


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Point HOME, XDG_CONFIG_HOME and cwd at a temp directory."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    monkeypatch.chdir(tmp_path)
    # setenv first so keys a test's .env loading adds are removed again
    for name in ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    return home


@pytest.fixture
def config_dir(isolated_env) -> Path:
    """The claude-code-sync config directory (not created)."""
    return isolated_env / ".config" / "claude-code-sync"


@pytest.fixture
def sync_config() -> SyncConfig:
    """A complete configuration."""
    return SyncConfig(
        convex_url="https://happy-fox-123.convex.cloud",
        api_key="osk_test_1234567890",
    )


@pytest.fixture
def write_config_file(config_dir):
    """Write a config.json with the given camelCase data."""

    def _write(data: dict[str, Any]) -> Path:
        config_dir.mkdir(parents=True, exist_ok=True)
        path = config_dir / "config.json"
        path.write_text(json.dumps(data))
        return path

    return _write


# ==============================================================================
# Transcripts
# ==============================================================================


def _assistant_entry(
    uuid: str,
    text: str | None = "Done",
    *,
    model: str = "claude-sonnet-4-20250514",
    input_tokens: int = 0,
    output_tokens: int = 0,
    cache_write: int = 0,
    cache_read: int = 0,
    timestamp: str | None = "2026-01-28T10:00:00.000Z",
    extra_parts: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    """Build one assistant transcript entry."""
    content: list[dict[str, Any]] = []
    if text is not None:
        content.append({"type": "text", "text": text})
    content.extend(extra_parts or [])

    entry: dict[str, Any] = {
        "type": "assistant",
        "uuid": uuid,
        "message": {
            "model": model,
            "content": content,
            "usage": {
                "input_tokens": input_tokens,
                "output_tokens": output_tokens,
                "cache_creation_input_tokens": cache_write,
                "cache_read_input_tokens": cache_read,
            },
        },
    }
    if timestamp is not None:
        entry["timestamp"] = timestamp
    return entry


def _user_entry(text: str, **extra: Any) -> dict[str, Any]:
    """Build one user transcript entry."""
    return {"type": "user", "message": {"role": "user", "content": text}, **extra}


@pytest.fixture
def assistant_entry():
    """Factory for assistant transcript entries."""
    return _assistant_entry


@pytest.fixture
def user_entry():
    """Factory for user transcript entries."""
    return _user_entry


@pytest.fixture
def write_transcript(tmp_path):
    """Write entries (dicts or raw strings) as a JSONL transcript."""

    def _write(entries: list[Any], name: str = "transcript.jsonl") -> Path:
        path = tmp_path / name
        lines = [e if isinstance(e, str) else json.dumps(e) for e in entries]
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path

    return _write


# ==============================================================================
# Collector Doubles
# ==============================================================================


class RecordingSink:
    """Collects forwarded records; optionally fails on a given call."""

    def __init__(self, fail_on: int | None = None) -> None:
        self.records: list[SessionRecord | MessageRecord] = []
        self.fail_on = fail_on
        self.calls = 0

    def _record(self, record: SessionRecord | MessageRecord) -> None:
        self.calls += 1
        if self.fail_on is not None and self.calls == self.fail_on:
            raise CollectorError("Sync failed: 500 - boom", status_code=500, body="boom")
        self.records.append(record)

    async def sync_session(self, session: SessionRecord) -> None:
        self._record(session)

    async def sync_message(self, message: MessageRecord) -> None:
        self._record(message)

    @property
    def sessions(self) -> list[SessionRecord]:
        return [r for r in self.records if isinstance(r, SessionRecord)]

    @property
    def messages(self) -> list[MessageRecord]:
        return [r for r in self.records if isinstance(r, MessageRecord)]


@pytest.fixture
def sink() -> RecordingSink:
    """A sink that records everything it is sent."""
    return RecordingSink()


@pytest.fixture
def failing_sink() -> RecordingSink:
    """A sink whose first send raises CollectorError."""
    return RecordingSink(fail_on=1)
