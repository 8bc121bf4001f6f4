"""
Session state stores.

Hook invocations share nothing but this store. The JSON store reads the state
file once per invocation, applies every change in memory and writes the file
once at the end (flush), atomically via a temp file and os.replace.

Concurrency: there is no locking. Claude Code runs the hooks of one session
one after another, but two invocations that overlap will race and the last
flush wins.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from pydantic import ValidationError

from ccsync.core.config.loader import get_config_dir
from ccsync.core.state.models import SessionAccumulator

logger = logging.getLogger(__name__)


def get_state_file() -> Path:
    """
    Get path to the session state file.

    Returns:
        Path to ~/.config/claude-code-sync/session-state.json
    """
    return get_config_dir() / "session-state.json"


@runtime_checkable
class SessionStateStore(Protocol):
    """
    Protocol for session accumulator storage.

    load() never fails: a session with no stored state, or state that cannot
    be read, comes back as an empty SessionAccumulator.
    """

    def load(self, session_id: str) -> SessionAccumulator:
        """Return the accumulator for a session (empty if unknown)."""
        ...

    def save(self, session_id: str, accumulator: SessionAccumulator) -> None:
        """Store the accumulator for a session."""
        ...

    def delete(self, session_id: str) -> None:
        """Forget a session."""
        ...

    def flush(self) -> None:
        """Make pending changes durable."""
        ...


def _validate_record(session_id: str, raw: Any) -> SessionAccumulator:
    if not isinstance(raw, dict):
        logger.warning(f"Ignoring malformed state for session {session_id}")
        return SessionAccumulator()
    try:
        return SessionAccumulator.model_validate(raw)
    except ValidationError as e:
        logger.warning(f"Ignoring invalid state for session {session_id}: {e}")
        return SessionAccumulator()


class MemorySessionStateStore:
    """
    In-memory store.

    Records are kept in their serialized form so that a load() after a save()
    behaves exactly like a round trip through the JSON file.

    Example:
        >>> store = MemorySessionStateStore()
        >>> store.save("s1", SessionAccumulator(model="claude-sonnet-4-20250514"))
        >>> store.load("s1").model
        'claude-sonnet-4-20250514'
    """

    def __init__(self, records: dict[str, dict[str, Any]] | None = None) -> None:
        self.records: dict[str, dict[str, Any]] = dict(records or {})

    def load(self, session_id: str) -> SessionAccumulator:
        if session_id not in self.records:
            return SessionAccumulator()
        return _validate_record(session_id, self.records[session_id])

    def save(self, session_id: str, accumulator: SessionAccumulator) -> None:
        self.records[session_id] = json.loads(json.dumps(accumulator.to_record()))

    def delete(self, session_id: str) -> None:
        self.records.pop(session_id, None)

    def flush(self) -> None:
        pass


class JsonSessionStateStore:
    """
    Store backed by a JSON object keyed by session id.

    The file is read lazily on first access. Records of other sessions are
    carried through untouched (never re-validated), so one corrupt record
    can't take the rest of the file down with it.

    Example:
        >>> store = JsonSessionStateStore(Path("/tmp/session-state.json"))
        >>> acc = store.load("abc")
        >>> acc.increment_messages()
        1
        >>> store.save("abc", acc)
        >>> store.flush()
    """

    def __init__(self, file_path: Path | None = None) -> None:
        """
        Initialize JsonSessionStateStore.

        Args:
            file_path: State file (defaults to get_state_file())
        """
        self._file_path = file_path or get_state_file()
        self._records: dict[str, Any] | None = None
        self._dirty = False

    @property
    def file_path(self) -> Path:
        """Get the path to the state file."""
        return self._file_path

    def _read_file(self) -> dict[str, Any]:
        """Read the state file; absent or corrupt files read as empty."""
        if not self._file_path.exists():
            return {}

        try:
            with self._file_path.open(encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError, OSError) as e:
            logger.warning(f"Could not read session state {self._file_path}: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"Session state {self._file_path} is not an object, ignoring")
            return {}
        return data

    def _documents(self) -> dict[str, Any]:
        if self._records is None:
            self._records = self._read_file()
        return self._records

    def session_ids(self) -> list[str]:
        """List sessions that currently have state."""
        return list(self._documents().keys())

    def load(self, session_id: str) -> SessionAccumulator:
        records = self._documents()
        if session_id not in records:
            return SessionAccumulator()
        return _validate_record(session_id, records[session_id])

    def save(self, session_id: str, accumulator: SessionAccumulator) -> None:
        self._documents()[session_id] = accumulator.to_record()
        self._dirty = True

    def delete(self, session_id: str) -> None:
        records = self._documents()
        if session_id in records:
            del records[session_id]
            self._dirty = True

    def flush(self) -> None:
        """
        Write pending changes to disk atomically.

        Write failures are logged, not raised.
        """
        if not self._dirty or self._records is None:
            return

        try:
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(
                dir=self._file_path.parent,
                prefix=".session-state_",
                suffix=".json.tmp",
            )
        except OSError as e:
            logger.error(f"Could not write session state {self._file_path}: {e}")
            return

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._records, f, indent=2, ensure_ascii=False)
                f.write("\n")
            os.replace(temp_path, self._file_path)
            self._dirty = False
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Could not write session state {self._file_path}: {e}")
            try:
                os.unlink(temp_path)
            except OSError:
                pass
