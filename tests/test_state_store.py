"""
Tests for the session accumulator model and state stores.

Tests cover:
- camelCase round trip and unknown field preservation
- Legacy syncedMessageUuids key
- Synced id bookkeeping
- JSON store laziness, atomic flush and corruption handling
"""

import json

import pytest

from ccsync.core.state import (
    JsonSessionStateStore,
    MemorySessionStateStore,
    SessionAccumulator,
    SessionStateStore,
    TokenTotals,
    get_state_file,
)


class TestSessionAccumulator:
    """Test SessionAccumulator model."""

    def test_empty_defaults(self):
        """Test that an unknown session starts empty."""
        acc = SessionAccumulator()
        assert acc.model is None
        assert acc.message_count is None
        assert acc.synced_entry_ids == []
        assert acc.to_record() == {}

    def test_record_uses_camel_case(self):
        """Test on-disk key names."""
        acc = SessionAccumulator(
            model="claude-sonnet-4-20250514",
            first_prompt="fix bug",
            token_usage=TokenTotals(input=100, output=50),
            message_count=2,
            tool_call_count=1,
            cost_estimate=0.00105,
            started_at="2026-01-28T10:00:00.000Z",
            project_path="/work/app",
        )
        acc.mark_synced("a1")

        assert acc.to_record() == {
            "model": "claude-sonnet-4-20250514",
            "firstPrompt": "fix bug",
            "tokenUsage": {"input": 100, "output": 50},
            "messageCount": 2,
            "syncedEntryIds": ["a1"],
            "toolCallCount": 1,
            "costEstimate": 0.00105,
            "startedAt": "2026-01-28T10:00:00.000Z",
            "projectPath": "/work/app",
        }

    def test_unknown_fields_preserved(self):
        """Test that fields from other versions survive a round trip."""
        acc = SessionAccumulator.model_validate(
            {"messageCount": 3, "gitBranch": "main", "nested": {"a": [1, 2]}}
        )
        acc.increment_messages()
        record = acc.to_record()

        assert record["messageCount"] == 4
        assert record["gitBranch"] == "main"
        assert record["nested"] == {"a": [1, 2]}

    def test_legacy_synced_key(self):
        """Test that syncedMessageUuids is read and rewritten as syncedEntryIds."""
        acc = SessionAccumulator.model_validate({"syncedMessageUuids": ["a1", "a2"]})

        assert acc.is_synced("a1")
        record = acc.to_record()
        assert record["syncedEntryIds"] == ["a1", "a2"]
        assert "syncedMessageUuids" not in record

    def test_synced_ids_deduplicated_in_order(self):
        """Test that duplicates on disk collapse keeping first-seen order."""
        acc = SessionAccumulator.model_validate({"syncedEntryIds": ["b", "a", "b", "c", "a"]})
        assert acc.synced_entry_ids == ["b", "a", "c"]

    def test_mark_synced(self):
        """Test that marking returns whether the id was new."""
        acc = SessionAccumulator()
        assert acc.mark_synced("a1") is True
        assert acc.mark_synced("a1") is False
        assert acc.synced_entry_ids == ["a1"]

    def test_increment_counters(self):
        """Test counter helpers from absent values."""
        acc = SessionAccumulator()
        assert acc.increment_messages() == 1
        assert acc.increment_messages(2) == 3
        assert acc.increment_tool_calls() == 1

    def test_negative_counts_rejected(self):
        """Test validation of counters."""
        with pytest.raises(ValueError):
            SessionAccumulator.model_validate({"messageCount": -1})


class TestMemorySessionStateStore:
    """Test the in-memory store."""

    def test_satisfies_protocol(self):
        """Test that the store implements SessionStateStore."""
        assert isinstance(MemorySessionStateStore(), SessionStateStore)

    def test_save_load_delete(self):
        """Test basic lifecycle."""
        store = MemorySessionStateStore()
        store.save("s1", SessionAccumulator(message_count=2))

        assert store.load("s1").message_count == 2
        assert store.load("other").message_count is None

        store.delete("s1")
        store.delete("never-existed")
        assert store.load("s1").message_count is None

    def test_load_returns_copy(self):
        """Test that mutating a loaded accumulator does not change the store."""
        store = MemorySessionStateStore()
        store.save("s1", SessionAccumulator(message_count=1))
        store.load("s1").increment_messages()
        assert store.load("s1").message_count == 1

    def test_invalid_record_loads_empty(self):
        """Test that bad stored data reads as an empty accumulator."""
        store = MemorySessionStateStore({"s1": {"messageCount": "lots"}, "s2": "garbage"})
        assert store.load("s1").message_count is None
        assert store.load("s2").to_record() == {}


class TestJsonSessionStateStore:
    """Test the JSON file store."""

    def test_default_path(self, config_dir):
        """Test that the default file lives in the config directory."""
        assert get_state_file() == config_dir / "session-state.json"
        assert JsonSessionStateStore().file_path == config_dir / "session-state.json"

    def test_satisfies_protocol(self, tmp_path):
        """Test that the store implements SessionStateStore."""
        assert isinstance(JsonSessionStateStore(tmp_path / "s.json"), SessionStateStore)

    def test_missing_file_is_empty(self, tmp_path):
        """Test that a missing file behaves as an empty store."""
        store = JsonSessionStateStore(tmp_path / "s.json")
        assert store.load("s1").to_record() == {}
        assert store.session_ids() == []

    def test_nothing_written_until_flush(self, tmp_path):
        """Test that save only changes memory."""
        path = tmp_path / "state" / "s.json"
        store = JsonSessionStateStore(path)
        store.save("s1", SessionAccumulator(message_count=1))

        assert not path.exists()
        store.flush()
        assert json.loads(path.read_text()) == {"s1": {"messageCount": 1}}

    def test_flush_without_changes_writes_nothing(self, tmp_path):
        """Test that a read-only invocation leaves the file alone."""
        path = tmp_path / "s.json"
        store = JsonSessionStateStore(path)
        store.load("s1")
        store.flush()
        assert not path.exists()

    def test_round_trip_preserves_other_sessions_and_fields(self, tmp_path):
        """Test that unrelated records and unknown fields are carried through."""
        path = tmp_path / "s.json"
        path.write_text(
            json.dumps(
                {
                    "s1": {"messageCount": 1, "gitBranch": "main"},
                    "s2": {"anything": [1, 2, 3]},
                }
            )
        )

        store = JsonSessionStateStore(path)
        acc = store.load("s1")
        acc.increment_messages()
        store.save("s1", acc)
        store.flush()

        data = json.loads(path.read_text())
        assert data["s1"] == {"messageCount": 2, "gitBranch": "main"}
        assert data["s2"] == {"anything": [1, 2, 3]}

    def test_delete_then_flush(self, tmp_path):
        """Test that deleted sessions disappear from the file."""
        path = tmp_path / "s.json"
        path.write_text(json.dumps({"s1": {"messageCount": 1}, "s2": {"messageCount": 2}}))

        store = JsonSessionStateStore(path)
        store.delete("s1")
        store.flush()

        assert json.loads(path.read_text()) == {"s2": {"messageCount": 2}}

    def test_corrupt_file_is_empty(self, tmp_path):
        """Test that an unparseable file reads as empty and is replaced on flush."""
        path = tmp_path / "s.json"
        path.write_text("{not json")

        store = JsonSessionStateStore(path)
        assert store.load("s1").to_record() == {}

        store.save("s1", SessionAccumulator(message_count=1))
        store.flush()
        assert json.loads(path.read_text()) == {"s1": {"messageCount": 1}}

    def test_non_object_file_is_empty(self, tmp_path):
        """Test that a JSON array file reads as empty."""
        path = tmp_path / "s.json"
        path.write_text("[1, 2]")
        assert JsonSessionStateStore(path).session_ids() == []

    def test_corrupt_record_only_affects_itself(self, tmp_path):
        """Test that one bad record doesn't hide the others."""
        path = tmp_path / "s.json"
        path.write_text(json.dumps({"bad": {"tokenUsage": "x"}, "good": {"messageCount": 5}}))

        store = JsonSessionStateStore(path)
        assert store.load("bad").token_usage is None
        assert store.load("good").message_count == 5

    def test_no_temp_files_left(self, tmp_path):
        """Test that the atomic write cleans up after itself."""
        path = tmp_path / "state" / "s.json"
        store = JsonSessionStateStore(path)
        store.save("s1", SessionAccumulator(message_count=1))
        store.flush()

        assert [p.name for p in path.parent.iterdir()] == ["s.json"]

    def test_legacy_file_rewritten(self, tmp_path):
        """Test that an old-format record is upgraded when saved."""
        path = tmp_path / "s.json"
        path.write_text(json.dumps({"s1": {"syncedMessageUuids": ["a1"], "messageCount": 1}}))

        store = JsonSessionStateStore(path)
        store.save("s1", store.load("s1"))
        store.flush()

        assert json.loads(path.read_text())["s1"] == {
            "messageCount": 1,
            "syncedEntryIds": ["a1"],
        }
