"""Tests for the local state store.

Covers:
- read returns None when the record doesn't exist
- write creates the directory and the file atomically
- write/read round-trip
- corrupt records raise CorruptStateError
- delete/exists
- unsafe keys are escaped into file names
"""

from __future__ import annotations

from pathlib import Path

import pytest

from front_desk_sync.errors import CorruptStateError
from front_desk_sync.sync.state import StateStore


class TestStateStoreRead:
    def test_missing_record_returns_none(self, tmp_path: Path):
        store = StateStore(tmp_path / "nonexistent")
        assert store.read("outbox") is None

    def test_corrupt_json_raises(self, tmp_path: Path):
        (tmp_path / "outbox.json").write_text("{not json", encoding="utf-8")
        store = StateStore(tmp_path)
        with pytest.raises(CorruptStateError) as exc_info:
            store.read("outbox")
        assert exc_info.value.key == "outbox"

    def test_undecodable_bytes_raise(self, tmp_path: Path):
        (tmp_path / "outbox.json").write_bytes(b"\xff\xfe\x00garbage")
        store = StateStore(tmp_path)
        with pytest.raises(CorruptStateError):
            store.read("outbox")


class TestStateStoreWrite:
    def test_creates_state_dir(self, tmp_path: Path):
        state_dir = tmp_path / "nested" / "deep" / "state"
        store = StateStore(state_dir)
        store.write("outbox", [])
        assert (state_dir / "outbox.json").is_file()

    def test_round_trip(self, tmp_path: Path):
        store = StateStore(tmp_path)
        value = [{"booking_id": "b1", "room_number": 7}]
        store.write("outbox", value)
        assert store.read("outbox") == value

    def test_write_replaces_whole_record(self, tmp_path: Path):
        store = StateStore(tmp_path)
        store.write("outbox", [1, 2, 3])
        store.write("outbox", [4])
        assert store.read("outbox") == [4]

    def test_no_temp_files_left_behind(self, tmp_path: Path):
        store = StateStore(tmp_path)
        store.write("outbox", [1])
        assert [p.name for p in tmp_path.iterdir()] == ["outbox.json"]

    def test_unserializable_value_leaves_previous_record(self, tmp_path: Path):
        store = StateStore(tmp_path)
        store.write("outbox", [1])
        with pytest.raises(TypeError):
            store.write("outbox", [object()])
        assert store.read("outbox") == [1]
        assert [p.name for p in tmp_path.iterdir()] == ["outbox.json"]


class TestStateStoreDelete:
    def test_delete_removes_record(self, tmp_path: Path):
        store = StateStore(tmp_path)
        store.write("snapshot_h1", {"bookings": []})
        assert store.exists("snapshot_h1")
        store.delete("snapshot_h1")
        assert not store.exists("snapshot_h1")

    def test_delete_missing_is_noop(self, tmp_path: Path):
        StateStore(tmp_path).delete("nothing")


class TestRecordPaths:
    def test_unsafe_characters_are_escaped(self, tmp_path: Path):
        store = StateStore(tmp_path)
        store.write("snapshot_../evil id", {"bookings": []})
        assert (tmp_path / "snapshot_.._evil_id.json").exists()
        assert store.read("snapshot_../evil id") == {"bookings": []}
