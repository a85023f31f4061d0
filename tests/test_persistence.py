"""Tests for src.game.persistence — snapshot stores."""

from __future__ import annotations

import json

from src.game.persistence import JsonSnapshotStore, MemorySnapshotStore, filter_snapshot


class TestFilterSnapshot:
    def test_allow_list(self):
        data = {"level": 2, "score": 10, "events": [1, 2], "pendingMaliciousEvents": []}
        assert filter_snapshot(data) == {"level": 2, "score": 10}

    def test_non_mapping(self):
        assert filter_snapshot([1, 2]) is None


class TestMemoryStore:
    def test_empty_store_loads_none(self):
        assert MemorySnapshotStore().load() is None

    def test_save_load(self):
        s = MemorySnapshotStore()
        assert s.save({"level": 3, "score": 5, "extra": "dropped"})
        assert s.load() == {"level": 3, "score": 5}

    def test_unserialisable_snapshot(self):
        s = MemorySnapshotStore()
        assert s.save({"rules": [object()]}) is False


class TestJsonStore:
    def test_missing_file(self, tmp_path):
        assert JsonSnapshotStore(tmp_path / "state.json").load() is None

    def test_round_trip_creates_parent(self, tmp_path):
        path = tmp_path / "nested" / "state.json"
        store = JsonSnapshotStore(path)
        assert store.save({"level": 2, "score": 400, "uptime": 72.5,
                           "rules": [], "levelProgress": 26})
        assert store.load() == {"level": 2, "score": 400, "uptime": 72.5,
                                "rules": [], "levelProgress": 26}
        assert not path.with_suffix(".json.tmp").exists()

    def test_corrupt_file_falls_back(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text("{not json", encoding="utf-8")
        assert JsonSnapshotStore(path).load() is None

    def test_non_object_ignored(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text(json.dumps([1, 2, 3]), encoding="utf-8")
        assert JsonSnapshotStore(path).load() is None
