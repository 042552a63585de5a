"""Tests for MemoryStorage and JsonFileStorage."""

import json

import pytest

from chatstate import backends
from chatstate import (
    JsonFileStorage,
    LoadAccessFailure,
    MemoryStorage,
    persisted,
)


class TestMemoryStorage:
    def test_get_set_delete(self):
        s = MemoryStorage()
        assert s.get("a") is None
        s.set("a", "1")
        assert s.get("a") == "1"
        assert s.keys() == ["a"]
        assert s.delete("a") is True
        assert s.delete("a") is False

    def test_seed_data_is_copied(self):
        seed = {"a": "1"}
        s = MemoryStorage(seed)
        s.set("b", "2")
        assert seed == {"a": "1"}


class TestJsonFileStorage:
    def test_missing_file_is_empty(self, tmp_path):
        s = JsonFileStorage(tmp_path / "state.json")
        assert s.get("a") is None
        assert s.keys() == []

    def test_set_persists_across_instances(self, tmp_path):
        path = tmp_path / "nested" / "state.json"
        JsonFileStorage(path).set("room", '{"id": "r1"}')
        assert JsonFileStorage(path).get("room") == '{"id": "r1"}'
        assert json.loads(path.read_text(encoding="utf-8")) == {"room": '{"id": "r1"}'}

    def test_no_temp_file_left(self, tmp_path):
        s = JsonFileStorage(tmp_path / "state.json")
        s.set("a", "1")
        assert [p.name for p in tmp_path.iterdir()] == ["state.json"]

    def test_delete(self, tmp_path):
        s = JsonFileStorage(tmp_path / "state.json")
        s.set("a", "1")
        s.set("b", "2")
        assert s.delete("a") is True
        assert s.delete("a") is False
        assert s.keys() == ["b"]

    def test_corrupt_file_raises(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(ValueError):
            JsonFileStorage(path).get("a")

    def test_corrupt_file_reported_as_access_failure(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text("{garbage", encoding="utf-8")
        errors = []
        s = persisted("room", {"n": 0}, storage=JsonFileStorage(path), on_error=errors.append)
        assert s.snapshot() == {"n": 0}
        assert isinstance(errors[0], LoadAccessFailure)

    def test_store_survives_restart(self, tmp_path):
        path = tmp_path / "state.json"
        first = persisted("room", {"messages": []}, storage=JsonFileStorage(path))
        first.get()["messages"].append("hi")
        first.dispose()

        second = persisted("room", {"messages": []}, storage=JsonFileStorage(path))
        assert second.snapshot() == {"messages": ["hi"]}

    def test_failed_write_leaves_no_temp_file(self, tmp_path, monkeypatch):
        s = JsonFileStorage(tmp_path / "state.json")
        s.set("a", "1")

        def broken_dump(data, f, **kwargs):
            f.write("{partial")
            raise OSError("disk full")

        monkeypatch.setattr(backends.json, "dump", broken_dump)
        with pytest.raises(OSError):
            s.set("b", "2")
        monkeypatch.undo()

        assert [p.name for p in tmp_path.iterdir()] == ["state.json"]
        assert s.get("a") == "1"
        assert s.get("b") is None
