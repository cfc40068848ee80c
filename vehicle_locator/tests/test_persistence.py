"""Tests for tracker state stores."""

import json
import os

import pytest

from vehicle_locator.core.config import Config, PersistenceConfig
from vehicle_locator.core.errors import PersistenceError
from vehicle_locator.core.types import GeoPoint, TrackerState
from vehicle_locator.persistence import (
    JsonStateStore,
    MemoryStateStore,
    create_store,
)


@pytest.fixture
def marked_state() -> TrackerState:
    return TrackerState(
        is_marked=True,
        current=GeoPoint(-19.326412345678901, 146.757123456789012),
        marked=GeoPoint(-19.3301, 146.7602),
        relative_bearing=-37,
        has_fix=True,
    )


class TestJsonStateStore:
    """Tests for JsonStateStore."""

    def test_missing_file_is_none(self, tmp_path):
        """Absent record loads as None."""
        store = JsonStateStore(tmp_path / "state.json")
        assert store.load() is None

    def test_exact_float_restore(self, tmp_path, marked_state):
        """Coordinates come back bit-for-bit."""
        store = JsonStateStore(tmp_path / "state.json")
        store.save(marked_state)
        loaded = store.load()

        assert loaded.current == marked_state.current
        assert loaded.marked == marked_state.marked
        assert loaded.relative_bearing == -37
        assert loaded.is_marked

    def test_fix_not_persisted(self, tmp_path, marked_state):
        """has_fix always restores as False."""
        store = JsonStateStore(tmp_path / "state.json")
        store.save(marked_state)
        assert store.load().has_fix is False

    def test_flat_record_layout(self, tmp_path, marked_state):
        """File holds the flat record with the documented keys."""
        path = tmp_path / "state.json"
        JsonStateStore(path).save(marked_state)

        with open(path, encoding="utf-8") as f:
            record = json.load(f)

        assert set(record) == {
            "is_marked",
            "current_latitude",
            "current_longitude",
            "marked_latitude",
            "marked_longitude",
            "relative_bearing",
        }

    def test_creates_parent_directory(self, tmp_path, marked_state):
        """Missing directories are created on save."""
        store = JsonStateStore(tmp_path / "nested" / "dir" / "state.json")
        store.save(marked_state)
        assert store.path.exists()

    def test_no_temp_files_left(self, tmp_path, marked_state):
        """Atomic write leaves only the target file."""
        store = JsonStateStore(tmp_path / "state.json")
        store.save(marked_state)
        store.save(marked_state)
        assert [p.name for p in tmp_path.iterdir()] == ["state.json"]

    def test_corrupt_json(self, tmp_path):
        """Unparseable file raises PersistenceError."""
        path = tmp_path / "state.json"
        path.write_text("{oops", encoding="utf-8")
        with pytest.raises(PersistenceError):
            JsonStateStore(path).load()

    def test_missing_field(self, tmp_path):
        """Record without all fields raises PersistenceError."""
        path = tmp_path / "state.json"
        path.write_text(json.dumps({"is_marked": True}), encoding="utf-8")
        with pytest.raises(PersistenceError):
            JsonStateStore(path).load()

    def test_not_an_object(self, tmp_path):
        """Top-level JSON must be an object."""
        path = tmp_path / "state.json"
        path.write_text("[1, 2, 3]", encoding="utf-8")
        with pytest.raises(PersistenceError):
            JsonStateStore(path).load()

    @pytest.mark.parametrize("flag", ["false", "true", 1, 0, None])
    def test_non_boolean_marked_flag(self, tmp_path, marked_state, flag):
        """is_marked must be a JSON boolean, never coerced."""
        record = marked_state.to_record()
        record["is_marked"] = flag
        path = tmp_path / "state.json"
        path.write_text(json.dumps(record), encoding="utf-8")
        with pytest.raises(PersistenceError):
            JsonStateStore(path).load()

    def test_clear(self, tmp_path, marked_state):
        """clear() removes the file and tolerates a missing one."""
        store = JsonStateStore(tmp_path / "state.json")
        store.save(marked_state)
        store.clear()
        store.clear()
        assert store.load() is None

    def test_failed_replace_reports_original_error(self, tmp_path, marked_state, monkeypatch):
        """A vanished temp file does not mask the write error."""
        def failing_replace(src, dst):
            os.unlink(src)
            raise OSError("disk full")

        monkeypatch.setattr(os, "replace", failing_replace)
        store = JsonStateStore(tmp_path / "state.json")
        with pytest.raises(PersistenceError, match="disk full"):
            store.save(marked_state)
        assert list(tmp_path.iterdir()) == []

    def test_unwritable_location(self, tmp_path, marked_state):
        """Write failures surface as PersistenceError."""
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        store = JsonStateStore(blocker / "state.json")
        with pytest.raises(PersistenceError):
            store.save(marked_state)


class TestMemoryStateStore:
    """Tests for MemoryStateStore."""

    def test_round_trip(self, marked_state):
        """Saved state loads back without the fix flag."""
        store = MemoryStateStore()
        assert store.load() is None
        store.save(marked_state)

        loaded = store.load()
        assert loaded.marked == marked_state.marked
        assert not loaded.has_fix
        assert store.record["relative_bearing"] == -37

    def test_malformed_record(self):
        """Bad seed record raises PersistenceError on load."""
        store = MemoryStateStore({"is_marked": True, "current_latitude": "north"})
        with pytest.raises(PersistenceError):
            store.load()


class TestCreateStore:
    """Tests for create_store."""

    def test_enabled_uses_json(self, tmp_path):
        config = Config(persistence=PersistenceConfig(enabled=True, path=str(tmp_path / "s.json")))
        assert isinstance(create_store(config), JsonStateStore)

    def test_disabled_uses_memory(self):
        config = Config(persistence=PersistenceConfig(enabled=False))
        assert isinstance(create_store(config), MemoryStateStore)
