"""Tests for sync state persistence layer.

Covers:
- Load returns 0 when the state file doesn't exist
- Save creates the file atomically and round-trips the watermark
- atomic_write_json leaves no temp files behind
- read_json default handling
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from vault_sync.exceptions import StoreIOError
from vault_sync.state import WatermarkStore, atomic_write_json, read_json

# ---------------------------------------------------------------------------
# WatermarkStore
# ---------------------------------------------------------------------------


class TestWatermarkStore:
    """Tests for WatermarkStore load/save."""

    def test_load_returns_zero_when_file_missing(self, tmp_path: Path):
        store = WatermarkStore(tmp_path / "nonexistent")
        assert store.load() == 0

    def test_save_creates_state_dir(self, tmp_path: Path):
        store = WatermarkStore(tmp_path / "deep" / "state")
        store.save(1_700_000_000_123)

        assert store.path == tmp_path / "deep" / "state" / "sync_state.json"
        assert store.path.exists()

    def test_round_trip(self, tmp_path: Path):
        store = WatermarkStore(tmp_path)
        store.save(1_700_000_000_123)

        assert WatermarkStore(tmp_path).load() == 1_700_000_000_123

    def test_file_format(self, tmp_path: Path):
        store = WatermarkStore(tmp_path)
        store.save(42)

        data = json.loads(store.path.read_text())
        assert data["version"] == 1
        assert data["last_synced_at"] == 42
        assert "saved_at" in data

    @pytest.mark.parametrize(
        "content", ["{not json", "[1, 2]", '{"last_synced_at": "soon"}']
    )
    def test_malformed_state_raises_store_error(
        self, tmp_path: Path, content: str
    ):
        (tmp_path / "sync_state.json").write_text(content)
        with pytest.raises(StoreIOError):
            WatermarkStore(tmp_path).load()

    def test_null_watermark_reads_as_zero(self, tmp_path: Path):
        (tmp_path / "sync_state.json").write_text('{"last_synced_at": null}')
        assert WatermarkStore(tmp_path).load() == 0


# ---------------------------------------------------------------------------
# JSON helpers
# ---------------------------------------------------------------------------


class TestJsonHelpers:
    """Tests for atomic_write_json() and read_json()."""

    def test_no_temp_files_left(self, tmp_path: Path):
        target = tmp_path / "out.json"
        atomic_write_json(target, {"a": 1})
        atomic_write_json(target, {"a": 2})

        assert [p.name for p in tmp_path.iterdir()] == ["out.json"]
        assert read_json(target, None) == {"a": 2}

    def test_read_json_default(self, tmp_path: Path):
        assert read_json(tmp_path / "missing.json", {"x": 0}) == {"x": 0}
