"""Tests for the SyncEngine pass orchestration.

Uses in-memory stores; exercises watermark handling, exclusion, dry
runs, and abort-on-error behaviour.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from vault_sync.config_schema import ConflictRule, SyncConfig
from vault_sync.exceptions import StaleWriteError, SyncInProgressError
from vault_sync.globs import ExcludeFilter
from vault_sync.state import WatermarkStore
from vault_sync.stores.memory import MemoryFileStore
from vault_sync.sync.engine import SyncEngine
from vault_sync.sync.models import SyncOperation
from vault_sync.sync.resolver import ConflictResolver


def _engine(host, remote, tmp_path: Path, exclude=None, fallback="latest"):
    return SyncEngine(
        host=host,
        remote=remote,
        resolver=ConflictResolver(fallback=fallback),
        watermark_store=WatermarkStore(tmp_path / "state"),
        exclude=ExcludeFilter(exclude),
    )


class TestRun:
    """Tests for SyncEngine.run()."""

    async def test_first_pass_pushes_and_advances_watermark(
        self, tmp_path, host, remote
    ):
        host.put("notes/a.md", b"hello", updated_at=100)
        engine = _engine(host, remote, tmp_path)

        report = await engine.run()

        assert report.watermark == 0
        assert [r.path for r in report.pushed] == ["notes/a.md"]
        assert remote.contents["notes/a.md"] == b"hello"
        assert engine.watermark_store.load() == report.now
        assert report.now > 0

    async def test_second_pass_is_empty(self, tmp_path, host, remote):
        host.put("a.md", b"a", updated_at=100)
        remote.put("b.bin", b"b", updated_at=110)
        engine = _engine(host, remote, tmp_path)

        await engine.run()
        report = await engine.run()

        assert report.results == []

    async def test_conflict_uses_persisted_watermark(
        self, tmp_path, host, remote
    ):
        """Scenario D: both sides changed after the stored watermark."""
        WatermarkStore(tmp_path / "state").save(100)
        host.put("config.json", b'{"v": 1}\n', updated_at=200)
        remote.put("config.json", b'{"v": 2}\n', updated_at=250)
        engine = _engine(host, remote, tmp_path)

        report = await engine.run()

        assert report.watermark == 100
        (result,) = report.conflicts
        assert result.strategy.value == "resolve"
        assert host.contents["config.json"] == b'{"v": 2}\n'

    async def test_exclusion_applies_to_both_sides(
        self, tmp_path, host, remote
    ):
        host.put(".trash/a.md", b"x", updated_at=100)
        remote.put(".trash/b.md", b"y", updated_at=100)
        remote.put("kept.md", b"z", updated_at=100)
        engine = _engine(host, remote, tmp_path, exclude=".trash/**")

        report = await engine.run()

        assert [r.path for r in report.results] == ["kept.md"]
        assert ".trash/a.md" not in remote.records
        assert ".trash/b.md" not in host.records

    async def test_orphan_remote_tombstone_untouched(
        self, tmp_path, host, remote, calls
    ):
        remote.put_tombstone("gone.md", 50)
        engine = _engine(host, remote, tmp_path)

        report = await engine.run()

        assert report.results == []
        assert calls == []
        assert remote.records["gone.md"].deleted

    async def test_both_tombstones_prune_without_content_ops(
        self, tmp_path, host, remote, calls
    ):
        """Scenario E."""
        host.put_tombstone("x.bin", 40)
        remote.put_tombstone("x.bin", 50)
        engine = _engine(host, remote, tmp_path)

        report = await engine.run()

        assert [r.operation for r in report.results] == [SyncOperation.PRUNE]
        assert calls == [("host", "prune", "x.bin")]


class TestDryRun:
    """Dry runs plan without touching stores or the watermark."""

    async def test_dry_run_changes_nothing(self, tmp_path, host, remote, calls):
        host.put("a.md", b"a", updated_at=100)
        remote.put("b.md", b"b", updated_at=100)
        engine = _engine(host, remote, tmp_path)

        report = await engine.run(dry_run=True)

        assert report.dry_run
        assert {r.path: r.operation for r in report.results} == {
            "a.md": SyncOperation.PUSH,
            "b.md": SyncOperation.PULL,
        }
        assert calls == []
        assert engine.watermark_store.load() == 0


class TestAbort:
    """A failing action aborts the pass and keeps the watermark."""

    async def test_failure_keeps_watermark_and_earlier_work(
        self, tmp_path, host, remote
    ):
        WatermarkStore(tmp_path / "state").save(10)
        host.put("a.md", b"a", updated_at=100)
        host.put("b.md", b"b", updated_at=100)
        engine = _engine(host, remote, tmp_path)

        original_update = remote.update

        async def flaky_update(path, content, previous, new):
            if path == "b.md":
                raise StaleWriteError(path, previous, 999)
            await original_update(path, content, previous, new)

        remote.update = flaky_update

        with pytest.raises(StaleWriteError):
            await engine.run()

        assert remote.contents["a.md"] == b"a"
        assert "b.md" not in remote.records
        assert engine.watermark_store.load() == 10
        assert not engine.in_progress

    async def test_concurrent_run_is_refused(self, tmp_path):
        gate = asyncio.Event()

        class SlowStore(MemoryFileStore):
            async def list_files(self):
                await gate.wait()
                return await super().list_files()

        engine = _engine(SlowStore(), MemoryFileStore(), tmp_path)
        first = asyncio.create_task(engine.run())
        await asyncio.sleep(0)

        with pytest.raises(SyncInProgressError):
            await engine.run()

        gate.set()
        await first


class TestFromConfig:
    """Tests for SyncEngine.from_config()."""

    async def test_builds_from_sync_section(self, tmp_path):
        config = SyncConfig(
            exclude_globs="**/*.tmp",
            resolution_strategies=[
                ConflictRule(glob="**/*.bin", strategy="always-pull")
            ],
            fallback_conflict_resolution_strategy="ignore",
            state_dir=str(tmp_path / "state"),
        )
        host, remote = MemoryFileStore("host"), MemoryFileStore("remote")
        host.put("d/x.bin", b"h", updated_at=200)
        host.put("d/scratch.tmp", b"t", updated_at=200)
        remote.put("d/x.bin", b"r", updated_at=200)

        engine = SyncEngine.from_config(host, remote, config)
        report = await engine.run()

        (result,) = report.results
        assert result.path == "d/x.bin"
        assert result.effective_operation == SyncOperation.PULL
        assert host.contents["d/x.bin"] == b"r"
        assert "d/scratch.tmp" not in remote.records
