"""Local directory ``FileStore``.

Serves a directory tree as a replica.  Deletions are remembered in a JSON
history file so they can be propagated as tombstones:

* ``remove()`` records a tombstone directly.
* Files that vanish between two ``list_files()`` calls (deleted outside
  the engine) are detected by comparing the walk against the previous
  walk's manifest and tombstoned at detection time.
* Tombstones older than ``tombstone_retention_ms`` are dropped.

Modification times are read from and written to the filesystem with
millisecond precision (``st_mtime_ns``), so the ``updated_at`` written by
``update()`` is exactly what the next ``list_files()`` reports.

The store's own bookkeeping lives under ``<root>/.vault_sync/`` and is
never listed.  Every ``list_files()`` call saves the manifest and any
detected deletions, including listings made for a dry run: a deletion
not recorded when first observed could never be propagated.  Listing
never modifies synced files.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path

from vault_sync.core.async_utils import now_ms, run_sync
from vault_sync.exceptions import StaleWriteError, StoreIOError
from vault_sync.globs import ExcludeFilter
from vault_sync.state import atomic_write_json, read_json
from vault_sync.sync.models import FileRecord

logger = logging.getLogger(__name__)

META_DIRNAME = ".vault_sync"
HISTORY_FILENAME = "history.json"
TRASH_DIRNAME = "trash"

_NS_PER_MS = 1_000_000


def _empty_history() -> dict:
    return {"version": 1, "tombstones": {}, "manifest": {}}


class LocalFileStore:
    """Directory-backed store with a persisted tombstone history.

    Args:
        root: Directory to serve.
        history_path: Tombstone history file.  Defaults to
            ``<root>/.vault_sync/history.json``.
        exclude: Exclusion patterns applied while walking.
        tombstone_retention_ms: Drop tombstones older than this.  ``None``
            keeps them until pruned.
        use_trash: Move removed files to ``<root>/.vault_sync/trash/``
            instead of unlinking them.
    """

    def __init__(
        self,
        root: Path,
        history_path: Path | None = None,
        exclude: ExcludeFilter | None = None,
        tombstone_retention_ms: int | None = None,
        use_trash: bool = True,
    ) -> None:
        self.root = Path(root)
        self.meta_dir = self.root / META_DIRNAME
        self.history_path = history_path or self.meta_dir / HISTORY_FILENAME
        self.exclude = exclude or ExcludeFilter()
        self.tombstone_retention_ms = tombstone_retention_ms
        self.use_trash = use_trash

    # ------------------------------------------------------------------
    # FileStore protocol
    # ------------------------------------------------------------------

    async def list_files(self) -> list[FileRecord]:
        return await run_sync(self._list_files, now_ms())

    async def get_file_content(self, path: str) -> bytes:
        target = self._abs(path)
        try:
            return await run_sync(target.read_bytes)
        except OSError as exc:
            raise StoreIOError(path, str(exc)) from exc

    async def update(
        self,
        path: str,
        content: bytes,
        previous_updated_at: int,
        new_updated_at: int,
    ) -> None:
        await run_sync(
            self._update, path, content, previous_updated_at, new_updated_at
        )

    async def remove(
        self, path: str, previous_updated_at: int, now: int
    ) -> None:
        await run_sync(self._remove, path, previous_updated_at, now)

    async def prune(self, path: str) -> None:
        await run_sync(self._prune, path)

    # ------------------------------------------------------------------
    # Blocking implementations
    # ------------------------------------------------------------------

    def _list_files(self, now: int) -> list[FileRecord]:
        history = self._load_history()
        tombstones: dict[str, int] = history["tombstones"]
        manifest: dict[str, int] = history["manifest"]

        live: dict[str, FileRecord] = {}
        try:
            for rel, st in self._walk():
                updated_at = st.st_mtime_ns // _NS_PER_MS
                created_at = manifest.get(rel)
                if created_at is None:
                    created_at = self._birth_ms(st, updated_at)
                live[rel] = FileRecord(
                    path=rel,
                    size=st.st_size,
                    created_at=created_at,
                    updated_at=updated_at,
                    deleted_at=updated_at,
                )
        except OSError as exc:
            raise StoreIOError(str(self.root), str(exc)) from exc

        for rel in manifest:
            if rel not in live and rel not in tombstones:
                logger.info("Detected deletion of %s", rel)
                tombstones[rel] = now

        for rel in list(tombstones):
            if rel in live:
                del tombstones[rel]
            elif (
                self.tombstone_retention_ms is not None
                and tombstones[rel] < now - self.tombstone_retention_ms
            ):
                logger.debug("Tombstone for %s expired", rel)
                del tombstones[rel]

        history["manifest"] = {
            rel: record.created_at for rel, record in live.items()
        }
        self._save_history(history)

        records = list(live.values())
        records.extend(
            FileRecord.tombstone(rel, deleted_at)
            for rel, deleted_at in tombstones.items()
            if not self.exclude.is_excluded(rel)
        )
        return records

    def _update(
        self,
        path: str,
        content: bytes,
        previous_updated_at: int,
        new_updated_at: int,
    ) -> None:
        target = self._abs(path)
        self._check_fresh(path, target, previous_updated_at)

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=str(target.parent), suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "wb") as fh:
                    fh.write(content)
                stamp = new_updated_at * _NS_PER_MS
                os.utime(tmp_path, ns=(stamp, stamp))
                os.replace(tmp_path, target)
            except BaseException:
                try:
                    os.unlink(tmp_path)
                except OSError:
                    pass
                raise
        except OSError as exc:
            raise StoreIOError(path, str(exc)) from exc

        history = self._load_history()
        history["tombstones"].pop(path, None)
        history["manifest"].setdefault(path, new_updated_at)
        self._save_history(history)
        logger.debug("Wrote %s at %d", path, new_updated_at)

    def _remove(self, path: str, previous_updated_at: int, now: int) -> None:
        target = self._abs(path)
        if not self._check_fresh(path, target, previous_updated_at):
            return

        try:
            if self.use_trash:
                trashed = self.meta_dir / TRASH_DIRNAME / path
                trashed.parent.mkdir(parents=True, exist_ok=True)
                shutil.move(str(target), str(trashed))
            else:
                target.unlink()
        except OSError as exc:
            raise StoreIOError(path, str(exc)) from exc

        history = self._load_history()
        history["tombstones"][path] = now
        history["manifest"].pop(path, None)
        self._save_history(history)
        logger.debug("Removed %s at %d", path, now)

    def _prune(self, path: str) -> None:
        history = self._load_history()
        if history["tombstones"].pop(path, None) is not None:
            self._save_history(history)
            logger.debug("Pruned tombstone %s", path)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _abs(self, path: str) -> Path:
        target = (self.root / path).resolve()
        if not target.is_relative_to(self.root.resolve()):
            raise StoreIOError(path, "path escapes store root")
        return target

    def _walk(self):
        """Yield ``(relative_path, stat_result)`` for every listed file."""
        for dirpath, dirnames, filenames in os.walk(self.root):
            rel_dir = Path(dirpath).relative_to(self.root).as_posix()
            if rel_dir == ".":
                rel_dir = ""
                if META_DIRNAME in dirnames:
                    dirnames.remove(META_DIRNAME)
            dirnames.sort()
            for name in sorted(filenames):
                rel = f"{rel_dir}/{name}" if rel_dir else name
                if self.exclude.is_excluded(rel):
                    continue
                yield rel, os.stat(os.path.join(dirpath, name))

    @staticmethod
    def _birth_ms(st: os.stat_result, fallback: int) -> int:
        birth = getattr(st, "st_birthtime", None)
        if birth is None:
            return fallback
        return min(int(birth * 1000), fallback)

    @staticmethod
    def _check_fresh(
        path: str, target: Path, previous_updated_at: int
    ) -> bool:
        """Raise if *target* changed; return whether it exists."""
        try:
            mtime = target.stat().st_mtime_ns // _NS_PER_MS
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise StoreIOError(path, str(exc)) from exc
        if mtime != 0 and mtime != previous_updated_at:
            raise StaleWriteError(path, previous_updated_at, mtime)
        return True

    def _load_history(self) -> dict:
        history = read_json(self.history_path, None)
        if not isinstance(history, dict):
            return _empty_history()
        history.setdefault("tombstones", {})
        history.setdefault("manifest", {})
        return history

    def _save_history(self, history: dict) -> None:
        try:
            atomic_write_json(self.history_path, history)
        except OSError as exc:
            raise StoreIOError(str(self.history_path), str(exc)) from exc
