"""In-memory ``FileStore``.

Keeps one record per path (live or tombstone) plus the content of live
paths.  Useful as a remote stand-in and for exercising the engine without
touching disk.
"""

from __future__ import annotations

import logging

from vault_sync.exceptions import StaleWriteError, StoreIOError
from vault_sync.sync.models import FileRecord

logger = logging.getLogger(__name__)


class MemoryFileStore:
    """Dictionary-backed store.

    Args:
        name: Label used in log messages.
    """

    def __init__(self, name: str = "memory") -> None:
        self.name = name
        self.records: dict[str, FileRecord] = {}
        self.contents: dict[str, bytes] = {}

    # ------------------------------------------------------------------
    # Seeding helpers
    # ------------------------------------------------------------------

    def put(
        self,
        path: str,
        content: bytes,
        updated_at: int,
        created_at: int | None = None,
    ) -> FileRecord:
        """Create or overwrite a live file without any staleness check."""
        record = FileRecord(
            path=path,
            size=len(content),
            created_at=updated_at if created_at is None else created_at,
            updated_at=updated_at,
            deleted_at=updated_at,
        )
        self.records[path] = record
        self.contents[path] = content
        return record

    def put_tombstone(self, path: str, deleted_at: int) -> FileRecord:
        """Replace *path* with a tombstone."""
        record = FileRecord.tombstone(path, deleted_at)
        self.records[path] = record
        self.contents.pop(path, None)
        return record

    # ------------------------------------------------------------------
    # FileStore protocol
    # ------------------------------------------------------------------

    async def list_files(self) -> list[FileRecord]:
        return list(self.records.values())

    async def get_file_content(self, path: str) -> bytes:
        try:
            return self.contents[path]
        except KeyError:
            raise StoreIOError(path, "no such file") from None

    async def update(
        self,
        path: str,
        content: bytes,
        previous_updated_at: int,
        new_updated_at: int,
    ) -> None:
        current = self._check_fresh(path, previous_updated_at)
        created_at = current.created_at if current else new_updated_at
        self.put(path, content, new_updated_at, created_at=created_at)
        logger.debug("[%s] wrote %s at %d", self.name, path, new_updated_at)

    async def remove(
        self, path: str, previous_updated_at: int, now: int
    ) -> None:
        if self._check_fresh(path, previous_updated_at) is None:
            return
        self.put_tombstone(path, now)
        logger.debug("[%s] removed %s at %d", self.name, path, now)

    async def prune(self, path: str) -> None:
        record = self.records.get(path)
        if record is not None and record.deleted:
            del self.records[path]
            logger.debug("[%s] pruned tombstone %s", self.name, path)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _check_fresh(
        self, path: str, previous_updated_at: int
    ) -> FileRecord | None:
        """Return the live record for *path* after the staleness check."""
        record = self.records.get(path)
        live = record if record is not None and not record.deleted else None
        mtime = live.updated_at if live else 0
        if mtime != 0 and mtime != previous_updated_at:
            raise StaleWriteError(path, previous_updated_at, mtime)
        return live
