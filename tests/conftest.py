"""Shared pytest fixtures for vault-sync tests."""

from __future__ import annotations

import pytest

from vault_sync.stores.memory import MemoryFileStore
from vault_sync.sync.models import FileRecord


class RecordingStore(MemoryFileStore):
    """MemoryFileStore that appends every mutating call to a shared log."""

    def __init__(self, name: str, calls: list[tuple]) -> None:
        super().__init__(name)
        self.calls = calls

    async def update(self, path, content, previous_updated_at, new_updated_at):
        self.calls.append(
            (self.name, "update", path, previous_updated_at, new_updated_at)
        )
        await super().update(
            path, content, previous_updated_at, new_updated_at
        )

    async def remove(self, path, previous_updated_at, now):
        self.calls.append((self.name, "remove", path, previous_updated_at, now))
        await super().remove(path, previous_updated_at, now)

    async def prune(self, path):
        self.calls.append((self.name, "prune", path))
        await super().prune(path)


@pytest.fixture
def calls() -> list[tuple]:
    """Shared call log for host and remote recording stores."""
    return []


@pytest.fixture
def host(calls) -> RecordingStore:
    return RecordingStore("host", calls)


@pytest.fixture
def remote(calls) -> RecordingStore:
    return RecordingStore("remote", calls)


def live(
    path: str, updated_at: int, created_at: int | None = None, size: int = 1
) -> FileRecord:
    """Build a live FileRecord."""
    return FileRecord(
        path=path,
        size=size,
        created_at=updated_at if created_at is None else created_at,
        updated_at=updated_at,
        deleted_at=updated_at,
    )


def tomb(path: str, deleted_at: int) -> FileRecord:
    """Build a tombstone FileRecord."""
    return FileRecord.tombstone(path, deleted_at)
