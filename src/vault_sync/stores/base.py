"""The ``FileStore`` protocol implemented by host and remote stores."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from vault_sync.sync.models import FileRecord


@runtime_checkable
class FileStore(Protocol):
    """One replica of the synchronised file tree.

    Every method is a coroutine; the engine awaits them one at a time.
    Timestamps are integer epoch milliseconds.
    """

    async def list_files(self) -> list[FileRecord]:
        """Return live records plus tombstones of recently deleted paths."""
        ...  # pragma: no cover

    async def get_file_content(self, path: str) -> bytes:
        """Return the stored content of *path*.

        Raises:
            StoreIOError: If the content cannot be read.
        """
        ...  # pragma: no cover

    async def update(
        self,
        path: str,
        content: bytes,
        previous_updated_at: int,
        new_updated_at: int,
    ) -> None:
        """Write *content* to *path* stamped with *new_updated_at*.

        Raises:
            StaleWriteError: If the current modification time of *path*
                is non-zero and differs from *previous_updated_at*.
        """
        ...  # pragma: no cover

    async def remove(
        self, path: str, previous_updated_at: int, now: int
    ) -> None:
        """Delete *path*, leaving a tombstone dated *now*.

        Raises:
            StaleWriteError: Same check as ``update()``.
        """
        ...  # pragma: no cover

    async def prune(self, path: str) -> None:
        """Forget the tombstone for *path*.  Live content is never touched."""
        ...  # pragma: no cover
