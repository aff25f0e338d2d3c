"""Sync action planning.

``plan()`` compares the host and remote metadata snapshots and returns
one ``SyncAction`` per path that needs work.  It runs four passes in
priority order; a path assigned by an earlier pass is never reassigned:

1. Remote tombstones.
2. Host tombstones.
3. Live host files.
4. Live remote files.

All timestamp comparisons are strict, so ties fall through to "no
action".  Planning is pure computation over the snapshots and never
touches a store.
"""

from __future__ import annotations

import logging
from typing import Iterable, Iterator

from vault_sync.sync.models import FileRecord, SyncAction, SyncOperation

logger = logging.getLogger(__name__)


class ActionMap:
    """Ordered path -> action mapping with insert-if-absent semantics."""

    def __init__(self) -> None:
        self._actions: dict[str, SyncAction] = {}

    def __contains__(self, path: object) -> bool:
        return path in self._actions

    def __len__(self) -> int:
        return len(self._actions)

    def __iter__(self) -> Iterator[SyncAction]:
        return iter(self._actions.values())

    def assign(
        self,
        path: str,
        operation: SyncOperation,
        host_file: FileRecord | None,
        remote_file: FileRecord | None,
    ) -> bool:
        """Record an action for *path* unless one exists already.

        Returns:
            ``True`` if the action was recorded.
        """
        if path in self._actions:
            return False
        self._actions[path] = SyncAction(
            host_file=host_file,
            remote_file=remote_file,
            operation=operation,
        )
        logger.debug(
            "%s %s (host=%s, remote=%s)",
            operation.value,
            path,
            host_file,
            remote_file,
        )
        return True


def _index(files: Iterable[FileRecord]) -> dict[str, FileRecord]:
    return {f.path: f for f in files}


def plan(
    host_files: Iterable[FileRecord],
    remote_files: Iterable[FileRecord],
    watermark: int,
) -> list[SyncAction]:
    """Plan the actions needed to reconcile host and remote.

    Args:
        host_files: Host snapshot, tombstones included.
        remote_files: Remote snapshot, tombstones included.
        watermark: ``last_synced_at`` of the previous successful pass.

    Returns:
        Actions ordered by the pass that created them.
    """
    hosts = _index(host_files)
    remotes = _index(remote_files)
    actions = ActionMap()

    # Remote deletions.  A remote tombstone without a host record is left
    # alone: other hosts may not have observed it yet.
    for path, remote in remotes.items():
        if not remote.deleted:
            continue
        host = hosts.get(path)
        if host is None:
            continue
        if host.deleted:
            actions.assign(path, SyncOperation.PRUNE, host, remote)
        elif host.created_at < remote.deleted_at:
            actions.assign(path, SyncOperation.REMOVE, host, remote)
        else:
            actions.assign(path, SyncOperation.PUSH, host, remote)

    # Host deletions.  Two tombstones agree already; the remote one is
    # kept for other hosts.
    for path, host in hosts.items():
        if not host.deleted:
            continue
        remote = remotes.get(path)
        if remote is None:
            actions.assign(path, SyncOperation.PRUNE, host, None)
        elif remote.deleted:
            continue
        elif remote.created_at < host.deleted_at:
            actions.assign(path, SyncOperation.REMOVE, host, remote)
        else:
            actions.assign(path, SyncOperation.PULL, host, remote)

    for path, host in hosts.items():
        if host.deleted or path in actions:
            continue
        remote = remotes.get(path)
        if remote is None or remote.updated_at < host.updated_at:
            actions.assign(path, SyncOperation.PUSH, host, remote)
        elif remote.updated_at > watermark:
            actions.assign(path, SyncOperation.CONFLICT, host, remote)

    for path, remote in remotes.items():
        if remote.deleted or path in actions:
            continue
        host = hosts.get(path)
        if host is None or host.updated_at < remote.updated_at:
            actions.assign(path, SyncOperation.PULL, host, remote)
        elif host.updated_at > watermark:
            actions.assign(path, SyncOperation.CONFLICT, host, remote)

    return list(actions)
