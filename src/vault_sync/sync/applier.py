"""Execution of planned sync actions against the two stores.

``SyncApplier.apply()`` is the single action table: conflicts that
resolve to a push or pull are re-dispatched through it with the same
``now`` and the same recorded metadata, so they get exactly the
semantics of a planned push or pull.

Ordering rules (the remote side is the one other replicas observe, so it
is written first):

* ``remove`` deletes from the remote, then from the host.
* A merged conflict is written to the remote, then to the host.

Store errors propagate unchanged; the caller aborts the pass.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from vault_sync.codec import (
    ContentCodec,
    PlainCodec,
    bytes_to_text,
    text_to_bytes,
)
from vault_sync.sync.models import (
    FileRecord,
    Strategy,
    SyncAction,
    SyncOperation,
    SyncResult,
)
from vault_sync.sync.resolver import ConflictResolver, strategy_to_operation

if TYPE_CHECKING:
    from vault_sync.stores.base import FileStore

logger = logging.getLogger(__name__)


class SyncApplier:
    """Apply ``SyncAction`` objects to a host/remote store pair.

    Args:
        host: The host store.
        remote: The remote store.
        resolver: Conflict resolver consulted for ``conflict`` actions.
        codec: Transform applied around content that is merged.
    """

    def __init__(
        self,
        host: FileStore,
        remote: FileStore,
        resolver: ConflictResolver,
        codec: ContentCodec | None = None,
    ) -> None:
        self.host = host
        self.remote = remote
        self.resolver = resolver
        self.codec = codec or PlainCodec()

    async def apply(self, action: SyncAction, now: int) -> SyncResult:
        """Execute *action*.

        Returns:
            A ``SyncResult`` recording the operation actually executed.

        Raises:
            StaleWriteError: A store saw a concurrent modification.
            ResolutionError: The conflict strategy is not recognised.
            StoreIOError: A store read or write failed.
        """
        match action.operation:
            case SyncOperation.PRUNE:
                return await self._prune(action)
            case SyncOperation.REMOVE:
                return await self._remove(action, now)
            case SyncOperation.PUSH:
                return await self._push(action)
            case SyncOperation.PULL:
                return await self._pull(action)
            case SyncOperation.CONFLICT:
                return await self._conflict(action, now)
        raise ValueError(f"Unhandled sync operation: {action.operation}")

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def _prune(self, action: SyncAction) -> SyncResult:
        effective = None
        host_file = action.host_file
        if host_file is not None and host_file.deleted:
            await self.host.prune(host_file.path)
            effective = SyncOperation.PRUNE
        return SyncResult(
            path=action.path,
            operation=action.operation,
            effective_operation=effective,
        )

    async def _remove(self, action: SyncAction, now: int) -> SyncResult:
        if action.remote_file is not None:
            await self.remote.remove(
                action.remote_file.path, action.remote_file.updated_at, now
            )
        if action.host_file is not None:
            await self.host.remove(
                action.host_file.path, action.host_file.updated_at, now
            )
        logger.info("Removed %s", action.path)
        return SyncResult(
            path=action.path,
            operation=action.operation,
            effective_operation=SyncOperation.REMOVE,
        )

    async def _push(self, action: SyncAction) -> SyncResult:
        host_file = action.host_file
        if host_file is None:
            return SyncResult(path=action.path, operation=action.operation)

        token = (
            action.remote_file.updated_at
            if action.remote_file is not None
            else host_file.updated_at
        )
        content = await self.host.get_file_content(host_file.path)
        await self.remote.update(
            host_file.path, content, token, host_file.updated_at
        )
        logger.info("Pushed %s", host_file.path)
        return SyncResult(
            path=action.path,
            operation=action.operation,
            effective_operation=SyncOperation.PUSH,
        )

    async def _pull(self, action: SyncAction) -> SyncResult:
        remote_file = action.remote_file
        if remote_file is None:
            return SyncResult(path=action.path, operation=action.operation)

        token = (
            action.host_file.updated_at
            if action.host_file is not None
            else remote_file.updated_at
        )
        content = await self.remote.get_file_content(remote_file.path)
        await self.host.update(
            remote_file.path, content, token, remote_file.updated_at
        )
        logger.info("Pulled %s", remote_file.path)
        return SyncResult(
            path=action.path,
            operation=action.operation,
            effective_operation=SyncOperation.PULL,
        )

    async def _conflict(self, action: SyncAction, now: int) -> SyncResult:
        host_file = action.host_file
        remote_file = action.remote_file
        if host_file is None or remote_file is None:
            return SyncResult(path=action.path, operation=action.operation)

        strategy = self.resolver.classify(host_file, remote_file)
        logger.info(
            "Conflict on %s resolved by '%s'", action.path, strategy.value
        )

        if strategy == Strategy.RESOLVE:
            merged = await self._merge(host_file, remote_file)
            # Remote first.
            await self.remote.update(
                remote_file.path, merged, remote_file.updated_at, now
            )
            await self.host.update(
                host_file.path, merged, host_file.updated_at, now
            )
            return SyncResult(
                path=action.path,
                operation=action.operation,
                strategy=strategy,
                effective_operation=SyncOperation.CONFLICT,
            )

        operation = strategy_to_operation(strategy, host_file, remote_file)

        if operation is None:
            return SyncResult(
                path=action.path,
                operation=action.operation,
                strategy=strategy,
            )

        result = await self.apply(action.redispatch(operation), now)
        return SyncResult(
            path=action.path,
            operation=action.operation,
            strategy=strategy,
            effective_operation=result.effective_operation,
        )

    async def _merge(
        self, host_file: FileRecord, remote_file: FileRecord
    ) -> bytes:
        """Read, decode, merge and re-encode both sides of a conflict."""

        host_raw = await self.host.get_file_content(host_file.path)
        remote_raw = await self.remote.get_file_content(remote_file.path)
        host_text = bytes_to_text(self.codec.decode(host_raw))
        remote_text = bytes_to_text(self.codec.decode(remote_raw))

        merged = self.resolver.merge(
            host_file, remote_file, host_text, remote_text
        )
        return self.codec.encode(text_to_bytes(merged))
